"""
Instrument configuration.

See Also
--------
wfmserver.system.sysconfig : INI loading and validation
"""

from .sysconfig import (
    InstrumentConfig,
    create_default_instruments_file,
    list_available_instruments,
    load_instrument_config,
    validate_instrument_config,
)

__all__ = [
    "InstrumentConfig",
    "create_default_instruments_file",
    "list_available_instruments",
    "load_instrument_config",
    "validate_instrument_config",
]
