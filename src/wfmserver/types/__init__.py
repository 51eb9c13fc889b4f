"""
Protocol definitions and shared enumerations.

The `DeviceControlPort` protocol is the hardware abstraction boundary: the
dispatcher and trigger state machine only call the methods it declares, and
every device implementation (real or simulated) provides them.

See Also
--------
wfmserver.types.protocols : Protocol and enum definitions
wfmserver.device : Device implementations
"""

from .protocols import DeviceControlPort, DeviceError, TriggerSlope, TriggerType

__all__ = [
    "DeviceControlPort",
    "DeviceError",
    "TriggerSlope",
    "TriggerType",
]
