# -*- coding: utf-8 -*-
"""
Acquisition device implementations for wfmserver.

Each device class implements the `wfmserver.types.DeviceControlPort`
protocol and derives from the `Device` base class, which validates the
keyword configuration read from the instrument INI file.

Examples
--------
```python
from wfmserver.device import SimulatedDigitizer
dev = SimulatedDigitizer(num_channels=4, position_quantum_s=1e-8)
dev.open()
```

See Also
--------
wfmserver.system : Instrument configuration
wfmserver.types.protocols : Device control port definition
"""

from .device import Device
from .mock import SimulatedDigitizer

DEVICE_TYPES: dict[str, type[Device]] = {
    "SimulatedDigitizer": SimulatedDigitizer,
}


def get_device_class(name: str) -> type[Device]:
    """Look up a device class by its configured type name."""
    try:
        return DEVICE_TYPES[name]
    except KeyError:
        raise ValueError(
            f"Unknown device type: {name} (known: {', '.join(DEVICE_TYPES)})"
        ) from None


__all__ = [
    "DEVICE_TYPES",
    "Device",
    "SimulatedDigitizer",
    "get_device_class",
]
