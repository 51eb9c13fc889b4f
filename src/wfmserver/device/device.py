"""Device base class.

Every acquisition device served by wfmserver inherits from `Device`, which
validates the keyword configuration loaded from the instrument INI file and
defines the connection lifecycle. Subclasses then implement the methods of
`wfmserver.types.DeviceControlPort`.

Required Methods
----------------
- open(): Connect to the hardware
- close(): Disconnect from the hardware
- is_connected(): Check connection status

Examples
--------
```python
class MyDigitizer(Device):
    required_config = {"serial_number": str}

    def open(self) -> tuple[bool, str]:
        ...
        return True, "Connected"
```
"""

from __future__ import annotations

from typing import Type

from loguru import logger


class Device:
    """Base class for all acquisition devices.

    Attributes
    ----------
    required_config : dict[str, Type]
        Required configuration parameters and their types
    """

    required_config: dict[str, Type] = {}  # Required configuration keys

    def __init__(self, **config_kwargs):
        for key, value in config_kwargs.items():
            setattr(self, key, value)
        for key, value in self.required_config.items():
            if not hasattr(self, key):
                logger.error(
                    f"Device {self.__class__.__name__} missing required config key: "
                    + f"{key}"
                )
                raise ValueError(
                    f"Device {self.__class__.__name__} missing required config "
                    + f"key: {key}"
                )
            if not isinstance(getattr(self, key), value):
                logger.error(
                    f"Device {self.__class__.__name__} config key {key} "
                    + f"has wrong type: {type(getattr(self, key))} (expected {value})"
                )
                raise ValueError(
                    f"Device {self.__class__.__name__} config key {key} has "
                    + f"wrong type: {type(getattr(self, key))} (expected {value})"
                )

    def open(self) -> tuple[bool, str]:
        raise NotImplementedError()

    def close(self):
        raise NotImplementedError()

    def is_connected(self) -> bool:
        raise NotImplementedError()
