"""Device control port protocol.

This module defines the capability set the command dispatcher and the trigger
state machine need from the acquisition hardware. The server never talks to a
driver directly: a device object implementing `DeviceControlPort` is injected
at construction, so the whole control plane runs against a simulated device in
tests.

The Protocol Pattern
--------------------
Devices only need to implement the methods below (duck typing); they do not
have to inherit from the protocol class. `@runtime_checkable` allows an
``isinstance`` check when a device is loaded from configuration.

Failure Model
-------------
Every method signals a hardware failure by raising `DeviceError`. Callers log
the failure and carry on; no in-memory state is rolled back.

See Also
--------
wfmserver.device : Device implementations
"""

from __future__ import annotations

from enum import Enum
from typing import Protocol, runtime_checkable


class DeviceError(Exception):
    """Raised by a device when a hardware call fails."""


class TriggerType(str, Enum):
    """Trigger types. Only edge triggering is supported."""

    EDGE = "EDGE"


class TriggerSlope(str, Enum):
    """Edge trigger slope."""

    RISING = "RISING"
    FALLING = "FALLING"
    EITHER = "EITHER"

    @classmethod
    def from_arg(cls, arg: str) -> TriggerSlope:
        """Map a wire argument to a slope; anything unknown means either edge."""
        if arg == "RISING":
            return cls.RISING
        if arg == "FALLING":
            return cls.FALLING
        return cls.EITHER


@runtime_checkable
class DeviceControlPort(Protocol):
    """Methods required from an acquisition device.

    Channel indices are zero-based. Each method raises `DeviceError` on
    failure.
    """

    def reset(self) -> None:
        """Return the acquisition hardware to its default configuration."""
        ...

    def set_channel_enable(self, channel: int, enabled: bool) -> None: ...

    def set_offset(self, channel: int, volts: float) -> None: ...

    def set_attenuation(self, channel: int, factor: float) -> None: ...

    def set_range(self, channel: int, volts: float) -> None: ...

    def set_sample_rate(self, hz: float) -> None: ...

    def set_buffer_size(self, samples: int) -> None: ...

    def set_trigger_type(self, trigger_type: TriggerType) -> None: ...

    def set_trigger_slope(self, slope: TriggerSlope) -> None: ...

    def set_trigger_level(self, volts: float) -> None: ...

    def set_trigger_source(self, channel: int) -> None: ...

    def set_auto_trigger_timeout(self, seconds: float) -> None:
        """Set the auto-trigger timeout; 0 waits for a real trigger forever."""
        ...

    def set_trigger_position(self, seconds: float) -> float:
        """Program the trigger position and return what the hardware applied.

        The hardware may round the request, so the returned value can differ
        from ``seconds``.
        """
        ...

    def get_frequency_range(self) -> tuple[float, float]:
        """Return the (minimum, maximum) sample frequency in Hz."""
        ...

    def configure(self, reconfigure: bool, start: bool) -> None:
        """Apply pending settings; start an acquisition if ``start`` is set."""
        ...

    def set_acquisition_mode(self, single: bool) -> None: ...
