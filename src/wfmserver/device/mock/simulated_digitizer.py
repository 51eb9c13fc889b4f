from __future__ import annotations

from typing import Any

from loguru import logger

from wfmserver.device.device import Device
from wfmserver.types import DeviceError, TriggerSlope, TriggerType


class SimulatedDigitizer(Device):
    """In-memory digitizer implementing the device control port.

    Every call is appended to ``calls`` as ``(method_name, args)``. Method
    names listed in ``fail_on`` raise `DeviceError` instead of applying, and
    trigger positions are rounded to ``position_quantum_s`` the way real
    hardware rounds to its timebase.
    """

    def __init__(self, **config):
        config.setdefault("num_channels", 2)
        config.setdefault("min_freq_hz", 1.0)
        config.setdefault("max_freq_hz", 100e6)
        config.setdefault("position_quantum_s", 0.0)
        super().__init__(**config)
        self.fail_on: set[str] = set(config.get("fail_on", ()))
        self.calls: list[tuple[str, tuple[Any, ...]]] = []
        self._connected = False
        self._set_defaults()

    def _set_defaults(self):
        self._enabled = [False] * self.num_channels
        self._offsets = [0.0] * self.num_channels
        self._attenuations = [1.0] * self.num_channels
        self._ranges = [5.0] * self.num_channels
        self._sample_rate_hz = self.max_freq_hz
        self._buffer_size = 0
        self._trigger_type = TriggerType.EDGE
        self._trigger_slope = TriggerSlope.RISING
        self._trigger_level = 0.0
        self._trigger_source = 0
        self._auto_timeout_s = 0.0
        self._trigger_position_s = 0.0
        self._single = False
        self._running = False

    def _record(self, name: str, *args) -> None:
        self.calls.append((name, args))
        if name in self.fail_on:
            raise DeviceError(f"{name} failed (simulated)")

    def call_names(self) -> list[str]:
        return [name for name, _ in self.calls]

    # lifecycle
    def open(self):
        self._connected = True
        return True, "SimulatedDigitizer opened"

    def close(self):
        self._connected = False

    def is_connected(self) -> bool:
        return self._connected

    # device control port
    def reset(self) -> None:
        self._record("reset")
        self._set_defaults()

    def set_channel_enable(self, channel: int, enabled: bool) -> None:
        self._record("set_channel_enable", channel, enabled)
        self._enabled[channel] = enabled

    def set_offset(self, channel: int, volts: float) -> None:
        self._record("set_offset", channel, volts)
        self._offsets[channel] = volts

    def set_attenuation(self, channel: int, factor: float) -> None:
        self._record("set_attenuation", channel, factor)
        self._attenuations[channel] = factor

    def set_range(self, channel: int, volts: float) -> None:
        self._record("set_range", channel, volts)
        self._ranges[channel] = volts

    def set_sample_rate(self, hz: float) -> None:
        self._record("set_sample_rate", hz)
        self._sample_rate_hz = hz

    def set_buffer_size(self, samples: int) -> None:
        self._record("set_buffer_size", samples)
        self._buffer_size = samples

    def set_trigger_type(self, trigger_type: TriggerType) -> None:
        self._record("set_trigger_type", trigger_type)
        self._trigger_type = trigger_type

    def set_trigger_slope(self, slope: TriggerSlope) -> None:
        self._record("set_trigger_slope", slope)
        self._trigger_slope = slope

    def set_trigger_level(self, volts: float) -> None:
        self._record("set_trigger_level", volts)
        self._trigger_level = volts

    def set_trigger_source(self, channel: int) -> None:
        self._record("set_trigger_source", channel)
        self._trigger_source = channel

    def set_auto_trigger_timeout(self, seconds: float) -> None:
        self._record("set_auto_trigger_timeout", seconds)
        self._auto_timeout_s = seconds

    def set_trigger_position(self, seconds: float) -> float:
        self._record("set_trigger_position", seconds)
        if self.position_quantum_s > 0:
            seconds = round(seconds / self.position_quantum_s) * self.position_quantum_s
        self._trigger_position_s = seconds
        return seconds

    def get_frequency_range(self) -> tuple[float, float]:
        self._record("get_frequency_range")
        return self.min_freq_hz, self.max_freq_hz

    def configure(self, reconfigure: bool, start: bool) -> None:
        self._record("configure", reconfigure, start)
        self._running = start
        logger.trace(
            "SimulatedDigitizer {}", "acquiring" if start else "idle"
        )

    def set_acquisition_mode(self, single: bool) -> None:
        self._record("set_acquisition_mode", single)
        self._single = single

    # inspection helpers
    @property
    def running(self) -> bool:
        return self._running

    @property
    def trigger_position_s(self) -> float:
        return self._trigger_position_s

    def channel_enabled(self, channel: int) -> bool:
        return self._enabled[channel]
