# -*- coding: utf-8 -*-
"""
Mutable instrument configuration shared by the command loop and the
streaming thread.

`InstrumentState` bundles the live configuration, the arm-time snapshot and
the armed flags behind a single `threading.RLock`. The dispatcher holds the
lock for the whole of each mutating command (state change plus device call);
the streaming collaborator takes it to read a consistent snapshot.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Optional

from wfmserver.types import TriggerSlope, TriggerType

DEFAULT_MEMORY_DEPTH = 1_000_000  # samples per channel


@dataclass
class ChannelConfig:
    """Per-channel settings, indexed by zero-based channel number."""

    enabled: bool = False
    offset_volts: float = 0.0
    attenuation: float = 1.0
    range_volts: float = 5.0


@dataclass
class AcquisitionConfig:
    sample_interval_fs: int = 0
    memory_depth: int = DEFAULT_MEMORY_DEPTH
    # consumed (and cleared) by the buffer allocator in the streaming thread
    memory_depth_changed: bool = False


@dataclass
class TriggerConfig:
    mode: TriggerType = TriggerType.EDGE
    slope: TriggerSlope = TriggerSlope.EITHER
    level_volts: float = 0.0
    source_channel: int = 0
    delay_fs: int = 0  # from the start of the buffer
    position_fs: int = 0  # requested position relative to the buffer midpoint
    sample_index: int = 0  # delay_fs expressed in samples, set on arm
    position_error_sec: float = 0.0  # actual - requested trigger position


@dataclass(frozen=True)
class ArmSnapshot:
    """Capture parameters frozen at the instant the trigger was armed."""

    channel_enabled: tuple[bool, ...]
    sample_interval_fs: int
    memory_depth: int

    @property
    def enabled_channels(self) -> list[int]:
        return [i for i, on in enumerate(self.channel_enabled) if on]


@dataclass
class InstrumentState:
    """Process-wide instrument configuration.

    Attributes
    ----------
    num_channels : int
        Number of analog input channels; channel indices are clamped to
        ``[0, num_channels - 1]``.
    snapshot : ArmSnapshot or None
        Set while armed, None while disarmed.
    one_shot : bool
        Only meaningful while ``armed`` is True.
    """

    num_channels: int
    channels: list[ChannelConfig] = field(default_factory=list)
    acquisition: AcquisitionConfig = field(default_factory=AcquisitionConfig)
    trigger: TriggerConfig = field(default_factory=TriggerConfig)
    snapshot: Optional[ArmSnapshot] = None
    armed: bool = False
    one_shot: bool = False
    lock: threading.RLock = field(
        default_factory=threading.RLock, repr=False, compare=False
    )

    def __post_init__(self):
        if self.num_channels < 1:
            raise ValueError(f"num_channels must be positive, got {self.num_channels}")
        if not self.channels:
            self.channels = [ChannelConfig() for _ in range(self.num_channels)]

    def clamp_channel(self, index: int) -> int:
        return max(0, min(index, self.num_channels - 1))

    def any_channel_enabled(self) -> bool:
        return any(ch.enabled for ch in self.channels)

    def take_snapshot(self) -> ArmSnapshot:
        return ArmSnapshot(
            channel_enabled=tuple(ch.enabled for ch in self.channels),
            sample_interval_fs=self.acquisition.sample_interval_fs,
            memory_depth=self.acquisition.memory_depth,
        )

    def consume_depth_changed(self) -> bool:
        """Return and clear the buffer reallocation flag."""
        with self.lock:
            changed = self.acquisition.memory_depth_changed
            self.acquisition.memory_depth_changed = False
            return changed

    def current_snapshot(self) -> Optional[ArmSnapshot]:
        with self.lock:
            return self.snapshot
