# -*- coding: utf-8 -*-
"""
Trigger arm/disarm state machine.

States are Disarmed (initial) and Armed, the latter carrying a one-shot flag.
Arming copies the live configuration into the arm snapshot and starts a single
acquisition on the device; re-arming while already armed simply repeats that
sequence. Callers must hold ``state.lock``.
"""

from __future__ import annotations

from typing import Callable

from loguru import logger

from wfmserver.instrument.state import InstrumentState
from wfmserver.types import DeviceControlPort, DeviceError


def device_call(name: str, func: Callable, *args):
    """Run one device port call, logging a failure instead of raising it.

    Returns the call's result, or None if the device reported a failure.
    """
    try:
        return func(*args)
    except DeviceError as e:
        logger.error("{} failed: {}", name, e)
        return None


class TriggerStateMachine:
    def __init__(self, state: InstrumentState, device: DeviceControlPort):
        self.state = state
        self.device = device

    @property
    def armed(self) -> bool:
        return self.state.armed

    def can_start(self) -> tuple[bool, str]:
        """Admission check for START/SINGLE."""
        if self.state.armed:
            return False, "trigger is already armed"
        if not self.state.any_channel_enabled():
            return False, "no channels are active"
        return True, ""

    def arm(self, force: bool = False) -> None:
        """Snapshot the configuration and start a single acquisition.

        ``force`` marks a manual force-trigger, which is never subject to the
        admission check; the check itself lives in `can_start`.
        """
        state = self.state
        state.snapshot = state.take_snapshot()

        interval = state.acquisition.sample_interval_fs
        # no rate programmed yet means no meaningful sample position
        state.trigger.sample_index = state.trigger.delay_fs // interval if interval else 0

        device_call("set_acquisition_mode", self.device.set_acquisition_mode, True)
        device_call("configure", self.device.configure, True, True)

        state.armed = True
        logger.debug(
            "Trigger armed{} ({} channel(s), {} fs/sample, depth {})",
            " (forced)" if force else "",
            len(state.snapshot.enabled_channels),
            state.snapshot.sample_interval_fs,
            state.snapshot.memory_depth,
        )

    def disarm(self) -> None:
        device_call("configure", self.device.configure, True, False)
        self.mark_disarmed()
        logger.debug("Trigger disarmed")

    def mark_disarmed(self) -> None:
        """Clear the armed state without touching the device."""
        self.state.armed = False
        self.state.one_shot = False
        self.state.snapshot = None

    def rearm_if_armed(self) -> bool:
        """Re-apply the arm sequence after a configuration change."""
        if not self.state.armed:
            return False
        self.arm()
        return True
