# -*- coding: utf-8 -*-
"""
Streaming collaborator contract.

The waveform streaming thread is started once per control connection and
given two things: the shared `InstrumentState` (to read the arm snapshot and
the buffer reallocation flag) and a `threading.Event` stop token. It must
return promptly once the token is set; the connection supervisor joins it
before accepting the next client.

Binary waveform encoding and the data socket belong to the streamer
implementation, not to the control plane. `SnapshotWatcher` is the default
collaborator: it follows the arm snapshot and logs capture parameter changes.
"""

from __future__ import annotations

import threading
from typing import Optional, Protocol

from loguru import logger

from wfmserver.instrument import ArmSnapshot, InstrumentState

DEFAULT_POLL_INTERVAL = 0.05  # seconds


class Streamer(Protocol):
    def __call__(self, state: InstrumentState, stop_event: threading.Event) -> None:
        """Run until ``stop_event`` is set."""
        ...


class SnapshotWatcher:
    """Default streaming collaborator that tracks arm snapshots."""

    def __init__(self, poll_interval: float = DEFAULT_POLL_INTERVAL):
        self.poll_interval = poll_interval

    def __call__(self, state: InstrumentState, stop_event: threading.Event) -> None:
        logger.debug("Waveform thread started")
        last: Optional[ArmSnapshot] = None
        while not stop_event.wait(self.poll_interval):
            if state.consume_depth_changed():
                logger.debug("Channel set or memory depth changed, reallocating buffers")
            snapshot = state.current_snapshot()
            if snapshot != last:
                if snapshot is not None:
                    logger.debug(
                        "Capture armed: channels {}, {} fs/sample, depth {}",
                        snapshot.enabled_channels,
                        snapshot.sample_interval_fs,
                        snapshot.memory_depth,
                    )
                last = snapshot
        logger.debug("Waveform thread exiting")
