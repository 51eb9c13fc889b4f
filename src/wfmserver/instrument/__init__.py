# -*- coding: utf-8 -*-
"""
Instrument core: configuration state, trigger state machine and the SCPI
command dispatcher.

Examples
--------
```python
from wfmserver.device import SimulatedDigitizer
from wfmserver.instrument import CommandDispatcher, InstrumentState

state = InstrumentState(num_channels=2)
dispatcher = CommandDispatcher(state, SimulatedDigitizer(num_channels=2))
dispatcher.dispatch_line("C1:ON")
dispatcher.dispatch_line("START")
```
"""

from .dispatcher import (
    HANDLER_REGISTRY,
    CommandDispatcher,
    DispatchResult,
    HandlerInfo,
    InstrumentIdentity,
    handler,
)
from .state import (
    DEFAULT_MEMORY_DEPTH,
    AcquisitionConfig,
    ArmSnapshot,
    ChannelConfig,
    InstrumentState,
    TriggerConfig,
)
from .trigger import TriggerStateMachine, device_call

__all__ = [
    "DEFAULT_MEMORY_DEPTH",
    "HANDLER_REGISTRY",
    "AcquisitionConfig",
    "ArmSnapshot",
    "ChannelConfig",
    "CommandDispatcher",
    "DispatchResult",
    "HandlerInfo",
    "InstrumentIdentity",
    "InstrumentState",
    "TriggerConfig",
    "TriggerStateMachine",
    "device_call",
    "handler",
]
