# -*- coding: utf-8 -*-
"""
SCPI command dispatcher.

The dispatcher uses a decorator-based registry, in the same spirit as a
request router:

1. Each handler function is decorated with @handler, naming the command it
   serves, whether it is a query, an optional subject it is bound to, and its
   exact argument count.
2. `CommandDispatcher.dispatch` looks the parsed command up in
   HANDLER_REGISTRY. Subject-independent commands are tried before
   subject-bound ones (so ``TRIG:STOP`` is plain ``STOP``).
3. Mutating handlers run under ``state.lock``. Handlers registered with
   ``rearm=True`` change a parameter of the running capture; once the handler
   returns, the dispatcher re-checks the armed flag and re-arms, so no setter
   has to remember to.

Unknown commands, unknown queries and malformed arguments are logged at DEBUG
and otherwise ignored: the protocol tolerates them and never replies with an
error.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, Optional

from loguru import logger

from wfmserver.instrument.state import InstrumentState
from wfmserver.instrument.trigger import TriggerStateMachine, device_call
from wfmserver.scpi import ScpiCommand, parse_scpi_line
from wfmserver.types import DeviceControlPort, TriggerSlope, TriggerType
from wfmserver.util import FS_PER_SECOND, SECONDS_PER_FS

TRIGGER_SUBJECT = "TRIG"
DEFAULT_SUPPORTED_DEPTHS = (65536,)
DEFAULT_MIN_RATE_FLOOR_HZ = 1000.0


@dataclass
class InstrumentIdentity:
    vendor: str = "wfmserver"
    model: str = "SimulatedDigitizer"
    serial: str = "0"
    firmware: str = "0.0"

    def idn(self) -> str:
        return f"{self.vendor},{self.model},{self.serial},{self.firmware}"


@dataclass
class DispatchResult:
    reply: Optional[str] = None
    exit_requested: bool = False
    handled: bool = True


@dataclass
class HandlerInfo:
    """Stores one registered command handler.

    Attributes:
        handler_func: Called as ``handler_func(dispatcher, cmd, channel)``
        command: Command token (without ``?`` or subject)
        query: True for queries
        subject: Subject the command is bound to, or None for any subject
        nargs: Exact number of arguments required, or None for any
        rearm: Re-arm the trigger after the handler if currently armed
        locked: Run the handler under the state lock
    """

    handler_func: Callable[..., Optional[str]]
    command: str
    query: bool = False
    subject: Optional[str] = None
    nargs: Optional[int] = None
    rearm: bool = False
    locked: bool = True


HANDLER_REGISTRY: dict[tuple[bool, Optional[str], str], HandlerInfo] = {}


def handler(
    command: str,
    *,
    query: bool = False,
    subject: Optional[str] = None,
    nargs: Optional[int] = None,
    rearm: bool = False,
    locked: bool = True,
):
    """Decorator that registers a command handler.

    Example:
        @handler("LEV", subject="TRIG", nargs=1, rearm=True)
        def handle_trigger_level(d, cmd, channel):
            ...
    """

    def decorator(func):
        HANDLER_REGISTRY[(query, subject, command)] = HandlerInfo(
            handler_func=func,
            command=command,
            query=query,
            subject=subject,
            nargs=nargs,
            rearm=rearm,
            locked=locked,
        )
        return func

    return decorator


def channel_from_subject(subject: str, num_channels: int) -> int:
    """Zero-based channel index for a ``C<n>`` subject, clamped to range.

    Subjects not of that form map to channel 0.
    """
    if subject[:1].upper() != "C":
        return 0
    try:
        index = int(subject[1:]) - 1
    except ValueError:
        logger.debug("Subject {} has no channel number, using channel 0", subject)
        return 0
    return max(0, min(index, num_channels - 1))


def parse_int(arg: str) -> int:
    """Parse an integer argument, accepting float notation (``1e6``)."""
    try:
        return int(arg)
    except ValueError:
        value = float(arg)
    if not math.isfinite(value):
        raise ValueError(f"expected a finite number, got {arg}")
    return int(value)


class CommandDispatcher:
    """Interprets parsed SCPI commands against the instrument state.

    Parameters
    ----------
    state : InstrumentState
        Shared configuration, mutated only here and under ``state.lock``.
    device : DeviceControlPort
        Device that configuration changes are applied to.
    identity : InstrumentIdentity, optional
        Strings reported by ``*IDN?``.
    supported_depths : tuple[int, ...]
        Memory depths reported by ``DEPTHS?``.
    min_rate_floor_hz : float
        Lowest frequency reported by ``RATES?`` regardless of the device.
    """

    def __init__(
        self,
        state: InstrumentState,
        device: DeviceControlPort,
        identity: Optional[InstrumentIdentity] = None,
        supported_depths: tuple[int, ...] = DEFAULT_SUPPORTED_DEPTHS,
        min_rate_floor_hz: float = DEFAULT_MIN_RATE_FLOOR_HZ,
    ):
        self.state = state
        self.device = device
        self.identity = identity or InstrumentIdentity()
        self.supported_depths = tuple(supported_depths)
        self.min_rate_floor_hz = min_rate_floor_hz
        self.trigger = TriggerStateMachine(state, device)

    def dispatch_line(self, line: str) -> DispatchResult:
        logger.trace("{}", line)
        return self.dispatch(parse_scpi_line(line), line)

    def lookup(self, cmd: ScpiCommand) -> Optional[HandlerInfo]:
        candidates = [HANDLER_REGISTRY.get((cmd.is_query, None, cmd.command))]
        if cmd.subject:
            candidates.append(
                HANDLER_REGISTRY.get((cmd.is_query, cmd.subject, cmd.command))
            )
        for info in candidates:
            if info is None:
                continue
            if info.nargs is not None and len(cmd.args) != info.nargs:
                continue
            return info
        return None

    def dispatch(self, cmd: ScpiCommand, line: str = "") -> DispatchResult:
        info = self.lookup(cmd)
        if info is None:
            self._log_unrecognized(cmd, line)
            return DispatchResult(handled=False)

        channel = channel_from_subject(cmd.subject, self.state.num_channels)
        try:
            if info.locked:
                with self.state.lock:
                    reply = info.handler_func(self, cmd, channel)
                    if info.rearm:
                        self.trigger.rearm_if_armed()
            else:
                reply = info.handler_func(self, cmd, channel)
        except (ValueError, ArithmeticError, IndexError) as e:
            logger.debug("Malformed command {!r} ignored: {}", line or cmd, e)
            return DispatchResult(handled=False)

        if isinstance(reply, DispatchResult):
            return reply
        return DispatchResult(reply=reply)

    def _log_unrecognized(self, cmd: ScpiCommand, line: str) -> None:
        if cmd.is_query:
            logger.debug("Unrecognized query received: {}", line or cmd)
            return
        if cmd.subject == TRIGGER_SUBJECT:
            logger.debug("Unrecognized trigger command received: {}", line or cmd)
        else:
            logger.debug("Unrecognized command received: {}", line or cmd)
            logger.debug("    Subject: {}", cmd.subject)
        logger.debug("    Command: {}", cmd.command)
        for arg in cmd.args:
            logger.debug("    Arg: {}", arg)


# ============================================================================
# ============== Queries
# ============================================================================


@handler("IDN", query=True, locked=False)
def handle_idn(d: CommandDispatcher, cmd: ScpiCommand, channel: int):
    return d.identity.idn()


@handler("CHANS", query=True, locked=False)
def handle_chans(d: CommandDispatcher, cmd: ScpiCommand, channel: int):
    return str(d.state.num_channels)


@handler("RATES", query=True)
def handle_rates(d: CommandDispatcher, cmd: ScpiCommand, channel: int):
    """Legal sample intervals in fs, in 1-2-5 steps down from the max rate."""
    freq_range = device_call("get_frequency_range", d.device.get_frequency_range)
    if freq_range is None:
        return ""
    min_freq, max_freq = freq_range
    min_freq = max(min_freq, d.min_rate_floor_hz)

    ret = ""
    freq = max_freq
    while freq >= min_freq:
        for f in (freq, freq / 2, freq / 5):
            ret += f"{FS_PER_SECOND / f:f},"
        freq /= 10
    return ret


@handler("DEPTHS", query=True, locked=False)
def handle_depths(d: CommandDispatcher, cmd: ScpiCommand, channel: int):
    return "".join(f"{depth}," for depth in d.supported_depths)


# ============================================================================
# ============== Session / acquisition lifecycle
# ============================================================================


@handler("EXIT", locked=False)
def handle_exit(d: CommandDispatcher, cmd: ScpiCommand, channel: int):
    return DispatchResult(exit_requested=True)


@handler("START")
@handler("SINGLE")
def handle_start(d: CommandDispatcher, cmd: ScpiCommand, channel: int):
    ok, why = d.trigger.can_start()
    if not ok:
        logger.info("Ignoring {} command because {}", cmd.command, why)
        return None
    d.trigger.arm()
    d.state.one_shot = cmd.command == "SINGLE"
    return None


@handler("FORCE")
def handle_force(d: CommandDispatcher, cmd: ScpiCommand, channel: int):
    d.trigger.arm(force=True)


@handler("STOP")
def handle_stop(d: CommandDispatcher, cmd: ScpiCommand, channel: int):
    d.trigger.disarm()


# ============================================================================
# ============== Channel configuration
# ============================================================================


def _set_channel_enable(d: CommandDispatcher, channel: int, enabled: bool) -> None:
    d.state.channels[channel].enabled = enabled
    device_call(
        "set_channel_enable", d.device.set_channel_enable, channel, enabled
    )
    # buffers must be reallocated for the new channel set
    d.state.acquisition.memory_depth_changed = True


@handler("ON", rearm=True)
def handle_on(d: CommandDispatcher, cmd: ScpiCommand, channel: int):
    _set_channel_enable(d, channel, True)


@handler("OFF", rearm=True)
def handle_off(d: CommandDispatcher, cmd: ScpiCommand, channel: int):
    _set_channel_enable(d, channel, False)


@handler("OFFS", nargs=1, rearm=True)
def handle_offset(d: CommandDispatcher, cmd: ScpiCommand, channel: int):
    volts = float(cmd.args[0])
    d.state.channels[channel].offset_volts = volts
    device_call("set_offset", d.device.set_offset, channel, volts)


@handler("ATTEN", nargs=1, rearm=True)
def handle_attenuation(d: CommandDispatcher, cmd: ScpiCommand, channel: int):
    factor = float(cmd.args[0])
    d.state.channels[channel].attenuation = factor
    device_call("set_attenuation", d.device.set_attenuation, channel, factor)


@handler("RANGE", nargs=1, rearm=True)
def handle_range(d: CommandDispatcher, cmd: ScpiCommand, channel: int):
    volts = float(cmd.args[0])
    d.state.channels[channel].range_volts = volts
    device_call("set_range", d.device.set_range, channel, volts)


# ============================================================================
# ============== Acquisition configuration
# ============================================================================


@handler("RATE", nargs=1, rearm=True)
def handle_rate(d: CommandDispatcher, cmd: ScpiCommand, channel: int):
    rate = parse_int(cmd.args[0])
    if rate <= 0:
        raise ValueError(f"sample rate must be positive, got {rate}")
    device_call("set_sample_rate", d.device.set_sample_rate, rate)
    d.state.acquisition.sample_interval_fs = FS_PER_SECOND // rate


@handler("DEPTH", nargs=1, rearm=True)
def handle_depth(d: CommandDispatcher, cmd: ScpiCommand, channel: int):
    depth = parse_int(cmd.args[0])
    if depth <= 0:
        raise ValueError(f"memory depth must be positive, got {depth}")
    d.state.acquisition.memory_depth = depth
    device_call("set_buffer_size", d.device.set_buffer_size, depth)
    d.state.acquisition.memory_depth_changed = True


# ============================================================================
# ============== Trigger configuration
# ============================================================================


@handler("MODE", subject=TRIGGER_SUBJECT, nargs=1, rearm=True)
def handle_trigger_mode(d: CommandDispatcher, cmd: ScpiCommand, channel: int):
    if cmd.args[0] != TriggerType.EDGE.value:
        logger.warning("Unknown trigger mode {}", cmd.args[0])
        return
    d.state.trigger.mode = TriggerType.EDGE
    device_call("set_trigger_type", d.device.set_trigger_type, TriggerType.EDGE)


@handler("EDGE:DIR", subject=TRIGGER_SUBJECT, nargs=1, rearm=True)
def handle_trigger_slope(d: CommandDispatcher, cmd: ScpiCommand, channel: int):
    slope = TriggerSlope.from_arg(cmd.args[0])
    d.state.trigger.slope = slope
    device_call("set_trigger_slope", d.device.set_trigger_slope, slope)


@handler("LEV", subject=TRIGGER_SUBJECT, nargs=1, rearm=True)
def handle_trigger_level(d: CommandDispatcher, cmd: ScpiCommand, channel: int):
    volts = float(cmd.args[0])
    d.state.trigger.level_volts = volts
    device_call("set_trigger_level", d.device.set_trigger_level, volts)


@handler("SOU", subject=TRIGGER_SUBJECT, nargs=1, rearm=True)
def handle_trigger_source(d: CommandDispatcher, cmd: ScpiCommand, channel: int):
    # argument is a subject-style channel name, e.g. C2
    source = d.state.clamp_channel(int(cmd.args[0][1]) - 1)
    d.state.trigger.source_channel = source
    device_call("set_trigger_source", d.device.set_trigger_source, source)
    device_call("set_auto_trigger_timeout", d.device.set_auto_trigger_timeout, 0)


@handler("DELAY", subject=TRIGGER_SUBJECT, nargs=1, rearm=True)
def handle_trigger_delay(d: CommandDispatcher, cmd: ScpiCommand, channel: int):
    """Program the trigger position for a delay measured from buffer start.

    The hardware measures the position from the buffer midpoint, so the
    request is ``depth/2 * interval - delay``. The hardware may round it;
    the difference is kept for trigger interpolation.
    """
    trig = d.state.trigger
    acq = d.state.acquisition
    delay_fs = parse_int(cmd.args[0])
    position_fs = (acq.memory_depth // 2) * acq.sample_interval_fs - delay_fs
    requested_sec = position_fs * SECONDS_PER_FS

    trig.delay_fs = delay_fs
    trig.position_fs = position_fs
    actual_sec = device_call(
        "set_trigger_position", d.device.set_trigger_position, requested_sec
    )
    if actual_sec is not None:
        trig.position_error_sec = actual_sec - requested_sec
