import pytest

from wfmserver.device import DEVICE_TYPES, SimulatedDigitizer, get_device_class
from wfmserver.server import ScpiClient
from wfmserver.types import DeviceControlPort, DeviceError, TriggerSlope


def test_simulated_digitizer_implements_port():
    assert isinstance(SimulatedDigitizer(), DeviceControlPort)


def test_lookup_by_name():
    assert get_device_class("SimulatedDigitizer") is SimulatedDigitizer
    assert "SimulatedDigitizer" in DEVICE_TYPES
    with pytest.raises(ValueError):
        get_device_class("Picoscope")


def test_failure_injection_records_call():
    dev = SimulatedDigitizer(fail_on={"set_range"})
    with pytest.raises(DeviceError):
        dev.set_range(0, 1.0)
    assert dev.call_names() == ["set_range"]


def test_trigger_position_rounding():
    dev = SimulatedDigitizer(position_quantum_s=1e-8)
    assert dev.set_trigger_position(2.4e-8) == pytest.approx(2e-8)
    assert dev.trigger_position_s == pytest.approx(2e-8)


def test_reset_restores_defaults():
    dev = SimulatedDigitizer(num_channels=2)
    dev.set_channel_enable(1, True)
    dev.configure(True, True)
    dev.reset()
    assert not dev.channel_enabled(1)
    assert not dev.running


@pytest.mark.parametrize(
    "arg,slope",
    [("RISING", TriggerSlope.RISING), ("FALLING", TriggerSlope.FALLING), ("", TriggerSlope.EITHER)],
)
def test_slope_from_arg(arg, slope):
    assert TriggerSlope.from_arg(arg) == slope


def test_client_requires_connection():
    client = ScpiClient()
    assert not client.is_connected()
    with pytest.raises(RuntimeError, match="Not connected"):
        client.send("STOP")
