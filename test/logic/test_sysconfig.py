"""Tests for instrument configuration handling."""

from configparser import ConfigParser
from unittest.mock import patch

import pytest

from wfmserver.device import SimulatedDigitizer
from wfmserver.system.sysconfig import (
    InstrumentConfig,
    create_default_instruments_file,
    list_available_instruments,
    load_instrument_config,
    parse_value,
    validate_instrument_config,
)


@pytest.fixture
def user_file(tmp_path):
    """Point the user instruments file at a temporary location."""
    path = tmp_path / ".wfmserver" / "instruments.ini"
    with patch(
        "wfmserver.system.sysconfig.user_instruments_file", return_value=path
    ):
        yield path


@pytest.fixture
def mock_instruments_file(user_file):
    config = ConfigParser()
    config["Bench4"] = {
        "vendor": "Acme",
        "model": "WFM4",
        "serial": "SN42",
        "firmware": "2.1",
        "num_channels": "4",
        "device_type": "SimulatedDigitizer",
        "supported_depths": "65536, 131072",
        "default_depth": "65536",
        "device.max_freq_hz": "5e9",
        "device.position_quantum_s": "1e-10",
    }
    user_file.parent.mkdir(parents=True)
    with user_file.open("w") as f:
        config.write(f)
    return user_file


def test_validate_instrument_config(mock_instruments_file):
    config = ConfigParser()
    config.read(mock_instruments_file)

    is_valid, error_msg = validate_instrument_config(config, "Bench4")
    assert is_valid, f"Valid configuration was marked as invalid: {error_msg}"
    assert error_msg == ""

    del config["Bench4"]["device_type"]
    is_valid, error_msg = validate_instrument_config(config, "Bench4")
    assert not is_valid
    assert "Missing required fields" in error_msg


@pytest.mark.parametrize(
    "key,value,message",
    [
        ("device_type", "Picoscope", "Invalid device type"),
        ("num_channels", "four", "num_channels must be an integer"),
        ("num_channels", "0", "num_channels must be positive"),
        ("supported_depths", "64k", "supported_depths must be integer"),
    ],
)
def test_validate_instrument_config_errors(mock_instruments_file, key, value, message):
    config = ConfigParser()
    config.read(mock_instruments_file)
    config["Bench4"][key] = value
    is_valid, error_msg = validate_instrument_config(config, "Bench4")
    assert not is_valid
    assert message in error_msg


def test_load_user_config(mock_instruments_file):
    config = load_instrument_config("bench4")
    assert config.instrument_name == "Bench4"
    assert config.num_channels == 4
    assert config.supported_depths == (65536, 131072)
    assert config.default_depth == 65536
    assert config.identity().idn() == "Acme,WFM4,SN42,2.1"
    assert config.device_params == {"max_freq_hz": 5e9, "position_quantum_s": 1e-10}


def test_load_package_default(user_file):
    config = load_instrument_config("mock")
    assert config.device_type == "SimulatedDigitizer"
    assert config.num_channels == 2
    assert config.min_rate_floor_hz == 1000.0


def test_user_config_takes_precedence(user_file):
    config = ConfigParser()
    config["mock"] = {"num_channels": "8", "device_type": "SimulatedDigitizer"}
    user_file.parent.mkdir(parents=True)
    with user_file.open("w") as f:
        config.write(f)

    assert load_instrument_config("mock").num_channels == 8


def test_load_unknown_instrument(user_file):
    with pytest.raises(ValueError, match="not found"):
        load_instrument_config("nonexistent")


def test_load_invalid_instrument(user_file):
    config = ConfigParser()
    config["broken"] = {"device_type": "SimulatedDigitizer"}
    user_file.parent.mkdir(parents=True)
    with user_file.open("w") as f:
        config.write(f)

    with pytest.raises(ValueError, match="Missing required fields"):
        load_instrument_config("broken")


def test_build_device(mock_instruments_file):
    device = load_instrument_config("Bench4").build_device()
    assert isinstance(device, SimulatedDigitizer)
    assert device.num_channels == 4
    assert device.get_frequency_range() == (1.0, 5e9)


def test_build_device_unknown_type():
    config = InstrumentConfig("x", device_type="Nope", num_channels=1)
    with pytest.raises(ValueError, match="Unknown device type"):
        config.build_device()


@pytest.mark.parametrize(
    "raw,value",
    [("3", 3), ("2.5", 2.5), ("1e-8", 1e-8), ("true", True), ("No", False), ("abc", "abc")],
)
def test_parse_value(raw, value):
    assert parse_value(raw) == value


def test_list_available_instruments(mock_instruments_file):
    found = list_available_instruments()
    assert "mock" in found
    assert found["bench4"] == mock_instruments_file


def test_create_default_instruments_file(user_file):
    create_default_instruments_file(user_file)
    assert user_file.exists()
    config = load_instrument_config("sim4")
    assert config.num_channels == 4
    assert config.device_params["position_quantum_s"] == 1e-8
