"""Instrument configuration handling for wfmserver.

Instrument configurations live in INI files. Each section describes one
instrument: its identification strings, channel count, the device class that
implements the control port, and keyword parameters for that device.

[mock]
vendor = wfmserver
model = SimulatedDigitizer
serial = SIM0001
firmware = 1.0
num_channels = 2
device_type = SimulatedDigitizer
supported_depths = 65536
default_depth = 1000000

# Device parameters, passed to the device class as keyword arguments
device.max_freq_hz = 100e6
device.position_quantum_s = 1e-8

Search order:
1. ~/.wfmserver/instruments.ini (user configurations)
2. wfmserver/sysconfig/instruments/<name>.ini (package defaults)
"""

from __future__ import annotations

from configparser import ConfigParser
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from loguru import logger

from wfmserver.device import DEVICE_TYPES, Device, get_device_class
from wfmserver.instrument import DEFAULT_MEMORY_DEPTH, InstrumentIdentity
from wfmserver.instrument.dispatcher import (
    DEFAULT_MIN_RATE_FLOOR_HZ,
    DEFAULT_SUPPORTED_DEPTHS,
)

REQUIRED_KEYS = ("device_type", "num_channels")
DEVICE_PREFIX = "device."


@dataclass
class InstrumentConfig:
    """Instrument configuration loaded from an INI section.

    Attributes
    ----------
    instrument_name : str
        Section name of the configuration
    device_type : str
        Name of the device class (see wfmserver.device.DEVICE_TYPES)
    device_params : dict[str, Any]
        Keyword arguments for the device class
    """

    instrument_name: str
    device_type: str
    num_channels: int
    vendor: str = "wfmserver"
    model: str = "SimulatedDigitizer"
    serial: str = "0"
    firmware: str = "0.0"
    supported_depths: tuple[int, ...] = DEFAULT_SUPPORTED_DEPTHS
    default_depth: int = DEFAULT_MEMORY_DEPTH
    min_rate_floor_hz: float = DEFAULT_MIN_RATE_FLOOR_HZ
    device_params: dict[str, Any] = field(default_factory=dict)

    def identity(self) -> InstrumentIdentity:
        return InstrumentIdentity(
            vendor=self.vendor,
            model=self.model,
            serial=self.serial,
            firmware=self.firmware,
        )

    def build_device(self) -> Device:
        device_cls = get_device_class(self.device_type)
        params = {"num_channels": self.num_channels, **self.device_params}
        return device_cls(**params)


def parse_value(value: str) -> Any:
    """Coerce an INI string to bool, int or float where possible."""
    lowered = value.strip().lower()
    if lowered in ("true", "yes", "on"):
        return True
    if lowered in ("false", "no", "off"):
        return False
    for conv in (int, float):
        try:
            return conv(value)
        except ValueError:
            pass
    return value.strip()


def _parse_depths(value: str) -> tuple[int, ...]:
    return tuple(int(v) for v in value.replace(",", " ").split())


def validate_instrument_config(config: ConfigParser, section: str) -> tuple[bool, str]:
    """Validate an instrument configuration section.

    Returns
    -------
    tuple[bool, str]
        (is_valid, error_message)
    """
    missing = [key for key in REQUIRED_KEYS if key not in config[section]]
    if missing:
        return False, f"Missing required fields: {', '.join(missing)}"

    if config[section]["device_type"] not in DEVICE_TYPES:
        return False, f"Invalid device type: {config[section]['device_type']}"

    try:
        num_channels = int(config[section]["num_channels"])
    except ValueError:
        return False, "num_channels must be an integer"
    if num_channels < 1:
        return False, "num_channels must be positive"

    for key in ("supported_depths", "default_depth"):
        if key in config[section]:
            try:
                _parse_depths(config[section][key])
            except ValueError:
                return False, f"{key} must be integer sample counts"

    return True, ""


def _create_instrument_config(config: ConfigParser, section: str) -> InstrumentConfig:
    is_valid, error_msg = validate_instrument_config(config, section)
    if not is_valid:
        raise ValueError(f"Invalid configuration for {section}: {error_msg}")

    sect = config[section]
    kwargs: dict[str, Any] = {}
    for key in ("vendor", "model", "serial", "firmware"):
        if key in sect:
            kwargs[key] = sect[key]
    if "supported_depths" in sect:
        kwargs["supported_depths"] = _parse_depths(sect["supported_depths"])
    if "default_depth" in sect:
        kwargs["default_depth"] = int(sect["default_depth"])
    if "min_rate_floor_hz" in sect:
        kwargs["min_rate_floor_hz"] = float(sect["min_rate_floor_hz"])

    device_params = {
        key[len(DEVICE_PREFIX) :]: parse_value(value)
        for key, value in sect.items()
        if key.startswith(DEVICE_PREFIX)
    }

    return InstrumentConfig(
        instrument_name=section,
        device_type=sect["device_type"],
        num_channels=int(sect["num_channels"]),
        device_params=device_params,
        **kwargs,
    )


def user_instruments_file() -> Path:
    return Path.home() / ".wfmserver" / "instruments.ini"


def package_instruments_dir() -> Path:
    import wfmserver

    return Path(wfmserver.__file__).parent / "sysconfig" / "instruments"


def load_instrument_config(instrument_name: str) -> InstrumentConfig:
    """Load an instrument configuration by (case-insensitive) name.

    User configurations take precedence over package defaults.

    Raises
    ------
    ValueError
        If no configuration of that name exists, or it is invalid.
    """
    user_file = user_instruments_file()
    package_file = package_instruments_dir() / f"{instrument_name.lower()}.ini"

    for path in (user_file, package_file):
        if not path.exists():
            continue
        config = ConfigParser()
        config.read(path)
        for section in config.sections():
            if section.lower() == instrument_name.lower():
                logger.debug("Loading instrument {} from {}", section, path)
                return _create_instrument_config(config, section)

    raise ValueError(
        f"Instrument '{instrument_name}' not found in:\n"
        f"- User config: {user_file}\n"
        f"- Package config: {package_file}"
    )


def list_available_instruments() -> dict[str, Path]:
    """Map instrument names to the file that defines them (user file wins)."""
    found: dict[str, Path] = {}
    package_dir = package_instruments_dir()
    sources = sorted(package_dir.glob("*.ini")) if package_dir.exists() else []
    user_file = user_instruments_file()
    if user_file.exists():
        sources.append(user_file)
    for path in sources:
        config = ConfigParser()
        config.read(path)
        for section in config.sections():
            found[section.lower()] = path
    return found


def create_default_instruments_file(file_path: Path) -> None:
    """Write an example user instruments file."""
    file_path.parent.mkdir(parents=True, exist_ok=True)
    logger.debug(f"Creating default instruments file at {file_path}")

    config = ConfigParser()
    config["sim4"] = {
        "vendor": "wfmserver",
        "model": "SimulatedDigitizer",
        "serial": "SIM0004",
        "firmware": "1.0",
        "num_channels": "4",
        "device_type": "SimulatedDigitizer",
        "supported_depths": "65536",
        "default_depth": "1000000",
        "device.max_freq_hz": "100e6",
        "device.position_quantum_s": "1e-8",
    }
    with file_path.open("w") as f:
        config.write(f)
