import pytest
from loguru import logger

from wfmserver.device import SimulatedDigitizer
from wfmserver.instrument import CommandDispatcher, InstrumentIdentity, InstrumentState
from wfmserver.util import TEST_LOGLEVEL


def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line("markers", "slow: marks test as slow running test")
    config.addinivalue_line(
        "markers", "hardware: marks test that require physical hardware"
    )


@pytest.fixture
def log_records():
    """Capture loguru records as (level, message) tuples."""
    records = []
    sink_id = logger.add(
        lambda msg: records.append((msg.record["level"].name, msg.record["message"])),
        level=TEST_LOGLEVEL,
    )
    yield records
    logger.remove(sink_id)


@pytest.fixture
def device():
    dev = SimulatedDigitizer(num_channels=4)
    dev.open()
    yield dev
    dev.close()


@pytest.fixture
def state():
    return InstrumentState(num_channels=4)


@pytest.fixture
def dispatcher(state, device):
    return CommandDispatcher(
        state,
        device,
        identity=InstrumentIdentity("Acme", "WFM4", "SN42", "2.1"),
        supported_depths=(65536,),
    )
