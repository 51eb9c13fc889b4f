# -*- coding: utf-8 -*-

DEFAULT_HOST_ADDR = "127.0.0.1"
DEFAULT_PORT = 5025  # conventional SCPI-over-raw-socket port
DEFAULT_TIMEOUT = 5  # seconds, client side only
DEFAULT_LOGLEVEL = "INFO"
TEST_LOGLEVEL = "TRACE"
DEFAULT_INSTRUMENT = "mock"
SINGLE_LINE_ERR_LOG = False  # reformat tracebacks into a single line

FS_PER_SECOND = 1_000_000_000_000_000
SECONDS_PER_FS = 1e-15
