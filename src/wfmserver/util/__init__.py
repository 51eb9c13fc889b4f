# -*- coding: utf-8 -*-
"""
Utility functions and constants for wfmserver.

- Logging configuration and management (loguru sinks)
- Process-wide defaults (host, port, log levels, unit conversions)

See Also
--------
wfmserver.util.logging : Logging configuration
wfmserver.util.defaults : Default values
"""

from .defaults import (
    DEFAULT_HOST_ADDR,
    DEFAULT_INSTRUMENT,
    DEFAULT_LOGLEVEL,
    DEFAULT_PORT,
    DEFAULT_TIMEOUT,
    FS_PER_SECOND,
    SECONDS_PER_FS,
    SINGLE_LINE_ERR_LOG,
    TEST_LOGLEVEL,
)
from .logging import (
    clear_log,
    format_error_response,
    get_log_filename,
    log_default_path_server,
    shutdown_server_log,
    start_server_log,
)

__all__ = [
    "DEFAULT_HOST_ADDR",
    "DEFAULT_INSTRUMENT",
    "DEFAULT_LOGLEVEL",
    "DEFAULT_PORT",
    "DEFAULT_TIMEOUT",
    "FS_PER_SECOND",
    "SECONDS_PER_FS",
    "SINGLE_LINE_ERR_LOG",
    "TEST_LOGLEVEL",
    "clear_log",
    "format_error_response",
    "get_log_filename",
    "log_default_path_server",
    "shutdown_server_log",
    "start_server_log",
]
