# -*- coding: utf-8 -*-
"""
SCPI line protocol: framing of the control socket and tokenizing of lines.

See Also
--------
wfmserver.instrument.dispatcher : Interprets parsed commands
"""

from .codec import (
    ConnectionClosed,
    ScpiCommand,
    parse_scpi_line,
    recv_scpi_line,
    send_scpi_reply,
)

__all__ = [
    "ConnectionClosed",
    "ScpiCommand",
    "parse_scpi_line",
    "recv_scpi_line",
    "send_scpi_reply",
]
