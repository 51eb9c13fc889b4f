# -*- coding: utf-8 -*-
"""
Line codec for the SCPI control plane.

Requests are text lines terminated by a newline or a semicolon, of the form
``[SUBJECT:]COMMAND[?][ ARG[,ARG...]]``. Replies are single newline-terminated
strings, sent only in answer to queries.

Examples
--------
```python
>>> parse_scpi_line("TRIG:LEV 1.5")
ScpiCommand(subject='TRIG', command='LEV', is_query=False, args=['1.5'])
>>> parse_scpi_line("C1:RANGE?")
ScpiCommand(subject='C1', command='RANGE', is_query=True, args=[])
```
"""

from __future__ import annotations

import socket
from typing import NamedTuple

LINE_TERMINATORS = (b"\n", b";")
REPLY_TERMINATOR = "\n"
ENCODING = "utf-8"


class ConnectionClosed(ConnectionError):
    """Raised when the peer disconnects or a socket read/write fails."""


class ScpiCommand(NamedTuple):
    """One tokenized SCPI line."""

    subject: str
    command: str
    is_query: bool
    args: list[str]


def recv_scpi_line(sock: socket.socket) -> str:
    """Read one command line, excluding its terminator.

    Bytes are read one at a time so that nothing past the terminator is
    consumed from the socket.

    Raises
    ------
    ConnectionClosed
        If the read fails or the peer closes before a terminator arrives.
    """
    buf = bytearray()
    while True:
        try:
            ch = sock.recv(1)
        except OSError as e:
            raise ConnectionClosed(f"Read failed: {e}") from e
        if not ch:
            raise ConnectionClosed("Peer closed the connection")
        if ch in LINE_TERMINATORS:
            break
        buf += ch
    return buf.decode(ENCODING, errors="replace")


def send_scpi_reply(sock: socket.socket, reply: str) -> None:
    """Write a reply line, appending the newline terminator.

    Raises
    ------
    ConnectionClosed
        If the full payload could not be written.
    """
    payload = (reply + REPLY_TERMINATOR).encode(ENCODING)
    try:
        sock.sendall(payload)
    except OSError as e:
        raise ConnectionClosed(f"Write failed: {e}") from e


def parse_scpi_line(line: str) -> ScpiCommand:
    """Tokenize a line into subject, command, query flag and arguments.

    - The first colon separates the subject from the rest; later colons are
      part of the command (``TRIG:EDGE:DIR`` -> subject ``TRIG``, command
      ``EDGE:DIR``).
    - A ``?`` anywhere marks a query and is dropped.
    - Whitespace separates the command from its arguments, commas separate
      arguments. Consecutive delimiters never yield empty tokens.
    - The IEEE 488.2 common-command prefix ``*`` is dropped from the command.

    Every call starts from empty fields; nothing is carried between calls.
    """
    subject = ""
    command = ""
    is_query = False
    args: list[str] = []

    tmp = ""
    reading_cmd = True
    for ch in line:
        if ch == ":" and not subject:
            subject = tmp
            tmp = ""
            continue

        if ch == "?":
            is_query = True
            continue

        # whitespace only delimits until the command is known
        is_delim = (ch.isspace() and not command) or ch == ","
        if not is_delim:
            tmp += ch
            continue

        if not tmp.strip():
            tmp = ""
            continue

        if reading_cmd:
            command = tmp.strip()
        else:
            args.append(tmp.strip())
        reading_cmd = False
        tmp = ""

    tmp = tmp.strip()
    if tmp:
        if command:
            args.append(tmp)
        else:
            command = tmp

    return ScpiCommand(subject.strip(), command.lstrip("*"), is_query, args)
