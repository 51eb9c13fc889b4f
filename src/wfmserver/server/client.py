# -*- coding: utf-8 -*-
"""
Minimal SCPI control-plane client, for scripting and diagnostics.

Examples
--------
```python
with ScpiClient("127.0.0.1", 5025) as scope:
    print(scope.query("*IDN?"))
    scope.send("C1:ON")
    scope.send("START")
```
"""

from __future__ import annotations

import socket
from typing import Optional

from loguru import logger

from wfmserver.util import DEFAULT_HOST_ADDR, DEFAULT_PORT, DEFAULT_TIMEOUT


class ScpiClient:
    def __init__(
        self,
        host: str = DEFAULT_HOST_ADDR,
        port: int = DEFAULT_PORT,
        timeout: Optional[float] = DEFAULT_TIMEOUT,
    ):
        self.host = host
        self.port = port
        self.timeout = timeout
        self._sock: Optional[socket.socket] = None
        self._rfile = None

    def connect(self) -> None:
        if self._sock is not None:
            return
        logger.debug("Connecting to {}:{}", self.host, self.port)
        self._sock = socket.create_connection((self.host, self.port), self.timeout)
        self._rfile = self._sock.makefile("rb")

    def is_connected(self) -> bool:
        return self._sock is not None

    def _require_socket(self) -> socket.socket:
        if self._sock is None:
            raise RuntimeError("Not connected to server")
        return self._sock

    def send(self, line: str) -> None:
        """Send one command line (a newline terminator is appended)."""
        self._require_socket().sendall((line + "\n").encode("utf-8"))

    def read_reply(self) -> str:
        self._require_socket()
        reply = self._rfile.readline()
        if not reply:
            raise ConnectionError("Server closed the connection")
        return reply.decode("utf-8").rstrip("\n")

    def query(self, line: str) -> str:
        """Send a query and wait for its reply line."""
        self.send(line)
        return self.read_reply()

    def close(self) -> None:
        if self._sock is None:
            return
        try:
            self._rfile.close()
            self._sock.close()
        finally:
            self._sock = None
            self._rfile = None

    def __enter__(self) -> ScpiClient:
        self.connect()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
