# -*- coding: utf-8 -*-
"""
SCPI control-plane server.

One TCP listener accepts one client at a time. For each client the server
resets the device, starts the waveform streaming thread, and runs the command
loop until the client disconnects or sends ``EXIT``. The streaming thread is
stopped and joined before the next client is accepted.

Layout:
- `ControlServer` owns the listening socket and the per-connection lifecycle.
- `start_server` is the process entry point used by the CLI: it registers the
  PID file, sets up logging, builds the instrument from its configuration and
  serves forever.
"""

from __future__ import annotations

import json
import os
import socket
import threading
from datetime import datetime
from pathlib import Path
from typing import Optional

from loguru import logger
from setproctitle import setproctitle

import wfmserver.util
from wfmserver.instrument import CommandDispatcher, InstrumentState, device_call
from wfmserver.scpi import ConnectionClosed, recv_scpi_line, send_scpi_reply
from wfmserver.server.bg_killer import get_servers_dir, kill_wfm_servers
from wfmserver.server.streaming import SnapshotWatcher, Streamer
from wfmserver.system import load_instrument_config
from wfmserver.util import DEFAULT_HOST_ADDR, DEFAULT_LOGLEVEL, DEFAULT_PORT

ACCEPT_POLL_INTERVAL = 0.5  # seconds


def register_server(host: str, port: int) -> Path:
    """Register a running server in the PID directory."""
    pid = os.getpid()
    timestamp = datetime.now().strftime("%Y-%m-%d_%H:%M:%S")

    server_info = {
        "pid": pid,
        "timestamp": timestamp,
        "host": host,
        "port": port,
    }

    pid_file = get_servers_dir() / f"server_{pid}.json"
    with pid_file.open("w") as f:
        json.dump(server_info, f, indent=2)

    return pid_file


# ============================================================================


class ControlServer:
    """Accepts control connections and supervises their lifecycle.

    Parameters
    ----------
    dispatcher : CommandDispatcher
        Interprets each received command line. Its state and device are the
        ones reset on connect and disconnect.
    host, port : str, int
        Listening address. Port 0 picks a free port (see `address`).
    streamer : Streamer, optional
        Waveform streaming collaborator, started once per connection.
    """

    def __init__(
        self,
        dispatcher: CommandDispatcher,
        host: str = DEFAULT_HOST_ADDR,
        port: int = DEFAULT_PORT,
        streamer: Optional[Streamer] = None,
    ):
        self.dispatcher = dispatcher
        self.host = host
        self.port = port
        self.streamer = streamer or SnapshotWatcher()
        self._listener: Optional[socket.socket] = None
        self._shutdown = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def state(self) -> InstrumentState:
        return self.dispatcher.state

    @property
    def address(self) -> tuple[str, int]:
        if self._listener is None:
            return self.host, self.port
        return self._listener.getsockname()[:2]

    def bind(self) -> tuple[str, int]:
        """Open the listening socket. Returns the bound address."""
        if self._listener is not None:
            return self.address
        listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        listener.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            listener.bind((self.host, self.port))
            listener.listen(1)
        except OSError:
            listener.close()
            logger.exception("Failed to listen on {}:{}", self.host, self.port)
            raise
        listener.settimeout(ACCEPT_POLL_INTERVAL)
        self._listener = listener
        logger.info("Listening for SCPI connections on {}:{}", *self.address)
        return self.address

    def serve_forever(self, max_connections: Optional[int] = None) -> None:
        """Accept and serve clients one at a time until `shutdown` is called.

        ``max_connections`` stops the server after that many clients have been
        served.
        """
        self.bind()
        served = 0
        try:
            while not self._shutdown.is_set():
                if max_connections is not None and served >= max_connections:
                    break
                try:
                    client, addr = self._listener.accept()
                except socket.timeout:
                    continue
                except OSError:
                    if self._shutdown.is_set():
                        break
                    raise
                served += 1
                self.handle_connection(client, addr)
        finally:
            self.close()

    def start_background(
        self, max_connections: Optional[int] = None
    ) -> threading.Thread:
        """Bind and run `serve_forever` on a daemon thread."""
        self.bind()
        self._thread = threading.Thread(
            target=self.serve_forever,
            kwargs={"max_connections": max_connections},
            name="ScpiThread",
            daemon=True,
        )
        self._thread.start()
        return self._thread

    def shutdown(self, timeout: Optional[float] = None) -> None:
        """Stop accepting clients. Safe to call from any thread."""
        self._shutdown.set()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout)

    def close(self) -> None:
        if self._listener is not None:
            try:
                self._listener.close()
            finally:
                self._listener = None

    # ------------------------------------------------------------------------

    def _reset_device(self) -> None:
        """Return the device to power-on state and drop any armed state."""
        with self.state.lock:
            device_call("reset", self.dispatcher.device.reset)
            self.dispatcher.trigger.mark_disarmed()

    def handle_connection(self, client: socket.socket, addr) -> None:
        """Serve one client, from device reset to streaming thread join."""
        logger.info("Client connected from {}", addr)
        client.settimeout(None)
        try:
            client.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
        except OSError as e:
            logger.warning("Could not disable Nagle's algorithm: {}", e)

        self._reset_device()

        stop_event = threading.Event()
        waveform_thread = threading.Thread(
            target=self.streamer,
            args=(self.state, stop_event),
            name="WaveformThread",
            daemon=True,
        )
        waveform_thread.start()

        try:
            self.run_command_loop(client)
        except Exception:
            logger.exception("Error while serving client {}", addr)
        finally:
            self._reset_device()
            logger.info("Client disconnected")
            stop_event.set()
            waveform_thread.join()
            client.close()

    def run_command_loop(self, client: socket.socket) -> None:
        """Read and dispatch commands until disconnect or ``EXIT``."""
        while True:
            try:
                line = recv_scpi_line(client)
            except ConnectionClosed:
                return
            result = self.dispatcher.dispatch_line(line)
            if result.exit_requested:
                return
            if result.reply is not None:
                try:
                    send_scpi_reply(client, result.reply)
                except ConnectionClosed:
                    return


# ============================================================================


def start_server(
    instrument_name: str,
    host: str = DEFAULT_HOST_ADDR,
    port: int = DEFAULT_PORT,
    log_to_file: bool = True,
    log_to_stdout: bool = False,
    log_path: str = "",
    clear_prev_log: bool = True,
    log_level: str = DEFAULT_LOGLEVEL,
):
    kill_wfm_servers()  # only one server per machine at a time

    timestamp = datetime.now().strftime("%Y-%m-%d_%H:%M:%S")
    setproctitle(f"wfmserver_{timestamp}")

    pid_file = register_server(host, port)

    wfmserver.util.start_server_log(
        log_to_file=log_to_file,
        log_to_stdout=log_to_stdout,
        log_path=log_path,
        clear_prev=clear_prev_log,
        log_level=log_level,
    )

    try:
        config = load_instrument_config(instrument_name)
        logger.info(
            "Opening instrument {} with device type {}",
            config.instrument_name,
            config.device_type,
        )
        device = config.build_device()
        ok, msg = device.open()
        if not ok:
            raise RuntimeError(f"Could not open device: {msg}")
        logger.info(msg)

        state = InstrumentState(num_channels=config.num_channels)
        state.acquisition.memory_depth = config.default_depth
        dispatcher = CommandDispatcher(
            state,
            device,
            identity=config.identity(),
            supported_depths=config.supported_depths,
            min_rate_floor_hz=config.min_rate_floor_hz,
        )
        server = ControlServer(dispatcher, host=host, port=port)
        try:
            server.serve_forever()
        except KeyboardInterrupt:
            logger.info("Server interrupted, shutting down")
        finally:
            device.close()
    except Exception:
        logger.exception("Server terminated with an error.")
        raise
    finally:
        if pid_file.exists():
            pid_file.unlink(missing_ok=True)
        wfmserver.util.shutdown_server_log()
