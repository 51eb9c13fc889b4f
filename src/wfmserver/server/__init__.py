"""
Control-plane server and client.

See Also
--------
wfmserver.server.server : Connection supervisor and process entry point
wfmserver.server.streaming : Waveform streaming collaborator contract
wfmserver.server.bg_killer : PID file registry of running servers
wfmserver.server.client : Minimal SCPI client
"""

from .bg_killer import (
    cleanup_stale_servers,
    get_servers_dir,
    kill_wfm_servers,
    list_running_servers,
)
from .client import ScpiClient
from .server import ControlServer, register_server, start_server
from .streaming import SnapshotWatcher, Streamer

__all__ = [
    "ControlServer",
    "ScpiClient",
    "SnapshotWatcher",
    "Streamer",
    "cleanup_stale_servers",
    "get_servers_dir",
    "kill_wfm_servers",
    "list_running_servers",
    "register_server",
    "start_server",
]
