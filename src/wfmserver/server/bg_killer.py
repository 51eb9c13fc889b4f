import json
from pathlib import Path

import psutil
from loguru import logger


def get_servers_dir() -> Path:
    """Get the directory for storing server PID files."""
    base_dir = Path.home() / ".wfmserver"
    servers_dir = base_dir / "running_servers"
    servers_dir.mkdir(parents=True, exist_ok=True)
    return servers_dir


def list_running_servers() -> list[dict]:
    """Get info about all registered servers, flagging whether each still runs."""
    servers = []
    for pid_file in get_servers_dir().glob("server_*.json"):
        try:
            with pid_file.open() as f:
                server_info = json.load(f)
        except (OSError, json.JSONDecodeError):
            logger.debug(f"Skipping unreadable PID file {pid_file}")
            continue
        server_info["running"] = psutil.pid_exists(server_info["pid"])
        servers.append(server_info)
    return servers


def kill_wfm_servers() -> int:
    """Find and kill all registered server processes."""
    killed = 0
    servers_dir = get_servers_dir()

    for pid_file in servers_dir.glob("server_*.json"):
        try:
            with pid_file.open() as f:
                server_info = json.load(f)

            pid = server_info["pid"]
            try:
                proc = psutil.Process(pid)
                logger.info(
                    f"Killing server PID {pid} started at {server_info['timestamp']}"
                )
                proc.kill()
                killed += 1
            except psutil.NoSuchProcess:
                logger.debug(f"Server PID {pid} no longer exists")

            # Clean up stale PID file
            pid_file.unlink()

        except Exception as e:
            logger.error(f"Error processing {pid_file}: {e}")
            continue

    return killed


def cleanup_stale_servers():
    """Remove PID files for servers that no longer exist."""
    for pid_file in get_servers_dir().glob("server_*.json"):
        try:
            with pid_file.open() as f:
                server_info = json.load(f)
            stale = not psutil.pid_exists(server_info["pid"])
        except (OSError, json.JSONDecodeError, KeyError):
            # If we can't read the file, consider it stale
            stale = True
        if stale:
            pid_file.unlink(missing_ok=True)


if __name__ == "__main__":
    killed = kill_wfm_servers()
    logger.info(f"Killed {killed} wfmserver processes")
