import click

from wfmserver.scpi import parse_scpi_line
from wfmserver.server.bg_killer import kill_wfm_servers, list_running_servers
from wfmserver.server.client import ScpiClient
from wfmserver.server.server import start_server
from wfmserver.util import (
    DEFAULT_HOST_ADDR,
    DEFAULT_INSTRUMENT,
    DEFAULT_LOGLEVEL,
    DEFAULT_PORT,
    DEFAULT_TIMEOUT,
    format_error_response,
)


def print_tree(cmd, prefix="", parent_ctx=None):
    """Print command tree starting from given command."""
    ctx = click.Context(cmd, info_name=cmd.name, parent=parent_ctx)

    # Only print root name if no parent
    if not parent_ctx:
        click.echo(cmd.name)

    for sub in sorted(cmd.list_commands(ctx)):
        sub_cmd = cmd.get_command(ctx, sub)
        click.echo(f"{prefix}└── {sub}")
        if isinstance(sub_cmd, click.Group):
            print_tree(sub_cmd, prefix + "    ", ctx)


def tree_option(f):
    """Add --tree option to command."""

    def callback(ctx, param, value):
        if not value or ctx.resilient_parsing:
            return
        print_tree(ctx.command)
        ctx.exit()

    return click.option(
        "--tree",
        is_flag=True,
        help="Show command tree from this point",
        expose_value=False,
        is_eager=True,
        callback=callback,
    )(f)


@click.group()
@tree_option
def cli():
    """wfmserver - SCPI control-plane server for waveform digitizers.

    - Serves the SCPI control protocol for one instrument over TCP

    - Manages running server instances

    - Sends one-off commands for diagnostics
    """
    pass


@cli.command()
@click.option(
    "--instrument-name",
    "-n",
    default=DEFAULT_INSTRUMENT,
    help='Name of the instrument configuration to use (default: "mock")',
)
@click.option(
    "--host-address",
    "-ha",
    default=DEFAULT_HOST_ADDR,
    help="Network address to bind server to (default: localhost)",
)
@click.option(
    "--port",
    "-p",
    default=DEFAULT_PORT,
    type=int,
    help="Port for SCPI control connections (default: 5025)",
)
@click.option(
    "--log-to-file/--no-log-to-file",
    "-ltf/",
    default=True,
    help="Enable/disable logging to file (default: enabled)",
)
@click.option(
    "--log-to-stdout/--no-log-to-stdout",
    "-lts/",
    default=True,
    help="Enable/disable console logging (default: enabled)",
)
@click.option(
    "--log-path",
    "-lp",
    default="",
    help="Custom path for log file (default: ~/.wfmserver/server.log)",
)
@click.option(
    "--clear-prev-log/--no-clear-prev-log",
    "-c/",
    default=True,
    help="Clear previous log file on startup (default: enabled)",
)
@click.option(
    "--log-level",
    "-ll",
    default=DEFAULT_LOGLEVEL,
    help="Logging level (TRACE, DEBUG, INFO, WARNING, ERROR) (default: INFO)",
)
def serve(**kwargs):
    """Start the SCPI control server.

    Opens the configured instrument and accepts one control connection at a
    time. The device is reset whenever a client connects or disconnects.
    """
    kwargs["host"] = kwargs.pop("host_address")
    try:
        start_server(**kwargs)
    except ValueError:
        click.echo(f"Error: {format_error_response()}", err=True)
        raise SystemExit(1)


@cli.command()
def list():
    """List all running wfmserver instances.

    Displays the PID, running status, start time and listening address of
    each registered server.
    """
    servers = list_running_servers()

    click.echo("\nRunning wfmserver servers:")
    click.echo("--------------------------")

    if not servers:
        click.echo("No servers found")
        click.echo("")
        return

    for server in servers:
        status = "(RUNNING)" if server.get("running", False) else "(NOT RUNNING)"
        click.echo(f"\nPID: {server['pid']} {status}")
        click.echo(f"Started: {server['timestamp']}")
        click.echo(f"Address: {server['host']}:{server['port']}")
    click.echo("")


@cli.command()
def kill():
    """Kill all running wfmserver instances.

    Useful for cleaning up orphaned processes or resolving port conflicts.
    """
    killed = kill_wfm_servers()
    if killed:
        click.echo(f"Killed {killed} wfmserver server(s)")
    else:
        click.echo("No running wfmserver servers found")
    click.echo("")


@cli.command()
@click.argument("line")
@click.option(
    "--host-address",
    "-ha",
    default=DEFAULT_HOST_ADDR,
    help="Server address to connect to (default: localhost)",
)
@click.option(
    "--port",
    "-p",
    default=DEFAULT_PORT,
    type=int,
    help="Server port to connect to (default: 5025)",
)
@click.option(
    "--timeout",
    "-t",
    default=DEFAULT_TIMEOUT,
    type=float,
    help="Socket timeout in seconds (default: 5)",
)
def query(line: str, host_address: str, port: int, timeout: float):
    """Send one command LINE to a running server.

    Prints the reply when LINE is a query (ends with '?').
    """
    try:
        with ScpiClient(host_address, port, timeout) as client:
            if parse_scpi_line(line).is_query:
                click.echo(client.query(line))
            else:
                client.send(line)
    except OSError:
        click.echo(f"Error: {format_error_response()}", err=True)
        raise SystemExit(1)


@cli.command()
def instruments():
    """List available instrument configurations."""
    from wfmserver.system.sysconfig import list_available_instruments

    found = list_available_instruments()

    click.echo("\nAvailable instrument configurations:")
    click.echo("------------------------------------")

    if not found:
        click.echo("No instrument configurations found")
        click.echo("")
        return

    for name, path in sorted(found.items()):
        click.echo(f"  - {name} ({path})")
    click.echo("")
