import queue
import signal
import sys
import time

import click

from . import config
from .exceptions import ConnWatchError
from .logging_config import setup_logging, get_logger
from .monitor import ConnectivityMonitor
from .sources import create_path_source

logger = get_logger(__name__)

EXIT_CONNECTED = 0
EXIT_DISCONNECTED = 1
EXIT_NO_UPDATE = 2


def signal_handler(signum, frame):
    """Handle termination signals gracefully."""
    signal_name = signal.Signals(signum).name
    click.echo(f"\nReceived {signal_name}. Exiting gracefully...")
    sys.exit(0)


# --- Helper Functions ---


def _build_monitor(settings):
    """Create a monitor for the configured backend, reporting errors to the user."""
    try:
        source = create_path_source(settings["backend"], settings["poll_interval"])
    except ConnWatchError as e:
        raise click.ClickException(str(e))
    logger.debug(f"Using {source.name} path source")
    return ConnectivityMonitor(source)


def _start(monitor):
    try:
        monitor.start_monitoring()
    except ConnWatchError as e:
        raise click.ClickException(f"Could not start monitoring: {e}")


def _wait_for_first_update(monitor, timeout):
    """Poll until the monitor has seen a path, or timeout elapses."""
    deadline = time.monotonic() + timeout
    while monitor.state.updated_at is None:
        if time.monotonic() >= deadline:
            return False
        time.sleep(0.05)
    return True


def _format_state(state):
    connected = click.style("yes", fg="green") if state.is_connected else click.style("no", fg="red")
    return f"Connected: {connected}  Type: {state.connection_type.value}"


# --- CLI Commands ---


class OrderedGroup(click.Group):
    """Custom Click group that preserves command order."""

    def list_commands(self, ctx):
        return list(self.commands.keys())


@click.group(cls=OrderedGroup)
@click.option("--debug", is_flag=True, default=False, help="Enable debug logging.")
@click.pass_context
def cli(ctx, debug):
    """
    ConnWatch - Network connectivity watcher.

    Reports whether the network is currently usable and whether the
    connection runs over Wi-Fi, cellular, or wired Ethernet.
    """
    try:
        settings = config.get_settings(config.load_config())
    except ConnWatchError as e:
        raise click.ClickException(str(e))

    debug = debug or settings["debug"]
    setup_logging(debug=debug)
    ctx.obj = settings


@cli.command()
@click.option(
    "--timeout",
    type=float,
    default=config.DEFAULT_STATUS_TIMEOUT,
    show_default=True,
    help="Seconds to wait for the first network path.",
)
@click.pass_obj
def status(settings, timeout):
    """
    Show the current connectivity state and exit.

    Exit status is 0 when connected, 1 when not connected, and 2 when no
    network path was reported before the timeout.
    """
    monitor = _build_monitor(settings)
    _start(monitor)
    try:
        received = _wait_for_first_update(monitor, timeout)
        state = monitor.state
    finally:
        monitor.stop_monitoring()

    if not received:
        click.echo(f"No network path reported within {timeout:g}s.", err=True)
        sys.exit(EXIT_NO_UPDATE)

    click.echo(_format_state(state))
    sys.exit(EXIT_CONNECTED if state.is_connected else EXIT_DISCONNECTED)


@cli.command()
@click.pass_obj
def watch(settings):
    """
    Print a line every time connectivity or connection type changes.

    Runs until interrupted with Ctrl+C.
    """
    signal.signal(signal.SIGTERM, signal_handler)

    monitor = _build_monitor(settings)
    # Changes are queued by the delivery thread so none is lost between prints
    events = queue.Queue()
    monitor.add_listener(events.put)
    _start(monitor)
    click.echo(f"Watching network path ({monitor.source.name} source). Press Ctrl+C to stop.")

    try:
        while True:
            try:
                state = events.get(timeout=config.WATCH_REFRESH_INTERVAL)
            except queue.Empty:
                continue
            stamp = time.strftime(config.LOG_DATE_FORMAT, time.localtime(state.updated_at))
            click.echo(f"{stamp}  {_format_state(state)}")
    except KeyboardInterrupt:
        click.echo("\nStopped.")
    finally:
        monitor.stop_monitoring()
        monitor.remove_listener(events.put)


if __name__ == "__main__":
    cli()
