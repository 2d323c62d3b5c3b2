"""CLI entry point for Marvex."""

import asyncio

import click
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape

from . import __version__, config
from .adapters.i3.client import I3Client
from .adapters.i3.layout import UnparsableNumber
from .adapters.tmux.client import TmuxClient
from .errors import MarvexError
from .naming import STRATEGIES
from .orchestrator import LaunchOptions, LaunchResult, Orchestrator
from .split import SplitMode
from .telemetry import get_logger, setup_logging

logger = get_logger(__name__)

_stderr = Console(stderr=True)


def resolve_split_mode(smart: bool, biggest: bool) -> SplitMode:
    """Combine the split flags. --biggest-split wins when both are given."""
    if biggest:
        return SplitMode.BIGGEST
    if smart:
        return SplitMode.SMART
    return SplitMode.NONE


def _fail(message: str) -> None:
    _stderr.print(f"[bold red]marvex:[/bold red] {escape(message)}", highlight=False)
    raise SystemExit(1)


async def _launch(options: LaunchOptions) -> LaunchResult | None:
    i3 = await I3Client().connect()
    try:
        tmux = TmuxClient(socket_name=options.tmux_socket)
        orchestrator = Orchestrator(options, i3, tmux, echo=click.echo)
        return await orchestrator.run()
    finally:
        i3.close()


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.option("-e", "command", default=None, metavar="CMD", help="Execute command in the new terminal.")
@click.option("-b", "terminal_path", default=config.TERMINAL_PATH, show_default=True, help="Path to terminal binary.")
@click.option("-t", "title_template", default=config.TITLE_TEMPLATE, show_default=True, help="Window title template (%w workspace, %n id).")
@click.option("-c", "clear_screen", is_flag=True, help="Send CTRL-L after opening terminal.")
@click.option("-s", "--smart-split", "smart", is_flag=True, help="Split the focused window along its longer side.")
@click.option("-S", "--biggest-split", "biggest", is_flag=True, help="Split the biggest window of the workspace (wins over -s).")
@click.option("-d", "dummy", is_flag=True, help="Start terminal with a placeholder; Enter turns it into a shell, Esc/CTRL-S closes it.")
@click.option("--quiet", is_flag=True, help="Do not print the new session name.")
@click.option("--clear-re", default=config.CLEAR_REGEXP, show_default=True, help="CTRL-L is sent only if this regexp matches the current command name.")
@click.option("--attach-timeout", default=config.ATTACH_TIMEOUT, type=float, metavar="SECONDS", help="Give up waiting for the terminal to attach (-c) or the session to exist (-e). Waits forever by default.")
@click.option("--class", "class_name", default=config.TERMINAL_CLASS, help="X window class name.")
@click.option("-r", "--reserving", "reserve", default=config.RESERVE_COUNT, show_default=True, type=int, help="Count of reserved tmux sessions to keep.")
@click.option("--lock", "lock_file", default=config.LOCK_FILE, show_default=True, help="Lock file serializing concurrent invocations.")
@click.option("--terminal", "terminal_template", default=config.TERMINAL_TEMPLATE, show_default=True, help="Template for the terminal command.")
@click.option("--tmux-socket", default=None, help="Name of the tmux socket (tmux -L).")
@click.option("--naming", type=click.Choice(list(STRATEGIES)), default=config.NAMING_STRATEGY, show_default=True, help="Terminal id scheme.")
@click.option("--number-width", default=config.NUMBER_WIDTH, show_default=True, type=int, help="Zero padding of sequential ids.")
@click.option(
    "--unparsable-number",
    type=click.Choice([policy.value for policy in UnparsableNumber]),
    default=config.UNPARSABLE_NUMBER,
    show_default=True,
    help="Titles whose id is not a number count as number 0 (zero) or are ignored (skip).",
)
@click.option("-v", "--verbose", is_flag=True, help="Be verbose.")
@click.version_option(version=__version__, prog_name="marvex")
def main(smart: bool, biggest: bool, **kwargs) -> None:
    """Spawn a terminal attached to a persistent tmux session.

    The session is named after the focused i3 workspace and a terminal id,
    and taken from a pool of pre-created sessions when possible.
    """
    setup_logging(verbose=kwargs["verbose"])

    try:
        options = LaunchOptions(split_mode=resolve_split_mode(smart, biggest), **kwargs)
    except ValidationError as e:
        _fail(str(e))

    try:
        asyncio.run(_launch(options))
    except MarvexError as e:
        logger.debug("launch failed", exc_info=True)
        _fail(str(e))


if __name__ == "__main__":
    main()
