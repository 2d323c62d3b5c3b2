"""Dummy placeholder

In dummy mode the terminal first shows a placeholder instead of a shell.
Enter turns it into a real tmux session; Escape, Ctrl-C or Ctrl-S closes it
without spawning anything.
"""

import sys
import termios
import tty
from collections.abc import Callable

from rich.console import Console
from rich.panel import Panel
from rich.text import Text

KEY_ENTER = ("\r", "\n")
KEY_CANCEL = ("\x1b", "\x03", "\x13")  # Escape, Ctrl-C, Ctrl-S


def read_key(stream=None) -> str:
    """Read a single key press from a tty in raw mode."""
    stream = stream or sys.stdin
    fd = stream.fileno()
    saved = termios.tcgetattr(fd)
    try:
        tty.setraw(fd)
        return stream.read(1)
    finally:
        termios.tcsetattr(fd, termios.TCSADRAIN, saved)


def render_placeholder(console: Console, session: str) -> None:
    console.clear()
    body = Text.assemble(
        ("Enter", "bold green"),
        " start shell in ",
        (session, "bold"),
        "\n",
        ("Esc", "bold red"),
        " / ",
        ("Ctrl-S", "bold red"),
        " close",
    )
    console.print(Panel(body, title="marvex", border_style="dim"))


def run_placeholder(
    session: str,
    console: Console | None = None,
    key_reader: Callable[[], str] = read_key,
) -> bool:
    """Show the placeholder until the user decides.

    Args:
        session: Session the placeholder would turn into
        console: rich Console to draw on
        key_reader: Key reader (returns one character per call)

    Returns:
        True to convert into a shell, False to close.
    """
    console = console or Console()
    render_placeholder(console, session)

    while True:
        key = key_reader()
        if key in KEY_ENTER:
            console.clear()
            return True
        if key in KEY_CANCEL or key == "":
            return False
