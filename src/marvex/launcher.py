"""Terminal launcher

Builds the terminal emulator command line from a template and starts it.

Template placeholders:
    @path     terminal binary
    @title    window title
    @class    X window class
    @command  command the terminal runs; as the last argument it expands to
              the full argv, elsewhere to the shell-quoted command line
"""

import os
import re
import shlex
import shutil
import subprocess
from collections.abc import Mapping

from .errors import ExternalCommandError, NotFoundError, TemplateError
from .telemetry import get_logger

logger = get_logger(__name__)

COMMAND_PLACEHOLDER = "@command"

_PLACEHOLDER_RE = re.compile(f"@title|@class|@path|{COMMAND_PLACEHOLDER}")


def resolve_binary(path: str) -> str:
    """Resolve a terminal binary to an absolute path.

    Raises:
        NotFoundError: not absolute and not found on PATH
    """
    if os.path.isabs(path):
        return path

    found = shutil.which(path)
    if found is None:
        raise NotFoundError("terminal binary", path, detail="not found on PATH")
    return found


def build_argv(
    template: str,
    path: str,
    title: str,
    class_name: str,
    command: list[str],
) -> list[str]:
    """Expand a terminal command template.

    Raises:
        TemplateError: the template cannot be split into arguments
    """
    try:
        args = shlex.split(template)
    except ValueError as e:
        raise TemplateError(f"unable to parse command line template {template!r}: {e}") from e

    if not args:
        raise TemplateError("terminal command template is empty")

    tail: list[str] = []
    if args[-1] == COMMAND_PLACEHOLDER:
        args = args[:-1]
        tail = list(command)

    replacements = {
        "@title": title,
        "@class": class_name,
        "@path": path,
        COMMAND_PLACEHOLDER: shlex.join(command),
    }

    # Single pass: substituted values are not scanned again
    argv = [_PLACEHOLDER_RE.sub(lambda m: replacements[m.group(0)], arg) for arg in args]

    return argv + tail


def clean_environ(env: Mapping[str, str]) -> dict[str, str]:
    """Copy of env without TMUX, so the new terminal does not nest tmux."""
    return {key: value for key, value in env.items() if key != "TMUX"}


def spawn_terminal(argv: list[str], env: Mapping[str, str]) -> subprocess.Popen:
    """Start the terminal emulator without waiting for it.

    Stdio is inherited from this process.
    """
    logger.debug(f"Spawning terminal: {argv!r}")
    try:
        return subprocess.Popen(argv, env=dict(env))
    except OSError as e:
        raise ExternalCommandError(argv, None, str(e)) from e
