"""Tmux client for subprocess-based session control."""

import asyncio
from dataclasses import dataclass

from ... import config
from ...errors import ExternalCommandError
from ...telemetry import format_command_log, get_logger, metrics

logger = get_logger(__name__)

# Session names cannot contain colons, so a colon is a safe field separator
_FIELD_SEP = ":"

SESSION_NAME_FORMAT = "#S"
SESSION_STATUS_FORMAT = (
    "#S:#{?session_attached,X,}:"
    "#{window_width}x#{window_height}:#{pane_current_command}"
)


@dataclass(frozen=True)
class SessionStatus:
    """One line of the session status listing.

    Attributes:
        name: Session name
        attached: Whether a client is attached
        geometry: Active window size as "WxH" (e.g. "80x24")
        command: Foreground command of the active pane
    """

    name: str
    attached: bool
    geometry: str
    command: str


def parse_session_status(line: str) -> SessionStatus | None:
    """Parse a line produced with SESSION_STATUS_FORMAT.

    Returns:
        SessionStatus, or None for blank/malformed lines.
    """
    if not line:
        return None

    parts = line.split(_FIELD_SEP, 3)
    if len(parts) < 3:
        logger.debug(f"Failed to parse session line: {line!r}")
        return None

    name, flag, geometry = parts[0], parts[1], parts[2]
    command = parts[3] if len(parts) > 3 else ""
    return SessionStatus(
        name=name,
        attached=flag == "X",
        geometry=geometry,
        command=command,
    )


class TmuxClient:
    """Client for controlling tmux sessions via subprocess commands.

    Every failure is raised as ExternalCommandError carrying the attempted
    argv. The only exception is listing sessions while no tmux server is
    running, which yields an empty list.
    """

    def __init__(
        self,
        socket_name: str | None = None,
        socket_path: str | None = None,
        binary: str = config.TMUX_BINARY,
    ):
        """Initialize TmuxClient.

        Args:
            socket_name: Optional named socket (tmux -L). None uses the default.
            socket_path: Optional socket path (tmux -S).
            binary: tmux executable
        """
        self._socket_name = socket_name
        self._socket_path = socket_path
        self._binary = binary

    def _base_argv(self) -> list[str]:
        cmd = [self._binary]
        if self._socket_name:
            cmd.extend(["-L", self._socket_name])
        if self._socket_path:
            cmd.extend(["-S", self._socket_path])
        return cmd

    async def run(self, *args: str) -> str:
        """Execute a tmux command.

        Args:
            *args: Command arguments (e.g., "list-sessions", "-F", "#S")

        Returns:
            Command stdout.

        Raises:
            ExternalCommandError: tmux could not be started or exited non-zero.
        """
        cmd = self._base_argv()
        cmd.extend(args)

        logger.debug(format_command_log(cmd[0], cmd[1:]))
        metrics.inc("tmux.commands")

        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
            stdout, stderr = await proc.communicate()
        except OSError as e:
            metrics.inc("tmux.failures")
            raise ExternalCommandError(cmd, None, str(e)) from e

        if proc.returncode != 0:
            metrics.inc("tmux.failures")
            raise ExternalCommandError(cmd, proc.returncode, stderr.decode(errors="replace"))

        return stdout.decode(errors="replace")

    async def _list(self, fmt: str) -> list[str]:
        try:
            output = await self.run("list-sessions", "-F", fmt)
        except ExternalCommandError as e:
            if any(msg in e.stderr for msg in config.NO_SERVER_MESSAGES):
                logger.debug("tmux server is not running, no sessions")
                return []
            raise

        return [line for line in output.split("\n") if line]

    async def list_sessions(self) -> list[str]:
        """List the names of all live sessions, in tmux order."""
        return await self._list(SESSION_NAME_FORMAT)

    async def list_session_status(self) -> list[SessionStatus]:
        """List attach flag, geometry and foreground command of all sessions."""
        statuses = []
        for line in await self._list(SESSION_STATUS_FORMAT):
            status = parse_session_status(line)
            if status is not None:
                statuses.append(status)
        return statuses

    async def has_session(self, name: str) -> bool:
        """Check whether a session with exactly this name is live."""
        return name in await self.list_sessions()

    async def new_session(self, name: str) -> None:
        """Create a detached session."""
        await self.run("new-session", "-d", "-s", name)

    async def rename_session(self, old: str, new: str) -> None:
        """Rename a session.

        tmux reports "no current client" when the rename succeeded but it
        could not refresh a client status line; that failure is ignored.
        """
        try:
            await self.run("rename-session", "-t", old, new)
        except ExternalCommandError as e:
            if config.NO_CURRENT_CLIENT in e.stderr:
                logger.debug(f"Ignoring benign rename failure: {e.stderr}")
                return
            raise

    async def send_text(self, name: str, text: str) -> None:
        """Type literal text into the session's active pane."""
        await self.run("send", "-t", name, text)

    async def send_keys(self, name: str, *keys: str) -> None:
        """Reset the pane's terminal state and send key names (e.g. "C-l")."""
        await self.run("send-keys", "-R", "-t", name, *keys)

    def attach_argv(self, name: str) -> list[str]:
        """Command line that attaches a terminal to the session."""
        return [*self._base_argv(), "attach", "-t", name]
