"""Attachment Watcher

tmux exposes no "client attached" notification, so attachment is detected
by polling the session listing.

Even after a session is marked attached it may not be resized yet: until
the client's geometry is negotiated tmux reports the 80x24 default. The
first attached observation at that geometry is therefore treated as still
initializing. A real terminal can be 80x24 too, so this happens only once.

States:
    UNATTACHED  -> no attached line for the session yet
    PLACEHOLDER -> attached, first observation at the placeholder geometry
    READY       -> attached; the foreground command is known

Waits are unbounded by default (the caller has just launched the terminal
that will attach). An optional timeout raises WaitTimeout, and the waits are
coroutines, so cancelling the surrounding task stops them.
"""

import asyncio
import re
from enum import Enum
from typing import TYPE_CHECKING

from . import config
from .errors import WaitTimeout
from .telemetry import get_logger, metrics

if TYPE_CHECKING:
    from .adapters.tmux.client import SessionStatus, TmuxClient

logger = get_logger(__name__)


class AttachState(Enum):
    """Attachment state of a watched session."""

    UNATTACHED = "unattached"
    PLACEHOLDER = "placeholder"
    READY = "ready"


class AttachmentWatcher:
    """Detects when a session is attached and sized.

    Args:
        client: TmuxClient
        session: Session name to watch
        interval: Poll interval (seconds)
        placeholder: Geometry tmux reports before the client is sized
    """

    def __init__(
        self,
        client: "TmuxClient",
        session: str,
        interval: float = config.ATTACH_POLL_INTERVAL,
        placeholder: str = config.PLACEHOLDER_GEOMETRY,
    ):
        self._client = client
        self._session = session
        self._interval = interval
        self._placeholder = placeholder
        self._placeholder_seen = False
        self.state = AttachState.UNATTACHED
        self.command: str | None = None

    def observe(self, statuses: list["SessionStatus"]) -> AttachState:
        """Advance the state machine with one session listing.

        Args:
            statuses: Parsed lines of one list-sessions poll

        Returns:
            The new state. On READY, ``command`` holds the foreground command.
        """
        if self.state is AttachState.READY:
            return self.state

        status = next(
            (s for s in statuses if s.name == self._session and s.attached),
            None,
        )

        if status is None:
            self.state = AttachState.UNATTACHED
            return self.state

        if status.geometry == self._placeholder and not self._placeholder_seen:
            self._placeholder_seen = True
            self.state = AttachState.PLACEHOLDER
            return self.state

        self.state = AttachState.READY
        self.command = status.command
        return self.state

    async def wait(self, timeout: float | None = None) -> str:
        """Poll until the session is READY.

        Args:
            timeout: Optional deadline in seconds. None waits forever.

        Returns:
            Foreground command name of the session.

        Raises:
            WaitTimeout: timeout given and expired
        """
        loop = asyncio.get_running_loop()
        deadline = None if timeout is None else loop.time() + timeout

        while True:
            statuses = await self._client.list_session_status()
            metrics.inc("watcher.polls")

            state = self.observe(statuses)
            if state is AttachState.READY:
                logger.debug(f"Session {self._session} ready, running {self.command!r}")
                return self.command or ""

            if deadline is not None and loop.time() >= deadline:
                raise WaitTimeout(f"session {self._session} to attach", timeout)

            await asyncio.sleep(self._interval)


async def wait_for_session(
    client: "TmuxClient",
    session: str,
    interval: float = config.SESSION_POLL_INTERVAL,
    timeout: float | None = None,
) -> None:
    """Poll until a session with this name exists.

    Raises:
        WaitTimeout: timeout given and expired
    """
    loop = asyncio.get_running_loop()
    deadline = None if timeout is None else loop.time() + timeout

    while not await client.has_session(session):
        if deadline is not None and loop.time() >= deadline:
            raise WaitTimeout(f"session {session} to exist", timeout)
        await asyncio.sleep(interval)


async def clear_screen(
    client: "TmuxClient",
    session: str,
    pattern: str = config.CLEAR_REGEXP,
    interval: float = config.ATTACH_POLL_INTERVAL,
    timeout: float | None = None,
) -> bool:
    """Send C-l to a freshly attached session if it runs a shell.

    Args:
        client: TmuxClient
        session: Session name
        pattern: Regexp the foreground command must match

    Returns:
        True if the clear sequence was sent.
    """
    watcher = AttachmentWatcher(client, session, interval=interval)
    command = await watcher.wait(timeout=timeout)

    if not re.search(pattern, command):
        logger.debug(f"Not clearing {session}: {command!r} does not match {pattern!r}")
        return False

    await client.send_keys(session, config.CLEAR_KEYS)
    return True


async def send_command(
    client: "TmuxClient",
    session: str,
    cmdline: str,
    interval: float = config.SESSION_POLL_INTERVAL,
    timeout: float | None = None,
) -> None:
    """Type a command line into a session once it exists."""
    await wait_for_session(client, session, interval=interval, timeout=timeout)
    await client.send_text(session, cmdline + "\n")
