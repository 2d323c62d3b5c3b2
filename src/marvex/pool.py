"""Session Pool Manager

Keeps a pool of idle pre-created ("reserved") tmux sessions so a new
terminal does not wait for tmux to start a shell:

- ensure_session: bind a name to a session, reusing a reserved one if any
- reserve_up_to: refill the pool after a launch

The live tmux session list is the only state; nothing is cached here.
Callers must hold the cross-process lock across list -> pick -> rename.
"""

import time
from collections.abc import Callable
from enum import Enum
from typing import TYPE_CHECKING

from . import config
from .core.ids import is_reserved, make_reserve_name
from .telemetry import get_logger, metrics

if TYPE_CHECKING:
    from .adapters.tmux.client import TmuxClient

logger = get_logger(__name__)


class EnsureOutcome(Enum):
    """How ensure_session satisfied the request."""

    EXISTING = "existing"  # already live, nothing done
    REUSED = "reused"  # a reserved session was renamed
    CREATED = "created"  # a new session was created


class SessionPool:
    """Reserve pool over a tmux server.

    Args:
        client: TmuxClient
        prefix: Reserved session name prefix
        clock: Nanosecond clock for reserved name suffixes
    """

    def __init__(
        self,
        client: "TmuxClient",
        prefix: str = config.RESERVE_PREFIX,
        clock: Callable[[], int] = time.time_ns,
    ):
        self._client = client
        self._prefix = prefix
        self._clock = clock
        self._last_suffix = 0

    async def reserved_sessions(self) -> list[str]:
        """Names of the reserved sessions, in tmux listing order."""
        sessions = await self._client.list_sessions()
        return [name for name in sessions if is_reserved(name, self._prefix)]

    async def ensure_session(self, name: str) -> EnsureOutcome:
        """Make sure a session called name exists.

        Idempotent: a live session with that name is left as is. Otherwise the
        first reserved session is renamed to name, or a new one is created
        when the pool is empty.
        """
        sessions = await self._client.list_sessions()

        if name in sessions:
            logger.debug(f"Session {name} already exists")
            return EnsureOutcome.EXISTING

        for session in sessions:
            if is_reserved(session, self._prefix):
                logger.debug(f"Reusing reserved session {session} as {name}")
                await self._client.rename_session(session, name)
                metrics.inc("pool.reused")
                return EnsureOutcome.REUSED

        logger.debug(f"Reserve pool is empty, creating session {name}")
        await self._client.new_session(name)
        metrics.inc("pool.created")
        return EnsureOutcome.CREATED

    def _next_suffix(self) -> int:
        # Strictly increasing even if the clock repeats within a burst
        suffix = max(self._clock(), self._last_suffix + 1)
        self._last_suffix = suffix
        return suffix

    async def reserve_up_to(self, count: int) -> list[str]:
        """Create reserved sessions until count of them exist.

        Args:
            count: Target pool size

        Returns:
            Names of the sessions created (empty if the pool was full).
        """
        reserved = len(await self.reserved_sessions())

        created = []
        for _ in range(count - reserved):
            name = make_reserve_name(self._next_suffix(), self._prefix)
            await self._client.new_session(name)
            created.append(name)

        if created:
            metrics.inc("pool.reserved", len(created))
            logger.debug(f"Reserved {len(created)} sessions ({reserved} already idle)")

        return created
