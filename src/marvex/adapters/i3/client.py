"""i3 client for IPC-based layout queries and commands."""

from i3ipc.aio import Connection

from ...errors import ExternalCommandError, MarvexError
from ...telemetry import get_logger, metrics
from .models import Rect, WindowNode, Workspace

logger = get_logger(__name__)


def node_from_con(con) -> WindowNode:
    """Convert an i3ipc Con into a read-only WindowNode snapshot.

    Args:
        con: i3ipc.Con (or any object with the same attributes)

    Returns:
        WindowNode with all descendants converted.
    """
    rect = con.rect
    return WindowNode(
        id=con.id,
        name=con.name or "",
        focused=bool(con.focused),
        rect=Rect(x=rect.x, y=rect.y, width=rect.width, height=rect.height),
        layout=con.layout or "",
        type=con.type or "con",
        nodes=tuple(node_from_con(child) for child in con.nodes),
    )


def workspace_from_reply(reply) -> Workspace:
    """Convert an i3ipc WorkspaceReply into a Workspace."""
    return Workspace(
        name=reply.name,
        output=reply.output,
        focused=bool(reply.focused),
        num=reply.num,
    )


class I3Client:
    """Client for the i3 IPC socket.

    Provides async methods for:
    - Reading the layout tree
    - Listing workspaces
    - Issuing commands (split, focus)
    """

    def __init__(self, socket_path: str | None = None):
        """Initialize I3Client.

        Args:
            socket_path: Optional i3 IPC socket path. None discovers it.
        """
        self._socket_path = socket_path
        self._conn: Connection | None = None

    async def connect(self) -> "I3Client":
        """Connect to the i3 IPC socket.

        Raises:
            MarvexError: i3 is not reachable.
        """
        try:
            self._conn = await Connection(socket_path=self._socket_path).connect()
        except Exception as e:
            raise MarvexError(f"can't connect to i3 IPC socket: {e}") from e
        return self

    @property
    def connection(self) -> Connection:
        if self._conn is None:
            raise MarvexError("i3 client is not connected")
        return self._conn

    def close(self) -> None:
        """Stop the connection's event loop and drop it.

        i3ipc.aio has no call that closes the IPC sockets themselves; they
        are closed when the process exits. Further calls need connect().
        """
        if self._conn is None:
            return
        self._conn.main_quit()
        self._conn = None

    async def get_tree(self) -> WindowNode:
        """Get a snapshot of the whole layout tree."""
        con = await self.connection.get_tree()
        return node_from_con(con)

    async def get_workspaces(self) -> list[Workspace]:
        """List all workspaces."""
        replies = await self.connection.get_workspaces()
        return [workspace_from_reply(reply) for reply in replies]

    async def command(self, cmd: str) -> None:
        """Run an i3 command.

        Raises:
            ExternalCommandError: i3 reported the command as failed.
        """
        logger.debug(f"[i3 {cmd}]")
        metrics.inc("i3.commands")

        replies = await self.connection.command(cmd)
        for reply in replies:
            if not reply.success:
                raise ExternalCommandError([cmd], None, reply.error or "")
