"""Split Heuristic

Decides which i3 split to issue before a terminal is launched so the new
window takes space along the longer side of the window being split.

A window wider than 4:3 splits horizontally, one taller than 3:4 splits
vertically; a window whose container already has that orientation is left
alone, as is a near-square one.
"""

from enum import Enum
from typing import TYPE_CHECKING

from .adapters.i3.layout import biggest_window, focused_window, workspace_node
from .adapters.i3.models import LAYOUT_SPLITH, LAYOUT_SPLITV, WindowNode, Workspace
from .telemetry import get_logger

if TYPE_CHECKING:
    from .adapters.i3.client import I3Client

logger = get_logger(__name__)

SPLIT_RATIO = 0.75


class SplitDirection(Enum):
    """Split to issue before launching."""

    NONE = "none"
    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"

    @property
    def command(self) -> str | None:
        """i3 command text, None when no split is needed."""
        if self is SplitDirection.NONE:
            return None
        return f"split {self.value}"


class SplitMode(Enum):
    """Which window gets split."""

    NONE = "none"
    SMART = "smart"  # the focused window
    BIGGEST = "biggest"  # the largest window of the focused workspace


def decide_split(window: WindowNode) -> SplitDirection:
    """Pick the split direction for a window.

    Args:
        window: Window carrying its container's layout

    Returns:
        SplitDirection (NONE when already split the right way or near-square)
    """
    width = float(window.rect.width)
    height = float(window.rect.height)

    if width * SPLIT_RATIO > height and window.layout != LAYOUT_SPLITH:
        return SplitDirection.HORIZONTAL

    if height * SPLIT_RATIO > width and window.layout != LAYOUT_SPLITV:
        return SplitDirection.VERTICAL

    return SplitDirection.NONE


async def apply_split(
    i3: "I3Client",
    mode: SplitMode,
    workspace: Workspace | None = None,
) -> SplitDirection:
    """Split the target window according to mode.

    Args:
        i3: Connected i3 client
        mode: Split mode
        workspace: Focused workspace (required for BIGGEST)

    Returns:
        The direction issued.
    """
    if mode is SplitMode.NONE:
        return SplitDirection.NONE

    tree = await i3.get_tree()

    if mode is SplitMode.BIGGEST:
        if workspace is None:
            raise ValueError("biggest split requires the focused workspace")
        window = biggest_window(workspace_node(tree, workspace))
        if window is None:
            # Empty workspace: the new terminal takes the whole space
            return SplitDirection.NONE
        await i3.command(f"[con_id={window.id}] focus")
    else:
        window = focused_window(tree)

    direction = decide_split(window)
    logger.debug(
        f"split {mode.value}: window {window.id} "
        f"{window.rect.width}x{window.rect.height} layout={window.layout!r} -> {direction.value}"
    )

    if direction.command is not None:
        await i3.command(direction.command)

    return direction
