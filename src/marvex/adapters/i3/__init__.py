"""i3 adapter for Marvex."""

from .client import I3Client
from .layout import (
    UnparsableNumber,
    active_terminals,
    biggest_window,
    focused_window,
    focused_workspace,
    title_pattern,
    workspace_node,
)
from .models import Rect, Terminal, WindowNode, Workspace

__all__ = [
    "I3Client",
    "UnparsableNumber",
    "active_terminals",
    "biggest_window",
    "focused_window",
    "focused_workspace",
    "title_pattern",
    "workspace_node",
    "Rect",
    "Terminal",
    "WindowNode",
    "Workspace",
]
