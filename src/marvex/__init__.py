"""Marvex - i3 terminals backed by persistent tmux sessions."""

__version__ = "9.0.0"
