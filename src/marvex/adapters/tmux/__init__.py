"""Tmux adapter for Marvex."""

from .client import SessionStatus, TmuxClient, parse_session_status

__all__ = ["TmuxClient", "SessionStatus", "parse_session_status"]
