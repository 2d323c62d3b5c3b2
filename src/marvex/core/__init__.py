"""Core module - session name grammar"""

from .ids import is_reserved, make_reserve_name, make_session_name, substitute

__all__ = [
    "substitute",
    "make_session_name",
    "make_reserve_name",
    "is_reserved",
]
