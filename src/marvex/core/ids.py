"""Session name grammar

Every tmux session managed by marvex lives in the server's global session
namespace under one of two shapes:

- marvex-<workspace>-<id>     - a session bound to a terminal window
- marvex-reserve-<suffix>     - an idle pre-created session (the reserve pool)

Titles and session names are produced by plain textual substitution of the
``%w`` (workspace) and ``%n`` (id) placeholders. No escaping is performed.
"""

from .. import config

WORKSPACE_PLACEHOLDER = "%w"
ID_PLACEHOLDER = "%n"


def substitute(template: str, workspace: str, ident: str) -> str:
    """Replace every ``%w`` and ``%n`` occurrence in a template.

    Args:
        template: Template such as "marvex-%w-%n"
        workspace: Workspace name
        ident: Terminal id (number or random token)

    Returns:
        The formatted string
    """
    result = template.replace(WORKSPACE_PLACEHOLDER, workspace)
    return result.replace(ID_PLACEHOLDER, ident)


def make_session_name(
    workspace: str, ident: str, template: str = config.SESSION_NAME_TEMPLATE
) -> str:
    """Create the tmux session name for a terminal.

    Returns:
        Name like "marvex-3-2" or "marvex-web-kabefomuxi"
    """
    return substitute(template, workspace, ident)


def make_reserve_name(suffix: int | str, prefix: str = config.RESERVE_PREFIX) -> str:
    """Create a reserve pool session name, e.g. "marvex-reserve-1718000000000"."""
    return f"{prefix}{suffix}"


def is_reserved(session_name: str, prefix: str = config.RESERVE_PREFIX) -> bool:
    """Check if a session belongs to the reserve pool."""
    return session_name.startswith(prefix)
