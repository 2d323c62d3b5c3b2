"""Marvex error taxonomy.

- NotFoundError: expected structural absence (workspace, tree level, session)
- ExternalCommandError: tmux exited non-zero or i3 rejected a command
- LockError: the lock file could not be opened or locked
- TemplateError: terminal command template could not be parsed
- WaitTimeout: a polling wait with an explicit deadline expired

Lock contention is not an error: acquisition blocks.
"""


class MarvexError(Exception):
    """Base class for all errors reported to the operator."""


class NotFoundError(MarvexError):
    """A required node or object is absent.

    Attributes:
        level: What was searched for ("workspace", "output", "content", ...)
        name: The name that was searched for, if any
        detail: Extra context (e.g. the candidate names that were present)
    """

    def __init__(self, level: str, name: str | None = None, detail: str | None = None):
        self.level = level
        self.name = name
        self.detail = detail

        message = f"could not find {level}"
        if name is not None:
            message += f" {name!r}"
        if detail:
            message += f": {detail}"
        super().__init__(message)


class ExternalCommandError(MarvexError):
    """An external collaborator call failed.

    Attributes:
        argv: The attempted command line (or i3 command)
        returncode: Process exit status, None for IPC failures
        stderr: Error output reported by the collaborator
    """

    def __init__(self, argv: list[str], returncode: int | None, stderr: str):
        self.argv = list(argv)
        self.returncode = returncode
        self.stderr = stderr.strip()

        message = f"command {self.argv!r} failed"
        if returncode is not None:
            message += f" with exit status {returncode}"
        if self.stderr:
            message += f": {self.stderr}"
        super().__init__(message)


class LockError(MarvexError):
    """The lock file could not be opened or locked."""


class TemplateError(MarvexError):
    """A terminal command template is malformed."""


class WaitTimeout(MarvexError):
    """A polling wait with a deadline gave up."""

    def __init__(self, what: str, timeout: float):
        self.what = what
        self.timeout = timeout
        super().__init__(f"timed out after {timeout}s waiting for {what}")
