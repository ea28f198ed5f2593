"""Lock subsystem exception classes."""


class LockError(Exception):
    """Base exception for deployment lock errors."""
    pass


class LockDecodeError(LockError):
    """Raised when a lock file is missing or cannot be decoded.

    Always fatal: with a corrupt lock file the state of the lock is unknown.
    """

    def __init__(self, message: str, branch: str | None = None):
        super().__init__(message)
        self.branch = branch
