"""GitHub API error classes.

Transport failures are left as ``httpx.TransportError`` and never wrapped.
"""


class GitHubError(Exception):
    """Base exception for GitHub API errors."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class NotFoundError(GitHubError):
    """Raised when a branch, ref, or file does not exist."""
    pass


class ConflictError(GitHubError):
    """Raised when creating a ref that already exists."""
    pass


class UnexpectedStatusError(GitHubError):
    """Raised for any other HTTP error status."""
    pass
