"""GitHub App integration."""

from .client import GitHubClient
from .errors import ConflictError, GitHubError, NotFoundError, UnexpectedStatusError

__all__ = [
    "ConflictError",
    "GitHubClient",
    "GitHubError",
    "NotFoundError",
    "UnexpectedStatusError",
]
