"""Coordination layer - deployment locks held as repository branches."""

from .branch_names import lock_branch_name, parse_lock_branch
from .errors import LockDecodeError, LockError
from .lock import LockManager
from .metadata import LockRecord
from .ownership import Ownership, resolve_ownership
from .ref_store import GitHubRefStore, RefStore
from .requests import LockCommand, LockRequest, LockResult, UnlockRequest, WorkflowSignals
from .unlock import UnlockManager
from .unlock_on_merge import PullRequestUnlocker

__all__ = [
    "GitHubRefStore",
    "LockCommand",
    "LockDecodeError",
    "LockError",
    "LockManager",
    "LockRecord",
    "LockRequest",
    "LockResult",
    "Ownership",
    "PullRequestUnlocker",
    "RefStore",
    "UnlockManager",
    "UnlockRequest",
    "WorkflowSignals",
    "lock_branch_name",
    "parse_lock_branch",
    "resolve_ownership",
]
