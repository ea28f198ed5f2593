"""Lock and unlock requests, results, and workflow signals."""

from dataclasses import dataclass, field
from typing import Literal

from .metadata import LockRecord

OWNER = "owner"
DETAILS_ONLY = "details-only"

LockStatus = bool | Literal["owner", "details-only"] | None


@dataclass
class LockCommand:
    """Values a caller parsed out of a lock/unlock comment."""
    action: Literal["lock", "unlock", "info"]
    environment: str | None = None
    global_: bool = False
    task: str | None = None
    reason: str | None = None
    details: bool = False


def resolve_scope(
    environment: str | None,
    task: str | None,
    command: LockCommand | None,
) -> tuple[str | None, str | None]:
    """Pick the (environment, task) to lock; explicit values win over the parsed command.

    An environment of None means the global lock.
    """
    if environment is None and command is not None and not command.global_:
        environment = command.environment
    if task is None and command is not None:
        task = command.task
    return environment, task


@dataclass
class LockRequest:
    """A request to claim, or look up, a deployment lock."""
    actor: str
    ref: str | None = None
    pr_number: int | None = None
    environment: str | None = None  # None => global
    task: str | None = None
    sticky: bool = False
    reason: str | None = None
    details_only: bool = False
    post_deploy_step: bool = False  # skip the global lock check
    leave_comment: bool = False
    sha: str | None = None  # commit for the lock branch, defaults to the head of ref
    comment_id: int | None = None
    command: LockCommand | None = None


@dataclass
class UnlockRequest:
    """A request to release a deployment lock."""
    environment: str | None = None  # None => global
    task: str | None = None
    issue_number: int | None = None
    silent: bool = False
    command: LockCommand | None = None


@dataclass
class LockResult:
    """Result of a lock request.

    status is True (claimed), "owner", False (denied), None (nothing found)
    or "details-only".
    """
    status: LockStatus
    lock_data: LockRecord | None = None
    environment: str | None = None
    global_: bool = False
    global_flag: str = "--global"


@dataclass
class WorkflowSignals:
    """Process-wide signals for later workflow steps."""
    bypass: bool = False
    outputs: dict[str, str] = field(default_factory=dict)
