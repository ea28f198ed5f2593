"""Lock ownership decisions."""

from enum import Enum

from .metadata import LockRecord


class Ownership(str, Enum):
    """Outcome of comparing an existing lock with a request."""
    CLAIM = "claim"  # no lock, go ahead and create it
    OWNER = "owner"
    DENY = "deny"


def resolve_ownership(
    record: LockRecord | None,
    actor: str,
    ref: str | None,
    pr_number: int | None = None,
) -> Ownership:
    """Decide whether ``actor`` deploying ``ref`` owns, may claim, or is denied the lock.

    The same actor on a different branch or PR is denied: a stale lock must
    not grant access to an unrelated branch.
    """
    if record is None:
        return Ownership.CLAIM

    same_user = record.created_by == actor
    same_branch = record.branch == ref
    if same_branch and record.pr_number is not None and pr_number is not None:
        same_branch = record.pr_number == pr_number

    if same_user and same_branch:
        return Ownership.OWNER
    return Ownership.DENY
