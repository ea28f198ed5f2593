"""Comment bodies for lock and unlock outcomes."""

from datetime import datetime, timezone

from .metadata import LOCK_FILE, LockRecord

LOCK_REMOVED_MSG = """### 🔓 Deployment Lock Removed

The deployment lock has been successfully removed"""

NO_LOCK_MSG = "🔓 There is currently no deployment lock set"


def _parse(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def time_diff(first: str, second: str) -> str:
    """Elapsed time between two ISO 8601 timestamps as ``{d}d:{h}h:{m}m:{s}s``."""
    seconds = int((_parse(second) - _parse(first)).total_seconds())
    days, seconds = divmod(seconds, 86400)
    hours, seconds = divmod(seconds, 3600)
    minutes, seconds = divmod(seconds, 60)
    return f"{days}d:{hours}h:{minutes}m:{seconds}s"


def lock_file_url(server_url: str, repo: str, lock_branch: str) -> str:
    return f"{server_url}/{repo}/blob/{lock_branch}/{LOCK_FILE}"


def comment_url(server_url: str, repo: str, pr_number: int | None, comment_id: int | None) -> str:
    url = f"{server_url}/{repo}/pull/{pr_number}"
    if comment_id is not None:
        url += f"#issuecomment-{comment_id}"
    return url


def lock_details(record: LockRecord, lock_url: str, now: str | None = None) -> str:
    """Render the detail block for an existing lock."""
    now = now or datetime.now(timezone.utc).isoformat()
    lines = []
    if record.reason:
        lines.append(f"- __Reason__: `{record.reason}`")
    if record.global_:
        lines.append("- __Environments__: `all`")
    else:
        lines.append(f"- __Environment__: `{record.environment}`")
    lines += [
        f"- __Branch__: `{record.branch}`",
        f"- __PR Number__: `{record.pr_number if record.pr_number is not None else 'N/A'}`",
        f"- __Task__: `{record.task or 'N/A'}`",
        f"- __Created At__: `{record.created_at}`",
        f"- __Created By__: `{record.created_by}`",
        f"- __Sticky__: `{str(record.sticky).lower()}`",
        f"- __Global__: `{str(record.global_).lower()}`",
        f"- __Comment Link__: [click here]({record.link})",
        f"- __Lock Link__: [click here]({lock_url})",
    ]
    details = "\n".join(lines)

    return f"""{details}

The current lock has been active for `{time_diff(record.created_at, now)}`

> If you need to release the lock, please comment `{record.unlock_command}`"""


def lock_info(record: LockRecord, lock_url: str, now: str | None = None) -> str:
    """Answer to a lock-info request when a lock exists."""
    global_msg = ""
    if record.global_:
        global_msg = "\n\nThis is a **global** deploy lock - All environments are currently locked"

    return f"""### Lock Details 🔒

The deployment lock is currently claimed by __{record.created_by}__{global_msg}

{lock_details(record, lock_url, now)}"""


def no_lock_info(target: str, repo: str, lock_command: str) -> str:
    """Answer to a lock-info request when no lock exists."""
    return f"""### Lock Details 🔒

No active `{target}` deployment locks found for the `{repo}` repository

> If you need to create a `{target}` lock, please comment `{lock_command}`"""


def lock_denied(record: LockRecord, actor: str, lock_url: str, now: str | None = None) -> str:
    """Rejection explaining who holds the lock, since when, and how to release it."""
    if record.global_:
        header = (
            f"Sorry __{actor}__, the `global` deployment lock is currently claimed"
            " - All environments are locked"
        )
    else:
        header = (
            f"Sorry __{actor}__, the `{record.environment}` environment deployment lock"
            " has already been claimed"
        )

    return f"""### ⚠️ Cannot claim deployment lock

{header}

#### Lock Details 🔒

{lock_details(record, lock_url, now)}"""


def lock_pending(actor: str, target: str, details_command: str) -> str:
    """Rejection when another request created the lock but has not recorded it yet."""
    return f"""### ⚠️ Cannot claim deployment lock

Sorry __{actor}__, the {target} deployment lock is being claimed by another request right now

> Check who holds it with `{details_command}` and try again"""


def lock_already_owned(record: LockRecord) -> str:
    target = "global" if record.global_ else f"`{record.environment}` environment"
    return f"""### 🔒 Deployment Lock Information

__{record.created_by}__, you are already the owner of the current {target} deployment lock

> If you need to release the lock, please comment `{record.unlock_command}`"""


def lock_claimed(record: LockRecord) -> str:
    target = "global" if record.global_ else f"`{record.environment}` environment"
    kind = "sticky " if record.sticky else ""
    reason = f"\n\n- __Reason__: `{record.reason}`" if record.reason else ""
    return f"""### 🔒 Deployment Lock Claimed

You are now the owner of the {kind}{target} deployment lock{reason}

> If you need to release the lock, please comment `{record.unlock_command}`"""
