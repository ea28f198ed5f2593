"""Lock branch naming.

Every lock lives on its own branch named
``{global|<environment>}[-<task>]-branch-deploy-lock``. Components are escaped
so that ``-`` only ever appears as a separator, which keeps the mapping from
(scope, task) to branch name one-to-one.
"""

import re
import string

LOCK_BRANCH_SUFFIX = "branch-deploy-lock"
GLOBAL_SCOPE = "global"

_SAFE_CHARS = frozenset(string.ascii_letters + string.digits)
_ESCAPE = re.compile(r"_([0-9A-F]{2})")
_COMPONENT = re.compile(r"^(?:[A-Za-z0-9]|_[0-9A-F]{2})+$")


def escape_component(value: str) -> str:
    """Escape one name component; anything but ASCII letters and digits becomes ``_XX``."""
    if not value:
        raise ValueError("lock branch components must not be empty")

    out = []
    for char in value:
        if char in _SAFE_CHARS:
            out.append(char)
        else:
            out.extend(f"_{byte:02X}" for byte in char.encode("utf-8"))
    return "".join(out)


def unescape_component(value: str) -> str:
    if not _COMPONENT.match(value):
        raise ValueError(f"not an escaped lock branch component: {value!r}")

    raw = bytearray()
    pos = 0
    for match in _ESCAPE.finditer(value):
        raw.extend(value[pos:match.start()].encode("ascii"))
        raw.append(int(match.group(1), 16))
        pos = match.end()
    raw.extend(value[pos:].encode("ascii"))
    return raw.decode("utf-8")


def _scope(environment: str | None) -> str:
    if environment is None:
        return GLOBAL_SCOPE
    if environment == GLOBAL_SCOPE:
        raise ValueError(f"'{GLOBAL_SCOPE}' is reserved and cannot be used as an environment name")
    return escape_component(environment)


def lock_branch_name(environment: str | None, task: str | None = None) -> str:
    """Return the lock branch for an environment (None for the global lock) and optional task."""
    parts = [_scope(environment)]
    if task is not None:
        parts.append(escape_component(task))
    parts.append(LOCK_BRANCH_SUFFIX)
    return "-".join(parts)


def lock_branch_prefix(environment: str | None) -> str:
    """Prefix shared by every lock branch of an environment, task-scoped or not."""
    return f"{_scope(environment)}-"


def parse_lock_branch(name: str) -> tuple[str | None, str | None]:
    """Invert :func:`lock_branch_name`, returning ``(environment, task)``."""
    suffix = f"-{LOCK_BRANCH_SUFFIX}"
    if not name.endswith(suffix):
        raise ValueError(f"not a lock branch: {name!r}")

    parts = name[: -len(suffix)].split("-")
    if len(parts) > 2:
        raise ValueError(f"not a lock branch: {name!r}")

    scope = parts[0]
    environment = None if scope == GLOBAL_SCOPE else unescape_component(scope)
    task = unescape_component(parts[1]) if len(parts) == 2 else None
    return environment, task
