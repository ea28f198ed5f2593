"""Lock metadata - the lock.json record stored on each lock branch."""

import base64
import binascii
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from .errors import LockDecodeError

LOCK_FILE = "lock.json"
LOCK_COMMIT_MSG = "lock"


def timestamp() -> str:
    """Current UTC time as ISO 8601 (ex: 2025-01-01T00:00:00.000Z)."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class LockRecord(BaseModel):
    """Deployment lock - who holds it, for what, and how to release it."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    reason: str | None = None
    branch: str  # the ref being deployed, not the lock branch
    created_at: str
    created_by: str
    sticky: bool = False
    environment: str | None = None
    global_: bool = Field(alias="global")
    unlock_command: str
    link: str
    task: str | None = None
    pr_number: int | None = None

    @field_validator("created_at")
    @classmethod
    def _check_created_at(cls, value: str) -> str:
        datetime.fromisoformat(value.replace("Z", "+00:00"))
        return value

    @model_validator(mode="before")
    @classmethod
    def _derive_global(cls, data: Any) -> Any:
        if isinstance(data, dict) and "global" not in data and "global_" not in data:
            data = {**data, "global": data.get("environment") is None}
        return data

    @model_validator(mode="after")
    def _check_scope(self) -> "LockRecord":
        if self.global_ != (self.environment is None):
            raise ValueError("a lock is global if and only if it has no environment")
        return self


def encode(record: LockRecord) -> str:
    """Serialize a lock record to base64 JSON for the lock file."""
    raw = record.model_dump_json(by_alias=True)
    return base64.b64encode(raw.encode("utf-8")).decode("ascii")


def decode(blob: str | None, branch: str | None = None) -> LockRecord:
    """Decode lock file content.

    Raises:
        LockDecodeError: the content is missing, not base64, not JSON,
            or not a valid lock record
    """
    if not blob:
        raise LockDecodeError("lock file is missing or empty", branch=branch)

    try:
        raw = base64.b64decode(blob.replace("\n", ""), validate=True)
        return LockRecord.model_validate_json(raw)
    except (binascii.Error, ValidationError) as e:
        raise LockDecodeError(f"lock file could not be decoded: {e}", branch=branch) from e
