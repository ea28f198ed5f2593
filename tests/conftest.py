"""Shared fixtures - settings and an in-memory ref store."""

import os
from typing import Any

import pytest

# Set test environment variables before imports that might trigger Settings
os.environ.setdefault("GITHUB_APP_ID", "test")
os.environ.setdefault("GITHUB_APP_PRIVATE_KEY", "test")
os.environ.setdefault("GITHUB_WEBHOOK_SECRET", "test")

from src.coordination.metadata import LOCK_FILE, LockRecord, encode
from src.github_app.errors import ConflictError, NotFoundError, UnexpectedStatusError
from src.orchestrator.config import Settings


class InMemoryRefStore:
    """RefStore fake holding branches, files, and comments in dicts."""

    def __init__(self, repo: str = "corp/test"):
        self._repo = repo
        self.branches: dict[str, str] = {"main": "abc123", "cool-new-feature": "def456"}
        self.files: dict[tuple[str, str], str] = {}
        self.comments: list[tuple[int, str]] = []
        self.created: list[str] = []
        self.writes: list[str] = []
        self.delete_status = 204
        self.delete_error: Exception | None = None
        self.before_create = None  # async hook run once before the next create_ref

    @property
    def repo(self) -> str:
        return self._repo

    async def get_branch(self, name: str) -> str:
        if name not in self.branches:
            raise NotFoundError("Branch not found", 404)
        return self.branches[name]

    async def create_ref(self, name: str, sha: str) -> None:
        if self.before_create is not None:
            hook, self.before_create = self.before_create, None
            await hook(self)
        if name in self.branches:
            raise ConflictError("Reference already exists", 422)
        self.branches[name] = sha
        self.created.append(name)

    async def delete_ref(self, name: str) -> int:
        if self.delete_error is not None:
            raise self.delete_error
        if name not in self.branches:
            raise NotFoundError("Reference does not exist", 422)
        if self.delete_status != 204:
            return self.delete_status
        del self.branches[name]
        self.files = {key: blob for key, blob in self.files.items() if key[0] != name}
        return 204

    async def list_branches(self, prefix: str) -> list[str]:
        return sorted(name for name in self.branches if name.startswith(prefix))

    async def get_file_content(self, branch: str, path: str) -> str:
        if branch not in self.branches or (branch, path) not in self.files:
            raise NotFoundError("Not Found", 404)
        return self.files[(branch, path)]

    async def put_file_content(self, branch: str, path: str, blob: str, message: str) -> None:
        if branch not in self.branches:
            raise UnexpectedStatusError("Branch not found", 422)
        self.files[(branch, path)] = blob
        self.writes.append(branch)

    async def create_issue_comment(self, issue_number: int, body: str) -> dict[str, Any]:
        self.comments.append((issue_number, body))
        return {"id": len(self.comments), "body": body}

    def seed_lock(self, branch: str, record: LockRecord) -> None:
        """Put an existing lock on the store."""
        self.branches[branch] = "0ld5ha"
        self.files[(branch, LOCK_FILE)] = encode(record)


def make_record(**overrides: Any) -> LockRecord:
    """Lock record fixture; override any field by name."""
    data: dict[str, Any] = {
        "reason": None,
        "branch": "cool-new-feature",
        "created_at": "2022-06-15T21:12:14.041Z",
        "created_by": "mona",
        "sticky": False,
        "environment": "production",
        "global_": False,
        "unlock_command": ".unlock production",
        "link": "https://github.com/corp/test/pull/3#issuecomment-123",
        "task": None,
        "pr_number": 3,
    }
    data.update(overrides)
    return LockRecord(**data)


@pytest.fixture
def settings():
    """Create test settings."""
    return Settings(
        github_app_id="test",
        github_app_private_key="test",
        github_webhook_secret="test",
        environment_targets="production,development,staging",
    )


@pytest.fixture
def store():
    return InMemoryRefStore()
