"""Remote ref store - the only place lock state lives.

Lock code talks to the repository through the narrow :class:`RefStore`
protocol so it can run against an in-memory fake in tests.
"""

from typing import Any, Protocol

from src.github_app.client import GitHubClient


class RefStore(Protocol):
    """Branch, file, and comment verbs on a single repository.

    Errors are the ``src.github_app.errors`` types: ``NotFoundError`` for
    missing refs and files, ``ConflictError`` when a ref already exists, and
    ``UnexpectedStatusError`` for anything else.
    """

    @property
    def repo(self) -> str: ...

    async def get_branch(self, name: str) -> str: ...

    async def create_ref(self, name: str, sha: str) -> None: ...

    async def delete_ref(self, name: str) -> int: ...

    async def list_branches(self, prefix: str) -> list[str]: ...

    async def get_file_content(self, branch: str, path: str) -> str: ...

    async def put_file_content(self, branch: str, path: str, blob: str, message: str) -> None: ...

    async def create_issue_comment(self, issue_number: int, body: str) -> dict[str, Any]: ...


class GitHubRefStore:
    """RefStore backed by the GitHub REST API."""

    def __init__(self, client: GitHubClient, repo: str):
        self.client = client
        self._repo = repo

    @property
    def repo(self) -> str:
        return self._repo

    async def get_branch(self, name: str) -> str:
        return await self.client.get_branch_sha(self._repo, name)

    async def create_ref(self, name: str, sha: str) -> None:
        await self.client.create_ref(self._repo, name, sha)

    async def delete_ref(self, name: str) -> int:
        return await self.client.delete_ref(self._repo, name)

    async def list_branches(self, prefix: str) -> list[str]:
        return await self.client.list_matching_branches(self._repo, prefix)

    async def get_file_content(self, branch: str, path: str) -> str:
        return await self.client.get_file_content(self._repo, path, branch)

    async def put_file_content(self, branch: str, path: str, blob: str, message: str) -> None:
        await self.client.create_file(self._repo, path, blob, message, branch)

    async def create_issue_comment(self, issue_number: int, body: str) -> dict[str, Any]:
        return await self.client.create_issue_comment(self._repo, issue_number, body)
