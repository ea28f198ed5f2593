"""GitHub API client - Refs, contents, comments, PRs."""

from datetime import datetime, timezone
from typing import Any

import httpx
import jwt
import structlog

from src.orchestrator.config import Settings

from .errors import ConflictError, NotFoundError, UnexpectedStatusError

logger = structlog.get_logger()


class GitHubClient:
    """GitHub API client using App authentication."""

    def __init__(
        self,
        settings: Settings,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.settings = settings
        self.transport = transport
        self._installation_tokens: dict[str, tuple[str, datetime]] = {}

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.settings.github_api_url,
            transport=self.transport,
        )

    def _generate_jwt(self) -> str:
        """Generate JWT for GitHub App authentication."""
        now = datetime.now(timezone.utc)
        payload = {
            "iat": int(now.timestamp()) - 60,  # 1 minute ago
            "exp": int(now.timestamp()) + 600,  # 10 minutes from now
            "iss": self.settings.github_app_id,
        }
        return jwt.encode(
            payload,
            self.settings.github_app_private_key,
            algorithm="RS256",
        )

    async def _get_installation_token(self, repo: str) -> str:
        """Get installation access token for a repository."""
        if self.settings.github_token:
            return self.settings.github_token

        # Check cache
        if repo in self._installation_tokens:
            token, expires = self._installation_tokens[repo]
            if datetime.now(timezone.utc) < expires:
                return token

        async with self._client() as client:
            jwt_token = self._generate_jwt()
            headers = {
                "Authorization": f"Bearer {jwt_token}",
                "Accept": "application/vnd.github+json",
            }

            # Get installation for repo
            owner, name = repo.split("/")
            resp = await client.get(f"/repos/{owner}/{name}/installation", headers=headers)
            resp.raise_for_status()
            installation_id = resp.json()["id"]

            # Get access token
            resp = await client.post(
                f"/app/installations/{installation_id}/access_tokens",
                headers=headers,
            )
            resp.raise_for_status()
            data = resp.json()

            token = data["token"]
            expires = datetime.fromisoformat(data["expires_at"].replace("Z", "+00:00"))

            self._installation_tokens[repo] = (token, expires)
            return token

    @staticmethod
    def _raise_for_status(resp: httpx.Response) -> None:
        """Map GitHub error responses onto typed errors."""
        if resp.status_code < 400:
            return

        try:
            body = resp.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            message = body.get("message", "")
        else:
            message = resp.text

        if resp.status_code == 404:
            raise NotFoundError(message or "Not Found", resp.status_code)
        if resp.status_code == 422 and message == "Reference already exists":
            raise ConflictError(message, resp.status_code)
        if resp.status_code == 422 and message == "Reference does not exist":
            raise NotFoundError(message, resp.status_code)
        raise UnexpectedStatusError(
            f"GitHub API returned HTTP {resp.status_code}: {message}",
            resp.status_code,
        )

    async def _send(
        self,
        method: str,
        repo: str,
        path: str,
        **kwargs: Any,
    ) -> httpx.Response:
        """Make authenticated request to GitHub API."""
        token = await self._get_installation_token(repo)

        async with self._client() as client:
            resp = await client.request(
                method,
                f"/repos/{repo}{path}",
                headers={
                    "Authorization": f"Bearer {token}",
                    "Accept": "application/vnd.github+json",
                },
                **kwargs,
            )
        self._raise_for_status(resp)
        return resp

    async def _request(
        self,
        method: str,
        repo: str,
        path: str,
        **kwargs: Any,
    ) -> Any:
        resp = await self._send(method, repo, path, **kwargs)
        return resp.json() if resp.content else {}

    # === Comments ===

    async def create_issue_comment(
        self,
        repo: str,
        issue_number: int,
        body: str,
    ) -> dict[str, Any]:
        """Create a comment on an issue or PR."""
        result = await self._request(
            "POST",
            repo,
            f"/issues/{issue_number}/comments",
            json={"body": body},
        )
        logger.info("Created comment", repo=repo, issue=issue_number)
        return result

    # === Pull Requests ===

    async def get_pull_request(self, repo: str, pr_number: int) -> dict[str, Any]:
        """Get a pull request."""
        return await self._request("GET", repo, f"/pulls/{pr_number}")

    # === Branches and refs ===

    async def get_branch_sha(self, repo: str, branch: str) -> str:
        """Get the SHA of a branch.

        Raises:
            NotFoundError: the branch does not exist
        """
        result = await self._request("GET", repo, f"/branches/{branch}")
        return result["commit"]["sha"]

    async def create_ref(self, repo: str, branch: str, sha: str) -> dict[str, Any]:
        """Create ``refs/heads/<branch>`` pointing at ``sha``.

        Raises:
            ConflictError: the ref already exists
        """
        result = await self._request(
            "POST",
            repo,
            "/git/refs",
            json={"ref": f"refs/heads/{branch}", "sha": sha},
        )
        logger.info("Created ref", repo=repo, branch=branch, sha=sha)
        return result

    async def delete_ref(self, repo: str, branch: str) -> int:
        """Delete ``refs/heads/<branch>`` and return the HTTP status code.

        Raises:
            NotFoundError: the ref does not exist
        """
        resp = await self._send("DELETE", repo, f"/git/refs/heads/{branch}")
        logger.info("Deleted ref", repo=repo, branch=branch, status=resp.status_code)
        return resp.status_code

    async def list_matching_branches(self, repo: str, prefix: str) -> list[str]:
        """List branch names starting with ``prefix``."""
        result = await self._request("GET", repo, f"/git/matching-refs/heads/{prefix}")
        return [ref["ref"].removeprefix("refs/heads/") for ref in result]

    # === File Operations ===

    async def get_file_content(self, repo: str, path: str, branch: str) -> str:
        """Get the raw base64 content of a file on a branch.

        Args:
            repo: Repository in "owner/name" format
            path: Path to file in repository
            branch: Branch to read from

        Returns:
            The base64 content exactly as returned by the API

        Raises:
            NotFoundError: the branch or the file does not exist
        """
        result = await self._request(
            "GET",
            repo,
            f"/contents/{path}",
            params={"ref": branch},
        )
        return result.get("content", "")

    async def create_file(
        self,
        repo: str,
        path: str,
        content: str,
        message: str,
        branch: str,
    ) -> dict[str, Any]:
        """Create a file from already base64-encoded content.

        Files are never updated in place, so no blob SHA is sent.
        """
        result = await self._request(
            "PUT",
            repo,
            f"/contents/{path}",
            json={
                "message": message,
                "content": content,
                "branch": branch,
            },
        )
        logger.info("Created file", repo=repo, path=path, branch=branch)
        return result
