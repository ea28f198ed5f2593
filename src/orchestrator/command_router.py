"""Command router - handles GitHub events and routes lock commands."""

from typing import Any

import httpx
import structlog

from src.coordination import messages
from src.coordination.branch_names import lock_branch_name
from src.coordination.lock import LockManager
from src.coordination.ref_store import GitHubRefStore
from src.coordination.requests import (
    LockCommand,
    LockRequest,
    LockResult,
    UnlockRequest,
    WorkflowSignals,
)
from src.coordination.unlock import UnlockManager
from src.coordination.unlock_on_merge import PullRequestUnlocker
from src.github_app.client import GitHubClient

from .commands import CommandError, parse_lock_command
from .config import Settings

logger = structlog.get_logger()


class CommandRouter:
    """Routes GitHub events to lock actions."""

    def __init__(
        self,
        settings: Settings,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.settings = settings
        self.github = GitHubClient(settings, transport=transport)

    def _store(self, repo: str) -> GitHubRefStore:
        return GitHubRefStore(self.github, repo)

    async def handle_comment_event(self, payload: dict[str, Any]) -> LockResult | bool | str | None:
        """Handle PR comments carrying lock commands."""
        if payload.get("action") != "created":
            return None

        issue = payload.get("issue", {})
        if "pull_request" not in issue:
            logger.debug("Ignoring comment outside a pull request", issue=issue.get("number"))
            return None

        comment = payload.get("comment", {})
        repo = payload.get("repository", {}).get("full_name")
        author = comment.get("user", {}).get("login")
        issue_number = issue.get("number")
        store = self._store(repo)

        try:
            command = parse_lock_command(comment.get("body", ""), self.settings)
        except CommandError as e:
            logger.warning("Invalid lock command", error=str(e), issue=issue_number)
            await store.create_issue_comment(
                issue_number,
                f"{e}. Put the environment first, for example "
                f"`{self.settings.lock_trigger} <environment> --task <name>`",
            )
            return None
        if command is None:
            return None

        logger.info(
            "Processing command",
            command=command.action,
            environment=command.environment,
            global_lock=command.global_,
            task=command.task,
            author=author,
            issue=issue_number,
        )

        environment = self._target_environment(command)
        if environment is False:
            await store.create_issue_comment(
                issue_number,
                f"No matching environment target found for `{command.environment}`. "
                f"Valid environments: `{self.settings.environment_targets}`",
            )
            return None

        match command.action:
            case "info":
                return await self._handle_lock_info(store, command, environment, author, issue_number)
            case "lock":
                return await self._handle_lock(
                    store, command, environment, author, issue_number, comment.get("id")
                )
            case "unlock":
                return await self._handle_unlock(store, command, environment, issue_number)

    def _target_environment(self, command: LockCommand) -> str | None | bool:
        """Environment the command targets, None for global, False if unknown."""
        if command.global_:
            return None
        if command.environment is None:
            return self.settings.default_environment
        if command.environment not in self.settings.environments:
            logger.warning("Unknown environment", environment=command.environment)
            return False
        return command.environment

    async def _handle_lock_info(
        self,
        store: GitHubRefStore,
        command: LockCommand,
        environment: str | None,
        author: str,
        issue_number: int,
    ) -> LockResult:
        """Handle `.lock --details` and the lock info alias."""
        result = await LockManager(store, self.settings).acquire(
            LockRequest(
                actor=author,
                environment=environment,
                task=command.task,
                details_only=True,
                command=command,
            )
        )

        if result.status is None:
            target = "global" if result.global_ else result.environment
            flag = self.settings.global_lock_flag if result.global_ else target
            body = messages.no_lock_info(target, store.repo, f"{self.settings.lock_trigger} {flag}")
            logger.info("No active deployment locks found", environment=result.environment)
        else:
            record = result.lock_data
            lock_url = messages.lock_file_url(
                self.settings.github_server_url,
                store.repo,
                lock_branch_name(record.environment, record.task),
            )
            body = messages.lock_info(record, lock_url)
            logger.info("Deployment lock is claimed", owner=record.created_by)

        await store.create_issue_comment(issue_number, body)
        return result

    async def _handle_lock(
        self,
        store: GitHubRefStore,
        command: LockCommand,
        environment: str | None,
        author: str,
        issue_number: int,
        comment_id: int | None,
    ) -> LockResult:
        """Handle `.lock` - claim a sticky lock for the PR's head branch."""
        pr = await self.github.get_pull_request(store.repo, issue_number)
        signals = WorkflowSignals()
        result = await LockManager(store, self.settings, signals).acquire(
            LockRequest(
                actor=author,
                ref=pr["head"]["ref"],
                sha=pr["head"]["sha"],
                pr_number=issue_number,
                environment=environment,
                task=command.task,
                sticky=True,
                reason=command.reason,
                leave_comment=True,
                comment_id=comment_id,
                command=command,
            )
        )
        logger.info("Lock command handled", status=result.status, bypass=signals.bypass)
        return result

    async def _handle_unlock(
        self,
        store: GitHubRefStore,
        command: LockCommand,
        environment: str | None,
        issue_number: int,
    ) -> bool | str:
        """Handle `.unlock`."""
        return await UnlockManager(store).release(
            UnlockRequest(
                environment=environment,
                task=command.task,
                issue_number=issue_number,
                command=command,
            )
        )

    async def handle_pr_event(self, payload: dict[str, Any]) -> bool:
        """Handle PR events (merged, closed) by releasing the PR's locks."""
        if payload.get("action") != "closed":
            return False

        repo = payload.get("repository", {}).get("full_name")
        pr = payload.get("pull_request", {})
        unlocker = PullRequestUnlocker(self._store(repo), self.settings)

        if pr.get("merged"):
            result = await unlocker.unlock_on_merge(payload, self.settings.environments)
        else:
            result = await unlocker.unlock_on_close(payload, self.settings.environments)

        logger.info(
            "Released pull request locks",
            pr=pr.get("number"),
            merged=bool(pr.get("merged")),
            unlocked_environments=unlocker.unlocked_environments,
        )
        return result
