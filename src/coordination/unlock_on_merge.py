"""Release the locks a pull request holds once it is merged or closed."""

import re
from typing import Any

import structlog

from src.github_app.errors import GitHubError
from src.orchestrator.config import Settings

from .branch_names import lock_branch_name, lock_branch_prefix, parse_lock_branch
from .errors import LockDecodeError
from .lock import LockManager
from .metadata import LockRecord
from .ref_store import RefStore
from .requests import UnlockRequest, WorkflowSignals
from .unlock import REMOVED_SILENT, UnlockManager

logger = structlog.get_logger()

PR_LINK_PATTERN = re.compile(r"/pull/(\d+)")


def lock_pr_number(record: LockRecord) -> int | None:
    """PR a lock was claimed from, read from the record or its comment link."""
    if record.pr_number is not None:
        return record.pr_number
    match = PR_LINK_PATTERN.search(record.link or "")
    return int(match.group(1)) if match else None


class PullRequestUnlocker:
    """Best-effort release of every environment lock tied to one pull request."""

    def __init__(
        self,
        store: RefStore,
        settings: Settings,
        signals: WorkflowSignals | None = None,
    ):
        self.store = store
        self.settings = settings
        self.signals = signals or WorkflowSignals()
        self.locks = LockManager(store, settings, self.signals)
        self.unlocks = UnlockManager(store)
        self.unlocked_environments: list[str] = []

    async def unlock_on_merge(
        self,
        payload: dict[str, Any],
        environment_targets: list[str],
    ) -> bool:
        """Release locks after a merge. Returns False if the event is not a merged PR."""
        pr = payload.get("pull_request") or {}
        if payload.get("action") != "closed" or pr.get("merged") is not True:
            logger.warning(
                "Unlock on merge needs a merged pull request",
                action=payload.get("action"),
                merged=pr.get("merged"),
            )
            if payload.get("action") == "closed":
                logger.info("Pull request closed without merge, use unlock on close instead")
            return False
        return await self._unlock_pull_request(pr["number"], environment_targets)

    async def unlock_on_close(
        self,
        payload: dict[str, Any],
        environment_targets: list[str],
    ) -> bool:
        """Release locks after a PR is closed without merging."""
        pr = payload.get("pull_request") or {}
        if payload.get("action") != "closed" or pr.get("merged") is True:
            logger.warning(
                "Unlock on close needs a closed, unmerged pull request",
                action=payload.get("action"),
                merged=pr.get("merged"),
            )
            return False
        return await self._unlock_pull_request(pr["number"], environment_targets)

    async def _candidate_branches(self, environment: str) -> list[str]:
        task = self.settings.deployment_task
        if task == "all":
            prefix = lock_branch_prefix(environment)
            branches = []
            for name in await self.store.list_branches(prefix):
                try:
                    env, _ = parse_lock_branch(name)
                except ValueError:
                    continue
                if env == environment:
                    branches.append(name)
            logger.info(
                "Found lock branches",
                environment=environment,
                count=len(branches),
                branches=branches,
            )
            return branches
        return [lock_branch_name(environment, task or None)]

    async def _unlock_branch(self, environment: str, name: str, pr_number: int) -> None:
        if not await self.locks.check_branch(name):
            logger.info("Lock branch no longer exists - skipping", branch=name)
            return

        record = await self.locks.check_lock_file(name)
        if record is None:
            logger.info("No lock file found - skipping", branch=name)
            return

        lock_pr = lock_pr_number(record)
        if lock_pr != pr_number:
            logger.info(
                "Lock is not associated with this pull request - skipping",
                branch=name,
                lock_pr=lock_pr,
                pr=pr_number,
            )
            return

        result = await self.unlocks.release(
            UnlockRequest(environment=environment, task=record.task, silent=True)
        )
        if result == REMOVED_SILENT:
            label = f"{environment}-{record.task}" if record.task else environment
            self.unlocked_environments.append(label)
        else:
            logger.debug("Unlock result", result=result)
        logger.info(result.replace("- silent", "").strip(), branch=name)

    async def _unlock_pull_request(self, pr_number: int, environment_targets: list[str]) -> bool:
        for environment in environment_targets:
            try:
                for name in await self._candidate_branches(environment):
                    await self._unlock_branch(environment, name, pr_number)
            except (GitHubError, LockDecodeError) as e:
                logger.error(
                    "Failed to release lock",
                    environment=environment,
                    error=str(e),
                )

        self.signals.outputs["unlocked_environments"] = ",".join(self.unlocked_environments)
        return True
