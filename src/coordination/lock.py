"""Deployment locks - claim and inspect locks held as branches on the repository."""

import structlog

from src.github_app.errors import ConflictError, NotFoundError
from src.orchestrator.config import Settings

from . import messages
from .branch_names import lock_branch_name
from .metadata import LOCK_COMMIT_MSG, LOCK_FILE, LockRecord, decode, encode, timestamp
from .ownership import Ownership, resolve_ownership
from .ref_store import RefStore
from .requests import (
    DETAILS_ONLY,
    OWNER,
    LockRequest,
    LockResult,
    WorkflowSignals,
    resolve_scope,
)

logger = structlog.get_logger()


class LockManager:
    """Claims deployment locks.

    A lock is a branch named by :func:`lock_branch_name`; creating the branch
    is the compare-and-swap, and ``lock.json`` on it records who holds it.
    Nothing is kept in memory between calls.
    """

    def __init__(
        self,
        store: RefStore,
        settings: Settings,
        signals: WorkflowSignals | None = None,
    ):
        self.store = store
        self.settings = settings
        self.signals = signals or WorkflowSignals()

    async def check_branch(self, name: str) -> bool:
        """Return whether a lock branch exists; other errors propagate."""
        try:
            await self.store.get_branch(name)
        except NotFoundError:
            logger.debug("Lock branch does not exist", branch=name)
            return False
        return True

    async def check_lock_file(self, name: str) -> LockRecord | None:
        """Read and decode the lock file on a branch, or None if it is missing.

        Raises:
            LockDecodeError: the file exists but is corrupt
        """
        try:
            blob = await self.store.get_file_content(name, LOCK_FILE)
        except NotFoundError:
            logger.debug("Lock file does not exist", branch=name)
            return None
        return decode(blob, branch=name)

    async def _read_existing(self, name: str) -> LockRecord:
        """Read the lock file of a branch known to exist; a missing file is corrupt state."""
        try:
            blob = await self.store.get_file_content(name, LOCK_FILE)
        except NotFoundError:
            blob = None
        return decode(blob, branch=name)

    def _lock_url(self, name: str) -> str:
        return messages.lock_file_url(self.settings.github_server_url, self.store.repo, name)

    def _command(self, trigger: str, environment: str | None, task: str | None) -> str:
        target = environment if environment is not None else self.settings.global_lock_flag
        command = f"{trigger} {target}"
        if task:
            command += f" --task {task}"
        return command

    async def _comment(self, request: LockRequest, body: str) -> None:
        if request.leave_comment and request.pr_number is not None:
            await self.store.create_issue_comment(request.pr_number, body)

    async def _deny(
        self,
        request: LockRequest,
        record: LockRecord,
        name: str,
        result: LockResult,
    ) -> LockResult:
        logger.info(
            "Lock denied",
            branch=name,
            actor=request.actor,
            owner=record.created_by,
        )
        await self._comment(
            request,
            messages.lock_denied(record, request.actor, self._lock_url(name)),
        )
        self.signals.bypass = True
        result.status = False
        result.lock_data = record
        return result

    async def _check_global_lock(
        self,
        request: LockRequest,
        task: str | None,
    ) -> LockResult | None:
        """Return a result if a global lock takes precedence over this request."""
        names = [lock_branch_name(None)]
        if task is not None:
            names.append(lock_branch_name(None, task))

        for name in names:
            record = await self.check_lock_file(name)
            if record is None:
                continue

            result = LockResult(
                status=None,
                environment=None,
                global_=True,
                global_flag=self.settings.global_lock_flag,
            )
            if request.details_only:
                result.status = DETAILS_ONLY
                result.lock_data = record
                return result
            if record.created_by != request.actor:
                logger.info("Global lock takes precedence", branch=name)
                return await self._deny(request, record, name, result)
        return None

    async def _resolve_existing(
        self,
        request: LockRequest,
        name: str,
        result: LockResult,
    ) -> LockResult:
        """Decide the outcome when the lock branch already exists."""
        if request.details_only:
            record = await self.check_lock_file(name)
            if record is None:
                logger.info("Lock branch has no lock file", branch=name)
                return result
            result.status = DETAILS_ONLY
            result.lock_data = record
            return result

        record = await self._read_existing(name)
        return await self._decide(request, record, name, result)

    async def _decide(
        self,
        request: LockRequest,
        record: LockRecord,
        name: str,
        result: LockResult,
    ) -> LockResult:
        decision = resolve_ownership(record, request.actor, request.ref, request.pr_number)

        if decision == Ownership.OWNER:
            logger.info("Requester already owns the lock", branch=name, actor=request.actor)
            await self._comment(request, messages.lock_already_owned(record))
            result.status = OWNER
            result.lock_data = record
            return result

        return await self._deny(request, record, name, result)

    async def acquire(self, request: LockRequest) -> LockResult:
        """Claim a lock, or look one up when ``details_only`` is set."""
        environment, task = resolve_scope(request.environment, request.task, request.command)
        is_global = environment is None
        name = lock_branch_name(environment, task)

        result = LockResult(
            status=None,
            environment=environment,
            global_=is_global,
            global_flag=self.settings.global_lock_flag,
        )

        if not is_global and not request.post_deploy_step:
            global_result = await self._check_global_lock(request, task)
            if global_result is not None:
                return global_result

        if await self.check_branch(name):
            return await self._resolve_existing(request, name, result)

        if request.details_only:
            logger.info("No lock found", branch=name)
            return result

        sha = request.sha or await self.store.get_branch(request.ref)
        try:
            await self.store.create_ref(name, sha)
        except ConflictError:
            # Lost the race: someone created the branch since it was probed
            logger.info("Lock branch created concurrently", branch=name, actor=request.actor)
            return await self._resolve_race(request, name, task, result)

        record = LockRecord(
            reason=request.reason,
            branch=request.ref,
            created_at=timestamp(),
            created_by=request.actor,
            sticky=request.sticky,
            environment=environment,
            global_=is_global,
            unlock_command=self._command(self.settings.unlock_trigger, environment, task),
            link=messages.comment_url(
                self.settings.github_server_url,
                self.store.repo,
                request.pr_number,
                request.comment_id,
            ),
            task=task,
            pr_number=request.pr_number,
        )
        await self.store.put_file_content(name, LOCK_FILE, encode(record), LOCK_COMMIT_MSG)
        logger.info(
            "Lock claimed",
            branch=name,
            actor=request.actor,
            sticky=request.sticky,
            environment=environment,
            task=task,
        )
        await self._comment(request, messages.lock_claimed(record))

        result.status = True
        return result

    async def _resolve_race(
        self,
        request: LockRequest,
        name: str,
        task: str | None,
        result: LockResult,
    ) -> LockResult:
        """Re-read a branch another caller just created."""
        try:
            blob = await self.store.get_file_content(name, LOCK_FILE)
        except NotFoundError:
            # The winner has not committed its lock file yet
            logger.info("Lock held, details not yet written", branch=name)
            target = "global" if result.global_ else f"`{result.environment}` environment"
            details = self._command(self.settings.lock_trigger, result.environment, task) + " --details"
            await self._comment(request, messages.lock_pending(request.actor, target, details))
            self.signals.bypass = True
            result.status = False
            return result

        return await self._decide(request, decode(blob, branch=name), name, result)
