"""Deployment unlocks - release a lock by deleting its branch."""

import structlog

from src.github_app.errors import NotFoundError, UnexpectedStatusError

from . import messages
from .branch_names import lock_branch_name
from .ref_store import RefStore
from .requests import UnlockRequest, resolve_scope

logger = structlog.get_logger()

REMOVED_SILENT = "removed lock - silent"
NO_LOCK_SILENT = "no deployment lock currently set - silent"
FAILED_SILENT = "failed to delete lock (bad status code) - silent"


class UnlockManager:
    """Releases deployment locks."""

    def __init__(self, store: RefStore):
        self.store = store

    async def _comment(self, request: UnlockRequest, body: str) -> None:
        if request.issue_number is not None:
            await self.store.create_issue_comment(request.issue_number, body)

    async def release(self, request: UnlockRequest) -> bool | str:
        """Delete the lock branch.

        Returns True when the lock was removed or there was none, False when
        GitHub answered with an unexpected status. Silent requests leave no
        comment and return one of the ``*_SILENT`` strings instead.
        Transport errors propagate.
        """
        environment, task = resolve_scope(request.environment, request.task, request.command)
        name = lock_branch_name(environment, task)

        try:
            status = await self.store.delete_ref(name)
        except NotFoundError:
            logger.info("No deployment lock to remove", branch=name)
            if request.silent:
                return NO_LOCK_SILENT
            await self._comment(request, messages.NO_LOCK_MSG)
            return True
        except UnexpectedStatusError as e:
            status = e.status_code

        if status != 204:
            logger.warning("Failed to delete lock branch", branch=name, status=status)
            return FAILED_SILENT if request.silent else False

        logger.info("Removed lock", branch=name)
        if request.silent:
            return REMOVED_SILENT
        await self._comment(request, messages.LOCK_REMOVED_MSG)
        return True
