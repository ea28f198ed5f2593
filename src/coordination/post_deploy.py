"""Lock cleanup once a deployment has finished."""

import structlog

from src.orchestrator.config import Settings

from .lock import LockManager
from .ref_store import RefStore
from .requests import LockRequest, UnlockRequest, WorkflowSignals
from .unlock import UnlockManager

logger = structlog.get_logger()


async def post_deploy_cleanup(
    store: RefStore,
    settings: Settings,
    actor: str,
    environment: str,
    task: str | None = None,
    signals: WorkflowSignals | None = None,
) -> bool | str | None:
    """Release a non-sticky lock on ``environment``; sticky locks are kept.

    Returns the silent unlock result, or None when nothing was released.
    """
    locks = LockManager(store, settings, signals)
    response = await locks.acquire(
        LockRequest(
            actor=actor,
            environment=environment,
            task=task,
            details_only=True,
            post_deploy_step=True,  # a global lock must not block cleanup
        )
    )
    record = response.lock_data

    if record is None:
        logger.warning(
            "No lock data found after deployment, it may have been removed by another process",
            environment=environment,
        )
        return None

    if record.sticky:
        logger.info("Sticky lock detected, will not remove lock", environment=environment)
        return None

    logger.info("Non-sticky lock detected, will remove lock", environment=environment)
    return await UnlockManager(store).release(
        UnlockRequest(environment=environment, task=task, silent=True)
    )
