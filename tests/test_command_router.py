"""Tests for routing comment and PR events to lock actions."""

from unittest.mock import AsyncMock, patch

import pytest

from src.coordination.metadata import LOCK_FILE, decode
from src.orchestrator.command_router import CommandRouter

from conftest import make_record


def comment_event(body: str, author: str = "mona", number: int = 3) -> dict:
    return {
        "action": "created",
        "issue": {"number": number, "pull_request": {"url": "..."}},
        "comment": {"id": 555, "body": body, "user": {"login": author}},
        "repository": {"full_name": "corp/test"},
    }


@pytest.fixture
def router(settings, store):
    router = CommandRouter(settings)
    router._store = lambda repo: store
    router.github.get_pull_request = AsyncMock(
        return_value={"head": {"ref": "cool-new-feature", "sha": "feed01"}}
    )
    return router


class TestCommentEvents:
    """Test lock commands posted as PR comments."""

    @pytest.mark.asyncio
    async def test_lock_claims_sticky_lock(self, router, store):
        result = await router.handle_comment_event(
            comment_event(".lock staging --reason testing --task api")
        )

        assert result.status is True
        record = decode(store.files[("staging-api-branch-deploy-lock", LOCK_FILE)])
        assert record.sticky is True
        assert record.reason == "testing"
        assert record.branch == "cool-new-feature"
        assert record.link == "https://github.com/corp/test/pull/3#issuecomment-555"
        assert store.branches["staging-api-branch-deploy-lock"] == "feed01"
        assert "Deployment Lock Claimed" in store.comments[-1][1]

    @pytest.mark.asyncio
    async def test_lock_defaults_to_default_environment(self, router, store):
        await router.handle_comment_event(comment_event(".lock"))
        assert "production-branch-deploy-lock" in store.branches

    @pytest.mark.asyncio
    async def test_global_lock(self, router, store):
        result = await router.handle_comment_event(comment_event(".lock --global"))

        assert result.global_ is True
        assert "global-branch-deploy-lock" in store.branches

    @pytest.mark.asyncio
    async def test_unknown_environment(self, router, store):
        assert await router.handle_comment_event(comment_event(".lock moon")) is None
        assert store.created == []
        assert "No matching environment target" in store.comments[0][1]

    @pytest.mark.asyncio
    async def test_stray_argument_rejected(self, router, store):
        assert await router.handle_comment_event(comment_event(".lock --task api staging")) is None
        assert store.created == []
        assert "Unexpected argument `staging`" in store.comments[0][1]

    @pytest.mark.asyncio
    async def test_lock_info_without_lock(self, router, store):
        result = await router.handle_comment_event(comment_event(".wcid staging"))

        assert result.status is None
        body = store.comments[0][1]
        assert "No active `staging` deployment locks found for the `corp/test` repository" in body
        assert "`.lock staging`" in body

    @pytest.mark.asyncio
    async def test_lock_info_with_lock(self, router, store):
        store.seed_lock("production-branch-deploy-lock", make_record(created_by="octo"))

        result = await router.handle_comment_event(comment_event(".lock --details"))

        assert result.status == "details-only"
        body = store.comments[0][1]
        assert "currently claimed by __octo__" in body
        assert "https://github.com/corp/test/blob/production-branch-deploy-lock/lock.json" in body
        assert store.created == []

    @pytest.mark.asyncio
    async def test_global_lock_info(self, router, store):
        await router.handle_comment_event(comment_event(".wcid --global"))
        assert "`.lock --global`" in store.comments[0][1]

    @pytest.mark.asyncio
    async def test_unlock(self, router, store):
        store.seed_lock("development-branch-deploy-lock", make_record(environment="development"))

        assert await router.handle_comment_event(comment_event(".unlock development")) is True
        assert "development-branch-deploy-lock" not in store.branches
        assert "Deployment Lock Removed" in store.comments[0][1]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "event",
        [
            {**comment_event(".lock"), "action": "edited"},
            {**comment_event(".lock"), "issue": {"number": 3}},
            comment_event("looks good to me"),
        ],
    )
    async def test_ignored_comments(self, router, store, event):
        assert await router.handle_comment_event(event) is None
        assert store.comments == []


class TestPullRequestEvents:
    """Test releasing locks when a PR closes."""

    @pytest.mark.asyncio
    async def test_merge_releases_pr_locks(self, router, store):
        store.seed_lock("staging-branch-deploy-lock", make_record(environment="staging", pr_number=42))

        result = await router.handle_pr_event(
            {
                "action": "closed",
                "pull_request": {"number": 42, "merged": True},
                "repository": {"full_name": "corp/test"},
            }
        )

        assert result is True
        assert "staging-branch-deploy-lock" not in store.branches

    @pytest.mark.asyncio
    async def test_close_uses_unlock_on_close(self, router):
        with patch(
            "src.orchestrator.command_router.PullRequestUnlocker.unlock_on_close",
            new_callable=AsyncMock,
            return_value=True,
        ) as mock_close:
            await router.handle_pr_event(
                {
                    "action": "closed",
                    "pull_request": {"number": 42, "merged": False},
                    "repository": {"full_name": "corp/test"},
                }
            )

        mock_close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_other_actions_ignored(self, router):
        assert await router.handle_pr_event({"action": "opened", "pull_request": {}}) is False
