"""Tests for lock command parsing."""

import pytest

from src.orchestrator.commands import CommandError, parse_lock_command


class TestParseLockCommand:
    """Test comment to LockCommand parsing."""

    @pytest.mark.parametrize("body", ["", "hello", ".deploy production", ".locked", "please .lock"])
    def test_not_a_lock_command(self, settings, body):
        assert parse_lock_command(body, settings) is None

    def test_bare_lock(self, settings):
        command = parse_lock_command(".lock", settings)
        assert command.action == "lock"
        assert command.environment is None
        assert command.global_ is False
        assert command.task is None
        assert command.reason is None

    def test_environment_and_reason(self, settings):
        command = parse_lock_command(".lock staging --reason testing a db migration", settings)
        assert command.environment == "staging"
        assert command.reason == "testing a db migration"

    def test_reason_stops_at_next_flag(self, settings):
        command = parse_lock_command(".lock production --reason hotfix for the api --task api", settings)
        assert command.reason == "hotfix for the api"
        assert command.task == "api"

    def test_global_flag(self, settings):
        command = parse_lock_command(".lock --reason code freeze --global", settings)
        assert command.global_ is True
        assert command.reason == "code freeze"

    @pytest.mark.parametrize(
        "body",
        [".lock --task api production", ".lock staging production", ".unlock --global staging"],
    )
    def test_stray_argument_rejected(self, settings, body):
        with pytest.raises(CommandError, match="Unexpected argument"):
            parse_lock_command(body, settings)

    @pytest.mark.parametrize("flag", ["--details", "--info"])
    def test_details_flags(self, settings, flag):
        command = parse_lock_command(f".lock production {flag}", settings)
        assert command.action == "info"
        assert command.details is True
        assert command.environment == "production"

    def test_lock_info_alias(self, settings):
        command = parse_lock_command(".wcid staging --task web", settings)
        assert command.action == "info"
        assert command.details is True
        assert command.environment == "staging"
        assert command.task == "web"

    def test_unlock(self, settings):
        command = parse_lock_command(".unlock development --task api --reason ignored", settings)
        assert command.action == "unlock"
        assert command.environment == "development"
        assert command.task == "api"
        assert command.reason is None

    def test_unlock_global(self, settings):
        command = parse_lock_command(".unlock --global", settings)
        assert command.global_ is True

    def test_custom_triggers(self, settings):
        settings.lock_trigger = "/lock"
        assert parse_lock_command("/lock staging", settings).environment == "staging"
        assert parse_lock_command(".lock staging", settings) is None
