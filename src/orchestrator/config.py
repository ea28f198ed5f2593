"""Configuration management."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings from environment."""

    # GitHub App
    github_app_id: str
    github_app_private_key: str
    github_webhook_secret: str
    github_token: str | None = None  # static token skips App auth (e.g. Actions GITHUB_TOKEN)
    github_api_url: str = "https://api.github.com"
    github_server_url: str = "https://github.com"

    # Logging
    log_level: str = "INFO"

    # Environments
    environment_targets: str = "production,development,staging"
    default_environment: str = "production"

    # Commands
    lock_trigger: str = ".lock"
    unlock_trigger: str = ".unlock"
    lock_info_alias: str = ".wcid"
    global_lock_flag: str = "--global"

    # Lock release on merge/close: "", a task name, or "all"
    deployment_task: str = ""

    @property
    def environments(self) -> list[str]:
        """Configured environment names, in order."""
        return [env.strip() for env in self.environment_targets.split(",") if env.strip()]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
