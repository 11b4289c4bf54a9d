"""
Runtime configuration for the report server.
Values come from the environment (or a local .env file) and are read once per process.
"""

from functools import lru_cache
from typing import Optional, Tuple

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore", populate_by_name=True)

    port: int = 3000
    public_url: Optional[str] = Field(default=None, validation_alias=AliasChoices("PUBLIC_URL", "RENDER_EXTERNAL_URL"))

    # GitHub ban-list integration (disabled by default)
    ban_list_enabled: bool = Field(default=False, validation_alias=AliasChoices("GITHUB_ENABLED", "BAN_LIST_ENABLED"))
    github_token: str = ""
    github_owner: str = "ItsThatOneJack-Dev"
    github_repo: str = "BetterRugplay-tags"
    github_file_path: str = "reportsystem.json"
    github_branch: Optional[str] = None
    github_api_url: str = "https://api.github.com"

    # Chat webhooks
    reports_webhook: str = ""
    actions_webhook: str = ""
    webhook_timeout_seconds: float = 10.0
    profile_url_base: str = "https://rugplay.com/user/"

    # Auth
    login_hashes: str = ""
    salt_rounds: int = 12  # ~100ms per comparison

    # Rate limiting for POST /report
    report_rate_limit_window_seconds: int = 15 * 60
    report_rate_limit_max: int = 5

    log_level: str = "INFO"

    @property
    def credential_hashes(self) -> Tuple[str, ...]:
        """LOGIN_HASHES split on ';', trimmed, empties dropped."""
        return tuple(h.strip() for h in self.login_hashes.split(";") if h.strip())

    @property
    def base_url(self) -> str:
        return (self.public_url or f"http://localhost:{self.port}").rstrip("/")

    @property
    def dashboard_url(self) -> str:
        return f"{self.base_url}/reports"


@lru_cache()
def get_settings() -> Settings:
    return Settings()
