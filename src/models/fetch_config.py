"""Models for GitHub fetching configuration"""

from pydantic import BaseModel, Field

from src.config import AppConfig


class FetchingConfig(BaseModel):
    """Configuration for fetching behavior"""

    timeout: float = Field(default=10.0, gt=0, le=300, description="Per-call timeout in seconds")
    max_retries: int = Field(default=2, ge=0, le=10, description="Retries after the first attempt")
    retry_delay: float = Field(default=1.0, ge=0.0, le=60.0, description="Fixed backoff (seconds)")
    concurrent_limit: int = Field(default=5, ge=1, le=20, description="Parallel file fetch workers")
    summary_limit: int = Field(
        default=10, ge=1, le=100, description="Open issues / pull requests listed per summary"
    )

    @classmethod
    def from_app_config(cls, app_config: AppConfig) -> "FetchingConfig":
        return cls(
            timeout=app_config.fetch_timeout_seconds,
            max_retries=app_config.fetch_max_retries,
            retry_delay=app_config.fetch_retry_delay_seconds,
            concurrent_limit=app_config.fetch_concurrency,
            summary_limit=app_config.issue_summary_limit,
        )


class GitHubConfig(BaseModel):
    """Configuration for GitHub API access"""

    token: str | None = Field(default=None, description="GitHub personal access token")
    api_url: str = Field(default="https://api.github.com", description="GitHub API base URL")

    @classmethod
    def from_app_config(cls, app_config: AppConfig) -> "GitHubConfig":
        return cls(token=app_config.github_token, api_url=app_config.github_api_url)
