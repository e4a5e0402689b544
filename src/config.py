"""Centralized configuration using Pydantic BaseSettings"""

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppConfig(BaseSettings):
    """Application configuration with environment variable support"""

    # Source platform (GitHub)
    github_token: str | None = Field(
        default=None,
        validation_alias=AliasChoices("github_token", "your_github_pat"),
        description="GitHub personal access token (GITHUB_TOKEN or YOUR_GITHUB_PAT)",
    )
    github_api_url: str = Field(default="https://api.github.com", description="GitHub API base URL")

    # Generation platform (Gemini)
    gemini_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("gemini_api_key", "google_gemini_api_key", "google_api_key"),
        description="Google Gemini API key",
    )
    gemini_model: str = Field(
        default="gemini-1.5-flash-latest", description="Generative model used for documentation"
    )
    generation_temperature: float = Field(
        default=0.2, ge=0.0, le=1.0, description="Sampling temperature (low = focused output)"
    )
    generation_max_output_tokens: int = Field(
        default=2048, ge=64, le=65536, description="Upper bound on generated tokens"
    )

    # Deadlines
    generation_timeout_seconds: float = Field(
        default=45.0, gt=0, description="Deadline for a single generation call"
    )
    request_timeout_seconds: float = Field(
        default=55.0, gt=0, description="Deadline for the whole fetch-assemble-generate span"
    )

    # Fetching
    fetch_timeout_seconds: float = Field(
        default=10.0, gt=0, description="Timeout for one GitHub API call"
    )
    fetch_max_retries: int = Field(
        default=2, ge=0, le=10, description="Retries after the first failed attempt"
    )
    fetch_retry_delay_seconds: float = Field(
        default=1.0, ge=0.0, description="Fixed delay between retry attempts"
    )
    fetch_concurrency: int = Field(
        default=5, ge=1, le=20, description="Parallel file fetch workers per request"
    )
    issue_summary_limit: int = Field(
        default=10, ge=1, le=100, description="Open issues / pull requests summarized per request"
    )

    # Caching
    memory_cache_ttl_seconds: float = Field(
        default=1800.0, gt=0, description="TTL of the in-process cache (30 minutes)"
    )
    doc_cache_db_path: str = Field(
        default="./data/doc_cache.db", description="SQLite file backing the durable doc cache"
    )

    # Context size ceilings (full / quick mode)
    max_files: int = Field(default=25, ge=1, le=200, description="File ceiling")
    quick_max_files: int = Field(default=15, ge=1, le=200, description="File ceiling in quick mode")
    max_file_chars: int = Field(default=5000, ge=100, description="Per-file character ceiling")
    quick_max_file_chars: int = Field(
        default=3000, ge=100, description="Per-file character ceiling in quick mode"
    )
    max_context_chars: int = Field(default=100_000, ge=1000, description="Global context ceiling")
    quick_max_context_chars: int = Field(
        default=80_000, ge=1000, description="Global context ceiling in quick mode"
    )

    # Server
    server_host: str = Field(default="0.0.0.0", description="Server bind address")
    server_port: int = Field(default=8080, ge=1024, le=65535, description="Server port")

    # OpenTelemetry
    otel_logging_enabled: bool = Field(default=False, description="Enable OpenTelemetry logging")
    otel_tracing_enabled: bool = Field(
        default=False, description="Enable OpenTelemetry tracing for HTTP requests"
    )
    otel_endpoint: str = Field(
        default="http://otel-collector.otel.svc.cluster.local:4318",
        description="OpenTelemetry collector endpoint (HTTP/protobuf)",
    )
    otel_service_name: str = Field(
        default="autodocs-pipeline", description="Service name for OpenTelemetry"
    )
    otel_service_version: str = Field(
        default="1.0.0", description="Service version for OpenTelemetry"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )


# Global config instance
config = AppConfig()
