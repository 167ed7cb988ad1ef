"""Application configuration using Pydantic BaseSettings."""

import logging

import structlog
from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database Configuration
    database_url: str = Field(alias="DATABASE_URL")
    db_pool_size: int = Field(default=20, alias="DB_POOL_SIZE")

    # Application Environment
    app_env: str = Field(default="development", alias="APP_ENV")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # CORS Configuration (dashboard API; the public live endpoint allows any origin)
    cors_origins: str = Field(default="http://localhost:3000", alias="CORS_ORIGINS")

    # Generation providers
    gemini_api_key: str = Field(default="", alias="GEMINI_API_KEY")
    gemini_base_url: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta", alias="GEMINI_BASE_URL"
    )
    generation_models: str = Field(
        default="gemini-2.0-flash-exp,gemini-1.5-flash,gemini-1.5-pro",
        alias="GENERATION_MODELS",
    )
    provider_max_attempts: int = Field(default=3, ge=1, alias="PROVIDER_MAX_ATTEMPTS")
    provider_retry_base_delay: float = Field(default=0.5, ge=0, alias="PROVIDER_RETRY_BASE_DELAY")
    provider_timeout_base_ms: int = Field(default=6000, alias="PROVIDER_TIMEOUT_BASE_MS")
    provider_timeout_per_item_ms: int = Field(default=200, alias="PROVIDER_TIMEOUT_PER_ITEM_MS")
    provider_timeout_cap_ms: int = Field(default=9000, alias="PROVIDER_TIMEOUT_CAP_MS")

    # Job submission limits
    max_objects_per_job: int = Field(default=100, alias="MAX_OBJECTS_PER_JOB")
    max_prompt_length: int = Field(default=4000, alias="MAX_PROMPT_LENGTH")
    pad_results_to_count: bool = Field(default=False, alias="PAD_RESULTS_TO_COUNT")
    job_retention_days: int = Field(default=7, alias="JOB_RETENTION_DAYS")

    # Credits
    generation_cost: int = Field(default=10, alias="GENERATION_COST")
    min_generation_credits: int = Field(default=10, alias="MIN_GENERATION_CREDITS")
    initial_credits: int = Field(default=1000, alias="INITIAL_CREDITS")
    pro_credits: int = Field(default=10000, alias="PRO_CREDITS")

    # Live data gateway
    free_monthly_api_limit: int = Field(default=1000, alias="FREE_MONTHLY_API_LIMIT")
    pro_monthly_api_limit: int = Field(default=50000, alias="PRO_MONTHLY_API_LIMIT")
    free_resource_limit: int = Field(default=2, alias="FREE_RESOURCE_LIMIT")
    live_burst_limit: int = Field(default=120, alias="LIVE_BURST_LIMIT")
    live_burst_window_seconds: float = Field(default=60.0, alias="LIVE_BURST_WINDOW_SECONDS")

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def generation_models_list(self) -> list[str]:
        """Parse provider models (fallback priority order) from comma-separated string."""
        return [model.strip() for model in self.generation_models.split(",") if model.strip()]

    @model_validator(mode="after")
    def validate_required_config(self) -> "Settings":
        """Validate required configuration on startup.

        Fails fast with clear error messages if configuration is incomplete.
        Validation is skipped in test/development environments to avoid breaking tests.
        """
        if self.app_env in ("test", "testing", "development"):
            return self

        missing = []

        if not self.gemini_api_key:
            missing.append(
                "GEMINI_API_KEY: Create an API key at https://aistudio.google.com/app/apikey"
            )

        if not self.generation_models_list:
            missing.append("GENERATION_MODELS: At least one model name is required")

        if missing:
            error_msg = "CRITICAL: Missing required environment variables:\n\n" + "\n".join(
                f"  - {m}" for m in missing
            )
            error_msg += "\n\nThe application cannot start without these variables."
            error_msg += "\nPlease update your .env file and restart."
            raise ValueError(error_msg)

        return self


def configure_logging(settings: Settings) -> None:
    """Configure structlog based on application environment.

    - Production: JSON output for log aggregation
    - Development: Console output for human readability
    """
    level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    if settings.app_env == "production":
        # JSON output for production (log aggregation)
        structlog.configure(
            processors=[
                structlog.stdlib.add_log_level,
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                structlog.processors.JSONRenderer(),
            ],
            wrapper_class=structlog.make_filtering_bound_logger(level),
            context_class=dict,
            logger_factory=structlog.PrintLoggerFactory(),
            cache_logger_on_first_use=True,
        )
    else:
        # Console output for development (human-readable)
        structlog.configure(
            processors=[
                structlog.stdlib.add_log_level,
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.dev.ConsoleRenderer(),
            ],
            wrapper_class=structlog.make_filtering_bound_logger(level),
            context_class=dict,
            logger_factory=structlog.PrintLoggerFactory(),
            cache_logger_on_first_use=True,
        )
