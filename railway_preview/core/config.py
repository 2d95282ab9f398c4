from typing import Optional
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Environment
    ENVIRONMENT: Optional[str] = None

    # Log Level
    LOG_LEVEL: str = "INFO"

    # Logging Configuration
    LOGGING_FRAME_DEPTH: int = (
        6  # Frame depth for finding logging call origin in stack trace
    )

    # Railway API Configuration
    RAILWAY_GRAPHQL_URL: str = "https://backboard.railway.com/graphql/v2"

    # GitHub API Configuration
    GITHUB_API_BASE_URL: str = "https://api.github.com"
    GITHUB_API_VERSION: str = "2022-11-28"
    GITHUB_WEBHOOK_SECRET: Optional[str] = (
        None  # Secret for webhook signature verification
    )
    GITHUB_COMMENTS_PER_PAGE: int = 100

    # Preview defaults used by the webhook service (the CI action reads INPUT_* instead)
    RAILWAY_TOKEN: Optional[str] = None
    RAILWAY_SOURCE_ENVIRONMENT_ID: Optional[str] = None
    GITHUB_TOKEN: Optional[str] = None
    PREVIEW_ENVIRONMENT_NAME_PREFIX: str = "pr-"
    PREVIEW_COMMENT_ON_PR: bool = True
    PREVIEW_DEPLOY_ON_CREATE: bool = True
    PREVIEW_WAIT_FOR_URLS: bool = True
    PREVIEW_URL_WAIT_TIMEOUT_SECONDS: int = 120
    PREVIEW_URL_POLL_INTERVAL_SECONDS: float = 10.0
    PREVIEW_EPHEMERAL: bool = False
    PREVIEW_COMMENT_AUTHOR_LOGIN: Optional[str] = (
        None  # e.g. "github-actions[bot]"; any bot account matches when unset
    )

    # API Configuration
    API_V1_PREFIX: str = "/api/v1"
    PROJECT_NAME: str = "Railway-Preview-Environments"
    VERSION: str = "1.0.0"

    # HTTP Settings
    HTTP_REQUEST_TIMEOUT_SECONDS: float = 30.0  # Default timeout for HTTP requests

    # External API Retry Configuration (Railway, GitHub)
    # Uses tenacity library for retry logic with exponential backoff
    EXTERNAL_API_RETRY_ATTEMPTS: int = (
        4  # Total attempts (3 retries + 1 initial = 4 total)
    )
    EXTERNAL_API_RETRY_MIN_WAIT: float = (
        0.5  # Minimum wait time between retries (seconds)
    )
    EXTERNAL_API_RETRY_MAX_WAIT: float = (
        2.0  # Maximum wait time between retries (seconds)
    )
    EXTERNAL_API_RETRY_MULTIPLIER: float = 1.0  # Exponential backoff multiplier

    # Sentry Configuration
    SENTRY_DSN: Optional[str] = None  # Sentry DSN for error tracking

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"

    # --------- Properties ---------
    @property
    def is_local(self) -> bool:
        """
        Check if running in local development environment.

        Supported values:
        - "local" or "local_dev" → True (local development)
        - "dev", "staging", "prod", or anything else → False (deployed)
        """
        if not self.ENVIRONMENT:
            return False
        return self.ENVIRONMENT.lower() in ["local", "local_dev"]


settings = Settings()
