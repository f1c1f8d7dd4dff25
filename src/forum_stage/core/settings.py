"""Application settings and configuration.

This module defines all configuration options for the forum-stage application.
Settings are loaded from environment variables with sensible defaults.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files. They
    are read once at process start and treated as read-only afterwards.
    """

    # Application metadata
    app_name: str = Field(default="Forum Stage", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")

    # Security and authentication
    secret_key: str = Field(alias="SECRET_KEY")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(
        default=60 * 24 * 30,
        alias="ACCESS_TOKEN_EXPIRE_MINUTES",
    )
    debug: bool = Field(default=False, alias="DEBUG")

    # Logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # Database configuration
    database_url: str = Field(default="sqlite:///./forum.db", alias="DATABASE_URL")
    test_database_url: str | None = Field(default=None, alias="TEST_DATABASE_URL")
    use_testing_database: bool = Field(default=False, alias="USE_TEST_DATABASE")

    # Only expose numeric ids in URL params when enabled.
    work_safe_urls: bool = Field(default=False, alias="WORK_SAFE_URLS")

    # Pagination
    discussions_per_page: int = Field(default=30, alias="DISCUSSIONS_PER_PAGE")
    posts_per_page: int = Field(default=50, alias="POSTS_PER_PAGE")
    # Posts from the previous page repeated on top of a page for context.
    post_context: int = Field(default=3, alias="POST_CONTEXT")

    # Popular discussions window, in days
    popular_default_days: int = Field(default=7, alias="POPULAR_DEFAULT_DAYS")
    popular_min_days: int = Field(default=1, alias="POPULAR_MIN_DAYS")
    popular_max_days: int = Field(default=180, alias="POPULAR_MAX_DAYS")

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(default=["*"], alias="CORS_ORIGINS")
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(default=["*"], alias="CORS_ALLOW_HEADERS")

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )

    @property
    def database_url_sync(self) -> str:
        """Return a sync-compatible database URL for tooling.

        Converts asyncpg URLs to psycopg for synchronous database operations
        like Alembic migrations.
        """
        url = self.effective_database_url
        if url.startswith("postgresql+asyncpg"):
            return url.replace("postgresql+asyncpg", "postgresql+psycopg", 1)
        return url

    @property
    def effective_database_url(self) -> str:
        """Return the database URL respecting testing overrides."""
        if self.use_testing_database and self.test_database_url:
            return self.test_database_url
        return self.database_url


settings = Settings()  # type: ignore[call-arg]
