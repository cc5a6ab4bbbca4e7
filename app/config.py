"""
Centralized configuration management using pydantic-settings.
This module provides a single source of truth for all application configuration.
"""


from dotenv import load_dotenv
from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.utils.logger import setup_logger

load_dotenv()


logger = setup_logger("core_config")


class Settings(BaseSettings):
    """
    Application settings managed by pydantic-settings.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
        populate_by_name=True,
        env_prefix="",
    )

    # ===== Gemini Configuration =====
    gemini_api_key: str | None = Field(
        default=None, alias="GEMINI_API_KEY", description="Google Gemini API key"
    )

    default_gemini_model: str = Field(
        default="gemini-2.0-flash",
        alias="DEFAULT_GEMINI_MODEL",
        description="Gemini model used to summarize transcripts",
    )

    summary_max_output_tokens: int = Field(
        default=8192,
        alias="SUMMARY_MAX_OUTPUT_TOKENS",
        description="Maximum tokens the summarizer may produce per document",
    )

    summary_temperature: float = Field(
        default=0.2,
        alias="SUMMARY_TEMPERATURE",
        description="Sampling temperature for transcript summaries",
    )

    summary_prompt: str | None = Field(
        default=None,
        alias="SUMMARY_PROMPT",
        description="Override for the guidance-extraction prompt",
    )

    # ===== Database Configuration =====
    app_database_url: str | None = Field(
        default=None,
        alias="CONCALL_DATABASE_URL",
        description="Application database URL (postgresql:// or sqlite+aiosqlite://)",
    )

    # ===== Exchange API Configuration =====
    bse_announcements_url: str = Field(
        default="https://api.bseindia.com/BseIndiaAPI/api/AnnSubCategoryGetData/w",
        alias="BSE_ANNOUNCEMENTS_URL",
        description="Exchange endpoint returning announcement metadata",
    )

    bse_attachment_base_url: str = Field(
        default="https://www.bseindia.com/xml-data/corpfiling/AttachLive/",
        alias="BSE_ATTACHMENT_BASE_URL",
        description="Base URL that announcement attachment names are appended to",
    )

    bse_category: str = Field(
        default="Company Update",
        alias="BSE_CATEGORY",
        description="Announcement category queried on the exchange",
    )

    bse_subcategory: str = Field(
        default="Earnings Call Transcript",
        alias="BSE_SUBCATEGORY",
        description="Announcement subcategory that qualifies for summarization",
    )

    bse_user_agent: str = Field(
        default=(
            "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/141.0.0.0 Safari/537.36"
        ),
        alias="BSE_USER_AGENT",
        description="User-Agent sent to the exchange, which rejects non-browser clients",
    )

    bse_fetch_all_pages: bool = Field(
        default=False,
        alias="BSE_FETCH_ALL_PAGES",
        description="Walk every result page instead of fetching only the first one",
    )

    bse_max_pages: int = Field(
        default=50,
        alias="BSE_MAX_PAGES",
        description="Upper bound on pages fetched when BSE_FETCH_ALL_PAGES is enabled",
    )

    bse_page_delay_seconds: float = Field(
        default=0.5,
        alias="BSE_PAGE_DELAY_SECONDS",
        description="Pause between page requests when walking all pages",
    )

    # ===== Ingestion Configuration =====
    dest_dir: str = Field(
        default="downloads",
        alias="DEST_DIR",
        description="Working directory for downloaded transcript documents",
    )

    pacing_delay_seconds: float = Field(
        default=1.0,
        alias="PACING_DELAY_SECONDS",
        description="Delay applied after every announcement processed",
    )

    # ===== Timeout Configuration =====
    operation_timeout_seconds: float = Field(
        default=3600.0,
        alias="OPERATION_TIMEOUT_SECONDS",
        description="Ceiling for fetch, ingestion and cleanup operations",
    )

    analytics_timeout_seconds: float = Field(
        default=10.0,
        alias="ANALYTICS_TIMEOUT_SECONDS",
        description="Timeout for reading the analytics summary",
    )

    # ===== Query Configuration =====
    default_page: int = Field(
        default=1, alias="DEFAULT_PAGE", description="Default page for list/find"
    )

    default_page_limit: int = Field(
        default=12,
        alias="DEFAULT_PAGE_LIMIT",
        description="Default page size for list/find",
    )

    # ===== Analytics Configuration =====
    analytics_enabled: bool = Field(
        default=True,
        alias="ANALYTICS_ENABLED",
        description="Record page views and API calls",
    )

    analytics_queue_size: int = Field(
        default=1000,
        alias="ANALYTICS_QUEUE_SIZE",
        description="Maximum number of analytics events waiting to be written",
    )

    session_cookie_name: str = Field(
        default="session_id",
        alias="SESSION_COOKIE_NAME",
        description="Cookie carrying the anonymous analytics session id",
    )

    session_max_age_seconds: int = Field(
        default=30 * 24 * 60 * 60,
        alias="SESSION_MAX_AGE_SECONDS",
        description="Lifetime of the analytics session cookie",
    )

    # ===== Server Configuration =====
    server_host: str = Field(
        default="0.0.0.0", alias="SERVER_HOST", description="Server host address"
    )

    server_port: int = Field(
        default=8080, alias="SERVER_PORT", description="Server port number"
    )

    server_workers: int = Field(
        default=1, alias="SERVER_WORKERS", description="Number of uvicorn workers"
    )

    # ===== CORS Configuration =====
    cors_allow_origins: list[str] = Field(
        default_factory=lambda: [
            "http://localhost:5173",  # Vite dev server default port
            "http://localhost:3000",  # Alternative dev port
            "http://127.0.0.1:5173",
        ],
        alias="CORS_ALLOW_ORIGINS",
        description="CORS allowed origins",
    )

    cors_allow_credentials: bool = Field(
        default=True,
        alias="CORS_ALLOW_CREDENTIALS",
        description="Whether to allow credentials in CORS requests",
    )

    cors_allow_methods: list[str] = Field(
        default_factory=lambda: ["*"],
        alias="CORS_ALLOW_METHODS",
        description="CORS allowed methods",
    )

    cors_allow_headers: list[str] = Field(
        default_factory=lambda: ["*"],
        alias="CORS_ALLOW_HEADERS",
        description="CORS allowed headers",
    )

    db_unavailable_hint: str = Field(
        default="Database connection failed. The server may be offline or network connectivity is down.",
        alias="DB_UNAVAILABLE_HINT",
        description="User-facing hint for database connection errors",
    )

    @model_validator(mode="after")
    def validate_settings(self) -> "Settings":
        """Validate settings and log warnings for missing critical configurations."""

        if not self.gemini_api_key:
            logger.warning(
                "GEMINI_API_KEY environment variable not set. Ingestion will be unavailable."
            )

        if not self.app_database_url:
            logger.warning(
                "CONCALL_DATABASE_URL environment variable not set. Falling back to local SQLite."
            )

        if self.bse_max_pages < 1:
            raise ValueError("BSE_MAX_PAGES must be at least 1")

        logger.debug(f"Ingestion working directory: {self.dest_dir}")
        logger.debug(f"Multi-page fetch enabled: {self.bse_fetch_all_pages}")

        return self


settings = Settings()
