from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # PostgreSQL (used when DATABASE_URL is empty)
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_user: str = "vt_user"
    postgres_password: str = "changeme"
    postgres_db: str = "visibility_tracker"

    # Full SQLAlchemy async URL, overrides the postgres_* parts when set
    database_url: str = ""

    @property
    def postgres_url(self) -> str:
        if self.database_url:
            return self.database_url
        return (
            f"postgresql+asyncpg://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    @property
    def postgres_url_sync(self) -> str:
        """For Alembic migrations (sync driver)."""
        return self.postgres_url.replace("+asyncpg", "+psycopg2").replace("+aiosqlite", "")

    # Supabase (hosted backend). When URL + key are set, runs are recorded through its REST API.
    supabase_url: str = ""
    supabase_service_role_key: str = ""
    supabase_anon_key: str = ""

    @property
    def supabase_key(self) -> str:
        return self.supabase_service_role_key or self.supabase_anon_key

    @property
    def use_supabase(self) -> bool:
        return bool(self.supabase_url and self.supabase_key)

    # LLM providers: a provider is enabled only when its key is set
    openai_api_key: str = ""
    anthropic_api_key: str = ""
    groq_api_key: str = ""

    openai_model: str = "gpt-4o-mini"
    anthropic_model: str = "claude-3-5-sonnet-20241022"
    groq_model: str = "llama-3.3-70b-versatile"

    llm_temperature: float = 0.7
    llm_max_tokens: int = 1024
    llm_timeout: float = 60.0  # seconds, per provider HTTP call

    default_provider: str = "openai"

    # App
    app_env: str = "development"
    app_debug: bool = True
    app_host: str = "0.0.0.0"
    app_port: int = 8000

    # CORS
    allowed_origins: str = "*"  # comma-separated

    # Logging
    log_level: str = "INFO"
    log_json: bool = False  # set True in production for structured JSON logs

    # Sentry
    sentry_dsn: str = ""  # leave empty to disable

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"


settings = Settings()


def validate_settings_for_production() -> None:
    """Validate critical settings. Called on startup in non-test environments."""
    errors: list[str] = []

    if not (settings.openai_api_key or settings.anthropic_api_key or settings.groq_api_key):
        errors.append("At least one of OPENAI_API_KEY, ANTHROPIC_API_KEY, GROQ_API_KEY must be set")

    if settings.default_provider not in ("openai", "anthropic", "groq"):
        errors.append("DEFAULT_PROVIDER must be one of: openai, anthropic, groq")

    if settings.supabase_url and not settings.supabase_key:
        errors.append("SUPABASE_URL is set but neither SUPABASE_SERVICE_ROLE_KEY nor SUPABASE_ANON_KEY is")

    if settings.is_production:
        if settings.allowed_origins == "*":
            errors.append("ALLOWED_ORIGINS must not be '*' in production")
        if settings.app_debug:
            errors.append("APP_DEBUG must be false in production")

    if errors:
        raise SystemExit("Configuration errors:\n  - " + "\n  - ".join(errors))
