from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    # Database
    RAW_DATABASE_URL: str

    # Supabase
    SUPABASE_URL: str = ""
    SUPABASE_ANON_KEY: str = ""

    # AI Services
    OPENROUTER_API_KEY: str = ""
    OPENAI_API_KEY: str = ""
    GEMINI_API_KEY: str = ""

    # Idea analysis
    ANALYSIS_PROVIDER: str = "gemini"
    ANALYSIS_MODEL_GEMINI: str = "gemini-1.5-flash-latest"
    ANALYSIS_MODEL_OPENAI: str = "gpt-4o-mini"
    ANALYSIS_MODEL_OPENROUTER: str = "openai/gpt-4o-mini"
    ANALYSIS_TEMPERATURE: float = 0.7
    ANALYSIS_MAX_OUTPUT_TOKENS: int = 2048
    ANALYSIS_TIMEOUT_SECONDS: float = 30.0

    # Background jobs
    REDIS_URL: str = "redis://redis:6379/0"

    LOG_LEVEL: str = "INFO"

    @property
    def DATABASE_URL(self) -> str:
        # SQLAlchemy 2.0 requires the asyncpg driver for async operations
        if self.RAW_DATABASE_URL.startswith("postgresql://"):
            return self.RAW_DATABASE_URL.replace("postgresql://", "postgresql+asyncpg://", 1)
        return self.RAW_DATABASE_URL

    @property
    def SYNC_DATABASE_URL(self) -> str:
        # Alembic needs a synchronous driver
        if self.RAW_DATABASE_URL.startswith("postgresql://"):
            return self.RAW_DATABASE_URL.replace("postgresql://", "postgresql+psycopg2://", 1)
        return self.RAW_DATABASE_URL

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

settings = Settings()
