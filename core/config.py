from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from typing import List, Optional

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database
    DATABASE_URL: str = Field("sqlite+aiosqlite:///./quiz.db", description="Async SQLAlchemy connection string (sqlite+aiosqlite://... or postgresql+asyncpg://...)")
    CREATE_SCHEMA_ON_STARTUP: bool = Field(True, description="Run create_all at startup instead of relying on Alembic")

    # Redis (empty disables cross-process session locking)
    REDIS_URL: str = Field("", description="Redis URL used for per-session locks shared across workers")
    LOCK_TIMEOUT_SECONDS: float = 10.0
    LOCK_TTL_SECONDS: int = 30

    # Quiz Settings
    ASSIGNMENT_SIZE: int = Field(5, ge=1, description="Questions assigned per participant per epoch")
    EPOCH_SECONDS: int = Field(3600, ge=1, description="Length of one assignment window")
    EPOCH_OFFSET_SECONDS: int = Field(0, description="Fixed alignment offset of the window boundaries")
    LEADERBOARD_SIZE: int = 10
    SAMPLER_SEED: Optional[int] = None

    # Catalog seeding
    SEED_ON_STARTUP: bool = True
    SEED_FILE: str = Field("", description="Optional .txt or .docx catalog loaded instead of the built-in one")

    # API
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000
    CORS_ORIGINS: List[str] = Field(default_factory=lambda: ["*"])

    # Environment
    ENV: str = "production"  # development, staging, production
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

settings = Settings()
