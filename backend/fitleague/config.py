from __future__ import annotations
import os
from pydantic import BaseModel

class Settings(BaseModel):
    environment: str = os.getenv("ENVIRONMENT", "dev")
    app_name: str = os.getenv("APP_NAME", "fitleague-api")
    app_display_name: str = os.getenv("APP_DISPLAY_NAME", "FitLeague")
    app_version: str = os.getenv("APP_VERSION", "0.1.0")
    git_sha: str = os.getenv("GIT_SHA", "dev")
    api_host: str = os.getenv("API_HOST", "0.0.0.0")
    api_port: int = int(os.getenv("API_PORT", "8000"))
    cors_origins: list[str] = os.getenv("CORS_ORIGINS", "*").split(",")
    database_url: str = os.getenv("DATABASE_URL", "postgresql+asyncpg://postgres:postgres@db:5432/fitleague_dev")
    redis_url: str = os.getenv("REDIS_URL", "redis://redis:6379/0")

    # Auth tokens are minted by the session provider; we only verify them
    jwt_secret: str = os.getenv("JWT_SECRET", "dev-secret-change-me")
    access_ttl_min: int = int(os.getenv("ACCESS_TTL_MIN", "15"))

    # Scoring
    leaderboard_delay_days: int = int(os.getenv("LEADERBOARD_DELAY_DAYS", "2"))
    default_timezone: str = os.getenv("DEFAULT_TIMEZONE", "UTC")
    enqueue_league_completion: bool = os.getenv("ENQUEUE_LEAGUE_COMPLETION", "1") == "1"

settings = Settings()
