from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    PROJECT_NAME: str = "MathDuel"
    API_V1_STR: str = "/api/v1"

    DATABASE_URL: str | None = None
    POSTGRES_SERVER: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = "postgres"
    POSTGRES_DB: str = "mathduel"
    DATABASE_ECHO: bool = False

    JWT_SECRET_KEY: str = "change-me"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24

    LOG_LEVEL: str = "INFO"
    LOG_DIR: str | None = None

    ROOM_MAX_PLAYERS: int = 8
    ROOM_MIN_PLAYERS: int = 2
    ROOM_DEFAULT_DURATION_SEC: int = 60
    ROOM_MIN_DURATION_SEC: int = 30
    ROOM_MAX_DURATION_SEC: int = 600
    ROOM_CODE_ATTEMPTS: int = 8
    POINTS_PER_CORRECT: int = 10

    @property
    def database_uri(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
