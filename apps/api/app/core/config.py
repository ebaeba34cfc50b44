from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parents[2]


class Settings(BaseSettings):
    app_name: str = "agentpair-api"
    app_env: str = "development"
    app_port: int = 8000

    postgres_user: str = "agentpair"
    postgres_password: str = "agentpair"
    postgres_db: str = "agentpair"
    postgres_host: str = "localhost"
    postgres_port: int = 5432

    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_db: int = 0

    db_pool_size: int = 5
    db_max_overflow: int = 10
    db_pool_recycle_seconds: int = 1800
    db_create_tables: bool = True

    pairing_store_backend: Literal["redis", "memory"] = "redis"
    pairing_code_ttl_seconds: int = 300
    pairing_claimed_retention_seconds: int = 60
    pairing_max_generate_attempts: int = 8

    site_name: str = "AgentPair"
    site_url: str = "http://localhost:8000/"
    rest_url: str = "http://localhost:8000/api/"
    manifest_path: str = "agentpair/v1/manifest"
    credential_name_prefix: str = "AgentPair"

    agentpair_bootstrap_token: str | None = None

    log_level: str = "INFO"
    cors_allow_origins: str = "http://localhost:5173,http://127.0.0.1:5173"

    model_config = SettingsConfigDict(
        env_file=(str(BASE_DIR / ".env"), ".env"),
        env_file_encoding="utf-8",
    )

    @property
    def database_url(self) -> str:
        return (
            f"postgresql+psycopg://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    @property
    def redis_url(self) -> str:
        return f"redis://{self.redis_host}:{self.redis_port}/{self.redis_db}"

    @property
    def manifest_url(self) -> str:
        return f"{self.rest_url.rstrip('/')}/{self.manifest_path.lstrip('/')}"

    @property
    def cors_origins(self) -> list[str]:
        return [origin.strip() for origin in self.cors_allow_origins.split(",") if origin.strip()]


settings = Settings()
