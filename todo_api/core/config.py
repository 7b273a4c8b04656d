from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # required, a missing value aborts startup
    database_url: str
    redis_dsn: str
    jwt_secret: str = Field(min_length=1)

    token_ttl_minutes: int = 15
    cache_ttl_seconds: int = 300  # Redis TTL for single-todo snapshots
    cache_namespace: str = "todo-api:"
    redis_pool_size: int = 10
    redis_socket_timeout: float = 1.0
    task_timeout_seconds: float = 3.0
    login_timeout_seconds: float = 5.0
    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    return Settings()
