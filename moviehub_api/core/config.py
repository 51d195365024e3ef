# moviehub_api/core/config.py
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "moviehub_votes"
    env: str = Field(default="local")
    host: str = "0.0.0.0"
    port: int = 8080
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    mongo_dsn: str = Field(
        default="mongodb://mongo:27017/moviehub?replicaSet=rs0",
        alias="MONGO_DSN"
    )
    mongo_db: str = "moviehub"
    mongo_pool_size: int = Field(default=50, ge=1, alias="MONGO_POOL_SIZE")
    mongo_timeout_ms: int = Field(default=3000, ge=100,
                                  alias="MONGO_TIMEOUT_MS")
    # ballot write + counter write in one transaction (needs a replica set)
    mongo_transactions: bool = Field(default=True,
                                     alias="MONGO_TRANSACTIONS")
    vote_max_attempts: int = Field(default=3, ge=1,
                                   alias="VOTE_MAX_ATTEMPTS")

    sentry_dsn: str = Field(default="", alias="SENTRY_DSN")
    sentry_traces_sample_rate: float = Field(
        default=0.2, ge=0.0, le=1.0, alias="SENTRY_TRACES_SAMPLE_RATE")
    sentry_test_enabled: bool = Field(default=False,
                                      alias="SENTRY_TEST_ENABLED")
    model_config = SettingsConfigDict(env_file="infra/.env", extra="ignore",
                                      populate_by_name=True)


settings = Settings()
