from __future__ import annotations

from functools import lru_cache
from typing import List, Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

HubMode = Literal["local", "http", "redis", "off"]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="allow",
    )

    # app
    app_name: str = "Hospital Signage"
    app_env: str = "dev"
    log_level: str = "INFO"

    # every schedule rule is evaluated in this zone
    timezone: str = "Asia/Seoul"

    # content storage
    mongo_url: str = "mongodb://localhost:27017"
    mongo_db: str = "signage"
    contents_collection: str = "contents"

    # redis relay (empty = disabled)
    redis_url: str = ""
    events_channel: str = "signage:broadcast"

    # how admin actions reach the hub:
    #   local -> same process
    #   http  -> POST {hub_base_url}/broadcast
    #   redis -> publish on events_channel
    #   off   -> no-op
    hub_mode: HubMode = "local"
    hub_base_url: str = "http://127.0.0.1:3032"
    hub_timeout_s: float = 2.0

    cors_origins: List[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]

    @property
    def redis_enabled(self) -> bool:
        return bool(self.redis_url)


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
