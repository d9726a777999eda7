from functools import lru_cache
from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    api_base_url: str = "http://localhost:3000/api"
    request_timeout: float = 300.0

    user_store: Literal["file", "mongo"] = "file"
    user_store_path: str = "~/.zhidao/user_defaults.json"
    user_store_key: str = "currentUser"
    mongodb_uri: Optional[str] = None
    mongodb_database: str = "zhidao"

    discard_stale_responses: bool = True
    persist_explored_topics: bool = True
    question_fallback: bool = False
    recommendation_fallback: bool = False

    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", env_prefix="ZHIDAO_")


@lru_cache()
def get_settings() -> Settings:
    return Settings()
