from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # Redis
    redis_url: str = "redis://localhost:6379/0"

    # App
    base_url: str = "http://localhost:8000"

    # CORS
    cors_origins: list[str] = ["http://localhost:5173"]

    # Vision
    vision_provider: str = "gemini"  # "gemini"
    default_target_language: str = "Traditional Chinese"

    # Gemini API
    gemini_api_key: str = ""
    gemini_model: str = "gemini-3-flash-preview"


@lru_cache
def get_settings() -> Settings:
    return Settings()
