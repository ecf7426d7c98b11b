from typing import Literal

from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    app_name: str = "Content Moderation API"
    app_version: str = "1.0.0"

    llm_provider: Literal["gemini", "openai"] = "gemini"
    gemini_api_key: str = ""
    gemini_model: str = "gemini-1.5-flash"
    openai_api_key: str = ""
    openai_model: str = "gpt-4"
    ai_timeout_seconds: float = 30.0

    max_batch_size: int = 10

    log_level: str = "INFO"
    log_file: str | None = None

    class Config:
        env_file = ".env"

settings = Settings()
