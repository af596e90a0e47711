from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    data_dir: Path = Field(default=Path("data"))
    db_path: Path = Field(default=Path("data/news_analyzer.db"))
    lexicon_path: Path = Field(default=Path("config/dedupe_lexicon.yaml"))

    analysis_provider: str = Field(default="openai")
    openai_api_key: Optional[str] = None
    openai_model: str = Field(default="gpt-4o-mini")
    openai_base_url: Optional[str] = None
    deepseek_api_key: Optional[str] = None
    deepseek_model: str = Field(default="deepseek-chat")
    deepseek_base_url: str = Field(default="https://api.deepseek.com")
    deepseek_strict_model: bool = Field(default=True)
    llm_temperature: float = Field(default=0.3)
    llm_max_tokens: int = Field(default=4000)

    duplicate_window_days: int = Field(default=15)
    fuzzy_title_threshold: float = Field(default=0.8)
    distinct_event_threshold: float = Field(default=0.7)
    inter_item_delay_min_sec: float = Field(default=45.0)
    inter_item_delay_max_sec: float = Field(default=75.0)

    log_level: str = Field(default="INFO")


def get_settings() -> Settings:
    settings = Settings()
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.db_path.parent.mkdir(parents=True, exist_ok=True)
    return settings
