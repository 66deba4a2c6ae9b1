from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=False,
        extra='ignore',
    )

    app_name: str = 'Proposal Funnel Backend'

    data_dir: Path = Field(default=Path('./data'))

    # Brand shown on the proposal pages and in the download filename
    brand_name: str = 'Talentronaut'
    brand_legal_name: str = 'Talentronaut Technologies'
    brand_website: str = 'https://www.talentronaut.in'
    brand_email: str = 'contact@talentronaut.in'
    brand_phone: str = '+91 90000 00000'

    # OpenAI chat completions
    openai_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices('OPENAI_API_KEY', 'API_KEY', 'LLM_API_KEY'),
    )
    openai_base_url: str | None = Field(
        default=None,
        validation_alias=AliasChoices('BASE_URL', 'OPENAI_BASE_URL', 'LLM_BASE_URL'),
    )
    analysis_model: str = 'gpt-4o'
    analysis_temperature: float = 0.4
    analysis_timeout_seconds: int = 120

    # Submission limits
    min_description_chars: int = 500
    min_description_words: int = 50
    max_attachment_bytes: int = 5 * 1024 * 1024
    max_attachment_chars: int = 20000

    # Virtual page layout, tuned for 794x1123 pages at the default typography
    scope_first_page_capacity: int = 15
    scope_continuation_capacity: int = 25
    export_pixel_ratio: float = 2.0

    # Report viewer
    fallback_delay_seconds: float = 1.0
    session_ttl_seconds: float = 3600.0
    max_sessions: int = Field(default=1000, ge=1)

    # HTTP server
    server_host: str = '0.0.0.0'
    server_port: int = 8000
    secret_key: str = 'change-me'

    def leads_dir(self) -> Path:
        return self.data_dir / 'leads'


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    settings = Settings()
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.leads_dir().mkdir(parents=True, exist_ok=True)
    return settings
