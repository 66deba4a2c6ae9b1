from __future__ import annotations

import pytest

from proposalfunnel.config import Settings, get_settings


@pytest.fixture
def settings(tmp_path, monkeypatch) -> Settings:
    monkeypatch.setenv('DATA_DIR', str(tmp_path / 'data'))
    monkeypatch.setenv('FALLBACK_DELAY_SECONDS', '0')
    monkeypatch.delenv('OPENAI_API_KEY', raising=False)
    monkeypatch.delenv('API_KEY', raising=False)
    monkeypatch.delenv('LLM_API_KEY', raising=False)
    get_settings.cache_clear()
    yield get_settings()
    get_settings.cache_clear()
