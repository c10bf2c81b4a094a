from __future__ import annotations

import pytest

from camscout.config import CONFIG_ENV_VAR, DATA_DIR_ENV_VAR, get_settings


@pytest.fixture(autouse=True)
def _isolate_settings_env(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
    monkeypatch.delenv(DATA_DIR_ENV_VAR, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
