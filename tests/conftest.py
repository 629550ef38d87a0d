import pytest

from reflector.config import get_settings


@pytest.fixture(autouse=True)
def _fresh_settings(monkeypatch, tmp_path):
    monkeypatch.setenv("REFLECTOR_WORKSPACE_ROOT", str(tmp_path / "workspace"))
    monkeypatch.setenv("REFLECTOR_OPENROUTER_API_KEY", "test-key")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
