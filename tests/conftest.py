import sys
from pathlib import Path

import pytest


def _ensure_project_root_on_path() -> None:
    root_dir = Path(__file__).resolve().parents[1]
    if str(root_dir) not in sys.path:
        sys.path.insert(0, str(root_dir))


_ensure_project_root_on_path()


@pytest.fixture(autouse=True)
def _fresh_settings(monkeypatch: pytest.MonkeyPatch):
    """Keep provider credentials from the host environment out of tests."""
    from uxpulse.api import deps
    from uxpulse.core.config import get_settings

    for name in ("API_KEY", "AZURE_OPENAI_API_KEY", "BEDROCK_REGION", "DATABASE_URL", "AGGREGATION_MODE"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(deps, "_generator", None)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
