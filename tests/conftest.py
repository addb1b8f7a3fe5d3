import os
from datetime import datetime, timezone

import pytest

# Keep tests off any real LLM server
os.environ["SSATPREP_LLM_MODEL"] = ""

FIXED_NOW = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    """A fixed, timezone-aware clock reading shared by a test."""
    return FIXED_NOW


@pytest.fixture
async def db(tmp_path):
    """A fresh SQLite database with the full schema applied."""
    from ssatprep.db.sqlite import get_db, init_sqlite

    await init_sqlite(tmp_path)
    async for conn in get_db():
        yield conn


@pytest.fixture
def client(tmp_path, monkeypatch):
    """TestClient over a fresh app whose clock is pinned to FIXED_NOW."""
    from fastapi.testclient import TestClient

    from ssatprep import create_app
    from ssatprep.config import settings
    from ssatprep.dependencies import get_now

    monkeypatch.setattr(settings, "data_dir", tmp_path / "data")
    monkeypatch.setattr(settings, "llm_model", "")

    application = create_app()
    application.dependency_overrides[get_now] = lambda: FIXED_NOW
    with TestClient(application) as c:
        yield c
