import sys
from pathlib import Path

# ensure project root is importable for tests
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest
from fastapi.testclient import TestClient

ADMIN_USERNAME = "admin"
ADMIN_PASSWORD = "password123"


@pytest.fixture(autouse=True)
def isolate_state(tmp_path, monkeypatch):
    """Give every test an empty store (bootstrap admin only), no sessions and its own upload dir."""
    import main
    from sessions import SessionStore
    from storage import MemStorage

    fresh_store = MemStorage(admin_username=ADMIN_USERNAME, admin_password=ADMIN_PASSWORD, seed_demo=False)
    monkeypatch.setattr(main, "storage", fresh_store)
    monkeypatch.setattr(main, "session_store", SessionStore(max_age=3600))
    monkeypatch.setattr(main, "UPLOAD_DIR", str(tmp_path / "uploads"))
    main.LOGIN_ATTEMPTS.clear()

    yield

    main.LOGIN_ATTEMPTS.clear()


@pytest.fixture
def store(isolate_state):
    import main
    return main.storage


@pytest.fixture
def client(isolate_state):
    import main
    return TestClient(main.app)


@pytest.fixture
def report_payload():
    return {
        "color": "Brown",
        "description": "Friendly dog found near the park entrance",
        "imageUrls": ["http://x/1.jpg"],
        "address": "1 Main St",
        "city": "Springfield",
        "latitude": "1.0",
        "longitude": "2.0",
        "dateFound": "2024-01-01",
        "timeFound": "10:00",
        "finderName": "Jo Smith",
        "finderPhone": "5551234567",
        "finderEmail": "jo@example.com",
    }
