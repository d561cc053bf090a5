"""
Smoke tests against a running function host.

Start the host (`func start`) against a test database and point
LEADERBOARD_API_URL at it, e.g. http://localhost:7071/api. Skipped otherwise.

SAFETY: refuses to run against the production database name.
"""

import os

import pytest
import requests

from Leaderboard.config import VARIANTS

PROD_DB_NAME = "Sleep_Leaderboard"
TEST_USER = os.getenv("LEADERBOARD_TEST_USER", "e2e-user")

pytestmark = pytest.mark.skipif(
    not os.getenv("LEADERBOARD_API_URL"), reason="LEADERBOARD_API_URL not set"
)


@pytest.fixture(scope="module", autouse=True)
def enforce_test_db():
    db_name = os.getenv("SLEEP_DB_NAME") or os.getenv("DB_NAME") or PROD_DB_NAME
    if db_name == PROD_DB_NAME:
        pytest.fail(
            f"SAFETY GUARD: Tests cannot run against production DB {db_name}. "
            "Set SLEEP_DB_NAME to a test database."
        )
    return db_name


@pytest.fixture(scope="module")
def api_base_url():
    return os.getenv("LEADERBOARD_API_URL", "").rstrip("/")


@pytest.fixture
def session():
    s = requests.Session()
    s.headers["X-User-Id"] = TEST_USER
    yield s
    s.close()


def test_health(session, api_base_url):
    response = session.get(f"{api_base_url}/leaderboard/health", timeout=10)
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_upload_then_read_boards(session, api_base_url):
    response = session.post(f"{api_base_url}/sleep/upload", json={
        "date": "2025-11-18T00:00:00Z",
        "totalSleepMinutes": 420,
        "remSleepMinutes": 90,
        "deepSleepMinutes": 60,
    }, timeout=10)
    assert response.status_code == 200
    assert response.json()["ok"] is True

    response = session.get(f"{api_base_url}/leaderboard", params={"scope": "friends"}, timeout=30)
    assert response.status_code == 200
    data = response.json()
    assert data["scope"] == "friends"
    assert set(data["leaderboards"]) == {v["name"] for v in VARIANTS}


def test_bad_scope_is_400(session, api_base_url):
    response = session.get(f"{api_base_url}/leaderboard", params={"scope": "global"}, timeout=10)
    assert response.status_code == 400
    assert "error" in response.json()
