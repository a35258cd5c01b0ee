import os
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Ensure project root is on sys.path so 'src' and 'tests.helpers' are importable during tests
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("SUPABASE_DISABLED", "1")
os.environ.setdefault("SESSION_MIN_SPACING_MS", "0")

from src.application.use_cases.session_loader import SessionLoader  # noqa: E402
from src.domain.entities.sync_policy import SyncPolicy  # noqa: E402
from tests.helpers.fakes import FakeIdentityProvider, FakeProfileStore, RecordingEventSink  # noqa: E402


@pytest.fixture()
def policy() -> SyncPolicy:
    return SyncPolicy(deadline_ms=50, min_spacing_ms=0, retry_base_ms=20, retry_cap_ms=80, max_attempts=3)


@pytest.fixture()
def provider() -> FakeIdentityProvider:
    return FakeIdentityProvider()


@pytest.fixture()
def store() -> FakeProfileStore:
    return FakeProfileStore()


@pytest.fixture()
def sink() -> RecordingEventSink:
    return RecordingEventSink()


@pytest.fixture()
async def loader(provider, store, policy, sink):
    session_loader = SessionLoader(provider, store, policy=policy, sink=sink)
    yield session_loader
    await session_loader.stop()


@pytest.fixture()
def client():
    # lazy import after env configured
    from src.main import create_app

    app = create_app()
    with TestClient(app) as test_client:
        yield test_client
