import pytest

from src.domain.entities.sync_policy import SyncPolicy


def test_defaults():
    policy = SyncPolicy()
    assert policy.deadline_ms == 8000
    assert policy.min_spacing_ms == 250
    assert policy.max_attempts == 3
    assert [policy.backoff_ms(n) for n in (1, 2, 3, 4, 5)] == [1000, 2000, 4000, 8000, 8000]


def test_from_env(monkeypatch):
    monkeypatch.setenv("SESSION_DEADLINE_MS", "2000")
    monkeypatch.setenv("SESSION_MIN_SPACING_MS", "0")
    monkeypatch.setenv("SESSION_RETRY_BASE_MS", "500")
    monkeypatch.setenv("SESSION_RETRY_CAP_MS", "15000")
    monkeypatch.setenv("SESSION_RETRY_MAX_ATTEMPTS", "5")

    policy = SyncPolicy.from_env()

    assert policy == SyncPolicy(
        deadline_ms=2000, min_spacing_ms=0, retry_base_ms=500, retry_cap_ms=15000, max_attempts=5
    )


@pytest.mark.parametrize(
    "kwargs",
    [
        {"deadline_ms": 0},
        {"min_spacing_ms": -1},
        {"retry_base_ms": 0},
        {"retry_base_ms": 5000, "retry_cap_ms": 1000},
        {"max_attempts": 0},
    ],
)
def test_invalid_values_rejected(kwargs):
    with pytest.raises(ValueError):
        SyncPolicy(**kwargs)
