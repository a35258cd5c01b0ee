import pytest

from src.domain.services.event_classifier import (
    NEVER_LOADED,
    AuthEventKind,
    EventDecision,
    classify_auth_event,
)


@pytest.mark.parametrize(
    "kind,candidate,last_loaded,settled,expected",
    [
        # sign-in / sign-out reload and reset unless they repeat what is already loaded
        ("SIGNED_IN", "u1", NEVER_LOADED, False, (True, True)),
        ("SIGNED_IN", "u2", "u1", True, (True, True)),
        ("SIGNED_IN", "u1", "u1", True, (False, False)),
        ("SIGNED_IN", "u1", "u1", False, (True, True)),
        ("SIGNED_OUT", None, "u1", True, (True, True)),
        ("SIGNED_OUT", None, None, True, (False, False)),
        # user updates always reload
        ("USER_UPDATED", "u1", "u1", True, (True, True)),
        # routine renewals only react to an identity change
        ("TOKEN_REFRESHED", "u1", "u1", True, (False, False)),
        ("TOKEN_REFRESHED", "u2", "u1", True, (True, True)),
        ("TOKEN_REFRESHED", "u1", NEVER_LOADED, False, (False, False)),
        ("INITIAL_SESSION", "u1", NEVER_LOADED, False, (False, False)),
        ("INITIAL_SESSION", "u1", None, True, (True, True)),
        # anything else is ignored
        ("PASSWORD_RECOVERY", "u1", "u1", True, (False, False)),
        ("MFA_CHALLENGE_VERIFIED", "u2", "u1", True, (False, False)),
    ],
)
def test_classification(kind, candidate, last_loaded, settled, expected):
    decision = classify_auth_event(kind, candidate, last_loaded, settled=settled)
    assert (decision.reload, decision.reset_retry) == expected


def test_duplicate_reason_is_reported():
    decision = classify_auth_event(AuthEventKind.SIGNED_IN, "u1", "u1", settled=True)
    assert decision == EventDecision(reload=False, reset_retry=False, reason="duplicate")


def test_parse_accepts_enum_and_lowercase():
    assert AuthEventKind.parse(AuthEventKind.USER_UPDATED) is AuthEventKind.USER_UPDATED
    assert AuthEventKind.parse("signed_out") is AuthEventKind.SIGNED_OUT
    assert AuthEventKind.parse("bogus") is None
