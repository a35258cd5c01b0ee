from src.domain.services.run_token import RunTokenGuard


def test_tickets_increase_monotonically():
    guard = RunTokenGuard()
    tickets = [guard.begin() for _ in range(3)]
    assert tickets == [1, 2, 3]
    assert guard.current == 3


def test_only_latest_ticket_is_current():
    guard = RunTokenGuard()
    first = guard.begin()
    assert guard.is_current(first)

    second = guard.begin()
    assert not guard.is_current(first)
    assert guard.is_current(second)
