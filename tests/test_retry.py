import threading

import pytest

from huefy.config import RetryConfig
from huefy.errors import (
    AuthenticationError,
    CancelledError,
    NetworkError,
    RateLimitError,
    ServerError,
    TimeoutError,
)
from huefy.retry import CallContext, RetryPolicy, backoff_delay


class FakeClock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


def _flaky(errors, result="ok"):
    """Operation failing with each of ``errors`` in turn, then returning ``result``."""
    calls = []

    def op(remaining):
        calls.append(remaining)
        if len(calls) <= len(errors):
            raise errors[len(calls) - 1]
        return result

    return op, calls


@pytest.mark.parametrize(
    "attempt, expected",
    [(1, 1.0), (2, 2.0), (3, 4.0), (4, 8.0), (5, 16.0), (6, 30.0), (10, 30.0)],
)
def test_backoff_delay(attempt, expected) -> None:
    assert backoff_delay(attempt, RetryConfig()) == expected


def test_backoff_delay_custom_multiplier() -> None:
    cfg = RetryConfig(base_delay=0.5, multiplier=3.0, max_delay=10.0)
    assert [backoff_delay(n, cfg) for n in (1, 2, 3, 4)] == [0.5, 1.5, 4.5, 10.0]


@pytest.mark.parametrize("k", [0, 1, 2])
def test_succeeds_after_k_server_errors(k) -> None:
    sleeps = []
    policy = RetryPolicy(RetryConfig(max_retries=3), sleep=sleeps.append)
    op, calls = _flaky([ServerError("down", status_code=500)] * k)

    assert policy.run(op) == "ok"
    assert len(calls) == k + 1
    assert sleeps == [1.0, 2.0][:k]


def test_non_retryable_error_is_raised_immediately() -> None:
    sleeps = []
    policy = RetryPolicy(RetryConfig(max_retries=3), sleep=sleeps.append)
    op, calls = _flaky([AuthenticationError("bad key")] * 5)

    with pytest.raises(AuthenticationError):
        policy.run(op)
    assert len(calls) == 1
    assert sleeps == []


def test_last_error_raised_after_exhaustion() -> None:
    sleeps = []
    errors = [NetworkError("a"), TimeoutError("b"), ServerError("c")]
    policy = RetryPolicy(RetryConfig(max_retries=2), sleep=sleeps.append)
    op, calls = _flaky(errors)

    with pytest.raises(ServerError) as exc:
        policy.run(op)
    assert exc.value.message == "c"
    assert len(calls) == 3
    assert sleeps == [1.0, 2.0]


def test_zero_retries_means_one_attempt() -> None:
    policy = RetryPolicy(RetryConfig(max_retries=0), sleep=lambda _: None)
    op, calls = _flaky([ServerError("down")])
    with pytest.raises(ServerError):
        policy.run(op)
    assert len(calls) == 1


def test_rate_limit_retry_after_extends_delay() -> None:
    sleeps = []
    policy = RetryPolicy(RetryConfig(max_delay=10.0), sleep=sleeps.append)
    op, _ = _flaky([RateLimitError("slow", retry_after=5), RateLimitError("slow", retry_after=60)])

    policy.run(op)
    assert sleeps == [5.0, 10.0]


def test_on_retry_hook() -> None:
    seen = []
    policy = RetryPolicy(
        RetryConfig(), sleep=lambda _: None, on_retry=lambda n, e, d: seen.append((n, e.code, d))
    )
    op, _ = _flaky([ServerError("x"), NetworkError("y")])
    policy.run(op)
    assert seen == [(1, "INTERNAL_SERVER_ERROR", 1.0), (2, "NETWORK_ERROR", 2.0)]


def test_deadline_shorter_than_backoff_cancels_before_next_attempt() -> None:
    sleeps = []
    clock = FakeClock()
    policy = RetryPolicy(RetryConfig(base_delay=5.0), sleep=sleeps.append)
    op, calls = _flaky([ServerError("down")] * 3)

    with pytest.raises(CancelledError) as exc:
        policy.run(op, CallContext(deadline=2.0, clock=clock))
    assert len(calls) == 1
    assert sleeps == []
    assert isinstance(exc.value.__cause__, ServerError)
    assert not exc.value.retryable


def test_remaining_budget_passed_to_operation() -> None:
    clock = FakeClock()
    policy = RetryPolicy(RetryConfig(), sleep=lambda d: setattr(clock, "now", clock.now + d))
    op, calls = _flaky([ServerError("down")])

    policy.run(op, CallContext(deadline=10.0, clock=clock))
    assert calls == [10.0, 9.0]


def test_timeout_after_deadline_becomes_cancellation() -> None:
    clock = FakeClock()
    ctx = CallContext(deadline=3.0, clock=clock)

    def op(remaining):
        clock.now += remaining
        raise TimeoutError("read timed out")

    with pytest.raises(CancelledError):
        RetryPolicy(RetryConfig()).run(op, ctx)


def test_cancel_event_set_before_call() -> None:
    event = threading.Event()
    event.set()
    op, calls = _flaky([])
    with pytest.raises(CancelledError):
        RetryPolicy().run(op, CallContext(cancel_event=event))
    assert calls == []


def test_cancel_event_interrupts_backoff_wait() -> None:
    event = threading.Event()
    policy = RetryPolicy(RetryConfig(base_delay=30.0))

    def op(remaining):
        threading.Timer(0.05, event.set).start()
        raise ServerError("down")

    with pytest.raises(CancelledError) as exc:
        policy.run(op, CallContext(cancel_event=event))
    assert "backoff" in exc.value.message


def test_call_context_rejects_negative_deadline() -> None:
    with pytest.raises(ValueError):
        CallContext(deadline=-1)


def test_deadline_expiring_right_after_check_does_not_start_request() -> None:
    ticks = iter([0.0, 0.5, 1.0])
    ctx = CallContext(deadline=1.0, clock=lambda: next(ticks))
    op, calls = _flaky([])

    with pytest.raises(CancelledError):
        RetryPolicy(RetryConfig()).run(op, ctx)
    assert calls == []


def test_cancel_event_wait_replaces_injected_sleep() -> None:
    sleeps = []
    policy = RetryPolicy(RetryConfig(base_delay=0.01), sleep=sleeps.append)
    op, calls = _flaky([ServerError("down")])

    assert policy.run(op, CallContext(cancel_event=threading.Event())) == "ok"
    assert len(calls) == 2
    assert sleeps == []
