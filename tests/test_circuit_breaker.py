"""
Tests for the circuit breaker gate
"""
import pytest
from app.services.circuit_breaker import (
    CallNotPermittedError,
    CircuitBreaker,
    CircuitBreakerConfig,
    CircuitBreakerRegistry,
    CircuitState,
)


class Downstream:
    def __init__(self):
        self.calls = 0
        self.fail = False

    def __call__(self):
        self.calls += 1
        if self.fail:
            raise RuntimeError("boom")
        return "ok"


@pytest.fixture
def downstream():
    return Downstream()


@pytest.fixture
def breaker(clock):
    config = CircuitBreakerConfig(
        sliding_window_size=4,
        minimum_calls=4,
        failure_rate_threshold=50,
        wait_duration=30,
        permitted_calls_in_half_open=1,
    )
    return CircuitBreaker("provider", config, clock=clock)


def _run(breaker, downstream, fail):
    downstream.fail = fail
    try:
        breaker.guard(downstream)
    except RuntimeError:
        pass


def _open(breaker, downstream):
    for fail in (True, True, False, False):
        _run(breaker, downstream, fail)
    assert breaker.state == CircuitState.OPEN


def test_starts_closed(breaker):
    assert breaker.state == CircuitState.CLOSED


def test_success_passes_through(breaker, downstream):
    assert breaker.guard(downstream) == "ok"
    assert downstream.calls == 1


def test_failure_propagates_without_fallback(breaker, downstream):
    downstream.fail = True
    with pytest.raises(RuntimeError):
        breaker.guard(downstream)
    assert downstream.calls == 1


def test_opens_at_threshold(breaker, downstream):
    """2 failures + 2 successes over a minimum of 4 calls is 50%"""
    for fail in (True, True, False):
        _run(breaker, downstream, fail)
    assert breaker.state == CircuitState.CLOSED

    _run(breaker, downstream, False)
    assert breaker.state == CircuitState.OPEN

    with pytest.raises(CallNotPermittedError):
        breaker.guard(downstream)
    assert downstream.calls == 4


def test_stays_closed_below_threshold(breaker, downstream):
    for fail in (True, False, False, False, False, False):
        _run(breaker, downstream, fail)
    assert breaker.state == CircuitState.CLOSED


def test_not_evaluated_before_minimum_calls(breaker, downstream):
    for _ in range(3):
        _run(breaker, downstream, True)
    assert breaker.state == CircuitState.CLOSED


def test_fallback_receives_rejection(breaker, downstream):
    _open(breaker, downstream)
    seen = []
    result = breaker.guard(downstream, fallback=lambda exc: seen.append(exc) or "fallback")
    assert result == "fallback"
    assert isinstance(seen[0], CallNotPermittedError)
    assert downstream.calls == 4


def test_fallback_receives_failure(breaker, downstream):
    downstream.fail = True
    seen = []
    breaker.guard(downstream, fallback=seen.append)
    assert isinstance(seen[0], RuntimeError)


def test_half_open_after_wait(breaker, downstream, clock):
    _open(breaker, downstream)
    clock.advance(29)
    assert breaker.state == CircuitState.OPEN
    clock.advance(1)
    assert breaker.state == CircuitState.HALF_OPEN


def test_half_open_success_closes(breaker, downstream, clock):
    _open(breaker, downstream)
    clock.advance(30)
    assert breaker.guard(downstream) == "ok"
    assert breaker.state == CircuitState.CLOSED
    assert breaker.snapshot()["buffered_calls"] == 0


def test_half_open_failure_reopens(breaker, downstream, clock):
    _open(breaker, downstream)
    clock.advance(30)
    _run(breaker, downstream, True)
    assert breaker.state == CircuitState.OPEN

    # Wait duration restarts from the failed trial
    clock.advance(29)
    with pytest.raises(CallNotPermittedError):
        breaker.guard(downstream)


def test_half_open_limits_trial_calls(clock):
    config = CircuitBreakerConfig(sliding_window_size=2, minimum_calls=2, wait_duration=10,
                                  permitted_calls_in_half_open=1)
    breaker = CircuitBreaker("provider", config, clock=clock)
    in_flight = []

    def trial():
        # A second caller arrives while the only trial is still running
        with pytest.raises(CallNotPermittedError):
            breaker.guard(lambda: "second")
        in_flight.append(True)
        return "first"

    def failing():
        raise RuntimeError("x")

    for _ in range(2):
        breaker.guard(failing, fallback=lambda e: None)
    assert breaker.state == CircuitState.OPEN

    clock.advance(10)
    assert breaker.guard(trial) == "first"
    assert in_flight == [True]
    assert breaker.state == CircuitState.CLOSED


def test_slow_calls_open_breaker(clock):
    config = CircuitBreakerConfig(sliding_window_size=2, minimum_calls=2,
                                  slow_call_rate_threshold=100, slow_call_duration=1.0)
    breaker = CircuitBreaker("provider", config, clock=clock)

    def slow():
        clock.advance(1.5)
        return "late"

    breaker.guard(slow)
    breaker.guard(slow)
    assert breaker.state == CircuitState.OPEN
    assert breaker.snapshot()["slow_calls"] == 2


def test_snapshot(breaker, downstream):
    _run(breaker, downstream, True)
    _run(breaker, downstream, False)
    snapshot = breaker.snapshot()
    assert snapshot["name"] == "provider"
    assert snapshot["state"] == "CLOSED"
    assert snapshot["failure_rate"] == 50.0
    assert snapshot["buffered_calls"] == 2
    assert snapshot["failed_calls"] == 1
    assert snapshot["successful_calls"] == 1


def test_snapshot_counts_rejections(breaker, downstream):
    _open(breaker, downstream)
    breaker.guard(downstream, fallback=lambda exc: None)
    breaker.guard(downstream, fallback=lambda exc: None)
    assert breaker.snapshot()["not_permitted_calls"] == 2


def test_registry_shares_breakers():
    registry = CircuitBreakerRegistry()
    first = registry.circuit_breaker("provider")
    assert registry.circuit_breaker("provider") is first
    assert registry.circuit_breaker("other") is not first
    assert set(registry.all()) == {"provider", "other"}
