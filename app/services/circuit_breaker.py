"""
Count-based circuit breaker guarding calls to the notification provider.

CLOSED    calls pass, outcomes go into a sliding window; once the window holds
          at least `minimum_calls` outcomes and the failure rate (or slow-call
          rate) reaches its threshold, the breaker opens.
OPEN      calls are rejected with CallNotPermittedError without running the
          callee. After `wait_duration` the next call moves to HALF_OPEN.
HALF_OPEN up to `permitted_calls_in_half_open` trial calls run. A successful
          trial closes the breaker with a fresh window, a failed one reopens it.

The breaker never retries: one guarded invocation is one attempt at most.
"""
import logging
import threading
import time
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional

from app.core.config import Settings

logger = logging.getLogger(__name__)


class CircuitState(str, Enum):
    CLOSED = "CLOSED"
    OPEN = "OPEN"
    HALF_OPEN = "HALF_OPEN"


class CallNotPermittedError(Exception):
    """Raised instead of calling the callee while the breaker is OPEN"""

    def __init__(self, name: str, state: CircuitState):
        super().__init__(f"CircuitBreaker '{name}' is {state.value} and does not permit further calls")
        self.name = name
        self.state = state


@dataclass
class CircuitBreakerConfig:
    sliding_window_size: int = 10
    minimum_calls: int = 5
    failure_rate_threshold: float = 50.0
    slow_call_rate_threshold: float = 100.0
    slow_call_duration: float = 2.0
    wait_duration: float = 30.0
    permitted_calls_in_half_open: int = 3

    @classmethod
    def from_settings(cls, settings: Settings) -> "CircuitBreakerConfig":
        return cls(
            sliding_window_size=settings.CB_SLIDING_WINDOW_SIZE,
            minimum_calls=settings.CB_MINIMUM_CALLS,
            failure_rate_threshold=settings.CB_FAILURE_RATE_THRESHOLD,
            slow_call_rate_threshold=settings.CB_SLOW_CALL_RATE_THRESHOLD,
            slow_call_duration=settings.CB_SLOW_CALL_DURATION_SECONDS,
            wait_duration=settings.CB_WAIT_DURATION_SECONDS,
            permitted_calls_in_half_open=settings.CB_PERMITTED_CALLS_IN_HALF_OPEN,
        )


@dataclass(frozen=True)
class _Outcome:
    failed: bool
    slow: bool


class CircuitBreaker:
    def __init__(self, name: str, config: Optional[CircuitBreakerConfig] = None,
                 clock: Callable[[], float] = time.monotonic):
        self.name = name
        self.config = config or CircuitBreakerConfig()
        self._clock = clock
        self._lock = threading.Lock()
        self._state = CircuitState.CLOSED
        self._window: deque = deque(maxlen=self.config.sliding_window_size)
        self._opened_at = 0.0
        self._half_open_permits = 0
        self._not_permitted = 0

    # ------------------------------------------------------------------ guard

    def guard(self, func: Callable[..., Any], *args,
              fallback: Optional[Callable[[Exception], Any]] = None, **kwargs) -> Any:
        """
        Run `func` once under breaker protection.

        On rejection or failure, `fallback(exc)` is returned when given;
        otherwise the exception propagates.
        """
        try:
            self._acquire_permission()
        except CallNotPermittedError as e:
            logger.warning(f"[CircuitBreaker:{self.name}] call rejected, breaker is {e.state.value}")
            if fallback is not None:
                return fallback(e)
            raise

        started = self._clock()
        try:
            result = func(*args, **kwargs)
        except Exception as e:
            self._on_result(failed=True, duration=self._clock() - started)
            if fallback is not None:
                return fallback(e)
            raise
        self._on_result(failed=False, duration=self._clock() - started)
        return result

    # ----------------------------------------------------------- bookkeeping

    def _acquire_permission(self) -> None:
        with self._lock:
            if self._state == CircuitState.OPEN:
                if self._clock() - self._opened_at >= self.config.wait_duration:
                    self._transition(CircuitState.HALF_OPEN)
                else:
                    self._not_permitted += 1
                    raise CallNotPermittedError(self.name, self._state)

            if self._state == CircuitState.HALF_OPEN:
                if self._half_open_permits <= 0:
                    self._not_permitted += 1
                    raise CallNotPermittedError(self.name, self._state)
                self._half_open_permits -= 1

    def _on_result(self, failed: bool, duration: float) -> None:
        slow = duration >= self.config.slow_call_duration
        with self._lock:
            if self._state == CircuitState.HALF_OPEN:
                # Trial outcome decides immediately
                if failed:
                    self._transition(CircuitState.OPEN)
                else:
                    self._transition(CircuitState.CLOSED)
                return

            if self._state == CircuitState.OPEN:
                # A call admitted before the breaker opened; window is frozen
                return

            self._window.append(_Outcome(failed=failed, slow=slow))
            if len(self._window) < self.config.minimum_calls:
                return
            failure_rate, slow_rate = self._rates()
            if failure_rate >= self.config.failure_rate_threshold or \
                    slow_rate >= self.config.slow_call_rate_threshold:
                logger.error(
                    f"[CircuitBreaker:{self.name}] opening: failure rate {failure_rate:.1f}%, "
                    f"slow call rate {slow_rate:.1f}% over {len(self._window)} calls"
                )
                self._transition(CircuitState.OPEN)

    def _rates(self):
        total = len(self._window)
        if total == 0:
            return 0.0, 0.0
        failed = sum(1 for o in self._window if o.failed)
        slow = sum(1 for o in self._window if o.slow)
        return failed * 100.0 / total, slow * 100.0 / total

    def _transition(self, new_state: CircuitState) -> None:
        # Caller holds the lock
        old_state = self._state
        self._state = new_state
        if new_state == CircuitState.OPEN:
            self._opened_at = self._clock()
        elif new_state == CircuitState.HALF_OPEN:
            self._half_open_permits = self.config.permitted_calls_in_half_open
        elif new_state == CircuitState.CLOSED:
            self._window.clear()
        logger.info(f"[CircuitBreaker:{self.name}] {old_state.value} -> {new_state.value}")

    # -------------------------------------------------------------- read-only

    @property
    def state(self) -> CircuitState:
        with self._lock:
            # Report the pending OPEN -> HALF_OPEN move without performing it
            if self._state == CircuitState.OPEN and \
                    self._clock() - self._opened_at >= self.config.wait_duration:
                return CircuitState.HALF_OPEN
            return self._state

    def snapshot(self) -> Dict[str, Any]:
        """Copy of the current metrics, for status endpoints and health probes"""
        state = self.state
        with self._lock:
            failure_rate, slow_rate = self._rates()
            buffered = len(self._window)
            failed = sum(1 for o in self._window if o.failed)
            slow = sum(1 for o in self._window if o.slow)
            return {
                "name": self.name,
                "state": state.value,
                "failure_rate": round(failure_rate, 2),
                "slow_call_rate": round(slow_rate, 2),
                "buffered_calls": buffered,
                "failed_calls": failed,
                "successful_calls": buffered - failed,
                "slow_calls": slow,
                "not_permitted_calls": self._not_permitted,
            }


class CircuitBreakerRegistry:
    """One breaker per downstream name, shared by everything in the process"""

    def __init__(self, default_config: Optional[CircuitBreakerConfig] = None,
                 clock: Callable[[], float] = time.monotonic):
        self._default_config = default_config or CircuitBreakerConfig()
        self._clock = clock
        self._breakers: Dict[str, CircuitBreaker] = {}
        self._lock = threading.Lock()

    def circuit_breaker(self, name: str, config: Optional[CircuitBreakerConfig] = None) -> CircuitBreaker:
        with self._lock:
            breaker = self._breakers.get(name)
            if breaker is None:
                breaker = CircuitBreaker(name, config or self._default_config, clock=self._clock)
                self._breakers[name] = breaker
            return breaker

    def all(self) -> Dict[str, CircuitBreaker]:
        with self._lock:
            return dict(self._breakers)
