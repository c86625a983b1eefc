import pytest
import redis
from concurrent.futures import Executor, Future
from fastapi.testclient import TestClient

from app.core.config import Settings
from app.core.container import build_container
from app.core.exceptions import DownstreamFailureError
from app.models import Channel, RecipientInfo


class ManualClock:
    """Time source that only moves when told to"""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeRedis:
    """In-memory stand-in for the handful of Redis commands the code store uses"""

    def __init__(self, clock):
        self._clock = clock
        self._data = {}
        self.available = True

    def _check(self):
        if not self.available:
            raise redis.ConnectionError("Connection refused")

    def _live(self, key):
        item = self._data.get(key)
        if item is None:
            return None
        value, expires_at = item
        if expires_at is not None and self._clock() >= expires_at:
            del self._data[key]
            return None
        return value

    def set(self, key, value, ex=None):
        self._check()
        expires_at = self._clock() + ex if ex else None
        self._data[key] = (str(value), expires_at)
        return True

    def get(self, key):
        self._check()
        return self._live(key)

    def delete(self, *keys):
        self._check()
        removed = 0
        for key in keys:
            if self._live(key) is not None:
                del self._data[key]
                removed += 1
        return removed

    def ttl(self, key):
        self._check()
        if self._live(key) is None:
            return -2
        return int(self._data[key][1] - self._clock())

    def ping(self):
        self._check()
        return True


class InlineExecutor(Executor):
    """Runs submitted work immediately on the calling thread"""

    def __init__(self):
        self.submitted = 0

    def submit(self, fn, *args, **kwargs):
        self.submitted += 1
        future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as e:
            future.set_exception(e)
        return future

    def shutdown(self, wait=True, **kwargs):
        pass


class RecordingSender:
    """Provider double: remembers every envelope, fails on demand"""

    def __init__(self):
        self.sent = []
        self.fail = False

    def send(self, envelope):
        self.sent.append(envelope)
        if self.fail:
            raise DownstreamFailureError("Provider said no")


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def fake_redis(clock):
    return FakeRedis(clock)


@pytest.fixture
def settings():
    return Settings(
        OTP_LENGTH=6,
        OTP_EXPIRY=300,
        OTP_RESEND_COOLDOWN=30,
        OTP_USE_HASHING=True,
        OTP_HASH_ALGORITHM="sha256",
        OTP_RETURN_CODE=True,
        DISPATCH_BACKEND="thread",
        NOTIFICATION_STATUS_BACKEND="memory",
        SIMULATION_ENABLED=True,
        SIMULATION_DELAY_MS=0,
        CB_SLIDING_WINDOW_SIZE=4,
        CB_MINIMUM_CALLS=4,
        CB_FAILURE_RATE_THRESHOLD=50,
        CB_WAIT_DURATION_SECONDS=30,
        CB_PERMITTED_CALLS_IN_HALF_OPEN=1,
        LOG_FILE="",
    )


@pytest.fixture
def sender():
    return RecordingSender()


@pytest.fixture
def executor():
    return InlineExecutor()


@pytest.fixture
def container(settings, fake_redis, sender, executor, clock):
    return build_container(
        settings,
        redis_client=fake_redis,
        sender=sender,
        executor=executor,
        clock=clock,
        monotonic=clock,
    )


@pytest.fixture
def otp_service(container):
    return container.otp_service


@pytest.fixture
def sms_recipient():
    return RecipientInfo(channel=Channel.SMS, first_name="Ada", last_name="Lovelace", locale="en_GB")


@pytest.fixture
def client(container):
    from app.main import create_app
    return TestClient(create_app(container))
