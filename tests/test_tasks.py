"""
Tests for the Celery delivery task
"""
import pytest
from app.models import Channel, NotificationEnvelope
from app.tasks import notifications as notification_tasks


@pytest.fixture
def worker_container(container, monkeypatch):
    monkeypatch.setattr(notification_tasks, "_container", container)
    return container


def test_deliver_notification(worker_container, sender):
    envelope = NotificationEnvelope(Channel.SMS, "+15550001111", "123456", "Ada", "Lovelace", "en_GB", "TEST")
    result = notification_tasks.deliver_notification(envelope.to_dict())

    assert result == "SENT"
    assert sender.sent[0].correlation_id == envelope.correlation_id
    assert worker_container.status_sink.get(envelope.correlation_id)["status"] == "SENT"


def test_deliver_notification_failure(worker_container, sender):
    sender.fail = True
    envelope = NotificationEnvelope(Channel.EMAIL, "ada@example.com", "123456", "Ada", "Lovelace", "en_GB", "TEST")
    result = notification_tasks.deliver_notification(envelope.to_dict())

    assert result == "FAILED"
    assert len(sender.sent) == 1
