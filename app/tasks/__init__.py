"""
Celery Tasks
"""
from .notifications import deliver_notification

__all__ = [
    "deliver_notification",
]
