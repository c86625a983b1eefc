"""
Delivery status lookup
"""
from fastapi import APIRouter, Depends, HTTPException
from app.core.container import Container, get_container
from app.utils.responses import api_response

router = APIRouter(prefix="/api/notifications", tags=["notifications"])


@router.get("/{correlation_id}")
def notification_status(correlation_id: str, container: Container = Depends(get_container)):
    entry = container.status_sink.get(correlation_id)
    if not entry:
        raise HTTPException(status_code=404, detail="Notification not found")
    return api_response("Notification status retrieved", entry)
