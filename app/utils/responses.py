"""
Uniform JSON response envelope
"""
from datetime import datetime, timezone
from typing import Any, Optional


def api_response(message: str, data: Optional[Any] = None, status: str = "SUCCESS") -> dict:
    return {
        "status": status,
        "message": message,
        "data": data,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


def error_response(message: str, data: Optional[Any] = None) -> dict:
    return api_response(message, data=data, status="ERROR")
