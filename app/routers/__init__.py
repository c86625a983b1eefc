"""
API Routers
"""
from .otp import router as otp_router
from .notifications import router as notifications_router
from .circuit_breaker import router as circuit_breaker_router

__all__ = ["otp_router", "notifications_router", "circuit_breaker_router"]
