"""
Main FastAPI Application
"""
import logging
from typing import Optional
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from app.core.config import settings
from app.core.container import Container, build_container
from app.core.exceptions import OtpError
from app.core.logging_config import setup_logging
from app.routers import otp, notifications, circuit_breaker
from app.utils.responses import error_response

logger = logging.getLogger(__name__)


def create_app(container: Optional[Container] = None) -> FastAPI:
    """
    Build the application. A prebuilt container (tests) skips the startup wiring.
    """
    app = FastAPI(title=settings.APP_NAME, version=settings.APP_VERSION)

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS.split(","),
        allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routers
    app.include_router(otp.router)
    app.include_router(notifications.router)
    app.include_router(circuit_breaker.router)

    app.state.container = container

    @app.exception_handler(OtpError)
    async def otp_error_handler(request: Request, exc: OtpError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.code} - {exc.message}")
        return JSONResponse(status_code=exc.status_code, content=error_response(exc.message, exc.data))

    @app.on_event("startup")
    async def startup():
        if app.state.container is None:
            setup_logging(settings)
            app.state.container = build_container(settings)
            logger.info(f"[STARTUP] {settings.APP_NAME} ready (dispatch backend: {settings.DISPATCH_BACKEND})")

    @app.on_event("shutdown")
    async def shutdown():
        if app.state.container is not None:
            app.state.container.shutdown()
            logger.info("[SHUTDOWN] Dispatch workers stopped")

    @app.get("/")
    async def root():
        return {"message": f"{settings.APP_NAME} API", "version": settings.APP_VERSION}

    @app.get("/health")
    def health_check():
        c: Container = app.state.container
        redis_ok = c.store.ping()
        content = {"status": "healthy" if redis_ok else "degraded", "redis": redis_ok}
        # Celery workers own the breaker in that mode
        if c.delivers_in_process:
            content["circuit_breaker"] = c.breaker.state.value
        return JSONResponse(status_code=200 if redis_ok else 503, content=content)

    return app


app = create_app()
