"""FastAPI application factory."""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi_pagination import add_pagination

from app.config import get_settings
from app.core.errors import AtendimentoError, PersistenceError
from app.infra.logging_config import get_logger, setup_logging
from app.routers import (
    channel_instances_router,
    conversations_router,
    system,
    webhooks,
)

logger = get_logger("api")


def atendimento_error_handler(request: Request, exc: AtendimentoError) -> JSONResponse:
    """Map domain errors to their HTTP status with a {"detail": ...} body."""
    detail = exc.message
    if isinstance(exc, PersistenceError):
        logger.error(
            "Persistence failure",
            extra={"context": {"path": request.url.path, "error": exc.message}},
        )
        detail = "Internal storage error"
    return JSONResponse(status_code=exc.status_code, content={"detail": detail})


def create_app(testing: bool = False) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()
    if not testing:
        setup_logging(settings.log_level)

    app = FastAPI(
        title="Atendimento API",
        description="Conversation ownership for WhatsApp patient support",
        version="0.1.0",
    )

    app.add_exception_handler(AtendimentoError, atendimento_error_handler)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(webhooks.router)
    app.include_router(conversations_router.conversations_router)
    app.include_router(channel_instances_router.channel_instances_router)
    app.include_router(system.router)

    @app.get("/health", tags=["Health"])
    def health() -> dict[str, str]:
        return {"status": "ok"}

    add_pagination(app)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app.main:app", host="0.0.0.0", port=get_settings().port)
