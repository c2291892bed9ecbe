"""Application entrypoint for the email code authentication step.

This module wires together the FastAPI application with its lifespan hooks,
database metadata, Redis cleanup, logging and CORS configuration.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from email_otp.api.routes import challenge_router
from email_otp.core.config import settings
from email_otp.core.logging import configure_logging
from email_otp.db import models  # noqa: F401
from email_otp.db.base import Base
from email_otp.db.session import engine
from email_otp.services.attempts import close_redis_client


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create database tables on startup and dispose shared clients on shutdown."""

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    await close_redis_client()
    await engine.dispose()


def create_application() -> FastAPI:
    """Assemble and configure the FastAPI application instance."""

    configure_logging(settings.LOG_LEVEL)

    application = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.PROJECT_VERSION,
        lifespan=lifespan,
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    application.include_router(challenge_router)

    @application.get("/")
    async def healthcheck():
        """Lightweight health endpoint used by uptime monitors."""
        return {"message": "Email code step is running!"}

    return application


app = create_application()
