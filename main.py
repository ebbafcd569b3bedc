import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from notifyhub.application.service import NotificationService
from notifyhub.config import Settings, get_settings
from notifyhub.interfaces.api.routes import register_routes


def _configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def create_app(service: NotificationService | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    A prebuilt ``service`` is attached immediately; otherwise one is built from
    the environment when the application starts.
    """

    settings = service.settings if service is not None else get_settings()
    _configure_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Start the notification pipeline on boot and release it on shutdown."""

        notification_service = service or NotificationService.from_settings(settings)
        app.state.notification_service = notification_service
        await notification_service.start()
        try:
            yield
        finally:
            await notification_service.stop()

    app = FastAPI(title="notifyhub", lifespan=lifespan)
    if service is not None:
        app.state.notification_service = service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_routes(app)
    return app


app = create_app()
