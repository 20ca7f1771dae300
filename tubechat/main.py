"""FastAPI app entry point."""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from tubechat.core.config import Settings, settings as default_settings
from tubechat.core.logging import setup_logging
from tubechat.routers import youtube
from tubechat.services.container import Services, build_services


def create_app(settings: Settings | None = None, services: Services | None = None) -> FastAPI:
    """Build FastAPI application."""

    settings = settings or default_settings
    setup_logging(settings.log_level, settings.log_file)

    app = FastAPI(title="TubeChat", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.dashboard_cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(youtube.router)
    app.state.services = services or build_services(settings)

    @app.on_event("startup")
    async def _startup() -> None:
        await app.state.services.start()

    @app.on_event("shutdown")
    async def _shutdown() -> None:
        await app.state.services.close()

    @app.get("/healthz", tags=["health"])
    async def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    return app


app = create_app()
