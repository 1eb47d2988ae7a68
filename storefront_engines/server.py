"""FastAPI application exposing the slot configuration and render engines."""
from __future__ import annotations

from fastapi import FastAPI

from storefront_engines.common.error_envelope import register_error_handlers
from storefront_engines.common.health import router as health_router
from storefront_engines.slot_config.routes import router as slot_config_router
from storefront_engines.slot_render.routes import router as slot_render_router


def create_app() -> FastAPI:
    app = FastAPI(title="Storefront Slot Engines", version="0.1.0")
    register_error_handlers(app)
    app.include_router(health_router)
    app.include_router(slot_config_router)
    app.include_router(slot_render_router)
    return app


app = create_app()
