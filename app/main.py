import logging

from fastapi import FastAPI

from app.api.routes_health import router as health_router
from app.api.routes_time import router as time_router
from app.core.config import get_settings


def create_app() -> FastAPI:
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    app = FastAPI(title="zonefmt API", version="0.1.0")
    app.state.settings = settings
    app.include_router(health_router)
    app.include_router(time_router)
    return app


app = create_app()
