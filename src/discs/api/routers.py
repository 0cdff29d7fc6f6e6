from fastapi import FastAPI  # type: ignore[import-not-found]

from discs.artists.api import router as artists_router
from discs.auth.api import router as auth_router
from discs.genres.api import router as genres_router
from discs.health.api import router as health_router
from discs.labels.api import router as labels_router
from discs.records.api import router as records_router


def configure_routers(app: FastAPI) -> FastAPI:
    app.include_router(auth_router)
    app.include_router(artists_router)
    app.include_router(genres_router)
    app.include_router(labels_router)
    app.include_router(records_router)
    app.include_router(health_router)
    return app
