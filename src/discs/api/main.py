from __future__ import annotations

from fastapi import FastAPI  # type: ignore[import-not-found]
from fastapi.middleware.cors import CORSMiddleware  # type: ignore[import-not-found]

from discs.api.exceptions import configure_global_exception_handlers
from discs.api.routers import configure_routers
from discs.auth.middleware import SlidingSessionCookieMiddleware
from discs.core.settings import settings


def cors_origins(raw: str) -> list[str]:
    # Accept localhost and 127.0.0.1 interchangeably; devs use either.
    origins: list[str] = []
    for o in (part.strip() for part in raw.split(",")):
        if not o:
            continue
        origins.append(o)
        if o.startswith("http://localhost:"):
            origins.append(o.replace("http://localhost:", "http://127.0.0.1:", 1))
        elif o.startswith("http://127.0.0.1:"):
            origins.append(o.replace("http://127.0.0.1:", "http://localhost:", 1))
    return list(dict.fromkeys(origins))


def build_app() -> FastAPI:
    app = FastAPI(title=settings.API_TITLE, version=settings.API_VERSION)
    app.add_middleware(SlidingSessionCookieMiddleware)
    origins = cors_origins(str(settings.CORS_ORIGINS))
    if origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )
    configure_routers(app)
    configure_global_exception_handlers(app)
    return app


app = build_app()
