from fastapi import FastAPI  # type: ignore[import-not-found]

from discs.api.main import cors_origins
from discs.auth.middleware import SlidingSessionCookieMiddleware


def test_build_app_registers_feature_routes(app: FastAPI) -> None:
    paths = set(app.openapi()["paths"])
    for expected in (
        "/auth/login",
        "/auth/me",
        "/artists",
        "/artists/search",
        "/artists/{entity_id}",
        "/genres/{entity_id}",
        "/labels",
        "/records",
        "/records/search",
        "/records/{record_id}",
        "/records/{record_id}/tracks/{track_id}",
        "/health",
    ):
        assert expected in paths


def test_cors_origins_accept_both_loopback_spellings() -> None:
    origins = cors_origins("http://localhost:3000, ,https://discs.example.com,http://localhost:3000")
    assert origins == [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "https://discs.example.com",
    ]


def test_build_app_installs_sliding_cookie_middleware(app: FastAPI) -> None:
    assert SlidingSessionCookieMiddleware in {m.cls for m in app.user_middleware}
