from collections.abc import Callable

from fastapi import FastAPI
from fastapi.responses import PlainTextResponse
from fastapi.testclient import TestClient
import pytest

import src.core.middleware as middleware


def _make_app(exception_factory: Callable[[], Exception]) -> FastAPI:
    app = FastAPI()
    middleware.register_middlewares(app)

    @app.get("/boom")
    async def boom() -> PlainTextResponse:
        raise exception_factory()

    @app.get("/ok")
    async def ok() -> PlainTextResponse:
        return PlainTextResponse("ok")

    @app.post("/v1/auth/tokens/refresh")
    async def refresh() -> PlainTextResponse:
        return PlainTextResponse("tokens")

    return app


@pytest.fixture(autouse=True)
def _mute_sentry(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        middleware.sentry_sdk, "capture_exception", lambda *_, **__: None
    )


def test_security_headers_added() -> None:
    app = _make_app(lambda: RuntimeError())
    client = TestClient(app)

    resp = client.get("/ok")

    assert resp.status_code == 200
    assert resp.headers["X-Frame-Options"] == "DENY"
    assert resp.headers["Content-Security-Policy"] == "frame-ancestors 'none'"
    assert "cache-control" not in resp.headers


def test_token_responses_are_not_cacheable() -> None:
    app = _make_app(lambda: RuntimeError())
    client = TestClient(app)

    resp = client.post("/v1/auth/tokens/refresh")

    assert resp.headers["Cache-Control"] == "no-store"
    assert resp.headers["Pragma"] == "no-cache"


def test_unexpected_error_middleware() -> None:
    class Unexpected(Exception):
        pass

    def factory() -> Exception:
        return Unexpected("boom")

    app = _make_app(factory)
    client = TestClient(app)

    resp = client.get("/boom")

    assert resp.status_code == 500
    assert resp.json() == {"detail": middleware.UNEXPECTED_ERROR_DETAIL}
