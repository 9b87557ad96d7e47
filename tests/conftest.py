from typing import Callable, Optional

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from http_observability.common.dispatcher import ErrorHandlerRegistry
from http_observability.common.errors import NotFoundError, http_error_code
from http_observability.infra.config import ObservabilityConfig
from http_observability.main import create_app

REQUEST_LOGGER = "http_observability.request"
DIAGNOSTICS_LOGGER = "http_observability.diagnostics"


@http_error_code(403)
class NotAuthorizedError(Exception):
    pass


class RoleMissingError(NotAuthorizedError):
    pass


def _add_routes(app: FastAPI) -> None:
    @app.get("/")
    async def index() -> dict:
        return {"hello": "world"}

    @app.get("/boom")
    async def boom() -> dict:
        raise RuntimeError("kaboom")

    @app.get("/forbidden")
    async def forbidden() -> dict:
        raise NotAuthorizedError("no access")

    @app.get("/role")
    async def role() -> dict:
        raise RoleMissingError("admin role required")

    @app.get("/children/{child_id}")
    async def child(child_id: int) -> dict:
        raise NotFoundError(code="CHILD_NOT_FOUND", message="child not found", detail={"child_id": child_id})


@pytest.fixture()
def make_app() -> Callable[..., FastAPI]:
    def _make(config: Optional[ObservabilityConfig] = None, registry: Optional[ErrorHandlerRegistry] = None) -> FastAPI:
        app = create_app(config or ObservabilityConfig(), registry)
        _add_routes(app)
        return app

    return _make


@pytest.fixture()
def make_client(make_app):
    def _make(**kwargs) -> AsyncClient:
        transport = ASGITransport(app=make_app(**kwargs))
        return AsyncClient(transport=transport, base_url="http://testserver")

    return _make


@pytest.fixture()
async def async_client(make_client):
    async with make_client() as client:
        yield client


@pytest.fixture()
def request_records(caplog):
    caplog.set_level("INFO", logger=REQUEST_LOGGER)

    def _records():
        return [r for r in caplog.records if r.name == REQUEST_LOGGER]

    return _records
