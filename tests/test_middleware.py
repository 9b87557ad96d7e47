import re

import pytest

from http_observability.common.dispatcher import ErrorHandlerRegistry
from http_observability.common.formatters import JsonLogFormatter, LogFormatter
from http_observability.infra.config import ObservabilityConfig

DIAGNOSTICS_LOGGER = "http_observability.diagnostics"

PROD = ObservabilityConfig(show_timestamps=True, enabled=True, show_debug_output=False)
DEV = ObservabilityConfig(show_timestamps=False, enabled=True, show_debug_output=True)


class ExplodingFormatter(LogFormatter):
    name = "exploding"

    def format(self, request, timestamp, elapsed):
        raise ValueError("formatter is broken")


@pytest.mark.asyncio
async def test_one_log_line_per_request(async_client, request_records):
    # Act
    resp = await async_client.get("/")

    # Assert
    assert resp.status_code == 200
    records = request_records()
    assert len(records) == 1
    assert re.fullmatch(r"GET 200 / \([0-9.]+(µs|ms|s)\)", records[0].getMessage())
    assert records[0].request_log.status == 200
    assert records[0].request_log.timestamp is None


@pytest.mark.asyncio
async def test_disabled_logging_is_side_effect_free(make_client, request_records):
    async with make_client(config=ObservabilityConfig(enabled=False)) as client:
        resp = await client.get("/", headers={"X-Request-Id": "abc123"})
        failed = await client.get("/children/3")

    assert resp.status_code == 200
    assert resp.json() == {"hello": "world"}
    assert set(resp.headers.keys()) == {"content-length", "content-type"}
    assert failed.status_code == 404
    assert "x-request-id" not in failed.headers
    assert request_records() == []


@pytest.mark.asyncio
async def test_timestamp_included_when_enabled(make_client, request_records):
    async with make_client(config=PROD) as client:
        await client.get("/health")

    (record,) = request_records()
    assert re.fullmatch(
        r"GET 200 /health \d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}Z \([0-9.]+(µs|ms|s)\)",
        record.getMessage(),
    )


@pytest.mark.asyncio
async def test_json_formatter_selected_by_config(make_client, request_records):
    async with make_client(config=ObservabilityConfig(formatter=JsonLogFormatter())) as client:
        await client.get("/")

    (record,) = request_records()
    assert record.getMessage().startswith('{"method":"GET","status":200,"path":"/"')


@pytest.mark.asyncio
async def test_unhandled_error_in_production_is_minimal(make_client, request_records):
    # Arrange / Act
    async with make_client(config=PROD) as client:
        resp = await client.get("/boom")

    # Assert
    assert resp.status_code == 500
    data = resp.json()
    assert data["code"] == "INTERNAL_ERROR"
    assert data["message"] == "internal server error"
    assert "debug" not in data
    assert "Traceback" not in resp.text

    (record,) = request_records()
    assert record.getMessage().startswith("GET 500 /boom ")


@pytest.mark.asyncio
async def test_unhandled_error_in_debug_mode_includes_trace(make_client):
    async with make_client(config=DEV) as client:
        resp = await client.get("/boom")

    assert resp.status_code == 500
    data = resp.json()
    assert data["code"] == "RuntimeError"
    assert data["message"] == "kaboom"
    assert "Traceback" in data["debug"]


@pytest.mark.asyncio
async def test_unhandled_error_renders_html_when_requested(make_client):
    async with make_client(config=PROD) as client:
        resp = await client.get("/boom", headers={"Accept": "text/html"})

    assert resp.status_code == 500
    assert resp.headers["content-type"].startswith("text/html")
    assert "Error 500" in resp.text
    assert "Traceback" not in resp.text


@pytest.mark.asyncio
async def test_unhandled_error_html_page_in_debug_mode_shows_trace(make_client):
    async with make_client(config=DEV) as client:
        resp = await client.get("/boom", headers={"Accept": "text/html"})

    assert resp.status_code == 500
    assert resp.headers["content-type"].startswith("text/html")
    assert "<p>kaboom</p>" in resp.text
    assert "<pre>Traceback" in resp.text
    assert "RuntimeError: kaboom" in resp.text


@pytest.mark.asyncio
async def test_annotated_error_code_sets_status(make_client, request_records):
    async with make_client(config=PROD) as client:
        resp = await client.get("/forbidden")
        sub = await client.get("/role")

    assert resp.status_code == 403
    assert resp.json()["code"] == "HTTP_403"
    assert sub.status_code == 403
    assert [r.request_log.status for r in request_records()] == [403, 403]


@pytest.mark.asyncio
async def test_app_error_uses_its_status(async_client):
    resp = await async_client.get("/children/7")

    assert resp.status_code == 404
    data = resp.json()
    assert data["code"] == "CHILD_NOT_FOUND"
    assert data["detail"] == {"child_id": 7}


@pytest.mark.asyncio
async def test_framework_errors_go_through_dispatcher(async_client, request_records):
    missing = await async_client.get("/nope")
    invalid = await async_client.get("/children/abc")

    assert missing.status_code == 404
    assert missing.json()["code"] == "HTTP_404"
    assert invalid.status_code == 422
    assert invalid.json()["code"] == "VALIDATION_ERROR"
    assert [r.request_log.status for r in request_records()] == [404, 422]


@pytest.mark.asyncio
async def test_request_id_is_propagated(async_client):
    resp = await async_client.get("/children/1", headers={"X-Request-Id": "abc123"})

    assert resp.headers["X-Request-Id"] == "abc123"
    assert resp.json()["request_id"] == "abc123"


@pytest.mark.asyncio
async def test_request_id_is_generated_when_missing(async_client):
    resp = await async_client.get("/")

    assert re.fullmatch(r"[0-9a-f]{32}", resp.headers["X-Request-Id"])


@pytest.mark.asyncio
async def test_failing_error_handler_yields_last_resort(make_client, request_records):
    # Arrange
    async def broken(exc, ctx):
        raise RuntimeError("handler blew up")

    registry = ErrorHandlerRegistry().register(Exception, broken)

    # Act
    async with make_client(registry=registry) as client:
        resp = await client.get("/boom")

    # Assert
    assert resp.status_code == 500
    assert resp.text == "Internal Server Error"
    assert [r.request_log.status for r in request_records()] == [500]


@pytest.mark.asyncio
async def test_logging_failure_does_not_affect_response(make_client, caplog, request_records):
    async with make_client(config=ObservabilityConfig(formatter=ExplodingFormatter())) as client:
        resp = await client.get("/")

    assert resp.status_code == 200
    assert resp.json() == {"hello": "world"}
    assert request_records() == []
    diagnostics = [r for r in caplog.records if r.name == DIAGNOSTICS_LOGGER]
    assert len(diagnostics) == 1
    assert "formatter is broken" in str(diagnostics[0].exc_info[1])
