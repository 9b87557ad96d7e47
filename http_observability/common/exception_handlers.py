# -*- coding: utf-8 -*-
# @Author: yaccii
# @Description:

from __future__ import annotations

import html
import logging
import traceback
from http import HTTPStatus
from typing import Any, Dict, Optional

from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import Response

from http_observability.common.context import RequestContext
from http_observability.common.dispatcher import ErrorHandler, ErrorHandlerRegistry, ErrorResponse, HandlerResult
from http_observability.common.errors import AppError, annotated_status_code
from http_observability.infra.config import ObservabilityConfig

logger = logging.getLogger(__name__)


def _err_payload(code: str, message: str, request_id: str, detail: Any = None) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "code": code,
        "message": message,
        "request_id": request_id,
    }
    if detail is not None:
        data["detail"] = detail
    return data


def _html_page(status_code: Optional[int], message: str, debug: Optional[str] = None) -> str:
    title = f"Error {status_code}" if status_code else "Error"
    body = f"<h1>{html.escape(title)}</h1>\n<p>{html.escape(message)}</p>"
    if debug:
        body += f"\n<pre>{html.escape(debug)}</pre>"
    return f"<!DOCTYPE html>\n<html>\n<head><title>{html.escape(title)}</title></head>\n<body>\n{body}\n</body>\n</html>\n"


def _render(
    ctx: RequestContext,
    code: str,
    message: str,
    status_code: Optional[int] = None,
    detail: Any = None,
    debug: Optional[str] = None,
    page_status: Optional[int] = None,
) -> ErrorResponse:
    if ctx.wants_html:
        page = _html_page(page_status or status_code, message, debug)
        return ErrorResponse(page, status_code=status_code, media_type="text/html")
    payload = _err_payload(code, message, ctx.request_id, detail)
    if debug:
        payload["debug"] = debug
    return ErrorResponse(payload, status_code=status_code)


async def app_error_handler(exc: AppError, ctx: RequestContext) -> ErrorResponse:
    return _render(ctx, exc.code, exc.message, status_code=exc.status_code, detail=exc.detail)


async def http_exception_handler(exc: StarletteHTTPException, ctx: RequestContext) -> HandlerResult:
    if exc.status_code in {204, 304}:
        return Response(status_code=exc.status_code, headers=exc.headers)
    resp = _render(ctx, f"HTTP_{exc.status_code}", str(exc.detail), status_code=exc.status_code)
    if exc.headers:
        resp.headers.update(exc.headers)
    return resp


async def validation_error_handler(exc: RequestValidationError, ctx: RequestContext) -> ErrorResponse:
    return _render(ctx, "VALIDATION_ERROR", "invalid request", status_code=422, detail=exc.errors())


def _status_phrase(status_code: int) -> str:
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return "Error"


def make_unhandled_error_handler(show_debug_output: bool) -> ErrorHandler:
    """兜底 handler；不设置 status，交给 dispatcher 用标注码或 500"""

    async def unhandled_error_handler(exc: Exception, ctx: RequestContext) -> ErrorResponse:
        annotated = annotated_status_code(exc)
        shown_status = annotated or 500
        if shown_status >= 500:
            logger.exception("Unhandled error on %s %s", ctx.method, ctx.path, exc_info=exc)

        if not show_debug_output:
            if shown_status >= 500:
                return _render(ctx, "INTERNAL_ERROR", "internal server error", page_status=shown_status)
            phrase = _status_phrase(shown_status)
            return _render(ctx, f"HTTP_{shown_status}", phrase.lower(), page_status=shown_status)

        trace = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        return _render(
            ctx,
            type(exc).__name__,
            str(exc) or type(exc).__name__,
            page_status=shown_status,
            debug=trace,
        )

    return unhandled_error_handler


def build_default_registry(config: ObservabilityConfig) -> ErrorHandlerRegistry:
    """默认 registry，未 freeze，调用方可继续覆盖/追加"""

    registry = ErrorHandlerRegistry()
    registry.register(AppError, app_error_handler)
    registry.register(StarletteHTTPException, http_exception_handler)
    registry.register(RequestValidationError, validation_error_handler)
    registry.register(Exception, make_unhandled_error_handler(config.show_debug_output))
    return registry
