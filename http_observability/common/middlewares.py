# -*- coding: utf-8 -*-
# @Author: yaccii
# @Description:

from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Callable, Optional

from fastapi.exceptions import RequestValidationError
from starlette.applications import Starlette
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from http_observability.common.context import RequestContext, new_request_id, set_request_id
from http_observability.common.dispatcher import ErrorDispatcher, ErrorHandlerRegistry
from http_observability.common.exception_handlers import build_default_registry
from http_observability.common.formatters import RequestInfo, RequestLogRecord
from http_observability.infra.config import ObservabilityConfig
from http_observability.infra.loggers import diagnostics_logger, request_logger


class RequestLoggerMiddleware(BaseHTTPMiddleware):
    """计时 -> 调用下游 -> 异常交给 dispatcher -> 每个请求输出一行日志"""

    def __init__(self, app: ASGIApp, config: ObservabilityConfig, dispatcher: ErrorDispatcher) -> None:
        super().__init__(app)
        self.config = config
        self.dispatcher = dispatcher

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start = time.perf_counter()
        request_id = request.headers.get(self.config.request_id_header) or new_request_id()
        set_request_id(request_id)

        try:
            response: Response = await call_next(request)
        except Exception as exc:  # noqa: BLE001
            ctx = RequestContext.from_request(request, request_id)
            response = await self.dispatcher.dispatch(exc, ctx)

        # 关闭时只分发异常，响应原样返回
        if not self.config.enabled:
            return response

        response.headers[self.config.request_id_header] = request_id
        self._emit(request, response.status_code, time.perf_counter() - start)
        return response

    def _emit(self, request: Request, status: int, elapsed: float) -> None:
        try:
            timestamp = datetime.now(timezone.utc) if self.config.show_timestamps else None
            info = RequestInfo(method=request.method, path=request.url.path, status=status)
            record = RequestLogRecord(
                method=info.method,
                status=info.status,
                path=info.path,
                elapsed=elapsed,
                timestamp=timestamp,
            )
            line = self.config.formatter.format(info, timestamp, elapsed)
            request_logger.info(line, extra={"request_log": record})
        except Exception:  # noqa: BLE001
            # 日志失败不影响已生成的响应
            diagnostics_logger.exception("Failed to emit request log for %s %s", request.method, request.url.path)


def install_observability(
    app: Starlette,
    config: ObservabilityConfig,
    registry: Optional[ErrorHandlerRegistry] = None,
) -> ErrorDispatcher:
    """挂载请求日志中间件与异常分发；registry 在此处 freeze"""

    if registry is None:
        registry = build_default_registry(config)

    dispatcher = ErrorDispatcher(registry)

    # 框架内部先捕获的异常也走同一个 dispatcher
    handler = dispatcher.as_exception_handler()
    app.add_exception_handler(StarletteHTTPException, handler)
    app.add_exception_handler(RequestValidationError, handler)

    app.add_middleware(RequestLoggerMiddleware, config=config, dispatcher=dispatcher)
    return dispatcher
