# -*- coding: utf-8 -*-
# @Author: yaccii
# @Description:

"""异常 -> HTTP 响应的分发

- registry 启动期构建，freeze 后只读，必须包含 Exception 兜底
- 按异常类型 MRO 从最具体到最宽泛查找 handler
- handler 自身抛错时直接返回固定 500，不再二次分发
"""

from __future__ import annotations

import inspect
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple, Type, Union

from starlette.requests import Request
from starlette.responses import PlainTextResponse, Response

from http_observability.common.context import RequestContext, get_request_id
from http_observability.common.errors import ConfigurationError, annotated_status_code

logger = logging.getLogger(__name__)

DEFAULT_STATUS_CODE = 500
LAST_RESORT_BODY = "Internal Server Error"


@dataclass
class ErrorResponse:
    """handler 返回值；status_code 为 None 时由 dispatcher 决定"""

    content: Any
    status_code: Optional[int] = None
    media_type: str = "application/json"
    headers: Dict[str, str] = field(default_factory=dict)

    def render(self, status_code: int) -> Response:
        if self.media_type == "application/json":
            body = json.dumps(self.content, ensure_ascii=False, default=str).encode("utf-8")
        elif isinstance(self.content, bytes):
            body = self.content
        else:
            body = str(self.content).encode("utf-8")
        return Response(content=body, status_code=status_code, media_type=self.media_type, headers=self.headers)


HandlerResult = Union[ErrorResponse, Response]
ErrorHandler = Callable[[BaseException, RequestContext], Union[HandlerResult, Awaitable[HandlerResult]]]


def last_resort_response() -> Response:
    return PlainTextResponse(LAST_RESORT_BODY, status_code=500)


class ErrorHandlerRegistry:
    def __init__(self) -> None:
        self._handlers: Dict[Type[BaseException], ErrorHandler] = {}
        self._frozen = False

    @property
    def frozen(self) -> bool:
        return self._frozen

    def register(self, exc_type: Type[BaseException], handler: ErrorHandler) -> "ErrorHandlerRegistry":
        if self._frozen:
            raise ConfigurationError("error handler registry is frozen")
        if not (isinstance(exc_type, type) and issubclass(exc_type, BaseException)):
            raise ConfigurationError(f"not an exception type: {exc_type!r}")
        # 重复注册时覆盖，保留原有顺序
        self._handlers[exc_type] = handler
        return self

    def handler(self, exc_type: Type[BaseException]) -> Callable[[ErrorHandler], ErrorHandler]:
        def decorator(fn: ErrorHandler) -> ErrorHandler:
            self.register(exc_type, fn)
            return fn

        return decorator

    def freeze(self) -> "ErrorHandlerRegistry":
        if Exception not in self._handlers:
            raise ConfigurationError("error handler registry has no fallback handler for Exception")
        self._frozen = True
        return self

    def registered_types(self) -> Tuple[Type[BaseException], ...]:
        return tuple(self._handlers.keys())

    def resolve(self, exc_type: Type[BaseException]) -> ErrorHandler:
        for klass in exc_type.__mro__:
            handler = self._handlers.get(klass)
            if handler is not None:
                return handler
        # BaseException 非 Exception 子类时也走兜底
        return self._handlers[Exception]


class ErrorDispatcher:
    def __init__(self, registry: ErrorHandlerRegistry) -> None:
        if not registry.frozen:
            registry.freeze()
        self._registry = registry

    @property
    def registry(self) -> ErrorHandlerRegistry:
        return self._registry

    async def dispatch(self, exc: BaseException, context: RequestContext) -> Response:
        handler = self._registry.resolve(type(exc))
        try:
            result = handler(exc, context)
            if inspect.isawaitable(result):
                result = await result
            return self._to_response(exc, result)
        except Exception:  # noqa: BLE001
            logger.exception(
                "Error handler %s failed while handling %s",
                getattr(handler, "__name__", repr(handler)),
                type(exc).__name__,
            )
            return last_resort_response()

    def as_exception_handler(self) -> Callable[[Request, Exception], Awaitable[Response]]:
        """适配 starlette app.add_exception_handler"""

        async def _handler(request: Request, exc: Exception) -> Response:
            return await self.dispatch(exc, RequestContext.from_request(request, get_request_id()))

        return _handler

    @staticmethod
    def _to_response(exc: BaseException, result: HandlerResult) -> Response:
        if isinstance(result, Response):
            return result
        if isinstance(result, ErrorResponse):
            status_code = result.status_code or annotated_status_code(exc) or DEFAULT_STATUS_CODE
            return result.render(status_code)
        raise TypeError(f"error handler returned {type(result).__name__}, expected ErrorResponse or Response")
