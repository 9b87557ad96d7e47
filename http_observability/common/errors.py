# -*- coding: utf-8 -*-
# @Author: yaccii
# @Description:

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional, Type, TypeVar

E = TypeVar("E", bound=Type[BaseException])

_HTTP_ERROR_CODE_ATTR = "__http_error_code__"


@dataclass
class AppError(Exception):
    """异常统一"""
    code: str
    message: str
    status_code: int = 400
    detail: Optional[Any] = None


class _PresetAppError(AppError):
    """子类只声明默认 code / message / status"""

    default_code = "ERROR"
    default_message = "error"
    default_status = 400

    def __init__(self, code: Optional[str] = None, message: Optional[str] = None, detail: Any = None) -> None:
        super().__init__(
            code=code or self.default_code,
            message=message or self.default_message,
            status_code=self.default_status,
            detail=detail,
        )


class BadRequestError(_PresetAppError):
    default_code, default_message, default_status = "BAD_REQUEST", "bad request", 400


class UnauthorizedError(_PresetAppError):
    default_code, default_message, default_status = "UNAUTHORIZED", "unauthorized", 401


class ForbiddenError(_PresetAppError):
    default_code, default_message, default_status = "FORBIDDEN", "forbidden", 403


class NotFoundError(_PresetAppError):
    default_code, default_message, default_status = "NOT_FOUND", "not found", 404


class TooManyRequestsError(_PresetAppError):
    default_code, default_message, default_status = "TOO_MANY_REQUESTS", "too many requests", 429


class ConfigurationError(RuntimeError):
    """启动期配置错误（缺少兜底 handler、冻结后注册等）"""


def http_error_code(status_code: int) -> Callable[[E], E]:
    """给异常类型标注默认 HTTP 状态码，子类继承该标注

    @http_error_code(403)
    class NotAuthorizedError(Exception): ...
    """

    if not 100 <= status_code <= 599:
        raise ConfigurationError(f"invalid http status code: {status_code}")

    def decorator(exc_type: E) -> E:
        setattr(exc_type, _HTTP_ERROR_CODE_ATTR, status_code)
        return exc_type

    return decorator


def annotated_status_code(exc: BaseException) -> Optional[int]:
    return getattr(type(exc), _HTTP_ERROR_CODE_ATTR, None)
