# -*- coding: utf-8 -*-
# @Author: yaccii
# @Description:

from __future__ import annotations

from http_observability.common.context import RequestContext
from http_observability.common.dispatcher import ErrorDispatcher, ErrorHandlerRegistry, ErrorResponse
from http_observability.common.errors import (
    AppError,
    BadRequestError,
    ConfigurationError,
    ForbiddenError,
    NotFoundError,
    TooManyRequestsError,
    UnauthorizedError,
    http_error_code,
)
from http_observability.common.exception_handlers import build_default_registry
from http_observability.common.formatters import (
    DefaultLogFormatter,
    JsonLogFormatter,
    LogFormatter,
    RequestInfo,
    RequestLogRecord,
    format_elapsed,
)
from http_observability.common.middlewares import RequestLoggerMiddleware, install_observability
from http_observability.infra.config import ObservabilityConfig, Settings

__all__ = [
    "AppError",
    "BadRequestError",
    "ConfigurationError",
    "DefaultLogFormatter",
    "ErrorDispatcher",
    "ErrorHandlerRegistry",
    "ErrorResponse",
    "ForbiddenError",
    "JsonLogFormatter",
    "LogFormatter",
    "NotFoundError",
    "ObservabilityConfig",
    "RequestContext",
    "RequestInfo",
    "RequestLogRecord",
    "RequestLoggerMiddleware",
    "Settings",
    "TooManyRequestsError",
    "UnauthorizedError",
    "build_default_registry",
    "format_elapsed",
    "http_error_code",
    "install_observability",
]
