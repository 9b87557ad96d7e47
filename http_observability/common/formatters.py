# -*- coding: utf-8 -*-
# @Author: yaccii
# @Description:

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, Optional


@dataclass(frozen=True)
class RequestInfo:
    method: str
    path: str
    status: int


@dataclass(frozen=True)
class RequestLogRecord:
    """每个请求生成一条，构造后不可变"""

    method: str
    status: int
    path: str
    elapsed: float
    timestamp: Optional[datetime] = None


def format_elapsed(seconds: float) -> str:
    """耗时自动换算单位：µs / ms / s / m，按取整后的值选单位"""

    seconds = max(seconds, 0.0)
    minutes = round(seconds / 60, 2)
    if minutes >= 1:
        return f"{minutes}m"
    secs = round(seconds, 2)
    if secs >= 1:
        return f"{secs}s"
    millis = round(seconds * 1000, 2)
    if millis >= 1:
        return f"{millis}ms"
    return f"{round(seconds * 1_000_000, 2)}µs"


def format_timestamp(ts: datetime) -> str:
    if ts.tzinfo is not None:
        ts = ts.astimezone(timezone.utc)
    return ts.replace(tzinfo=None).isoformat(timespec="seconds") + "Z"


class LogFormatter(ABC):
    """请求日志格式化接口"""

    name: str

    @abstractmethod
    def format(self, request: RequestInfo, timestamp: Optional[datetime], elapsed: float) -> str:
        raise NotImplementedError


class DefaultLogFormatter(LogFormatter):
    """GET 200 / 2024-01-01T00:00:00Z (27.0µs)，timestamp 为 None 时省略"""

    name = "default"

    def format(self, request: RequestInfo, timestamp: Optional[datetime], elapsed: float) -> str:
        parts = [request.method, str(request.status), request.path]
        if timestamp is not None:
            parts.append(format_timestamp(timestamp))
        parts.append(f"({format_elapsed(elapsed)})")
        return " ".join(parts)


class JsonLogFormatter(LogFormatter):
    name = "json"

    def format(self, request: RequestInfo, timestamp: Optional[datetime], elapsed: float) -> str:
        data: Dict[str, object] = {
            "method": request.method,
            "status": request.status,
            "path": request.path,
            "elapsed": format_elapsed(elapsed),
            "elapsed_ms": round(max(elapsed, 0.0) * 1000, 3),
        }
        if timestamp is not None:
            data["timestamp"] = format_timestamp(timestamp)
        return json.dumps(data, ensure_ascii=False, separators=(",", ":"))


_FORMATTERS: Dict[str, LogFormatter] = {
    DefaultLogFormatter.name: DefaultLogFormatter(),
    JsonLogFormatter.name: JsonLogFormatter(),
}


def get_formatter(name: str) -> LogFormatter:
    key = (name or "").strip().lower()
    if key not in _FORMATTERS:
        raise KeyError(f"未注册的 log formatter: {name}")
    return _FORMATTERS[key]
