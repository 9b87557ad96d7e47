# -*- coding: utf-8 -*-
# @Author: yaccii
# @Description:

from __future__ import annotations

import uuid
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Optional, Tuple

from starlette.requests import Request


_request_id_ctx: ContextVar[str] = ContextVar("request_id", default="-")


def new_request_id() -> str:
    return uuid.uuid4().hex


def set_request_id(request_id: str) -> None:
    _request_id_ctx.set(request_id or "-")


def get_request_id() -> str:
    return _request_id_ctx.get() or "-"


def _accept_weight(accept: str, media_type: str) -> Optional[Tuple[float, int]]:
    """返回 Accept 中该类型的 (q, 位置)，未出现时 None"""

    for position, part in enumerate(accept.lower().split(",")):
        params = [p.strip() for p in part.split(";")]
        if params[0] != media_type:
            continue
        q = 1.0
        for param in params[1:]:
            name, _, value = param.partition("=")
            if name.strip() == "q":
                try:
                    q = float(value)
                except ValueError:
                    q = 0.0
        return q, position
    return None


@dataclass(frozen=True)
class RequestContext:
    """单个请求的只读上下文，交给 error handler 使用"""

    method: str
    path: str
    accept: str = ""
    request_id: str = "-"

    @property
    def wants_html(self) -> bool:
        html_q, json_q = _accept_weight(self.accept, "text/html"), _accept_weight(self.accept, "application/json")
        if html_q is None or html_q[0] <= 0:
            return False
        if json_q is None or json_q[0] <= 0:
            return True
        # q 相同时按出现顺序
        return (html_q[0], -html_q[1]) > (json_q[0], -json_q[1])

    @classmethod
    def from_request(cls, request: Request, request_id: str = "-") -> "RequestContext":
        return cls(
            method=request.method,
            path=request.url.path,
            accept=request.headers.get("accept", ""),
            request_id=request_id,
        )
