# -*- coding: utf-8 -*-
# @Author: yaccii
# @Description:

from __future__ import annotations

from typing import Optional

from fastapi import FastAPI

from http_observability.common.dispatcher import ErrorHandlerRegistry
from http_observability.common.logging import setup_logging
from http_observability.common.middlewares import install_observability
from http_observability.infra.config import ObservabilityConfig, settings


def create_app(
    config: Optional[ObservabilityConfig] = None,
    registry: Optional[ErrorHandlerRegistry] = None,
) -> FastAPI:
    """构建挂好请求日志与异常分发的 FastAPI 应用"""

    setup_logging(settings.LOG_LEVEL)

    if config is None:
        config = ObservabilityConfig.from_settings(settings)

    app = FastAPI(
        title="http-observability",
        version="1.0.0",
        debug=False,
    )

    # ---------- middlewares / handlers ----------

    install_observability(app, config, registry)

    @app.get("/health")
    def health_check() -> dict:
        return {"status": "ok"}

    return app
