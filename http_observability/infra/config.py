# -*- coding: utf-8 -*-
# @Author: yaccii
# @Description:

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from http_observability.common.errors import ConfigurationError
from http_observability.common.formatters import LogFormatter, get_formatter


class Settings(BaseSettings):
    """全局配置，从 .env / 环境变量读取"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # 运行环境
    ENV: str = Field("dev", description="运行环境: dev / test / prod")

    LOG_LEVEL: str = Field(
        "INFO",
        description="根 logger 级别",
        validation_alias=AliasChoices("LOG_LEVEL", "log_level"),
    )

    # 请求日志
    LOG_SHOW_TIMESTAMPS: Optional[bool] = Field(
        None,
        description="请求日志是否带时间戳（未配置时仅 prod 开启）",
        validation_alias=AliasChoices("LOG_SHOW_TIMESTAMPS", "log_show_timestamps"),
    )
    LOG_ENABLED: Optional[bool] = Field(
        None,
        description="是否输出请求日志（未配置时 test 环境关闭）",
        validation_alias=AliasChoices("LOG_ENABLED", "log_enabled"),
    )
    LOG_FORMATTER: str = Field(
        "default",
        description="请求日志格式: default / json",
        validation_alias=AliasChoices("LOG_FORMATTER", "log_formatter"),
    )

    # 错误输出
    SHOW_DEBUG_OUTPUT: Optional[bool] = Field(
        None,
        description="错误响应是否带调试信息（未配置时 prod 以外开启）",
        validation_alias=AliasChoices("SHOW_DEBUG_OUTPUT", "show_debug_output"),
    )

    REQUEST_ID_HEADER: str = Field(
        "X-Request-Id",
        description="请求 id 来源 header",
        validation_alias=AliasChoices("REQUEST_ID_HEADER", "request_id_header"),
    )

    @property
    def is_production(self) -> bool:
        return self.ENV.lower() in {"prod", "production"}

    @property
    def is_test(self) -> bool:
        return self.ENV.lower() == "test"


@dataclass(frozen=True)
class ObservabilityConfig:
    """启动时构建一次，之后只读"""

    show_timestamps: bool = False
    enabled: bool = True
    formatter: Optional[LogFormatter] = None
    show_debug_output: bool = True
    request_id_header: str = "X-Request-Id"

    def __post_init__(self) -> None:
        if self.formatter is None:
            object.__setattr__(self, "formatter", get_formatter("default"))

    @classmethod
    def from_settings(cls, s: Settings) -> "ObservabilityConfig":
        show_timestamps = s.LOG_SHOW_TIMESTAMPS if s.LOG_SHOW_TIMESTAMPS is not None else s.is_production
        enabled = s.LOG_ENABLED if s.LOG_ENABLED is not None else not s.is_test
        show_debug_output = s.SHOW_DEBUG_OUTPUT if s.SHOW_DEBUG_OUTPUT is not None else not s.is_production

        try:
            formatter = get_formatter(s.LOG_FORMATTER)
        except KeyError as e:
            raise ConfigurationError(f"unknown log formatter: {s.LOG_FORMATTER}") from e

        return cls(
            show_timestamps=show_timestamps,
            enabled=enabled,
            formatter=formatter,
            show_debug_output=show_debug_output,
            request_id_header=s.REQUEST_ID_HEADER,
        )


settings = Settings()
