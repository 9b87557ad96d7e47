# -*- coding: utf-8 -*-
# @Author: yaccii
# @Description:

"""HTTP 请求日志中间件与异常分发

- middlewares: 计时、异常兜底、每个请求一行日志
- dispatcher / exception_handlers: 按异常类型 MRO 选 handler，生成 JSON 或 HTML 错误响应
- formatters: 请求日志行格式
"""

from __future__ import annotations
