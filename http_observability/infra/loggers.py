# -*- coding: utf-8 -*-
# @Author: yaccii
# @Description:

"""请求日志与内部诊断使用的命名 logger

handler / 格式统一挂在 root 上（见 common/logging.py），这里不加 handler。
"""

import logging


request_logger = logging.getLogger("http_observability.request")

# formatter 或输出失败时写这里，不影响响应
diagnostics_logger = logging.getLogger("http_observability.diagnostics")
