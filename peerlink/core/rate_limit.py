"""
peerlink.core.rate_limit
~~~~~~~~~~~~~~~~~~~~~~~~

HTTP 接口限流配置。

WebSocket 事件的限流按连接计数，见 ``peerlink.services.activity``。
"""
from __future__ import annotations

from slowapi import Limiter
from slowapi.util import get_remote_address

# 基于客户端 IP 地址进行限流，计数保存在进程内存中
limiter = Limiter(
    key_func=get_remote_address,
    storage_uri="memory://",
)
