"""
peerlink.api.relay_endpoints
~~~~~~~~~~~~~~~~~~~~~~~~~~~~

中继 REST 接口，路由前缀 ``/api``。

端点:
  - ``GET /stats`` → 当前房间数、连接数与打开的 WebSocket 数

只暴露计数，不暴露房间 ID 或连接 ID。
"""
from fastapi import APIRouter, Depends, Request

from peerlink.api.deps import get_hub, get_relay
from peerlink.core.rate_limit import limiter
from peerlink.core.settings import settings
from peerlink.schemas.api_response import ApiResponse
from peerlink.schemas.events import RelayStats
from peerlink.services.connection_hub import ConnectionHub
from peerlink.services.relay import SignalingRelay

router: APIRouter = APIRouter()


@router.get("/stats", summary="获取中继运行状态", response_model=ApiResponse[RelayStats])
@limiter.limit(settings.STATS_RATE_LIMIT)
async def relay_stats(
    request: Request,
    relay: SignalingRelay = Depends(get_relay),
    hub: ConnectionHub = Depends(get_hub),
):
    """返回当前房间数、在线连接数与打开的出站队列数。"""
    stats = relay.stats().model_copy(update={"sockets": hub.online_count})
    return ApiResponse.ok(data=stats)
