"""
peerlink.main
~~~~~~~~~~~~~

FastAPI 应用入口 —— 注册路由、挂载中间件、定义生命周期。
"""
from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from peerlink.api import relay_endpoints, signaling_ws
from peerlink.core.logging import get_logger, setup_logging
from peerlink.core.rate_limit import limiter
from peerlink.core.settings import settings
from peerlink.schemas.api_response import ApiResponse
from peerlink.services.connection_hub import ConnectionHub
from peerlink.services.relay import SignalingRelay

# 初始化日志系统（必须在其他模块之前）
setup_logging()
logger = get_logger(__name__)


# ── 生命周期 ──────────────────────────────────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """应用生命周期钩子，仅在 worker 启动/关闭时各执行一次。

    中继状态全部在进程内存中，每个进程一套独立的房间目录。
    """
    # ── 启动 ──
    hub = ConnectionHub(max_queue_size=settings.OUTBOX_MAX_SIZE)
    app.state.hub = hub
    app.state.relay = SignalingRelay.from_settings(hub, settings)
    logger.info(
        "🚀 信令中继已启动 | env=%s | debug=%s | log_level=%s",
        settings.ENVIRONMENT,
        settings.debug,
        settings.effective_log_level,
    )
    yield
    # ── 关闭 ──
    stats = app.state.relay.stats()
    logger.info("👋 信令中继已关闭 | rooms=%d | connections=%d", stats.rooms, stats.connections)


# ── 创建 FastAPI 实例 ─────────────────────────────────────────────────

app: FastAPI = FastAPI(
    title=settings.PROJECT_NAME,
    description="WebRTC 房间信令中继",
    version=settings.VERSION,
    debug=settings.debug,
    lifespan=lifespan,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# ── CORS 中间件 ───────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)

# ── 路由挂载 ──────────────────────────────────────────────────────────
app.include_router(relay_endpoints.router, prefix="/api", tags=["Relay"])
app.include_router(signaling_ws.router, tags=["WebSocket Signaling"])


# ── 全局异常处理器 ────────────────────────────────────────────────────

@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """捕获所有未处理异常，返回统一的 ApiResponse.fail() 格式。"""
    logger.error("未捕获异常: %s %s -> %s", request.method, request.url, exc, exc_info=True)
    # 非 prod 环境返回详细错误信息，prod 环境隐藏内部细节
    detail = str(exc) if not settings.is_prod else "服务器内部错误"
    response = ApiResponse.fail(msg=detail, code=500, data=None)
    return JSONResponse(
        status_code=500,
        content=response.model_dump(),
    )


@app.get("/health", tags=["System"])
async def health_check() -> JSONResponse:
    """验证服务是否正常运行。"""
    return JSONResponse(
        content={
            "status": "ok",
            "environment": settings.ENVIRONMENT,
            "debug": settings.debug,
            "log_level": settings.effective_log_level,
        },
    )


# ── 浏览器客户端静态文件（必须最后挂载，避免遮住上面的路由）────────────
if Path(settings.STATIC_DIR).is_dir():
    app.mount("/", StaticFiles(directory=settings.STATIC_DIR, html=True), name="static")


def run() -> None:
    """命令行入口：``peerlink``。

    只能以单进程运行：房间目录在进程内存中，多 worker 会把同一房间拆散。
    """
    import uvicorn

    uvicorn.run(
        "peerlink.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.reload,  # 仅 dev 环境开启热重载
        log_level=settings.effective_log_level.lower(),
    )


if __name__ == "__main__":
    run()
