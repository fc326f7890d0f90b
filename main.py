"""
FastAPI应用主入口
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.routes import rooms as rooms_routes
from api.routes import ws as ws_routes
from api.middleware import RequestIDMiddleware, LoggingMiddleware
from application.services.realtime_service import RealtimeService
from core.config import settings
from core.exceptions import register_exception_handlers
from core.response import success_response
from core.logging_config import get_logger
from infrastructure.realtime.connection_manager import ConnectionManager
from infrastructure.realtime.session_store import SessionStore


logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期管理"""
    # 每个应用实例拥有独立的会话注册表
    store = SessionStore()
    conn_mgr = ConnectionManager()
    realtime = RealtimeService(store=store, connections=conn_mgr)
    app.state.session_store = store
    app.state.realtime_connections = conn_mgr
    app.state.realtime_service = realtime
    logger.info(
        "realtime_initialized",
        ws_path=settings.REALTIME_WS_PATH,
        leave_on_rejoin=settings.REALTIME_LEAVE_ON_REJOIN,
        heartbeat_interval_s=settings.REALTIME_WS_IDLE_PING_INTERVAL_S,
    )
    if settings.REALTIME_WS_IDLE_PING_INTERVAL_S <= 0:
        logger.info(
            "realtime_heartbeat_disabled",
            message="Stale sessions are only cleared when the transport reports a disconnect",
        )

    yield

    # 关闭实时通信
    await conn_mgr.aclose()
    logger.info("application_shutdown", message="Application shutdown", sessions_dropped=len(store))


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    debug=settings.DEBUG,
    lifespan=lifespan,
    description="Room-scoped presence and chat broadcast hub",
)

# 添加中间件（注意顺序：从下往上执行）
# 1. Request ID中间件（最先执行，为后续中间件提供request_id）
app.add_middleware(RequestIDMiddleware)

# 2. 日志中间件（HTTP 与 WebSocket）
app.add_middleware(LoggingMiddleware)

# 3. CORS中间件
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# 注册全局异常处理器
register_exception_handlers(app)


# 注册路由
app.include_router(rooms_routes.router, prefix="/api/v1")
app.include_router(ws_routes.router)


# 根路径
@app.get("/", tags=["Root"])
async def root():
    """服务信息"""
    return success_response(
        data={
            "name": settings.PROJECT_NAME,
            "version": settings.VERSION,
            "websocket": settings.REALTIME_WS_PATH,
            "docs": "/docs",
        },
        message="Welcome",
    )


# 健康检查
@app.get("/health", tags=["Health"])
async def health_check():
    """健康检查端点"""
    conn_mgr = getattr(app.state, "realtime_connections", None)
    store = getattr(app.state, "session_store", None)
    return success_response(
        data={
            "status": "healthy",
            "connections": len(conn_mgr) if conn_mgr is not None else 0,
            "sessions": len(store) if store is not None else 0,
        },
        message="OK",
    )


def run() -> None:
    import uvicorn
    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level="debug" if settings.DEBUG else "info",
        # keep the structlog handlers installed when core.logging_config is imported
        log_config=None,
    )


if __name__ == "__main__":
    run()
