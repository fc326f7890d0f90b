"""
访问日志中间件（纯 ASGI）
HTTP 请求记录状态码与耗时；WebSocket 连接记录建立与关闭及会话时长
"""
import time

from starlette.types import ASGIApp, Message, Receive, Scope, Send

from core.logging_config import get_logger


logger = get_logger(__name__)


class LoggingMiddleware:
    """
    访问日志中间件

    BaseHTTPMiddleware 不处理 websocket scope，因此这里直接实现 ASGI 接口。
    """

    # 跳过日志的路径
    SKIP_PATHS = {"/health", "/docs", "/redoc", "/openapi.json"}

    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "websocket":
            await self._websocket(scope, receive, send)
            return
        if scope["type"] != "http" or scope["path"] in self.SKIP_PATHS:
            await self.app(scope, receive, send)
            return

        start_time = time.time()
        status_holder = {"status": 500}

        async def send_wrapper(message: Message) -> None:
            if message["type"] == "http.response.start":
                status_holder["status"] = message["status"]
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        except Exception as exc:
            logger.error(
                "request_failed",
                method=scope["method"],
                path=scope["path"],
                duration=time.time() - start_time,
                error=str(exc),
                error_type=type(exc).__name__,
                exc_info=True,
            )
            raise
        self._log_response(scope, status_holder["status"], time.time() - start_time)

    async def _websocket(self, scope: Scope, receive: Receive, send: Send) -> None:
        start_time = time.time()
        client = scope.get("client")
        logger.info("ws_session_started", path=scope["path"], client=client[0] if client else None)
        try:
            await self.app(scope, receive, send)
        finally:
            logger.info("ws_session_finished", path=scope["path"], duration=time.time() - start_time)

    @staticmethod
    def _log_response(scope: Scope, status_code: int, duration: float) -> None:
        log_data = {
            "method": scope["method"],
            "path": scope["path"],
            "status_code": status_code,
            "duration": duration,
        }
        if status_code < 400:
            logger.info("request_completed", **log_data)
        elif status_code < 500:
            logger.warning("request_client_error", **log_data)
        else:
            logger.error("request_server_error", **log_data)
