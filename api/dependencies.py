"""
API依赖项 - 实时服务注入
"""
from fastapi import Request

from application.services.realtime_service import RealtimeService
from domain.common.exceptions import BusinessException
from shared.codes import BusinessCode


def get_realtime_service(request: Request) -> RealtimeService:
    """从 app.state 获取 lifespan 中构建的 RealtimeService"""
    svc = getattr(request.app.state, "realtime_service", None)
    if svc is None:
        raise BusinessException(
            code=BusinessCode.SERVICE_UNAVAILABLE,
            message="Realtime service not initialized",
            error_type="ServiceUnavailable",
        )
    return svc
