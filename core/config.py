"""
配置文件 - 项目配置管理
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator
from typing import Optional


class Settings(BaseSettings):
    """项目配置"""

    # 基础配置
    PROJECT_NAME: str = Field(default="Presence Hub")
    VERSION: str = Field(default="1.0.0")
    DEBUG: bool = Field(default=False)
    LOG_LEVEL: Optional[str] = Field(default=None, description="覆盖日志级别, 例如 DEBUG / WARNING")

    # 监听地址；PORT 是唯一必需的部署参数
    HOST: str = Field(default="0.0.0.0")
    PORT: int = Field(default=3000)

    # CORS配置
    CORS_ORIGINS: list = Field(default=["*"])

    # Realtime/WebSocket 配置
    REALTIME_WS_PATH: str = Field(default="/ws")
    REALTIME_WS_SEND_QUEUE_MAX: int = Field(default=100)
    REALTIME_WS_SEND_OVERFLOW_POLICY: str = Field(
        default="drop_oldest",
        description="队列溢出策略: drop_oldest | drop_new | disconnect",
    )
    # 0 disables idle pings; the transport is then expected to detect dead peers itself
    REALTIME_WS_IDLE_PING_INTERVAL_S: float = Field(default=0.0)
    REALTIME_WS_PONG_GRACE_S: float = Field(default=10.0)
    REALTIME_WS_MISSED_PING_LIMIT: int = Field(default=2)
    # Re-joining a different room announces a leave in the old room first
    REALTIME_LEAVE_ON_REJOIN: bool = Field(default=True)

    # pydantic-settings v2 configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="allow",
        env_nested_delimiter="__",
    )

    @field_validator("REALTIME_WS_SEND_OVERFLOW_POLICY", mode="before")
    @classmethod
    def _normalize_overflow_policy(cls, v):
        if isinstance(v, str):
            return v.strip().lower() or "drop_oldest"
        return v

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def _parse_cors_origins(cls, v):
        """允许 JSON 字符串或逗号分隔字符串两种格式。"""
        if isinstance(v, list):
            return v
        if isinstance(v, str):
            s = v.strip()
            if s.startswith("[") and s.endswith("]"):
                import json
                try:
                    arr = json.loads(s)
                    if isinstance(arr, list):
                        return arr
                except Exception:
                    pass
            if "," in s:
                return [item.strip() for item in s.split(",") if item.strip()]
            return [s]
        return v


settings = Settings()
