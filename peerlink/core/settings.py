"""
peerlink.core.settings
~~~~~~~~~~~~~~~~~~~~~~

集中式配置管理，基于 pydantic-settings 自动从 ``.env`` 文件加载。

支持多环境配置（dev / test / prod），加载顺序为:
  1. 环境变量（最高优先级）
  2. ``.env.{ENVIRONMENT}`` 环境专属文件
  3. ``.env`` 基础文件
  4. 字段默认值（最低优先级）
"""
from __future__ import annotations

import os
from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# 读取当前环境标识（在 Settings 类定义之前，用于决定加载哪个 .env 文件）
_CURRENT_ENV: str = os.getenv("ENVIRONMENT", "dev")


class Settings(BaseSettings):
    """全局配置对象，字段值按如下优先级加载：环境变量 > .env.{env} > .env > 默认值。"""

    # ── 基础 ──────────────────────────────────────────────────────────
    PROJECT_NAME: str = Field(default="peerlink", description="项目名称")
    VERSION: str = Field(default="0.1.0", description="版本号")
    ENVIRONMENT: Literal["dev", "test", "prod"] = Field(
        default="dev",
        description="运行环境：dev / test / prod",
    )

    # ── 服务 ──────────────────────────────────────────────────────────
    HOST: str = Field(default="0.0.0.0", description="服务监听地址")
    PORT: int = Field(default=3001, description="服务监听端口")
    LOG_LEVEL: str = Field(default="INFO", description="日志级别（可被环境属性覆盖）")
    CORS_ORIGIN: str = Field(
        default="https://yourdomain.com",
        description="prod 环境允许的跨域来源",
    )
    STATIC_DIR: str = Field(
        default="public",
        description="浏览器客户端静态文件目录（不存在则不挂载）",
    )

    # ── 防刷限流 ──────────────────────────────────────────────────────
    MAX_MESSAGES_PER_MINUTE: int = Field(default=10, description="每分钟最多聊天消息数")
    MAX_ROOMS_PER_HOUR: int = Field(default=5, description="每小时最多加入房间次数")
    MIN_TIME_BETWEEN_MESSAGES_MS: int = Field(
        default=1000,
        description="两条聊天消息之间的最小间隔（毫秒）",
    )
    MAX_MESSAGE_LENGTH: int = Field(default=500, description="聊天消息最大长度")
    MAX_USERNAME_LENGTH: int = Field(default=20, description="用户名最大长度")
    STATS_RATE_LIMIT: str = Field(
        default="10/second",
        description="统计接口的 HTTP 限流规则（slowapi 语法）",
    )

    # ── 中继 ──────────────────────────────────────────────────────────
    GUEST_NAME: str = Field(default="Guest", description="未设置昵称时的聊天作者名")
    OUTBOX_MAX_SIZE: int = Field(
        default=256,
        description="单个连接待发送队列的最大长度，满则丢弃",
    )

    # ── Pydantic Settings ─────────────────────────────────────────────
    # 先加载 .env.{env} 再加载 .env，前者优先级更高
    model_config = SettingsConfigDict(
        env_file=(f".env.{_CURRENT_ENV}", ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── 环境判断 ──────────────────────────────────────────────────────

    @property
    def is_prod(self) -> bool:
        """当前是否为生产环境。"""
        return self.ENVIRONMENT == "prod"

    @property
    def is_test(self) -> bool:
        """当前是否为测试环境。"""
        return self.ENVIRONMENT == "test"

    @property
    def is_dev(self) -> bool:
        """当前是否为开发环境。"""
        return self.ENVIRONMENT == "dev"

    # ── 环境差异化行为 ────────────────────────────────────────────────

    @property
    def debug(self) -> bool:
        """是否开启 debug 模式。仅 dev 环境开启。"""
        return self.is_dev

    @property
    def reload(self) -> bool:
        """是否开启热重载。仅 dev 环境开启。"""
        return self.is_dev

    @property
    def effective_log_level(self) -> str:
        """根据环境自动推断日志级别。

        - dev  → INFO
        - test → DEBUG（方便排查测试失败）
        - prod → WARNING（减少噪音）

        如果环境变量中显式设置了 LOG_LEVEL，会覆盖此默认推断。
        """
        env_log = os.getenv("LOG_LEVEL")
        if env_log:
            return env_log
        return {
            "dev": "INFO",
            "test": "DEBUG",
            "prod": "WARNING",
        }.get(self.ENVIRONMENT, "INFO")

    @property
    def cors_origins(self) -> list[str]:
        """允许的 CORS 来源。非 prod 环境放开全部，方便本地调试。"""
        if self.is_prod:
            return [self.CORS_ORIGIN]
        return ["*"]


@lru_cache
def get_settings() -> Settings:
    """获取全局 Settings 单例（带缓存，避免重复解析 .env）。"""
    return Settings()


settings: Settings = get_settings()
