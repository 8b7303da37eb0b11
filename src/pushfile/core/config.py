"""基于 Pydantic Settings 的配置管理，支持环境变量与 .env 分层加载。"""

import json
from functools import lru_cache
from typing import Annotated, Any, Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

APP_VERSION = "0.1.0"


class Settings(BaseSettings):
    """
    全局配置。环境变量前缀 PUSHFILE_，优先级：环境变量 > .env > 默认值。
    """

    model_config = SettingsConfigDict(
        env_prefix="PUSHFILE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    env: Literal["development", "staging", "production"] = "development"
    port: int = 8072
    log_level: str = "INFO"
    # 日志目录，按小时轮转；app.log 为全部级别，error.log 仅 ERROR
    log_dir: str = "./logs"

    # 配置目录：所有可访问文件都必须位于其下
    config_dir: str = "conf"
    # config_dir 在磁盘上不存在时，到该包的内置资源中查找同名目录；空表示不回退
    config_resource_package: str = "pushfile.resources"

    # 隐藏文件名（不区分大小写，精确匹配相对路径），空表示不隐藏。
    # 环境变量可写 JSON 数组（文件名含逗号时使用）或逗号分隔串
    hidden_files: Annotated[list[str], NoDecode] = []

    # 写入策略：atomic 先写临时文件再原子替换；overwrite 原地截断覆盖
    write_strategy: Literal["atomic", "overwrite"] = "atomic"

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        allowed = ("DEBUG", "INFO", "WARNING", "ERROR")
        u = v.upper()
        if u not in allowed:
            raise ValueError(f"log_level must be one of {allowed}")
        return u

    @field_validator("hidden_files", mode="before")
    @classmethod
    def parse_hidden_files(cls, v: Any) -> Any:
        if not isinstance(v, str):
            return v
        if v.strip().startswith("["):
            return json.loads(v)
        return v.split(",")

    @field_validator("config_dir")
    @classmethod
    def validate_config_dir(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("config_dir must not be empty")
        return v.strip()

    def get_hidden_files(self) -> list[str]:
        """返回隐藏文件名列表，保持配置顺序。"""
        return [name.strip() for name in self.hidden_files if name.strip()]

    @property
    def is_production(self) -> bool:
        return self.env == "production"


@lru_cache
def get_settings() -> Settings:
    """获取单例配置，便于测试时覆盖。"""
    return Settings()
