#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
系统配置管理模块
System Configuration Management Module
"""

from typing import Annotated, List, Optional
from pydantic import Field, field_validator

try:
    from pydantic_settings import BaseSettings, NoDecode
except ImportError:
    # 如果 pydantic-settings 没有安装，提供错误信息
    raise ImportError(
        "需要安装 pydantic-settings 包。请运行: pip install pydantic-settings\n"
        "Pydantic v2 将 BaseSettings 移动到了单独的包中。"
    )

# 候选路径：绝对路径优先，最后是交给 PATH 解析的裸命令名
DEFAULT_MT_CANDIDATES = ["/usr/bin/mt", "/usr/bin/mt-st", "/bin/mt", "/bin/mt-st", "mt", "mt-st"]
DEFAULT_SG_LOGS_CANDIDATES = ["/usr/bin/sg_logs", "/bin/sg_logs", "sg_logs"]
DEFAULT_SG_READ_ATTR_CANDIDATES = ["/usr/bin/sg_read_attr", "/bin/sg_read_attr", "sg_read_attr"]


class Settings(BaseSettings):
    """系统配置类"""

    # 应用配置
    APP_NAME: str = "LTO 磁带驱动器控制"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False

    # 磁带设备配置
    TAPE_DEVICE_PATH: str = "/dev/nst0"

    # 工具路径（手动指定时跳过自动发现）
    MT_PATH: Optional[str] = None
    SG_LOGS_PATH: Optional[str] = None
    SG_READ_ATTR_PATH: Optional[str] = None

    # 工具发现配置
    MT_CANDIDATES: Annotated[List[str], NoDecode] = Field(default_factory=lambda: list(DEFAULT_MT_CANDIDATES))
    SG_LOGS_CANDIDATES: Annotated[List[str], NoDecode] = Field(default_factory=lambda: list(DEFAULT_SG_LOGS_CANDIDATES))
    SG_READ_ATTR_CANDIDATES: Annotated[List[str], NoDecode] = Field(default_factory=lambda: list(DEFAULT_SG_READ_ATTR_CANDIDATES))
    UTILS_PROBE_ARG: str = "-h"
    UTILS_DISCOVER_TIMEOUT: float = 1.0  # 每个工具的探测总时限（秒）

    # 命令执行配置
    TRACE_TAPE_COMMANDS: bool = False  # 记录每条磁带命令及其原始输出
    TAPE_COMMAND_TIMEOUT: Optional[float] = None  # 单个命令行操作的时限（秒），None 表示不限时
    COUNT_FILES_TIMEOUT: float = 6 * 3600.0  # 统计文件数需要遍历整盘磁带

    # 日志配置
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = "logs/ltoctl.log"
    LOG_BACKUP_COUNT: int = 30

    @field_validator('MT_CANDIDATES', 'SG_LOGS_CANDIDATES', 'SG_READ_ATTR_CANDIDATES', mode='before')
    @classmethod
    def split_candidates(cls, v):
        """允许使用逗号分隔的字符串配置候选路径"""
        if isinstance(v, str):
            return [p.strip() for p in v.split(",") if p.strip()]
        return v

    @field_validator('MT_PATH', 'SG_LOGS_PATH', 'SG_READ_ATTR_PATH', 'TAPE_COMMAND_TIMEOUT', mode='before')
    @classmethod
    def empty_to_none(cls, v):
        """将空字符串转换为None"""
        if v == '':
            return None
        return v

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True
        extra = "ignore"


settings = Settings()


def get_settings() -> Settings:
    """获取配置实例"""
    return settings


def reload_settings() -> Settings:
    """重新加载配置"""
    global settings
    settings = Settings()
    return settings
