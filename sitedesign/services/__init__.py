"""
SiteDesign - 核心服务模块

主要服务包括：
- 缓存 (cache): 基于 aiocache 的可选缓存层。
- 存储 (store): 模板/组件资源存储与 JSON 文档存储。
- 日志服务 (log): 带命令上下文的日志记录器。
- 设计服务 (design): 主题、模板、组件、Bootstrap 适配与预览。
"""

from .cache import DesignCache, build_cache
from .design import DesignService
from .log import logger, setup_logging

__all__ = [
    "DesignCache",
    "DesignService",
    "build_cache",
    "logger",
    "setup_logging",
]
