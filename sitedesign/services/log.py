"""
日志服务

基于 loguru 的日志门面，统一输出格式为 `command: info`，
异常通过 `e=` 关键字附加，会在日志中输出完整的堆栈。

使用示例:
```python
from sitedesign.services.log import logger

logger.info("主题已保存", "ThemeManager")
logger.error("读取组件失败", "ComponentManager", e=e)
```
"""

from pathlib import Path
import sys
from typing import Any

from loguru import logger as _loguru_logger

from sitedesign.configs.path_config import LOG_PATH

LOG_FORMAT = (
    "<g>{time:MM-DD HH:mm:ss}</g> "
    "[<lvl>{level}</lvl>] "
    "<c><u>{name}</u></c> | "
    "{message}"
)


class Logger:
    """
    日志门面

    各服务通过构造参数注入该对象，未注入时使用模块级的 `logger`。
    """

    def __init__(self, name: str = "sitedesign"):
        self.name = name
        self._logger = _loguru_logger.bind(service=name)

    @staticmethod
    def _format(info: str, command: str | None, extra: dict[str, Any]) -> str:
        message = f"{command}: {info}" if command else info
        if extra:
            detail = " ".join(f"{k}={v}" for k, v in extra.items())
            message = f"{message} [{detail}]"
        return message

    def _log(
        self,
        level: str,
        info: str,
        command: str | None = None,
        e: Exception | None = None,
        **extra: Any,
    ):
        message = self._format(info, command, extra)
        if e:
            self._logger.opt(exception=e, depth=2).log(level, message)
        else:
            self._logger.opt(depth=2).log(level, message)

    def trace(self, info: str, command: str | None = None, **extra: Any):
        self._log("TRACE", info, command, **extra)

    def debug(self, info: str, command: str | None = None, **extra: Any):
        self._log("DEBUG", info, command, **extra)

    def info(self, info: str, command: str | None = None, **extra: Any):
        self._log("INFO", info, command, **extra)

    def success(self, info: str, command: str | None = None, **extra: Any):
        self._log("SUCCESS", info, command, **extra)

    def warning(
        self,
        info: str,
        command: str | None = None,
        *,
        e: Exception | None = None,
        **extra: Any,
    ):
        self._log("WARNING", info, command, e, **extra)

    def error(
        self,
        info: str,
        command: str | None = None,
        *,
        e: Exception | None = None,
        **extra: Any,
    ):
        self._log("ERROR", info, command, e, **extra)


def setup_logging(level: str = "INFO", log_dir: Path | None = LOG_PATH):
    """配置日志输出

    参数:
        level: 日志等级
        log_dir: 日志文件目录，为 None 时只输出到终端
    """
    _loguru_logger.remove()
    _loguru_logger.add(sys.stderr, level=level, format=LOG_FORMAT, diagnose=False)
    if log_dir:
        log_dir.mkdir(parents=True, exist_ok=True)
        _loguru_logger.add(
            log_dir / "{time:YYYY-MM-DD}.log",
            level=level,
            format=LOG_FORMAT,
            rotation="00:00",
            retention="10 days",
            encoding="utf-8",
            diagnose=False,
        )


logger = Logger()

__all__ = ["Logger", "logger", "setup_logging"]
