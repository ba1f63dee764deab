"""
设计服务的全局配置

配置以 YAML 文件保存，使用 ruamel.yaml 读写以保留注释与缩进。
"""

from pathlib import Path

from pydantic import BaseModel, Field, ValidationError
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from sitedesign.utils.exception import DesignConfigError

from .path_config import (
    COMPONENTS_PATH,
    CONFIG_PATH,
    LOG_PATH,
    PREVIEW_PATH,
    TEMPLATES_PATH,
    THEMES_PATH,
)

_yaml = YAML(pure=True)
_yaml.indent = 2
_yaml.allow_unicode = True


class CacheMode:
    # 内存缓存
    MEMORY = "MEMORY"
    # Redis缓存
    REDIS = "REDIS"
    # 不使用缓存，每次读取都会重新计算
    NONE = "NONE"


class CurrencyFormat(BaseModel):
    """货币格式"""

    symbol: str = "R$"
    """货币符号"""
    decimal_separator: str = ","
    """小数分隔符"""
    thousands_separator: str = "."
    """千位分隔符"""
    digits: int = 2
    """小数位数"""


class DesignConfig(BaseModel):
    """
    设计服务配置
    """

    themes_dir: Path = THEMES_PATH
    """主题文档目录"""
    templates_dir: Path = TEMPLATES_PATH
    """模板源码目录"""
    components_dir: Path = COMPONENTS_PATH
    """组件源码目录"""
    previews_dir: Path = PREVIEW_PATH
    """预览数据目录"""
    log_dir: Path = LOG_PATH
    """日志目录"""
    log_level: str = "INFO"
    """日志等级"""
    cache_mode: str = CacheMode.MEMORY
    """缓存模式: MEMORY(内存缓存), REDIS(Redis缓存), NONE(不使用缓存)"""
    redis_host: str | None = None
    """redis地址"""
    redis_port: int | None = None
    """redis端口"""
    redis_password: str | None = None
    """redis密码"""
    cache_expire: int = 600
    """模板/组件源码缓存时间（秒）"""
    theme_cache_expire: int = 3600
    """主题缓存时间（秒）"""
    preview_expire: int = 1800
    """预览默认有效期（秒）"""
    max_history: int = 10
    """每个主题保留的历史版本数"""
    bootstrap_version: str = "5.3.0"
    """Bootstrap 版本"""
    framework_mode: bool = False
    """是否启用 Bootstrap 适配渲染"""
    default_template_category: str = "ecommerce"
    """默认模板分类"""
    timezone: str = "UTC"
    """日期格式化使用的时区"""
    currency: CurrencyFormat = Field(default_factory=CurrencyFormat)
    """货币格式"""


def load_config(path: Path = CONFIG_PATH) -> DesignConfig:
    """读取配置文件，文件不存在时返回默认配置

    参数:
        path: 配置文件路径

    返回:
        DesignConfig: 配置
    """
    if not path.exists():
        return DesignConfig()
    try:
        with path.open(encoding="utf8") as f:
            data = _yaml.load(f) or {}
    except YAMLError as e:
        raise DesignConfigError(f"配置文件格式错误: {path}", path=str(path)) from e
    if not isinstance(data, dict):
        raise DesignConfigError(f"配置文件内容必须为映射: {path}", path=str(path))
    try:
        return DesignConfig(**data)
    except ValidationError as e:
        raise DesignConfigError(f"配置项无效: {e}", path=str(path)) from e


def save_config(config: DesignConfig, path: Path = CONFIG_PATH):
    """保存配置文件

    参数:
        config: 配置
        path: 配置文件路径
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf8") as f:
        _yaml.dump(config.model_dump(mode="json"), f)
