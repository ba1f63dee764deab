"""
设计服务的共享常量与默认值
"""

from dataclasses import dataclass, field
from typing import Any

LOG_COMMAND = "DesignService"

# 每个主题保留的历史版本数量
MAX_THEME_HISTORY = 10

# 主题缓存时间（秒）
THEME_CACHE_EXPIRE = 3600

# 预览默认有效期（秒）
DEFAULT_PREVIEW_EXPIRE = 30 * 60

# 模板默认分类
DEFAULT_TEMPLATE_CATEGORY = "ecommerce"

# 站点主题ID前缀
SITE_THEME_PREFIX = "site_"

# 文档存储集合名称
THEMES_COLLECTION = "themes"
HISTORY_COLLECTION = "theme_history"
PREVIEWS_COLLECTION = "previews"

DEFAULT_COLORS: dict[str, str] = {
    "primary": "#3498db",
    "secondary": "#2ecc71",
    "accent": "#e74c3c",
    "background": "#ffffff",
    "text": "#333333",
    "border": "#dddddd",
    "success": "#2ecc71",
    "warning": "#f39c12",
    "error": "#e74c3c",
    "info": "#3498db",
}

DEFAULT_FONT_FAMILY: dict[str, str] = {
    "base": 'Roboto, "Helvetica Neue", Arial, sans-serif',
    "headings": 'Roboto, "Helvetica Neue", Arial, sans-serif',
    "monospace": '"Roboto Mono", Consolas, monospace',
}

DEFAULT_FONT_SIZE: dict[str, str] = {
    "base": "16px",
    "h1": "2.5rem",
    "h2": "2rem",
    "h3": "1.75rem",
    "h4": "1.5rem",
    "h5": "1.25rem",
    "h6": "1rem",
    "small": "0.875rem",
}

DEFAULT_FONT_WEIGHT: dict[str, int] = {
    "light": 300,
    "normal": 400,
    "medium": 500,
    "bold": 700,
}

DEFAULT_LINE_HEIGHT: dict[str, float] = {
    "tight": 1.2,
    "base": 1.5,
    "loose": 1.8,
}

DEFAULT_SPACING: dict[str, str] = {
    "base": "1rem",
    "xs": "0.25rem",
    "sm": "0.5rem",
    "md": "1rem",
    "lg": "1.5rem",
    "xl": "2rem",
    "xxl": "3rem",
}


@dataclass
class ListOptions:
    """列表查询选项"""

    # 只返回该分类下的条目，为 None 时返回全部
    category: str | None = None


@dataclass
class RenderOptions:
    """模板渲染选项"""

    # 模板分类，为 None 时使用渲染器的默认分类
    category: str | None = None
    # 渲染前需要预加载的组件，格式为 "category/id"
    components: list[str] = field(default_factory=list)


@dataclass
class PreviewOptions:
    """预览创建选项"""

    # 有效期（秒），为 None 时使用服务默认值
    expiration: int | None = None
    # 附加在预览上的元数据
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class ThemeManagerOptions:
    """主题管理器选项"""

    # 每个主题保留的历史版本数
    max_history: int = MAX_THEME_HISTORY
    # 主题缓存时间（秒）
    cache_expire: int = THEME_CACHE_EXPIRE
    # generate_theme_preview 生成的缓存预览有效期（秒）
    preview_expire: int = DEFAULT_PREVIEW_EXPIRE
