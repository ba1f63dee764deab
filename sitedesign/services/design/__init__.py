"""
设计服务

- `TemplateRenderer`: 模板 DSL 渲染与主题 CSS 生成
- `ComponentManager`: 组件目录、组件渲染与资源打包
- `BootstrapAdapter`: 主题到 Bootstrap 变量的映射
- `ThemeManager`: 主题读写、版本历史与回滚
- `PreviewService`: 有时限的主题预览
- `DesignService`: 以上服务的组合入口
"""

from .adapter import BootstrapAdapter
from .components import ComponentManager
from .config import ListOptions, PreviewOptions, RenderOptions, ThemeManagerOptions
from .models import (
    ApplyPreviewResult,
    ApplyTemplateResult,
    BundleItem,
    ComponentBundle,
    ComponentConfig,
    ComponentOption,
    ComponentSummary,
    CustomizeThemeResult,
    Preview,
    PreviewDescriptor,
    PreviewResult,
    PublishResult,
    RenderedComponent,
    Template,
    TemplateSummary,
    Theme,
    ThemePreview,
    Typography,
)
from .preview import PreviewService
from .renderer import BootstrapPageOptions, RendererMode, TemplateRenderer
from .service import DesignService, SiteProvider, is_bootstrap_theme
from .template_manager import TemplateManager
from .theme_manager import ThemeManager

__all__ = [
    "ApplyPreviewResult",
    "ApplyTemplateResult",
    "BootstrapAdapter",
    "BootstrapPageOptions",
    "BundleItem",
    "ComponentBundle",
    "ComponentConfig",
    "ComponentManager",
    "ComponentOption",
    "ComponentSummary",
    "CustomizeThemeResult",
    "DesignService",
    "ListOptions",
    "Preview",
    "PreviewDescriptor",
    "PreviewOptions",
    "PreviewResult",
    "PreviewService",
    "PublishResult",
    "RenderOptions",
    "RenderedComponent",
    "RendererMode",
    "SiteProvider",
    "Template",
    "TemplateManager",
    "TemplateRenderer",
    "TemplateSummary",
    "Theme",
    "ThemeManager",
    "ThemeManagerOptions",
    "ThemePreview",
    "Typography",
    "is_bootstrap_theme",
]
