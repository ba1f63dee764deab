"""
设计服务

组装模板目录、渲染器、组件管理器、主题管理器与预览服务，
并在主题变化时通知站点提供方。
"""

from collections.abc import Awaitable, Callable, Mapping
from typing import Any, Protocol

from sitedesign.configs.config import DesignConfig
from sitedesign.services.cache import DesignCache, build_cache
from sitedesign.services.log import Logger, logger as default_logger
from sitedesign.services.store import (
    DocumentStore,
    FileAssetStore,
    JsonFileStore,
)
from sitedesign.utils.time_utils import TimeUtils

from .adapter import BootstrapAdapter
from .components import ComponentManager
from .config import (
    LOG_COMMAND,
    ListOptions,
    PreviewOptions,
    RenderOptions,
    ThemeManagerOptions,
)
from .models import (
    ApplyPreviewResult,
    ApplyTemplateResult,
    BundleItem,
    ComponentBundle,
    ComponentConfig,
    ComponentSummary,
    CustomizeThemeResult,
    PreviewResult,
    PublishResult,
    Template,
    TemplateSummary,
    Theme,
)
from .preview import PreviewService
from .renderer import RendererMode, TemplateRenderer
from .template_manager import TemplateManager
from .theme_manager import ThemeManager

BOOTSTRAP_TEMPLATE_PREFIX = "bs-"
BOOTSTRAP_PREVIEW_TEMPLATE = "bs-ecommerce"

DEFAULT_BUNDLE: list[BundleItem] = [
    BundleItem(id="header/modern-header"),
    BundleItem(
        id="product/product-card",
        options={"style": "default", "showRatings": True},
    ),
    BundleItem(id="footer/standard-footer"),
]

BOOTSTRAP_BUNDLE: list[BundleItem] = [
    BundleItem(id="bootstrap/navbar/bs-navbar"),
    BundleItem(
        id="bootstrap/product/bs-product-card",
        options={"style": "default", "showRatings": True},
    ),
    BundleItem(id="bootstrap/footer/bs-footer"),
]


class SiteProvider(Protocol):
    """
    站点提供方

    以下回调都是可选的，提供方没有实现时会被静默跳过:
    - `async update_site_theme(site_id, theme_json)`
    - `async publish_site_theme(site_id, theme_json)`
    """


ProviderResolver = Callable[[str], Awaitable[SiteProvider | None]]
"""根据站点ID获取站点提供方"""


def is_bootstrap_theme(theme: Theme | Mapping[str, Any]) -> bool:
    """主题是否由 Bootstrap 模板产生或被标记为 Bootstrap 主题"""
    metadata = (
        theme.metadata if isinstance(theme, Theme) else theme.get("metadata")
    ) or {}
    template_id = metadata.get("templateId") or ""
    return template_id.startswith(BOOTSTRAP_TEMPLATE_PREFIX) or bool(
        metadata.get("bootstrap")
    )


def preview_mock_data(site_id: str) -> dict[str, Any]:
    """渲染预览页面时使用的示例数据"""
    products = [
        {
            "id": f"product-{i + 1}",
            "name": f"Produto {i + 1}",
            "price": round(99.99 + i * 10, 2),
            "compare_at_price": round(129.99 + i * 10, 2) if i % 3 == 0 else None,
            "discount": 20 if i % 3 == 0 else None,
            "is_new": i % 4 == 0,
            "rating": 3 + i % 3,
            "reviews_count": 5 + i * 2,
            "images": ["https://via.placeholder.com/600x600"],
            "url": f"/products/product-{i + 1}",
            "short_description": "Descrição curta do produto.",
        }
        for i in range(8)
    ]
    return {
        "site": {
            "name": f"Site {site_id}",
            "logo": "https://example.com/logo.png",
            "description": "Descrição do site",
            "social": {
                "facebook": "example",
                "instagram": "example",
                "twitter": "example",
            },
            "contact": {"email": "contato@example.com", "phone": "(11) 1234-5678"},
        },
        "products": {"featured": products[:4], "new_arrivals": products[4:]},
        "categories": {
            "featured": [
                {
                    "name": f"Categoria {i}",
                    "url": f"/category-{i}",
                    "image": "https://via.placeholder.com/300x200",
                }
                for i in range(1, 5)
            ]
        },
        "navigation": {
            "main": [
                {"title": "Home", "url": "/", "isActive": True},
                {"title": "Produtos", "url": "/products/", "isActive": False},
                {"title": "Sobre", "url": "/about/", "isActive": False},
                {"title": "Contato", "url": "/contact/", "isActive": False},
            ]
        },
        "settings": {"showRatings": True, "enableQuickView": True},
        "cart": {"count": 2},
    }


class DesignService:
    def __init__(
        self,
        templates: TemplateManager,
        renderer: TemplateRenderer,
        components: ComponentManager,
        themes: ThemeManager,
        previews: PreviewService,
        provider_resolver: ProviderResolver | None = None,
        logger: Logger | None = None,
    ):
        """
        设计服务

        参数:
            templates: 模板目录
            renderer: 模板渲染器，FRAMEWORK 模式下会为 Bootstrap 主题生成 Bootstrap CSS
            components: 组件管理器
            themes: 主题管理器
            previews: 预览服务
            provider_resolver: 站点提供方解析函数，为 None 时不通知提供方
            logger: 日志
        """
        self.templates = templates
        self.renderer = renderer
        self.components = components
        self.themes = themes
        self.previews = previews
        self.provider_resolver = provider_resolver
        self.logger = logger or default_logger

    @classmethod
    def from_config(
        cls,
        config: DesignConfig | None = None,
        provider_resolver: ProviderResolver | None = None,
        cache: DesignCache | None = None,
        theme_store: DocumentStore | None = None,
        preview_store: DocumentStore | None = None,
        logger: Logger | None = None,
    ) -> "DesignService":
        """根据配置组装设计服务

        参数:
            config: 配置，为 None 时使用默认配置
            provider_resolver: 站点提供方解析函数
            cache: 缓存，为 None 时根据配置构建
            theme_store: 主题存储，为 None 时使用 themes_dir 下的 JSON 文件
            preview_store: 预览存储，为 None 时使用 previews_dir 下的 JSON 文件
            logger: 日志

        返回:
            DesignService: 设计服务
        """
        config = config or DesignConfig()
        logger = logger or default_logger
        if cache is None:
            cache = build_cache(config)
        adapter = None
        mode = RendererMode.PLAIN
        if config.framework_mode:
            mode = RendererMode.FRAMEWORK
            adapter = BootstrapAdapter(
                cache=cache,
                bootstrap_version=config.bootstrap_version,
                cache_expire=config.theme_cache_expire,
                logger=logger,
            )
        renderer = TemplateRenderer(
            FileAssetStore(config.templates_dir),
            FileAssetStore(config.components_dir),
            cache=cache,
            mode=mode,
            adapter=adapter,
            default_category=config.default_template_category,
            cache_expire=config.cache_expire,
            currency_format=config.currency,
            timezone=config.timezone,
            logger=logger,
        )
        themes = ThemeManager(
            theme_store or JsonFileStore(config.themes_dir),
            cache=cache,
            renderer=renderer,
            options=ThemeManagerOptions(
                max_history=config.max_history,
                cache_expire=config.theme_cache_expire,
                preview_expire=config.preview_expire,
            ),
            logger=logger,
        )
        previews = PreviewService(
            themes,
            preview_store or JsonFileStore(config.previews_dir),
            renderer=renderer,
            cache=cache,
            default_expire=config.preview_expire,
            logger=logger,
        )
        return cls(
            templates=TemplateManager(
                cache=cache, cache_expire=config.theme_cache_expire, logger=logger
            ),
            renderer=renderer,
            components=ComponentManager(
                FileAssetStore(config.components_dir),
                renderer=renderer,
                cache=cache,
                cache_expire=config.cache_expire,
                logger=logger,
            ),
            themes=themes,
            previews=previews,
            provider_resolver=provider_resolver,
            logger=logger,
        )

    async def _notify_provider(self, callback: str, site_id: str, theme: Theme):
        """调用站点提供方的回调，提供方或回调不存在时跳过"""
        if not self.provider_resolver:
            return
        provider = await self.provider_resolver(site_id)
        if provider is None:
            return
        handler = getattr(provider, callback, None)
        if not callable(handler):
            self.logger.debug(f"站点提供方未实现 {callback}，已跳过", LOG_COMMAND)
            return
        await handler(site_id, theme.to_json())

    async def _bootstrap_css(self, theme: Theme | Mapping[str, Any]) -> str | None:
        if self.renderer.adapter and is_bootstrap_theme(theme):
            return await self.renderer.adapter.generate_css_variables(theme)
        return None

    async def get_templates(
        self, options: ListOptions | None = None
    ) -> list[TemplateSummary]:
        return await self.templates.list_templates(options)

    async def get_template_by_id(self, template_id: str) -> Template:
        return await self.templates.get_template_by_id(template_id)

    async def get_components(
        self, options: ListOptions | None = None
    ) -> list[ComponentSummary] | dict[str, list[ComponentSummary]]:
        """获取组件列表，指定分类时返回该分类的列表，否则按分类分组返回"""
        if options and options.category:
            return await self.components.get_components_by_category(options.category)
        return await self.components.get_all_components()

    async def get_component(self, component_id: str, category: str) -> dict[str, Any]:
        config: ComponentConfig = await self.components.load_component_config(
            component_id, category
        )
        return {"id": component_id, "category": category, **config.to_json()}

    async def get_current_theme(self, site_id: str) -> Theme:
        return await self.themes.get_site_theme(site_id)

    async def apply_template(
        self, site_id: str, template_id: str
    ) -> ApplyTemplateResult:
        """将模板应用到站点

        参数:
            site_id: 站点ID
            template_id: 模板ID

        返回:
            ApplyTemplateResult: 新主题、模板与 Bootstrap CSS
        """
        template = await self.templates.get_template_by_id(template_id)
        theme = await self.themes.apply_template_theme(
            site_id, template.theme, template_id
        )
        is_bootstrap = (
            template_id.startswith(BOOTSTRAP_TEMPLATE_PREFIX)
            or template.category == "bootstrap"
        )
        bootstrap_css = None
        if is_bootstrap:
            if self.renderer.adapter:
                bootstrap_css = await self.renderer.adapter.generate_css_variables(
                    theme
                )
            else:
                self.logger.warning(
                    f"已应用 Bootstrap 模板 {template_id}，"
                    "但渲染器未启用 Bootstrap 模式",
                    LOG_COMMAND,
                )
        await self._notify_provider("update_site_theme", site_id, theme)
        return ApplyTemplateResult(
            theme=theme.to_json(),
            template=template,
            bootstrap_css=bootstrap_css,
            applied_at=TimeUtils.now_iso(),
        )

    async def customize_theme(
        self, site_id: str, customizations: Mapping[str, Any]
    ) -> CustomizeThemeResult:
        """定制站点主题并通知站点提供方"""
        theme = await self.themes.customize_site_theme(site_id, customizations)
        bootstrap_css = await self._bootstrap_css(theme)
        await self._notify_provider("update_site_theme", site_id, theme)
        return CustomizeThemeResult(
            theme=theme.to_json(),
            css_variables=self.renderer.generate_theme_css(theme),
            bootstrap_css=bootstrap_css,
            updated_at=TimeUtils.now_iso(),
        )

    async def generate_preview(
        self,
        site_id: str,
        changes: Mapping[str, Any],
        options: PreviewOptions | None = None,
    ) -> PreviewResult:
        """创建预览"""
        descriptor = await self.previews.create_preview(site_id, changes, options)
        preview = await self.previews.get_preview(descriptor.id)
        return PreviewResult(
            **descriptor.model_dump(),
            bootstrap_css=await self._bootstrap_css(preview.theme),
        )

    async def render_preview(
        self, preview_id: str, mock_data: Mapping[str, Any] | None = None
    ) -> str:
        """使用示例数据渲染预览页面

        Bootstrap 主题使用 bootstrap 分类下的模板，其他主题使用 ecommerce 分类。
        """
        preview = await self.previews.get_preview(preview_id)
        data = {**preview_mock_data(preview.site_id), **(mock_data or {})}
        if not is_bootstrap_theme(preview.theme):
            return await self.previews.render_preview(
                preview_id, data, RenderOptions(category="ecommerce")
            )
        metadata = preview.theme.get("metadata") or {}
        return await self.previews.render_preview(
            preview_id,
            data,
            RenderOptions(category="bootstrap"),
            template_id=metadata.get("templateId") or BOOTSTRAP_PREVIEW_TEMPLATE,
        )

    async def apply_preview(self, preview_id: str) -> ApplyPreviewResult:
        result = await self.previews.apply_preview(preview_id)
        await self._notify_provider(
            "update_site_theme", result.site_id, Theme.from_json(result.theme)
        )
        return result

    async def publish_changes(self, site_id: str) -> PublishResult:
        """发布站点当前主题"""
        theme = await self.themes.get_site_theme(site_id)
        await self._notify_provider("publish_site_theme", site_id, theme)
        return PublishResult(
            theme=theme.to_json(),
            css_variables=self.renderer.generate_theme_css(theme),
            bootstrap_css=await self._bootstrap_css(theme),
            published_at=TimeUtils.now_iso(),
        )

    async def create_asset_bundle(self, site_id: str) -> ComponentBundle:
        """为站点当前主题打包默认组件的样式与脚本"""
        theme = await self.themes.get_site_theme(site_id)
        bootstrap = is_bootstrap_theme(theme)
        bundle = await self.components.create_component_bundle(
            site_id,
            list(BOOTSTRAP_BUNDLE if bootstrap else DEFAULT_BUNDLE),
            theme,
        )
        bundle.bootstrap_css = await self._bootstrap_css(theme)
        return bundle
