import asyncio
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError
import ujson as json

from sitedesign.services.cache import DesignCache
from sitedesign.services.log import Logger, logger as default_logger
from sitedesign.services.store import AssetStore
from sitedesign.utils.exception import (
    ComponentNotFoundError,
    DesignError,
    DesignValidationError,
)

from . import dsl
from .models import (
    BundleItem,
    ComponentBundle,
    ComponentConfig,
    ComponentOption,
    ComponentSummary,
    RenderedComponent,
    Theme,
)
from .renderer import TemplateRenderer

LOG_COMMAND = "ComponentManager"

CONFIG_FILE = "config.json"
STYLE_FILE = "style.css"
SCRIPT_FILE = "script.js"


class ComponentManager:
    """
    组件管理器

    组件目录结构为 `{category}/{id}/`，其中 `config.json` 必须存在，
    `style.css` 与 `script.js` 可选，缺失时视为空字符串。
    """

    def __init__(
        self,
        store: AssetStore,
        renderer: TemplateRenderer | None = None,
        cache: DesignCache | None = None,
        cache_expire: int | None = None,
        logger: Logger | None = None,
    ):
        self.store = store
        self.renderer = renderer
        self.cache = cache
        self.cache_expire = cache_expire
        self.logger = logger or default_logger

    async def _cache_get(self, key: str) -> Any:
        if self.cache:
            return await self.cache.get(key)
        return None

    async def _cache_set(self, key: str, value: Any):
        if self.cache:
            await self.cache.set(key, value, self.cache_expire)

    async def load_component_config(
        self, component_id: str, category: str
    ) -> ComponentConfig:
        """加载组件配置

        参数:
            component_id: 组件ID
            category: 组件分类

        返回:
            ComponentConfig: 组件配置

        异常:
            ComponentNotFoundError: config.json 不存在
            DesignValidationError: config.json 格式错误
        """
        key = f"config:{category}:{component_id}"
        if (cached := await self._cache_get(key)) is not None:
            return ComponentConfig.model_validate(cached)
        try:
            text = await self.store.read_text(category, component_id, CONFIG_FILE)
        except FileNotFoundError as e:
            raise ComponentNotFoundError(
                f"{category}/{component_id}",
                self.store.describe(category, component_id, CONFIG_FILE),
            ) from e
        try:
            config = ComponentConfig.model_validate(json.loads(text))
        except (ValueError, ValidationError) as e:
            raise DesignValidationError(
                f"组件配置无效: {category}/{component_id}: {e}",
                component_id=component_id,
                category=category,
            ) from e
        await self._cache_set(key, config.to_json())
        return config

    async def _load_optional(self, kind: str, component_id: str, category: str) -> str:
        key = f"{kind}:{category}:{component_id}"
        if (cached := await self._cache_get(key)) is not None:
            return cached
        filename = STYLE_FILE if kind == "styles" else SCRIPT_FILE
        try:
            content = await self.store.read_text(category, component_id, filename)
        except (FileNotFoundError, DesignError):
            return ""
        await self._cache_set(key, content)
        return content

    async def load_component_styles(self, component_id: str, category: str) -> str:
        """加载组件样式，不存在或读取失败时返回空字符串"""
        return await self._load_optional("styles", component_id, category)

    async def load_component_script(self, component_id: str, category: str) -> str:
        """加载组件脚本，不存在或读取失败时返回空字符串"""
        return await self._load_optional("script", component_id, category)

    async def get_categories(self) -> list[str]:
        """获取所有组件分类"""
        try:
            return await self.store.list_dirs()
        except FileNotFoundError:
            self.logger.warning("组件目录不存在", LOG_COMMAND)
            return []

    async def get_components_by_category(self, category: str) -> list[ComponentSummary]:
        """获取分类下的所有组件，配置无效的组件会被忽略

        参数:
            category: 组件分类

        返回:
            list[ComponentSummary]: 组件摘要
        """
        try:
            component_ids = await self.store.list_dirs(category)
        except FileNotFoundError:
            return []
        result = []
        for component_id in component_ids:
            try:
                config = await self.load_component_config(component_id, category)
            except DesignError as e:
                self.logger.warning(
                    f"组件 {category}/{component_id} 无效，已忽略", LOG_COMMAND, e=e
                )
                continue
            result.append(
                ComponentSummary(
                    id=component_id,
                    category=category,
                    name=config.name or component_id,
                    description=config.description,
                    version=config.version,
                )
            )
        return result

    async def get_all_components(self) -> dict[str, list[ComponentSummary]]:
        """按分类获取所有组件"""
        return {
            category: await self.get_components_by_category(category)
            for category in await self.get_categories()
        }

    async def get_component_options(
        self, component_id: str, category: str
    ) -> list[ComponentOption]:
        """获取组件的可配置项"""
        config = await self.load_component_config(component_id, category)
        return config.options

    async def render_component(
        self,
        component_id: str,
        category: str,
        data: Mapping[str, Any] | None = None,
        custom_options: Mapping[str, Any] | None = None,
    ) -> RenderedComponent:
        """渲染组件

        组件选项为配置中声明的默认值，custom_options 中的同名键直接覆盖，
        不做深度合并。渲染时以 `options` 传入模板。

        参数:
            component_id: 组件ID
            category: 组件分类
            data: 渲染数据
            custom_options: 自定义选项

        返回:
            RenderedComponent: html/css/js 与组件配置
        """
        if not self.renderer:
            raise DesignValidationError("ComponentManager 未配置模板渲染器")
        config = await self.load_component_config(component_id, category)
        options = config.default_options()
        options.update(custom_options or {})
        render_data = {**(data or {}), "options": options}
        html, css, js = await asyncio.gather(
            self.renderer.render_component(component_id, category, render_data),
            self.load_component_styles(component_id, category),
            self.load_component_script(component_id, category),
        )
        return RenderedComponent(html=html, css=css, js=js, config=config)

    async def _load_bundle_item(self, item: BundleItem) -> tuple[str, str, str]:
        category, component_id = dsl.split_component_path(item.id)
        await self.load_component_config(component_id, category)
        css, js = await asyncio.gather(
            self.load_component_styles(component_id, category),
            self.load_component_script(component_id, category),
        )
        return f"{category}/{component_id}", css, js

    async def create_component_bundle(
        self,
        site_id: str,
        components: list[BundleItem | Mapping[str, Any] | str],
        theme_settings: Theme | Mapping[str, Any] | None = None,
    ) -> ComponentBundle:
        """打包多个组件的样式与脚本

        所有组件并发加载，结果按列表顺序拼接；加载失败的组件被跳过并记录警告。
        提供主题设置时，主题 CSS 位于样式最前面。

        参数:
            site_id: 站点ID
            components: 组件列表，元素为 BundleItem、{"id": ..., "options": ...}
                或 "category/id" 字符串
            theme_settings: 主题设置

        返回:
            ComponentBundle: 资源包
        """
        items = [
            BundleItem(id=c) if isinstance(c, str) else BundleItem.model_validate(c)
            for c in components
        ]
        results = await asyncio.gather(
            *(self._load_bundle_item(item) for item in items), return_exceptions=True
        )
        bundle = ComponentBundle()
        css_chunks: list[str] = []
        js_chunks: list[str] = []
        for item, result in zip(items, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                self.logger.warning(
                    f"加载组件 {item.id} 失败，已跳过",
                    LOG_COMMAND,
                    e=result,
                    site_id=site_id,
                )
                bundle.skipped.append(item.id)
                continue
            path, css, js = result
            bundle.components.append(path)
            if css:
                css_chunks.append(f"/* {path} */\n{css}")
            if js:
                js_chunks.append(f"/* {path} */\n{js}")
        if theme_settings:
            theme_css = TemplateRenderer.generate_theme_css(theme_settings)
            css_chunks.insert(0, f"/* Theme Variables */\n{theme_css}")
        bundle.css = "\n\n".join(css_chunks)
        bundle.js = "\n\n".join(js_chunks)
        self.logger.debug(
            f"站点 {site_id} 资源包: {len(bundle.components)} 个组件，"
            f"跳过 {len(bundle.skipped)} 个",
            LOG_COMMAND,
        )
        return bundle
