"""
模板渲染器

负责加载模板与组件源码、将模板指令转换为 Jinja2 语法并渲染，
以及从主题生成 CSS 自定义属性。

渲染器的变体在构造时确定:
- `RendererMode.PLAIN`: 通用渲染
- `RendererMode.FRAMEWORK`: 在通用渲染的基础上注入 Bootstrap 上下文、
  辅助函数，并把通用组件映射为 Bootstrap 组件
"""

import asyncio
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from jinja2 import (
    DictLoader,
    Environment,
    TemplateError,
    TemplateNotFound,
)
from jinja2 import TemplateSyntaxError as JinjaSyntaxError
from markupsafe import Markup, escape

from sitedesign.configs.config import CurrencyFormat
from sitedesign.services.cache import DesignCache
from sitedesign.services.log import Logger, logger as default_logger
from sitedesign.services.store import AssetStore
from sitedesign.utils.exception import (
    ComponentNotFoundError,
    DesignValidationError,
    TemplateNotFoundError,
    TemplateSyntaxError,
)

from . import dsl
from .adapter import BootstrapAdapter
from .config import DEFAULT_TEMPLATE_CATEGORY, RenderOptions
from .helpers import register_bootstrap_helpers, register_helpers
from .models import Theme, theme_to_dict

LOG_COMMAND = "TemplateRenderer"

TEMPLATE_ENTRY = "index.html"

TYPOGRAPHY_NAMESPACES: list[tuple[str, str]] = [
    ("fontFamily", "font-family"),
    ("fontSize", "font-size"),
    ("fontWeight", "font-weight"),
    ("lineHeight", "line-height"),
]

TYPOGRAPHY_FLAT_KEYS: list[tuple[str, str]] = [
    ("headingFont", "heading-font"),
    ("bodyFont", "body-font"),
    ("baseFontSize", "base-font-size"),
]

FLAT_NAMESPACES: list[tuple[str, str]] = [
    ("spacing", "spacing"),
    ("borders", "border"),
    ("shadows", "shadow"),
    ("layout", "layout"),
]

BOOTSTRAP_INIT_SCRIPT = """
document.addEventListener('DOMContentLoaded', function () {
  [].slice.call(document.querySelectorAll('[data-bs-toggle="tooltip"]'))
    .forEach(function (el) { new bootstrap.Tooltip(el); });
  [].slice.call(document.querySelectorAll('[data-bs-toggle="popover"]'))
    .forEach(function (el) { new bootstrap.Popover(el); });
});
"""

GOOGLE_FONTS_LINK = (
    "https://fonts.googleapis.com/css2?family=Montserrat:wght@400;500;600;700"
    "&family=Roboto:wght@300;400;500;700&display=swap"
)


class RendererMode(str, Enum):
    PLAIN = "plain"
    FRAMEWORK = "framework"


@dataclass
class BootstrapPageOptions:
    """Bootstrap 基础页面选项"""

    # 页面语言
    lang: str = "pt-BR"
    # 插入 <head> 末尾的内容
    head_content: str = ""
    # <body> 内容
    body_content: str = ""
    # 插入 Bootstrap 脚本之后的内容
    script_content: str = ""
    # Bootstrap 版本，为 None 时使用适配器的版本
    bootstrap_version: str | None = None


def _css_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _flatten(prefix: str, values: Mapping[str, Any]) -> list[tuple[str, Any]]:
    """将嵌套映射展开为 (属性名, 值)，键按字典序，嵌套键以 - 连接"""
    result: list[tuple[str, Any]] = []
    for key in sorted(values, key=str):
        value = values[key]
        name = f"{prefix}-{key}"
        if isinstance(value, Mapping):
            result.extend(_flatten(name, value))
        elif value is not None:
            result.append((name, value))
    return result


def resolve_reference(theme: Mapping[str, Any], reference: str) -> Any:
    """解析 `$colors.primary` 形式的主题内引用

    参数:
        theme: 主题字典
        reference: 以 $ 开头的引用

    返回:
        Any: 引用的值，无法解析或指向映射时返回 None
    """
    current: Any = theme
    for segment in reference[1:].split("."):
        if not isinstance(current, Mapping) or segment not in current:
            return None
        current = current[segment]
    if current is None or isinstance(current, (Mapping, list)):
        return None
    return current


def generate_theme_css(theme: Theme | Mapping[str, Any]) -> str:
    """由主题生成 CSS 自定义属性

    命名空间按固定顺序输出，每个命名空间内的键按字典序排列，
    因此相同内容的主题总是得到相同的 CSS。

    参数:
        theme: 主题或主题字典

    返回:
        str: `:root { ... }` 块
    """
    data = theme_to_dict(theme)
    declarations: list[tuple[str, Any]] = []

    declarations.extend(_flatten("--color", data.get("colors") or {}))

    typography = data.get("typography") or {}
    for key, name in TYPOGRAPHY_FLAT_KEYS:
        if value := typography.get(key):
            declarations.append((f"--{name}", value))
    for key, prefix in TYPOGRAPHY_NAMESPACES:
        declarations.extend(_flatten(f"--{prefix}", typography.get(key) or {}))
    handled = {key for key, _ in TYPOGRAPHY_NAMESPACES + TYPOGRAPHY_FLAT_KEYS}
    for level in sorted(k for k in typography if k not in handled):
        settings = typography[level]
        if isinstance(settings, Mapping):
            for key, prefix in TYPOGRAPHY_NAMESPACES[1:]:
                if settings.get(key) is not None:
                    declarations.append((f"--{prefix}-{level}", settings[key]))

    for key, prefix in FLAT_NAMESPACES:
        declarations.extend(_flatten(f"--{prefix}", data.get(key) or {}))

    components = data.get("components") or {}
    for component in sorted(components, key=str):
        props = components[component]
        if not isinstance(props, Mapping):
            continue
        for name, value in _flatten(f"--{component}", props):
            if isinstance(value, str) and value.startswith("$"):
                resolved = resolve_reference(data, value)
                if resolved is not None:
                    value = resolved
            declarations.append((name, value))

    lines = [":root {"]
    lines.extend(f"  {name}: {_css_value(value)};" for name, value in declarations)
    lines.append("}")
    return "\n".join(lines) + "\n"


class TemplateRenderer:
    def __init__(
        self,
        templates: AssetStore,
        components: AssetStore,
        cache: DesignCache | None = None,
        mode: RendererMode = RendererMode.PLAIN,
        adapter: BootstrapAdapter | None = None,
        default_category: str = DEFAULT_TEMPLATE_CATEGORY,
        cache_expire: int | None = None,
        currency_format: CurrencyFormat | None = None,
        timezone: str | None = None,
        logger: Logger | None = None,
    ):
        """
        模板渲染器

        模板源码位于 `templates/{category}/{id}/index.html`，
        组件源码位于 `components/{category}/{id}/index.html`。
        组件被加载后注册为局部模板，键为 `category_id`（- 与 / 替换为 _）。

        参数:
            templates: 模板源码存储
            components: 组件源码存储
            cache: 源码缓存，为 None 时每次从存储读取
            mode: 渲染器变体
            adapter: Bootstrap 适配器，FRAMEWORK 模式下未提供时自动创建
            default_category: 未指定分类时使用的模板分类
            cache_expire: 源码缓存时间（秒），为 None 时使用缓存的默认值
            currency_format: currency 过滤器使用的货币格式
            timezone: date 过滤器使用的时区
            logger: 日志
        """
        self.templates = templates
        self.components = components
        self.cache = cache
        self.mode = mode
        self.default_category = default_category
        self.cache_expire = cache_expire
        self.logger = logger or default_logger
        self.partials: dict[str, str] = {}
        """已注册的局部模板: 键 -> Jinja2 源码"""

        self.adapter: BootstrapAdapter | None = None
        if mode == RendererMode.FRAMEWORK:
            self.adapter = adapter or BootstrapAdapter(cache=cache, logger=self.logger)

        self.env = Environment(
            loader=DictLoader(self.partials),
            enable_async=True,
            autoescape=True,
        )
        register_helpers(self.env, currency_format, timezone)
        if self.is_framework:
            register_bootstrap_helpers(self.env)

    @property
    def is_framework(self) -> bool:
        return self.mode == RendererMode.FRAMEWORK

    async def _read_cached(self, key: str, store: AssetStore, *parts: str) -> str:
        if self.cache and (cached := await self.cache.get(key)) is not None:
            return cached
        source = await store.read_text(*parts)
        if self.cache:
            await self.cache.set(key, source, self.cache_expire)
        return source

    async def load_template(self, template_id: str, category: str | None = None) -> str:
        """加载模板源码

        参数:
            template_id: 模板ID
            category: 模板分类，为 None 时使用默认分类

        返回:
            str: 模板源码

        异常:
            TemplateNotFoundError: 模板源码不存在
        """
        category = category or self.default_category
        try:
            return await self._read_cached(
                f"template:{category}:{template_id}",
                self.templates,
                category,
                template_id,
                TEMPLATE_ENTRY,
            )
        except FileNotFoundError as e:
            raise TemplateNotFoundError(
                template_id,
                self.templates.describe(category, template_id, TEMPLATE_ENTRY),
            ) from e

    async def load_component(self, component_id: str, category: str) -> str:
        """加载组件源码并注册为局部模板

        参数:
            component_id: 组件ID
            category: 组件分类

        返回:
            str: 组件源码

        异常:
            ComponentNotFoundError: 组件源码不存在
            TemplateSyntaxError: 组件中的指令无效
        """
        try:
            source = await self._read_cached(
                f"component:{category}:{component_id}",
                self.components,
                category,
                component_id,
                TEMPLATE_ENTRY,
            )
        except FileNotFoundError as e:
            raise ComponentNotFoundError(
                f"{category}/{component_id}",
                self.components.describe(category, component_id, TEMPLATE_ENTRY),
            ) from e
        key = dsl.partial_key(category, component_id)
        self.partials[key] = dsl.translate(source)
        self.logger.trace(f"注册局部模板: {key}", LOG_COMMAND)
        return source

    async def _load_tree(self, path: str, chain: tuple[str, ...] = ()):
        """加载组件及其引用的所有组件"""
        if path in chain:
            raise TemplateSyntaxError(f"组件循环引用: {' -> '.join((*chain, path))}")
        category, component_id = dsl.split_component_path(path)
        source = await self.load_component(component_id, category)
        nested = dsl.collect_includes(dsl.parse(source))
        if nested:
            await asyncio.gather(
                *(self._load_tree(child, (*chain, path)) for child in nested)
            )

    async def load_components(self, components: list[str]):
        """并发加载多个组件

        参数:
            components: 组件路径列表，格式为 category/id
        """
        await asyncio.gather(*(self._load_tree(path) for path in components))

    async def preprocess(self, source: str) -> str:
        """将模板指令转换为 Jinja2 语法

        所有被 include 引用的组件（包括组件内部再引用的组件）都会在返回前加载完成。

        参数:
            source: 模板源码

        返回:
            str: Jinja2 源码
        """
        nodes = dsl.parse(source)
        await self.load_components(dsl.collect_includes(nodes))
        return dsl.lower(nodes)

    async def compile_template(self, source: str, data: Mapping[str, Any]) -> str:
        """使用 Jinja2 编译并渲染源码

        参数:
            source: Jinja2 源码
            data: 渲染数据

        返回:
            str: 渲染结果
        """
        try:
            template = self.env.from_string(source)
            return await template.render_async(**data)
        except JinjaSyntaxError as e:
            raise TemplateSyntaxError(e.message or str(e), e.lineno) from e
        except TemplateNotFound as e:
            raise ComponentNotFoundError(e.name or str(e)) from e
        except TemplateError as e:
            raise DesignValidationError(f"模板渲染失败: {e}") from e

    async def render_template(
        self,
        template_id: str,
        data: Mapping[str, Any],
        options: RenderOptions | None = None,
    ) -> str:
        """渲染模板

        参数:
            template_id: 模板ID
            data: 渲染数据
            options: 渲染选项

        返回:
            str: HTML
        """
        options = options or RenderOptions()
        source = await self.load_template(template_id, options.category)
        context = dict(data)
        components = list(options.components)
        if self.is_framework:
            context["bootstrap"] = await self._bootstrap_context(data.get("theme"))
            components = await self._preload_framework_components(components)
        if components:
            await self.load_components(components)
        lowered = await self.preprocess(source)
        html = await self.compile_template(lowered, context)
        self.logger.debug(f"模板渲染完成: {template_id}", LOG_COMMAND)
        return html

    async def render_component(
        self, component_id: str, category: str, data: Mapping[str, Any]
    ) -> Markup:
        """渲染单个组件

        参数:
            component_id: 组件ID
            category: 组件分类
            data: 渲染数据

        返回:
            Markup: 组件 HTML，插入其他模板时不会被再次转义
        """
        await self._load_tree(f"{category}/{component_id}")
        source = self.partials[dsl.partial_key(category, component_id)]
        return Markup(await self.compile_template(source, data))

    @staticmethod
    def generate_theme_css(theme: Theme | Mapping[str, Any]) -> str:
        return generate_theme_css(theme)

    async def _bootstrap_context(self, theme: Any) -> dict[str, Any]:
        assert self.adapter
        return {
            "version": self.adapter.bootstrap_version,
            "css_link": self.adapter.get_cdn_link(),
            "icons_link": self.adapter.get_cdn_link("bootstrap-icons"),
            "scripts": self.adapter.get_scripts(),
            "css_variables": Markup(
                await self.adapter.generate_css_variables(theme or {})
            ),
            "init_script": Markup(BOOTSTRAP_INIT_SCRIPT),
        }

    async def _preload_framework_components(self, components: list[str]) -> list[str]:
        """为通用组件加载对应的 Bootstrap 组件

        参数:
            components: 组件路径列表

        返回:
            list[str]: 仍需加载的组件路径，包括 Bootstrap 路径本身，
                以及没有对应 Bootstrap 组件的通用组件
        """
        assert self.adapter
        pending = []
        mapped = []
        for path in components:
            if path.startswith("bootstrap/"):
                pending.append(path)
                continue
            category, component_id = dsl.split_component_path(path)
            bs_id = self.adapter.map_component_to_bootstrap(category, component_id)
            mapped.append((path, f"bootstrap/{category}/{bs_id}"))
        results = await asyncio.gather(
            *(self._load_tree(bs_path) for _, bs_path in mapped),
            return_exceptions=True,
        )
        for (path, bs_path), result in zip(mapped, results):
            if isinstance(result, ComponentNotFoundError):
                self.logger.debug(
                    f"未找到 Bootstrap 组件 {bs_path}，使用 {path}", LOG_COMMAND
                )
                pending.append(path)
            elif isinstance(result, BaseException):
                raise result
        return pending

    async def generate_bootstrap_base(
        self,
        title: str,
        theme: Theme | Mapping[str, Any],
        options: BootstrapPageOptions | None = None,
    ) -> str:
        """生成包含 Bootstrap 资源与主题变量的基础页面

        参数:
            title: 页面标题
            theme: 主题
            options: 页面选项

        返回:
            str: HTML
        """
        if not self.adapter:
            raise DesignValidationError("generate_bootstrap_base 需要 FRAMEWORK 模式")
        options = options or BootstrapPageOptions()
        version = options.bootstrap_version or self.adapter.bootstrap_version
        css_variables = await self.adapter.generate_css_variables(theme)
        icons_link = self.adapter.get_cdn_link("bootstrap-icons")
        return f"""<!DOCTYPE html>
<html lang="{escape(options.lang)}">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{escape(title)}</title>
  <link href="https://cdn.jsdelivr.net/npm/bootstrap@{version}/dist/css/bootstrap.min.css" rel="stylesheet">
  <link href="{icons_link}" rel="stylesheet">
  <link href="{escape(GOOGLE_FONTS_LINK)}" rel="stylesheet">
  <style>
{css_variables}  </style>
  {options.head_content}
</head>
<body>
  {options.body_content}
  <script src="https://cdn.jsdelivr.net/npm/bootstrap@{version}/dist/js/bootstrap.bundle.min.js"></script>
  {options.script_content}
</body>
</html>"""
