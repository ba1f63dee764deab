"""
Bootstrap 适配器

将通用主题令牌投影为 Bootstrap 的 CSS 自定义属性与 Sass 变量。
每个 Bootstrap 变量都有固定的回退链，例如 danger 依次取
colors.accent、colors.error，最后使用 Bootstrap 的默认值。
"""

from collections.abc import Mapping
import hashlib
from typing import Any

import ujson as json

from sitedesign.services.cache import DesignCache
from sitedesign.services.log import Logger, logger as default_logger

from .models import Theme, theme_to_dict

LOG_COMMAND = "BootstrapAdapter"

BOOTSTRAP_CACHE_EXPIRE = 3600

SYSTEM_FONT_STACK = (
    'system-ui, -apple-system, "Segoe UI", Roboto, "Helvetica Neue", Arial'
)

POPPER_VERSION = "2.11.6"

ICONS_VERSION = "1.10.0"

COLOR_CHAINS: list[tuple[str, tuple[str, ...], str]] = [
    ("primary", ("primary",), "#0d6efd"),
    ("secondary", ("secondary",), "#6c757d"),
    ("success", ("success", "secondary"), "#198754"),
    ("info", ("info",), "#0dcaf0"),
    ("warning", ("warning",), "#ffc107"),
    ("danger", ("accent", "error"), "#dc3545"),
    ("light", ("light",), "#f8f9fa"),
    ("dark", ("dark",), "#212529"),
    ("body-bg", ("background",), "#ffffff"),
    ("body-color", ("text",), "#212529"),
]
"""颜色变量: (Bootstrap 变量名, 依次尝试的主题颜色键, 默认值)"""

COMPONENT_MAP: dict[str, dict[str, str]] = {
    "header": {
        "modern-header": "bs-navbar",
        "minimal-header": "bs-navbar-simple",
        "ecommerce-header": "bs-navbar-ecommerce",
    },
    "footer": {
        "standard-footer": "bs-footer",
        "ecommerce-footer": "bs-footer-ecommerce",
    },
    "product": {
        "product-card": "bs-product-card",
        "product-grid": "bs-product-grid",
    },
    "cart": {
        "cart-dropdown": "bs-cart-dropdown",
        "cart-summary": "bs-cart-summary",
    },
}
"""通用组件到 Bootstrap 组件的映射"""


def first_of(values: Mapping[str, Any], keys: tuple[str, ...], default: Any) -> Any:
    """按顺序返回第一个有值的键，全部为空时返回默认值"""
    for key in keys:
        if value := values.get(key):
            return value
    return default


def _px_to_rem(value: Any) -> str | None:
    """将 px 数值换算为 rem，基准为 16px，无法解析时返回 None"""
    text = str(value).strip()
    if text.endswith("px"):
        text = text[:-2]
    try:
        return f"{float(text) / 16:g}rem"
    except ValueError:
        return None


def _typography_value(typography: Mapping[str, Any], level: str, key: str) -> Any:
    """读取标题级别的排版值，优先 fontSize.h1 形式，其次 h1.fontSize 形式"""
    sub = typography.get(key)
    if isinstance(sub, Mapping) and sub.get(level):
        return sub[level]
    nested = typography.get(level)
    if isinstance(nested, Mapping):
        return nested.get(key)
    return None


class BootstrapAdapter:
    """
    Bootstrap 适配器

    输出结果以主题序列化后的 sha256 作为缓存键，只依赖缓存过期，
    主题变化时会得到新的缓存键。
    """

    def __init__(
        self,
        cache: DesignCache | None = None,
        bootstrap_version: str = "5.3.0",
        cache_expire: int = BOOTSTRAP_CACHE_EXPIRE,
        logger: Logger | None = None,
    ):
        self.cache = cache
        self.bootstrap_version = bootstrap_version
        self.cache_expire = cache_expire
        self.logger = logger or default_logger

    @staticmethod
    def cache_key(kind: str, theme: Mapping[str, Any]) -> str:
        digest = hashlib.sha256(
            json.dumps(theme, sort_keys=True, ensure_ascii=False).encode("utf-8")
        ).hexdigest()
        return f"bootstrap:{kind}:{digest}"

    async def _cached(self, kind: str, theme: Mapping[str, Any], build) -> str:
        key = self.cache_key(kind, theme)
        if self.cache and (cached := await self.cache.get(key)) is not None:
            self.logger.trace(f"命中 Bootstrap {kind} 缓存", LOG_COMMAND)
            return cached
        result = build(theme)
        if self.cache:
            await self.cache.set(key, result, self.cache_expire)
        return result

    async def generate_css_variables(self, theme: Theme | Mapping[str, Any]) -> str:
        """生成 Bootstrap CSS 自定义属性

        参数:
            theme: 主题或主题字典

        返回:
            str: `:root { --bs-* }` 块，以及标题字体与按钮的附加规则
        """
        return await self._cached("css", theme_to_dict(theme), self.build_css_variables)

    async def generate_sass_variables(self, theme: Theme | Mapping[str, Any]) -> str:
        """生成 Bootstrap Sass 变量

        参数:
            theme: 主题或主题字典

        返回:
            str: Sass 变量文本
        """
        return await self._cached(
            "sass", theme_to_dict(theme), self.build_sass_variables
        )

    @staticmethod
    def build_css_variables(theme: Mapping[str, Any]) -> str:
        colors = theme.get("colors")
        typography = theme.get("typography") or {}
        borders = theme.get("borders") or {}
        components = theme.get("components") or {}

        lines = [":root {"]
        # 空的 colors 也输出完整的默认值
        if colors is not None:
            for name, keys, default in COLOR_CHAINS:
                lines.append(f"  --bs-{name}: {first_of(colors, keys, default)};")
        if typography:
            body_font = typography.get("bodyFont") or SYSTEM_FONT_STACK
            lines.append(f"  --bs-body-font-family: {body_font};")
            if heading_font := typography.get("headingFont"):
                lines.append(f"  --bs-heading-font-family: {heading_font};")
            if base_size := typography.get("baseFontSize"):
                lines.append(f"  --bs-body-font-size: {base_size};")
        if radius := borders.get("radius"):
            lines.append(f"  --bs-border-radius: {radius};")
        lines.append("}")

        if typography.get("headingFont"):
            lines.append("h1, h2, h3, h4, h5, h6, .h1, .h2, .h3, .h4, .h5, .h6 {")
            lines.append("  font-family: var(--bs-heading-font-family) !important;")
            lines.append("}")

        buttons = components.get("buttons")
        if isinstance(buttons, Mapping):
            padding = buttons.get("padding")
            border_radius = buttons.get("borderRadius")
            if padding or border_radius:
                lines.append(".btn {")
                if padding:
                    if isinstance(padding, Mapping):
                        padding = " ".join(
                            str(padding[k])
                            for k in ("vertical", "horizontal")
                            if padding.get(k)
                        )
                    lines.append(f"  padding: {padding} !important;")
                if border_radius:
                    lines.append(f"  border-radius: {border_radius} !important;")
                lines.append("}")
        return "\n".join(lines) + "\n"

    @staticmethod
    def build_sass_variables(theme: Mapping[str, Any]) -> str:
        colors = theme.get("colors")
        typography = theme.get("typography") or {}
        spacing = theme.get("spacing") or {}
        borders = theme.get("borders") or {}
        components = theme.get("components") or {}

        lines = ["// Bootstrap variables generated from theme"]
        if colors is not None:
            for name, keys, default in COLOR_CHAINS:
                lines.append(f"${name}: {first_of(colors, keys, default)};")

        if typography:
            lines.append("// Typography")
            body_font = typography.get("bodyFont")
            lines.append(f"$font-family-sans-serif: {body_font or SYSTEM_FONT_STACK};")
            base_family = body_font or "$font-family-sans-serif"
            lines.append(f"$font-family-base: {base_family};")
            if heading_font := typography.get("headingFont"):
                lines.append(f"$headings-font-family: {heading_font};")
            if (base_size := typography.get("baseFontSize")) and (
                rem := _px_to_rem(base_size)
            ):
                lines.append(f"$font-size-base: {rem};")
            for level in ("h1", "h2"):
                if size := _typography_value(typography, level, "fontSize"):
                    lines.append(f"${level}-font-size: {size};")

        if spacing:
            lines.append("// Spacing")
            if (base := spacing.get("base")) and (rem := _px_to_rem(base)):
                lines.append(f"$spacer: {rem};")

        if borders:
            lines.append("// Borders")
            if radius := borders.get("radius"):
                lines.append(f"$border-radius: {radius};")
            if button_radius := borders.get("buttonRadius"):
                lines.append(f"$btn-border-radius: {button_radius};")

        if components:
            lines.append("// Components")
            buttons = components.get("buttons")
            if isinstance(buttons, Mapping) and isinstance(
                padding := buttons.get("padding"), Mapping
            ):
                if vertical := padding.get("vertical"):
                    lines.append(f"$btn-padding-y: {vertical};")
                if horizontal := padding.get("horizontal"):
                    lines.append(f"$btn-padding-x: {horizontal};")
            card = components.get("card")
            if isinstance(card, Mapping):
                if background := card.get("background"):
                    lines.append(f"$card-bg: {background};")
                if card_radius := card.get("borderRadius"):
                    lines.append(f"$card-border-radius: {card_radius};")
        return "\n".join(lines) + "\n"

    def get_cdn_link(self, variant: str = "bootstrap") -> str:
        """获取 Bootstrap 样式的 CDN 地址

        参数:
            variant: bootstrap, bootstrap-dark 或 bootstrap-icons

        返回:
            str: CDN 地址
        """
        version = self.bootstrap_version
        if variant == "bootstrap-dark":
            return (
                f"https://cdn.jsdelivr.net/npm/bootstrap-dark-5@{version}"
                "/dist/css/bootstrap-dark.min.css"
            )
        if variant == "bootstrap-icons":
            return (
                f"https://cdn.jsdelivr.net/npm/bootstrap-icons@{ICONS_VERSION}"
                "/font/bootstrap-icons.css"
            )
        return (
            f"https://cdn.jsdelivr.net/npm/bootstrap@{version}"
            "/dist/css/bootstrap.min.css"
        )

    def get_scripts(self) -> dict[str, str]:
        """Bootstrap 所需脚本的 CDN 地址"""
        return {
            "bootstrap": (
                f"https://cdn.jsdelivr.net/npm/bootstrap@{self.bootstrap_version}"
                "/dist/js/bootstrap.bundle.min.js"
            ),
            "popper": (
                f"https://cdn.jsdelivr.net/npm/@popperjs/core@{POPPER_VERSION}"
                "/dist/umd/popper.min.js"
            ),
        }

    @staticmethod
    def map_component_to_bootstrap(component_type: str, component_id: str) -> str:
        """将通用组件映射为 Bootstrap 组件，未知组合返回 `bs-{type}-default`

        参数:
            component_type: 组件分类，例如 header
            component_id: 组件ID，例如 modern-header

        返回:
            str: Bootstrap 组件ID
        """
        mapped = COMPONENT_MAP.get(component_type, {}).get(component_id)
        return mapped or f"bs-{component_type}-default"
