from collections.abc import Mapping
import secrets
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
import ujson as json

from sitedesign.utils.time_utils import TimeUtils

from .config import (
    DEFAULT_COLORS,
    DEFAULT_FONT_FAMILY,
    DEFAULT_FONT_SIZE,
    DEFAULT_FONT_WEIGHT,
    DEFAULT_LINE_HEIGHT,
    DEFAULT_SPACING,
)

TYPOGRAPHY_MAPS: dict[str, str] = {
    "fontFamily": "font_family",
    "fontSize": "font_size",
    "fontWeight": "font_weight",
    "lineHeight": "line_height",
}
"""typography 下可独立合并的子映射: 别名 -> 字段名"""

MERGEABLE_MAPS = ("colors", "spacing", "borders", "shadows", "layout", "components")
"""主题中按键浅合并的一级命名空间"""


def generate_theme_id() -> str:
    return f"theme_{secrets.token_hex(12)}"


def generate_template_id() -> str:
    return f"tmpl_{secrets.token_hex(12)}"


def generate_preview_id(site_id: str) -> str:
    """预览ID，毫秒时间戳之外附加随机后缀，同一毫秒内生成的ID也不会重复"""
    timestamp = int(TimeUtils.now().timestamp() * 1000)
    return f"preview_{site_id}_{timestamp:x}_{secrets.token_hex(4)}"


def _pick(data: Mapping[str, Any], alias: str, name: str | None = None) -> Any:
    """同时按别名和字段名读取键，别名优先"""
    if alias in data:
        return data[alias]
    if name and name in data:
        return data[name]
    return None


def _overlay(base: Mapping[str, Any] | None, top: Mapping[str, Any] | None) -> dict:
    """按键浅覆盖: top 中存在的键覆盖 base，其余键保留"""
    result = dict(base or {})
    result.update(top or {})
    return result


class DesignModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    def to_json(self) -> dict[str, Any]:
        """转换为使用别名键的字典"""
        return self.model_dump(by_alias=True)


class Typography(DesignModel):
    """
    排版设置

    四个子映射可独立合并，其他键（如 headingFont、bodyFont、baseFontSize）
    作为扁平设置保留。
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow", frozen=True)

    font_family: dict[str, Any] = Field(default_factory=dict, alias="fontFamily")
    """字体族"""
    font_size: dict[str, Any] = Field(default_factory=dict, alias="fontSize")
    """字号"""
    font_weight: dict[str, Any] = Field(default_factory=dict, alias="fontWeight")
    """字重"""
    line_height: dict[str, Any] = Field(default_factory=dict, alias="lineHeight")
    """行高"""

    @field_validator(
        "font_family", "font_size", "font_weight", "line_height", mode="before"
    )
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return {} if value is None else value

    def overlay(self, changes: Mapping[str, Any] | None) -> "Typography":
        """返回在当前排版上叠加 changes 后的新排版

        参数:
            changes: 排版修改，子映射按键覆盖，其他键直接替换

        返回:
            Typography: 新排版
        """
        data = self.to_json()
        if not changes:
            return Typography.model_validate(data)
        for alias, name in TYPOGRAPHY_MAPS.items():
            sub = _pick(changes, alias, name)
            if sub is not None:
                data[alias] = _overlay(data.get(alias), sub)
        for key, value in changes.items():
            if key not in TYPOGRAPHY_MAPS and key not in TYPOGRAPHY_MAPS.values():
                data[key] = value
        return Typography.model_validate(data)


def default_typography() -> Typography:
    return Typography(
        font_family=dict(DEFAULT_FONT_FAMILY),
        font_size=dict(DEFAULT_FONT_SIZE),
        font_weight=dict(DEFAULT_FONT_WEIGHT),
        line_height=dict(DEFAULT_LINE_HEIGHT),
    )


class Theme(DesignModel):
    """
    主题

    主题是不可变的值，所有修改都会产生一个新主题，新主题保留原有的
    id/name/description/parentTheme/metadata/createdAt，并刷新 updatedAt。
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str = Field(default_factory=generate_theme_id)
    """主题ID，一经分配不再改变"""
    name: str = ""
    """主题名称"""
    description: str = ""
    """主题描述"""
    colors: dict[str, Any] = Field(default_factory=lambda: dict(DEFAULT_COLORS))
    """颜色"""
    typography: Typography = Field(default_factory=default_typography)
    """排版"""
    spacing: dict[str, Any] = Field(default_factory=lambda: dict(DEFAULT_SPACING))
    """间距"""
    borders: dict[str, Any] = Field(default_factory=dict)
    """边框"""
    shadows: dict[str, Any] = Field(default_factory=dict)
    """阴影"""
    layout: dict[str, Any] = Field(default_factory=dict)
    """布局"""
    components: dict[str, Any] = Field(default_factory=dict)
    """组件级覆盖，值中以 $ 开头的字符串为主题内引用，例如 $colors.primary"""
    parent_theme: str | None = Field(None, alias="parentTheme")
    """父主题ID"""
    metadata: dict[str, Any] = Field(default_factory=dict)
    """元数据"""
    created_at: str = Field(default_factory=TimeUtils.now_iso, alias="createdAt")
    """创建时间"""
    updated_at: str = Field(default_factory=TimeUtils.now_iso, alias="updatedAt")
    """更新时间"""

    @field_validator("id", mode="before")
    @classmethod
    def _ensure_id(cls, value: Any) -> Any:
        return value or generate_theme_id()

    @field_validator("colors", mode="before")
    @classmethod
    def _default_colors(cls, value: Any) -> Any:
        return dict(DEFAULT_COLORS) if value is None else value

    @field_validator("typography", mode="before")
    @classmethod
    def _default_typography(cls, value: Any) -> Any:
        return default_typography() if value is None else value

    @field_validator("spacing", mode="before")
    @classmethod
    def _default_spacing(cls, value: Any) -> Any:
        return dict(DEFAULT_SPACING) if value is None else value

    @field_validator(
        "borders", "shadows", "layout", "components", "metadata", mode="before"
    )
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return {} if value is None else value

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "Theme":
        return cls.model_validate(dict(data))

    def _derive(self, data: dict[str, Any]) -> "Theme":
        """基于 data 构造新主题，保留身份信息并刷新更新时间"""
        data.update(
            {
                "id": self.id,
                "name": self.name,
                "description": self.description,
                "parentTheme": self.parent_theme,
                "metadata": dict(self.metadata),
                "createdAt": self.created_at,
                "updatedAt": TimeUtils.now_iso(),
            }
        )
        return Theme.model_validate(data)

    def customize(self, changes: Mapping[str, Any] | None) -> "Theme":
        """应用定制

        changes 只需要提供改变的键: colors/spacing/borders/shadows/layout/components
        中的每个键覆盖原值，未出现的键保留；typography 的四个子映射各自按键覆盖。

        参数:
            changes: 定制内容

        返回:
            Theme: 定制后的新主题
        """
        changes = changes or {}
        data = self.to_json()
        for namespace in MERGEABLE_MAPS:
            override = changes.get(namespace)
            if override is not None:
                data[namespace] = _overlay(data[namespace], override)
        typography = changes.get("typography")
        if typography is not None:
            data["typography"] = self.typography.overlay(typography).to_json()
        return self._derive(data)

    def merge_with_parent(self, parent: "Theme | None") -> "Theme":
        """与父主题合并，父主题的值位于下层，当前主题的值覆盖其上

        参数:
            parent: 父主题

        返回:
            Theme: 合并后的新主题
        """
        if parent is None:
            return self
        data = self.to_json()
        parent_data = parent.to_json()
        for namespace in MERGEABLE_MAPS:
            data[namespace] = _overlay(parent_data[namespace], data[namespace])
        data["typography"] = parent.typography.overlay(data["typography"]).to_json()
        return self._derive(data)


def dump_theme_json(theme: Theme | Mapping[str, Any]) -> str:
    """序列化主题，键按字典序输出，相同主题总是得到相同的字符串"""
    data = theme.to_json() if isinstance(theme, Theme) else dict(theme)
    return json.dumps(data, ensure_ascii=False, sort_keys=True)


def load_theme_json(text: str) -> Theme:
    """反序列化主题"""
    return Theme.from_json(json.loads(text))


def theme_to_dict(theme: Theme | Mapping[str, Any]) -> dict[str, Any]:
    """主题或主题字典统一转换为字典"""
    if isinstance(theme, BaseModel):
        return theme.model_dump(by_alias=True)
    return dict(theme)


class TemplateSummary(DesignModel):
    """模板摘要"""

    id: str
    name: str
    description: str = ""
    category: str = "general"
    thumbnail: str = ""


class Template(DesignModel):
    """
    模板

    可安装的起点，应用到站点时以内嵌主题生成新的站点主题。
    """

    id: str = Field(default_factory=generate_template_id)
    """模板ID"""
    name: str = ""
    """模板名称"""
    description: str = ""
    """模板描述"""
    category: str = "general"
    """模板分类"""
    thumbnail: str = ""
    """缩略图地址"""
    theme: Theme = Field(default_factory=Theme)
    """内嵌主题快照"""
    layout: dict[str, Any] = Field(default_factory=dict)
    """布局设置"""
    components: list[str] = Field(default_factory=list)
    """依赖的组件"""
    metadata: dict[str, Any] = Field(default_factory=dict)
    """元数据"""
    created_at: str = Field(default_factory=TimeUtils.now_iso, alias="createdAt")
    updated_at: str = Field(default_factory=TimeUtils.now_iso, alias="updatedAt")

    def summary(self) -> TemplateSummary:
        return TemplateSummary(
            id=self.id,
            name=self.name,
            description=self.description,
            category=self.category,
            thumbnail=self.thumbnail,
        )


class ComponentOption(DesignModel):
    """组件可配置项"""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str
    """选项ID"""
    type: str = "string"
    """选项类型"""
    default: Any = None
    """默认值"""


class ComponentConfig(DesignModel):
    """组件配置 (config.json)"""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    name: str
    """组件名称"""
    description: str = ""
    """组件描述"""
    version: str = "1.0.0"
    """组件版本"""
    options: list[ComponentOption] = Field(default_factory=list)
    """可配置项"""

    def default_options(self) -> dict[str, Any]:
        """各选项的默认值"""
        return {option.id: option.default for option in self.options}


class ComponentSummary(DesignModel):
    """组件摘要"""

    id: str
    category: str
    name: str
    description: str = ""
    version: str = "1.0.0"


class RenderedComponent(DesignModel):
    """渲染后的组件"""

    html: str
    css: str = ""
    js: str = ""
    config: ComponentConfig


class BundleItem(DesignModel):
    """打包条目"""

    id: str
    """组件路径，格式为 category/id"""
    options: dict[str, Any] = Field(default_factory=dict)
    """组件选项"""


class ComponentBundle(DesignModel):
    """组件资源包"""

    css: str = ""
    js: str = ""
    components: list[str] = Field(default_factory=list)
    """成功打包的组件"""
    skipped: list[str] = Field(default_factory=list)
    """因加载失败被跳过的组件"""
    bootstrap_css: str | None = Field(None, alias="bootstrapCss")
    """Bootstrap 变量 CSS"""


class Preview(DesignModel):
    """预览的完整数据"""

    id: str
    site_id: str = Field(alias="siteId")
    theme: dict[str, Any]
    """合并后的主题快照"""
    css_variables: str = Field("", alias="cssVariables")
    changes: dict[str, Any] = Field(default_factory=dict)
    created_at: str = Field(alias="createdAt")
    expires_at: str = Field(alias="expiresAt")
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def is_expired(self) -> bool:
        return TimeUtils.is_expired(self.expires_at)


class PreviewDescriptor(DesignModel):
    """返回给调用方的预览摘要，不包含完整主题"""

    id: str
    site_id: str = Field(alias="siteId")
    created_at: str = Field(alias="createdAt")
    expires_at: str = Field(alias="expiresAt")
    preview_url: str = Field(alias="previewUrl")
    metadata: dict[str, Any] = Field(default_factory=dict)


class ThemePreview(DesignModel):
    """ThemeManager 生成的仅缓存预览"""

    preview_id: str = Field(alias="previewId")
    site_id: str = Field(alias="siteId")
    theme: dict[str, Any]
    css_variables: str = Field("", alias="cssVariables")
    created_at: str = Field(alias="createdAt")
    expires_at: str = Field(alias="expiresAt")


class ApplyPreviewResult(DesignModel):
    """预览应用结果"""

    success: bool = True
    theme: dict[str, Any]
    applied_at: str = Field(alias="appliedAt")
    preview_id: str = Field(alias="previewId")
    site_id: str = Field(alias="siteId")


class ApplyTemplateResult(DesignModel):
    """模板应用结果"""

    theme: dict[str, Any]
    template: Template
    bootstrap_css: str | None = Field(None, alias="bootstrapCss")
    applied_at: str = Field(alias="appliedAt")


class CustomizeThemeResult(DesignModel):
    """主题定制结果"""

    theme: dict[str, Any]
    css_variables: str = Field("", alias="cssVariables")
    bootstrap_css: str | None = Field(None, alias="bootstrapCss")
    updated_at: str = Field(alias="updatedAt")


class PublishResult(DesignModel):
    """发布结果"""

    published: bool = True
    theme: dict[str, Any]
    css_variables: str = Field("", alias="cssVariables")
    bootstrap_css: str | None = Field(None, alias="bootstrapCss")
    published_at: str = Field(alias="publishedAt")


class PreviewResult(PreviewDescriptor):
    """带有 Bootstrap CSS 的预览摘要"""

    bootstrap_css: str | None = Field(None, alias="bootstrapCss")
