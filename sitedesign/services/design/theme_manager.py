import asyncio
from collections.abc import Mapping
from typing import Any

from sitedesign.services.cache import DesignCache
from sitedesign.services.log import Logger, logger as default_logger
from sitedesign.services.store import DocumentStore
from sitedesign.utils.exception import (
    DesignValidationError,
    PreviewNotFoundError,
    ThemeNotFoundError,
    VersionNotFoundError,
)
from sitedesign.utils.time_utils import TimeUtils

from .config import (
    HISTORY_COLLECTION,
    SITE_THEME_PREFIX,
    THEMES_COLLECTION,
    ThemeManagerOptions,
)
from .models import Theme, ThemePreview, generate_preview_id, theme_to_dict
from .renderer import TemplateRenderer

LOG_COMMAND = "ThemeManager"


def site_theme_id(site_id: str) -> str:
    return f"{SITE_THEME_PREFIX}{site_id}"


class ThemeManager:
    """
    主题管理器

    负责主题的读写、版本历史、回滚以及站点主题的便捷操作。

    读取顺序: 进程内映射 -> 缓存 -> 文档存储。
    save_theme 是唯一的写入入口，每次保存都会追加一条历史记录，
    每个主题最多保留 max_history 条，超出时淘汰最旧的记录。
    同一主题ID的写入通过 asyncio.Lock 串行执行。
    """

    def __init__(
        self,
        store: DocumentStore,
        cache: DesignCache | None = None,
        renderer: TemplateRenderer | None = None,
        options: ThemeManagerOptions | None = None,
        logger: Logger | None = None,
    ):
        self.store = store
        self.cache = cache
        self.renderer = renderer
        self.options = options or ThemeManagerOptions()
        self.logger = logger or default_logger
        self._themes: dict[str, Theme] = {}
        self._history: dict[str, dict[str, Any]] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    def _lock(self, theme_id: str) -> asyncio.Lock:
        return self._locks.setdefault(theme_id, asyncio.Lock())

    def theme_css(self, theme: Theme | Mapping[str, Any]) -> str:
        """由主题生成 CSS，未配置渲染器时返回空字符串"""
        if not self.renderer:
            return ""
        return self.renderer.generate_theme_css(theme)

    async def get_theme(self, theme_id: str) -> Theme:
        """获取主题

        参数:
            theme_id: 主题ID

        返回:
            Theme: 主题

        异常:
            ThemeNotFoundError: 缓存与存储中都不存在该主题
        """
        if theme := self._themes.get(theme_id):
            return theme
        key = f"theme:{theme_id}"
        if self.cache and (cached := await self.cache.get(key)) is not None:
            theme = Theme.from_json(cached)
            self._themes[theme_id] = theme
            return theme
        document = await self.store.get(THEMES_COLLECTION, theme_id)
        if document is None:
            raise ThemeNotFoundError(theme_id)
        theme = Theme.from_json(document)
        self._themes[theme_id] = theme
        if self.cache:
            await self.cache.set(key, theme.to_json(), self.options.cache_expire)
        return theme

    async def _load_history(self, theme_id: str) -> dict[str, Any]:
        if (history := self._history.get(theme_id)) is None:
            history = await self.store.get(HISTORY_COLLECTION, theme_id) or {
                "themeId": theme_id,
                "counter": 0,
                "entries": [],
            }
            self._history[theme_id] = history
        return history

    async def _save(self, theme: Theme) -> Theme:
        history = await self._load_history(theme.id)
        counter = history["counter"] + 1
        versioned = theme.model_copy(
            update={
                "metadata": {
                    **theme.metadata,
                    "updatedAt": TimeUtils.now_iso(),
                    "version": str(counter),
                },
                "updated_at": TimeUtils.now_iso(),
            }
        )
        snapshot = versioned.to_json()
        entries = [*history["entries"], snapshot][-self.options.max_history :]
        new_history = {"themeId": theme.id, "counter": counter, "entries": entries}

        await self.store.put(THEMES_COLLECTION, theme.id, snapshot)
        await self.store.put(HISTORY_COLLECTION, theme.id, new_history)
        self._history[theme.id] = new_history
        self._themes[theme.id] = versioned
        if self.cache:
            await self.cache.set(
                f"theme:{theme.id}", snapshot, self.options.cache_expire
            )
        self.logger.info(f"主题已保存: {theme.id} (版本 {counter})", LOG_COMMAND)
        return versioned

    async def save_theme(self, theme: Theme) -> Theme:
        """保存主题并追加历史记录

        参数:
            theme: 主题

        返回:
            Theme: 带有 metadata.version 的已保存主题
        """
        if not isinstance(theme, Theme):
            raise DesignValidationError("save_theme 需要 Theme 实例")
        async with self._lock(theme.id):
            return await self._save(theme)

    @staticmethod
    def _build_theme(data: Mapping[str, Any]) -> Theme:
        metadata = {
            **(data.get("metadata") or {}),
            "createdAt": TimeUtils.now_iso(),
        }
        return Theme.model_validate(
            {
                **data,
                "name": data.get("name") or "新主题",
                "description": data.get("description") or "自定义主题",
                "metadata": metadata,
            }
        )

    async def create_theme(self, data: Mapping[str, Any] | None = None) -> Theme:
        """创建主题，未提供的颜色、排版、间距使用默认值

        参数:
            data: 主题数据，可以只包含部分字段

        返回:
            Theme: 已保存的主题
        """
        theme = self._build_theme(data or {})
        return await self.save_theme(theme)

    async def _get_site_theme(self, site_id: str) -> Theme:
        theme_id = site_theme_id(site_id)
        try:
            return await self.get_theme(theme_id)
        except ThemeNotFoundError:
            self.logger.info(f"站点 {site_id} 没有主题，创建默认主题", LOG_COMMAND)
            theme = self._build_theme(
                {
                    "id": theme_id,
                    "name": "默认主题",
                    "description": f"站点 {site_id} 的默认主题",
                    "metadata": {"siteId": site_id},
                }
            )
            return await self._save(theme)

    async def get_site_theme(self, site_id: str) -> Theme:
        """获取站点主题，不存在时创建并返回默认主题

        参数:
            site_id: 站点ID

        返回:
            Theme: 站点主题
        """
        async with self._lock(site_theme_id(site_id)):
            return await self._get_site_theme(site_id)

    async def customize_site_theme(
        self, site_id: str, customizations: Mapping[str, Any]
    ) -> Theme:
        """定制站点主题

        读取、合并、写入在同一把锁内完成，同一站点的并发定制不会互相覆盖。

        参数:
            site_id: 站点ID
            customizations: 定制内容

        返回:
            Theme: 保存后的主题
        """
        async with self._lock(site_theme_id(site_id)):
            current = await self._get_site_theme(site_id)
            return await self._save(current.customize(customizations))

    async def apply_template_theme(
        self,
        site_id: str,
        template_theme: Theme | Mapping[str, Any],
        template_id: str,
    ) -> Theme:
        """以模板主题替换站点主题

        模板主题的各个命名空间整体替换站点主题，不与原主题合并。

        参数:
            site_id: 站点ID
            template_theme: 模板内嵌的主题
            template_id: 模板ID

        返回:
            Theme: 保存后的主题
        """
        if not template_id:
            raise DesignValidationError("缺少 template_id")
        source = theme_to_dict(template_theme)
        theme = Theme.model_validate(
            {
                "id": site_theme_id(site_id),
                "name": source.get("name") or "模板主题",
                "description": f"基于模板 {template_id} 的主题",
                "colors": source.get("colors") or {},
                "typography": source.get("typography") or {},
                "spacing": source.get("spacing") or {},
                "borders": source.get("borders") or {},
                "shadows": source.get("shadows") or {},
                "layout": source.get("layout") or {},
                "components": source.get("components") or {},
                "metadata": {
                    "siteId": site_id,
                    "templateId": template_id,
                    "appliedAt": TimeUtils.now_iso(),
                },
            }
        )
        return await self.save_theme(theme)

    async def get_theme_history(self, theme_id: str) -> list[Theme]:
        """获取主题历史，最新的版本在前

        异常:
            ThemeNotFoundError: 主题不存在
        """
        await self.get_theme(theme_id)
        history = await self._load_history(theme_id)
        return [Theme.from_json(entry) for entry in reversed(history["entries"])]

    async def revert_theme_to_version(self, theme_id: str, version: str) -> Theme:
        """回滚到历史版本

        回滚会以历史快照保存一个新版本，中间的版本不会被删除。

        参数:
            theme_id: 主题ID
            version: 历史版本号

        返回:
            Theme: 保存后的主题

        异常:
            ThemeNotFoundError: 主题不存在
            VersionNotFoundError: 历史中不存在该版本
        """
        async with self._lock(theme_id):
            await self.get_theme(theme_id)
            history = await self._load_history(theme_id)
            snapshot = next(
                (
                    entry
                    for entry in history["entries"]
                    if (entry.get("metadata") or {}).get("version") == str(version)
                ),
                None,
            )
            if snapshot is None:
                raise VersionNotFoundError(theme_id, str(version))
            reverted = Theme.from_json(
                {
                    **snapshot,
                    "metadata": {
                        **snapshot.get("metadata", {}),
                        "revertedFrom": str(version),
                        "revertedAt": TimeUtils.now_iso(),
                    },
                }
            )
            self.logger.info(f"主题 {theme_id} 回滚到版本 {version}", LOG_COMMAND)
            return await self._save(reverted)

    async def resolve_theme(self, theme_id: str) -> Theme:
        """沿 parentTheme 链合并父主题，返回最终生效的主题

        异常:
            ThemeNotFoundError: 链上的某个主题不存在
            DesignValidationError: parentTheme 链存在循环
        """
        chain: list[Theme] = []
        visited: set[str] = set()
        current: str | None = theme_id
        while current:
            if current in visited:
                path = " -> ".join([t.id for t in chain] + [current])
                raise DesignValidationError(
                    f"主题继承存在循环: {path}",
                    theme_id=theme_id,
                )
            visited.add(current)
            theme = await self.get_theme(current)
            chain.append(theme)
            current = theme.parent_theme
        resolved = chain.pop()
        while chain:
            resolved = chain.pop().merge_with_parent(resolved)
        return resolved

    async def generate_theme_preview(
        self, site_id: str, changes: Mapping[str, Any]
    ) -> ThemePreview:
        """生成仅保存在缓存中的主题预览，不写入历史

        参数:
            site_id: 站点ID
            changes: 预览的修改

        返回:
            ThemePreview: 预览数据
        """
        current = await self.get_site_theme(site_id)
        preview_theme = current.customize(changes)
        created_at = TimeUtils.now()
        preview = ThemePreview(
            preview_id=generate_preview_id(site_id),
            site_id=site_id,
            theme=preview_theme.to_json(),
            css_variables=self.theme_css(preview_theme),
            created_at=created_at.isoformat(),
            expires_at=TimeUtils.after(self.options.preview_expire).isoformat(),
        )
        if self.cache:
            await self.cache.set(
                f"theme_preview:{preview.preview_id}",
                preview.to_json(),
                self.options.preview_expire,
            )
        return preview

    async def get_theme_preview(self, preview_id: str) -> ThemePreview:
        """读取 generate_theme_preview 生成的预览

        异常:
            DesignValidationError: 未配置缓存
            PreviewNotFoundError: 预览不存在或已过期
        """
        if not self.cache:
            raise DesignValidationError("主题预览需要缓存")
        data = await self.cache.get(f"theme_preview:{preview_id}")
        if data is None:
            raise PreviewNotFoundError(preview_id, f"预览不存在或已过期: {preview_id}")
        return ThemePreview.model_validate(data)
