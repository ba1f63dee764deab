"""
预览服务

预览是有时限的主题修改沙盒，状态转换如下:

    Created -> Applied | Expired | Deleted

- 创建: 在当前站点主题上合并修改（不写入历史），保存到文档存储与缓存
- 读取: 进程内映射 -> 缓存 -> 文档存储，命中时回填上一层；
  任一层发现已过期都会删除所有副本并抛出 PreviewExpiredError
- 应用: 通过 ThemeManager.customize_site_theme 保存为新的主题版本，随后删除预览，
  因此每个预览最多只能应用一次
"""

import asyncio
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from sitedesign.services.cache import DesignCache
from sitedesign.services.log import Logger, logger as default_logger
from sitedesign.services.store import DocumentStore
from sitedesign.utils.exception import (
    DesignValidationError,
    PreviewExpiredError,
    PreviewNotFoundError,
)
from sitedesign.utils.time_utils import TimeUtils

from .config import (
    DEFAULT_PREVIEW_EXPIRE,
    PREVIEWS_COLLECTION,
    PreviewOptions,
    RenderOptions,
)
from .models import (
    ApplyPreviewResult,
    Preview,
    PreviewDescriptor,
    generate_preview_id,
)
from .renderer import TemplateRenderer
from .theme_manager import ThemeManager

LOG_COMMAND = "PreviewService"

DEFAULT_PREVIEW_TEMPLATE = "modern-shop"


def preview_url(preview_id: str) -> str:
    return f"/preview/{preview_id}"


def default_site_data(site_id: str) -> dict[str, Any]:
    """渲染预览时使用的示例站点数据"""
    return {
        "name": f"Site {site_id}",
        "logo": "/assets/images/logo.png",
        "description": "Descrição do site",
        "social": {
            "facebook": "example",
            "instagram": "example",
            "twitter": "example",
        },
        "address": "Rua Exemplo, 123 - São Paulo, SP",
        "phone": "(11) 1234-5678",
        "email": "contato@example.com",
    }


class PreviewService:
    def __init__(
        self,
        theme_manager: ThemeManager,
        store: DocumentStore,
        renderer: TemplateRenderer | None = None,
        cache: DesignCache | None = None,
        default_expire: int = DEFAULT_PREVIEW_EXPIRE,
        logger: Logger | None = None,
    ):
        """
        预览服务

        参数:
            theme_manager: 主题管理器，用于读取当前主题与应用预览
            store: 预览的持久化存储
            renderer: 模板渲染器，render_preview 需要
            cache: 缓存
            default_expire: 预览默认有效期（秒）
            logger: 日志
        """
        self.theme_manager = theme_manager
        self.store = store
        self.renderer = renderer
        self.cache = cache
        self.default_expire = default_expire
        self.logger = logger or default_logger
        self._previews: dict[str, Preview] = {}
        self._apply_lock = asyncio.Lock()

    @staticmethod
    def _cache_key(preview_id: str) -> str:
        return f"preview:{preview_id}"

    @staticmethod
    def _descriptor(preview: Preview) -> PreviewDescriptor:
        return PreviewDescriptor(
            id=preview.id,
            site_id=preview.site_id,
            created_at=preview.created_at,
            expires_at=preview.expires_at,
            preview_url=preview_url(preview.id),
            metadata=preview.metadata,
        )

    async def create_preview(
        self,
        site_id: str,
        changes: Mapping[str, Any],
        options: PreviewOptions | None = None,
    ) -> PreviewDescriptor:
        """创建预览

        参数:
            site_id: 站点ID
            changes: 主题修改
            options: 预览选项

        返回:
            PreviewDescriptor: 预览摘要，不包含完整主题
        """
        options = options or PreviewOptions()
        expire = options.expiration
        if expire is None:
            expire = self.default_expire
        if expire <= 0:
            raise DesignValidationError("预览有效期必须大于 0", expiration=expire)
        current = await self.theme_manager.get_site_theme(site_id)
        preview_theme = current.customize(changes)
        created_at = TimeUtils.now()
        preview = Preview(
            id=generate_preview_id(site_id),
            site_id=site_id,
            theme=preview_theme.to_json(),
            css_variables=TemplateRenderer.generate_theme_css(preview_theme),
            changes=dict(changes),
            created_at=created_at.isoformat(),
            expires_at=TimeUtils.after(expire).isoformat(),
            metadata=dict(options.metadata),
        )
        await self.store.put(PREVIEWS_COLLECTION, preview.id, preview.to_json())
        self._previews[preview.id] = preview
        if self.cache:
            await self.cache.set(self._cache_key(preview.id), preview.to_json(), expire)
        self.logger.info(f"创建预览 {preview.id}，有效期 {expire} 秒", LOG_COMMAND)
        return self._descriptor(preview)

    async def _expire(self, preview_id: str):
        await self.delete_preview(preview_id)
        self.logger.debug(f"预览已过期: {preview_id}", LOG_COMMAND)
        raise PreviewExpiredError(preview_id)

    async def get_preview(self, preview_id: str) -> Preview:
        """读取预览

        参数:
            preview_id: 预览ID

        返回:
            Preview: 完整的预览数据

        异常:
            PreviewExpiredError: 预览已过期
            PreviewNotFoundError: 预览不存在
        """
        if preview := self._previews.get(preview_id):
            if preview.is_expired:
                await self._expire(preview_id)
            return preview

        key = self._cache_key(preview_id)
        if self.cache and (cached := await self.cache.get(key)) is not None:
            preview = Preview.model_validate(cached)
            if preview.is_expired:
                await self._expire(preview_id)
            self._previews[preview_id] = preview
            return preview

        document = await self.store.get(PREVIEWS_COLLECTION, preview_id)
        if document is None:
            raise PreviewNotFoundError(preview_id)
        preview = Preview.model_validate(document)
        if preview.is_expired:
            await self._expire(preview_id)
        self._previews[preview_id] = preview
        if self.cache:
            await self.cache.set(
                self._cache_key(preview_id),
                preview.to_json(),
                max(1, TimeUtils.seconds_until(preview.expires_at)),
            )
        return preview

    async def render_preview(
        self,
        preview_id: str,
        mock_data: Mapping[str, Any] | None = None,
        options: RenderOptions | None = None,
        template_id: str | None = None,
    ) -> str:
        """使用预览主题渲染站点模板，预览 CSS 注入到 </head> 之前

        参数:
            preview_id: 预览ID
            mock_data: 渲染数据，覆盖默认的示例数据
            options: 渲染选项
            template_id: 模板ID，为 None 时使用主题的 templateId 或默认模板

        返回:
            str: HTML
        """
        if not self.renderer:
            raise DesignValidationError("PreviewService 未配置模板渲染器")
        preview = await self.get_preview(preview_id)
        mock_data = mock_data or {}
        render_data = {
            "site": default_site_data(preview.site_id),
            "theme": preview.theme,
            "is_preview": True,
            "preview_id": preview.id,
            "preview_expires_at": preview.expires_at,
            **mock_data,
        }
        metadata = preview.theme.get("metadata") or {}
        template_id = (
            template_id or metadata.get("templateId") or DEFAULT_PREVIEW_TEMPLATE
        )
        html = await self.renderer.render_template(template_id, render_data, options)
        style = f"<style>{preview.css_variables}</style>"
        return html.replace("</head>", f"{style}</head>", 1)

    async def apply_preview(self, preview_id: str) -> ApplyPreviewResult:
        """将预览保存为站点主题的新版本，随后删除预览

        参数:
            preview_id: 预览ID

        返回:
            ApplyPreviewResult: 应用结果

        异常:
            PreviewNotFoundError: 预览不存在或已经被应用
        """
        async with self._apply_lock:
            preview = await self.get_preview(preview_id)
            theme = await self.theme_manager.customize_site_theme(
                preview.site_id, preview.changes
            )
            await self.delete_preview(preview_id)
        self.logger.info(
            f"预览 {preview_id} 已应用到站点 {preview.site_id}", LOG_COMMAND
        )
        return ApplyPreviewResult(
            success=True,
            theme=theme.to_json(),
            applied_at=TimeUtils.now_iso(),
            preview_id=preview_id,
            site_id=preview.site_id,
        )

    async def delete_preview(self, preview_id: str) -> bool:
        """从所有层删除预览

        返回:
            bool: 是否在任一层中存在
        """
        existed = self._previews.pop(preview_id, None) is not None
        if self.cache:
            existed = await self.cache.delete(self._cache_key(preview_id)) or existed
        return await self.store.delete(PREVIEWS_COLLECTION, preview_id) or existed

    async def _load_stored(self, preview_id: str) -> Preview | None:
        try:
            document = await self.store.get(PREVIEWS_COLLECTION, preview_id)
            return Preview.model_validate(document) if document else None
        except ValidationError as e:
            self.logger.warning(f"预览数据无效: {preview_id}", LOG_COMMAND, e=e)
            return None

    async def list_previews(
        self, site_id: str | None = None
    ) -> list[PreviewDescriptor]:
        """列出未过期的预览，过程中会清理已过期的预览

        参数:
            site_id: 只列出该站点的预览，为 None 时列出全部

        返回:
            list[PreviewDescriptor]: 预览摘要
        """
        result = []
        for preview_id in await self.store.list_ids(PREVIEWS_COLLECTION):
            preview = await self._load_stored(preview_id)
            if preview is None:
                continue
            if site_id is not None and preview.site_id != site_id:
                continue
            if preview.is_expired:
                await self.delete_preview(preview_id)
                continue
            result.append(self._descriptor(preview))
        return result

    async def cleanup_expired_previews(self) -> int:
        """删除所有已过期的预览

        返回:
            int: 删除的数量
        """
        removed = 0
        for preview_id in await self.store.list_ids(PREVIEWS_COLLECTION):
            preview = await self._load_stored(preview_id)
            if preview is not None and preview.is_expired:
                await self.delete_preview(preview_id)
                removed += 1
        for preview_id, preview in list(self._previews.items()):
            if preview.is_expired:
                await self.delete_preview(preview_id)
                removed += 1
        if removed:
            self.logger.info(f"清理了 {removed} 个过期预览", LOG_COMMAND)
        return removed
