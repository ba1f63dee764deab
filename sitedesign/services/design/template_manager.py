from pathlib import Path

import ujson as json

from sitedesign.services.cache import DesignCache
from sitedesign.services.log import Logger, logger as default_logger
from sitedesign.utils.exception import TemplateNotFoundError

from .config import THEME_CACHE_EXPIRE, ListOptions
from .models import Template, TemplateSummary

LOG_COMMAND = "TemplateManager"

BUILTIN_TEMPLATES_PATH = Path(__file__).parent / "builtin_templates.json"


def load_builtin_templates(path: Path = BUILTIN_TEMPLATES_PATH) -> list[Template]:
    """读取内置模板"""
    data = json.loads(path.read_text(encoding="utf-8"))
    return [Template.model_validate(item) for item in data]


class TemplateManager:
    """
    模板目录

    内置模板随包发布，可以通过 register_template 注册更多模板。
    """

    def __init__(
        self,
        cache: DesignCache | None = None,
        templates: list[Template] | None = None,
        cache_expire: int = THEME_CACHE_EXPIRE,
        logger: Logger | None = None,
    ):
        self.cache = cache
        self.cache_expire = cache_expire
        self.logger = logger or default_logger
        self._templates: dict[str, Template] = {
            template.id: template
            for template in (
                templates if templates is not None else load_builtin_templates()
            )
        }

    async def list_templates(
        self, options: ListOptions | None = None
    ) -> list[TemplateSummary]:
        """列出模板摘要

        参数:
            options: 列表选项

        返回:
            list[TemplateSummary]: 模板摘要
        """
        options = options or ListOptions()
        key = f"catalog:templates:{options.category or 'all'}"
        if self.cache and (cached := await self.cache.get(key)) is not None:
            return [TemplateSummary.model_validate(item) for item in cached]
        result = [
            template.summary()
            for template in self._templates.values()
            if not options.category or template.category == options.category
        ]
        if self.cache:
            await self.cache.set(
                key, [item.to_json() for item in result], self.cache_expire
            )
        return result

    async def get_template_by_id(self, template_id: str) -> Template:
        """获取模板详情

        异常:
            TemplateNotFoundError: 模板不存在
        """
        key = f"catalog:template:{template_id}"
        if self.cache and (cached := await self.cache.get(key)) is not None:
            return Template.model_validate(cached)
        template = self._templates.get(template_id)
        if template is None:
            raise TemplateNotFoundError(template_id)
        if self.cache:
            await self.cache.set(key, template.to_json(), self.cache_expire)
        return template

    async def register_template(self, template: Template) -> Template:
        """注册模板，相同ID的模板会被替换"""
        previous = self._templates.get(template.id)
        self._templates[template.id] = template
        if self.cache:
            categories = {"all", template.category}
            if previous:
                categories.add(previous.category)
            for category in categories:
                await self.cache.delete(f"catalog:templates:{category}")
            await self.cache.delete(f"catalog:template:{template.id}")
        self.logger.info(f"注册模板: {template.id}", LOG_COMMAND)
        return template
