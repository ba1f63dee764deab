import pytest

from sitedesign.services.cache import DesignCache
from sitedesign.services.design import ListOptions, Template, TemplateManager
from sitedesign.services.design.template_manager import load_builtin_templates
from sitedesign.utils.exception import TemplateNotFoundError


def test_builtin_templates() -> None:
    """
    测试内置模板
    """
    templates = load_builtin_templates()
    ids = [template.id for template in templates]
    assert ids == [
        "modern-shop",
        "classic-store",
        "boutique",
        "tech-store",
        "minimal-blog",
    ]
    modern = templates[0]
    assert modern.theme.id == "theme_modern_shop"
    assert modern.theme.colors["primary"] == "#3498db"
    assert modern.components


async def test_list_templates_by_category() -> None:
    """
    测试按分类列出模板
    """
    manager = TemplateManager(cache=DesignCache(prefix="TEST"))
    everything = await manager.list_templates()
    assert len(everything) == 5
    blog = await manager.list_templates(ListOptions(category="blog"))
    assert [t.id for t in blog] == ["minimal-blog"]
    assert await manager.list_templates(ListOptions(category="none")) == []


async def test_get_template_by_id() -> None:
    """
    测试获取模板详情
    """
    manager = TemplateManager()
    template = await manager.get_template_by_id("boutique")
    assert template.category == "ecommerce"
    with pytest.raises(TemplateNotFoundError):
        await manager.get_template_by_id("missing")


async def test_register_template_invalidates_cache() -> None:
    """
    测试注册模板后列表缓存失效
    """
    manager = TemplateManager(cache=DesignCache(prefix="TEST"), templates=[])
    assert await manager.list_templates() == []
    await manager.register_template(
        Template(id="bs-ecommerce", name="Bootstrap", category="bootstrap")
    )
    summaries = await manager.list_templates()
    assert [t.id for t in summaries] == ["bs-ecommerce"]
    template = await manager.get_template_by_id("bs-ecommerce")
    assert template.name == "Bootstrap"
