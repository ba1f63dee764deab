from pathlib import Path

import pytest

from sitedesign.configs.config import DesignConfig
from sitedesign.services.cache import DesignCache
from sitedesign.services.design import (
    BootstrapAdapter,
    ComponentManager,
    DesignService,
    PreviewService,
    RendererMode,
    TemplateRenderer,
    ThemeManager,
)
from sitedesign.services.store import FileAssetStore, MemoryDocumentStore
from tests.utils import write_component, write_template

SHOP_TEMPLATE = (
    "<html><head><title>{{ site.name }}</title></head><body>\n"
    '{% include "header/nav" %}\n'
    "<main>{% for product in products.featured %}"
    '{% include "product/product-card" %}'
    "{% endfor %}</main>\n"
    '{% if cart and cart.count %}<span class="cart">{{ cart.count }}</span>'
    '{% else %}<span class="cart-empty"></span>{% endif %}\n'
    "</body></html>"
)

BOOTSTRAP_TEMPLATE = (
    '<html><head><link href="{{ bootstrap.css_link }}" rel="stylesheet">\n'
    "<style>{{ bootstrap.css_variables }}</style></head><body>\n"
    '{% include "bootstrap/navbar/bs-navbar" %}\n'
    "</body></html>"
)


@pytest.fixture
def components_dir(tmp_path: Path) -> Path:
    root = tmp_path / "components"
    write_component(
        root,
        "header",
        "nav",
        html="<nav>{{ site.name }}</nav>",
        config={"name": "Nav", "description": "导航栏"},
        css=".nav { color: var(--color-primary); }",
    )
    write_component(
        root,
        "product",
        "product-card",
        html=(
            '<div class="card">'
            "{{ product.name }} {{ product.price | currency }}</div>"
        ),
        config={
            "name": "Product Card",
            "version": "1.2.0",
            "options": [
                {"id": "style", "type": "select", "default": "default"},
                {"id": "showRatings", "type": "boolean", "default": True},
            ],
        },
        css=".card { padding: 1rem; }",
        js="console.log('card');",
    )
    write_component(
        root,
        "banner",
        "hero",
        html=(
            '<section class="hero hero-{{ options.style }}">{{ title }}'
            "{% if options.showButton %}<button>Go</button>{% endif %}</section>"
        ),
        config={
            "name": "Hero",
            "options": [
                {"id": "style", "default": "light"},
                {"id": "showButton", "type": "boolean", "default": False},
            ],
        },
    )
    write_component(
        root,
        "footer",
        "standard-footer",
        html="<footer>{{ site.name }}</footer>",
        config={"name": "Footer"},
        js="console.log('footer');",
    )
    write_component(root, "footer", "broken", config=None, css=".broken {}")
    write_component(
        root,
        "bootstrap/navbar",
        "bs-navbar",
        html='<nav class="navbar">{{ site.name }}</nav>',
        config={"name": "Bootstrap Navbar"},
        css=".navbar { border: 0; }",
    )
    write_component(
        root,
        "bootstrap/header",
        "bs-navbar",
        html='<nav class="navbar navbar-expand">{{ site.name }}</nav>',
        config={"name": "Bootstrap Header"},
    )
    return root


@pytest.fixture
def templates_dir(tmp_path: Path) -> Path:
    root = tmp_path / "templates"
    write_template(root, "ecommerce", "modern-shop", SHOP_TEMPLATE)
    write_template(root, "bootstrap", "bs-ecommerce", BOOTSTRAP_TEMPLATE)
    return root


@pytest.fixture
def cache() -> DesignCache:
    return DesignCache(prefix="TEST")


@pytest.fixture
def document_store() -> MemoryDocumentStore:
    return MemoryDocumentStore()


@pytest.fixture
def renderer(
    templates_dir: Path, components_dir: Path, cache: DesignCache
) -> TemplateRenderer:
    return TemplateRenderer(
        FileAssetStore(templates_dir), FileAssetStore(components_dir), cache=cache
    )


@pytest.fixture
def framework_renderer(
    templates_dir: Path, components_dir: Path, cache: DesignCache
) -> TemplateRenderer:
    return TemplateRenderer(
        FileAssetStore(templates_dir),
        FileAssetStore(components_dir),
        cache=cache,
        mode=RendererMode.FRAMEWORK,
        adapter=BootstrapAdapter(cache=cache),
    )


@pytest.fixture
def component_manager(
    components_dir: Path, renderer: TemplateRenderer, cache: DesignCache
) -> ComponentManager:
    return ComponentManager(FileAssetStore(components_dir), renderer, cache)


@pytest.fixture
def theme_manager(
    document_store: MemoryDocumentStore,
    cache: DesignCache,
    renderer: TemplateRenderer,
) -> ThemeManager:
    return ThemeManager(document_store, cache=cache, renderer=renderer)


@pytest.fixture
def preview_service(
    theme_manager: ThemeManager,
    renderer: TemplateRenderer,
    cache: DesignCache,
) -> PreviewService:
    return PreviewService(
        theme_manager, MemoryDocumentStore(), renderer=renderer, cache=cache
    )


@pytest.fixture
def design_config(
    tmp_path: Path, templates_dir: Path, components_dir: Path
) -> DesignConfig:
    return DesignConfig(
        themes_dir=tmp_path / "themes",
        templates_dir=templates_dir,
        components_dir=components_dir,
        previews_dir=tmp_path / "previews",
        framework_mode=True,
    )


@pytest.fixture
def design_service(design_config: DesignConfig) -> DesignService:
    return DesignService.from_config(design_config, cache=DesignCache(prefix="TEST"))
