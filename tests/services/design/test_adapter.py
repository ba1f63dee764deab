import pytest
from pytest_mock import MockerFixture

from sitedesign.services.cache import DesignCache
from sitedesign.services.design import BootstrapAdapter, Theme


@pytest.mark.parametrize(
    ("colors", "expected"),
    [
        ({"accent": "#ff0000"}, "--bs-danger: #ff0000;"),
        ({"accent": "#ff0000", "error": "#00ff00"}, "--bs-danger: #ff0000;"),
        ({"error": "#00ff00"}, "--bs-danger: #00ff00;"),
        ({"primary": "#111111"}, "--bs-danger: #dc3545;"),
        ({"secondary": "#222222"}, "--bs-success: #222222;"),
        ({"success": "#333333", "secondary": "#222222"}, "--bs-success: #333333;"),
        ({"background": "#fafafa"}, "--bs-body-bg: #fafafa;"),
        ({"text": "#010101"}, "--bs-body-color: #010101;"),
        ({"primary": "#111111"}, "--bs-light: #f8f9fa;"),
    ],
)
async def test_color_fallback_chain(colors: dict, expected: str) -> None:
    """
    测试颜色变量的回退链
    """
    css = await BootstrapAdapter().generate_css_variables({"colors": colors})
    assert f"  {expected}" in css.splitlines()


async def test_css_variables_typography_and_buttons() -> None:
    """
    测试排版、圆角与按钮规则
    """
    theme = Theme(
        id="t1",
        typography={"headingFont": "Montserrat", "baseFontSize": "16px"},
        borders={"radius": "8px"},
        components={
            "buttons": {
                "padding": {"vertical": "0.5rem", "horizontal": "1rem"},
                "borderRadius": "4px",
            }
        },
    )
    css = await BootstrapAdapter().generate_css_variables(theme)
    assert "  --bs-heading-font-family: Montserrat;" in css
    assert "  --bs-body-font-size: 16px;" in css
    assert "  --bs-body-font-family: system-ui" in css
    assert "  --bs-border-radius: 8px;" in css
    assert "font-family: var(--bs-heading-font-family) !important;" in css
    assert "  padding: 0.5rem 1rem !important;" in css
    assert "  border-radius: 4px !important;" in css


async def test_css_variables_empty_theme() -> None:
    """
    测试空主题只输出空的 :root 块
    """
    css = await BootstrapAdapter().generate_css_variables({})
    assert css == ":root {\n}\n"


async def test_sass_variables() -> None:
    """
    测试 Sass 变量
    """
    theme = {
        "colors": {"primary": "#111111", "accent": "#ff0000"},
        "typography": {
            "bodyFont": "Roboto",
            "baseFontSize": "18px",
            "fontSize": {"h1": "3rem"},
            "h2": {"fontSize": "2.5rem"},
        },
        "spacing": {"base": "24px"},
        "borders": {"radius": "6px", "buttonRadius": "3px"},
        "components": {
            "buttons": {"padding": {"vertical": "0.4rem", "horizontal": "0.8rem"}},
            "card": {"background": "#fff", "borderRadius": "10px"},
        },
    }
    sass = await BootstrapAdapter().generate_sass_variables(theme)
    lines = sass.splitlines()
    assert "$primary: #111111;" in lines
    assert "$danger: #ff0000;" in lines
    assert "$font-family-base: Roboto;" in lines
    assert "$font-size-base: 1.125rem;" in lines
    assert "$h1-font-size: 3rem;" in lines
    assert "$h2-font-size: 2.5rem;" in lines
    assert "$spacer: 1.5rem;" in lines
    assert "$border-radius: 6px;" in lines
    assert "$btn-border-radius: 3px;" in lines
    assert "$btn-padding-y: 0.4rem;" in lines
    assert "$btn-padding-x: 0.8rem;" in lines
    assert "$card-bg: #fff;" in lines
    assert "$card-border-radius: 10px;" in lines


async def test_css_variables_cached(mocker: MockerFixture) -> None:
    """
    测试相同主题命中缓存，不同主题使用不同的缓存键
    """
    adapter = BootstrapAdapter(cache=DesignCache(prefix="TEST"))
    build = mocker.spy(BootstrapAdapter, "build_css_variables")
    theme = {"colors": {"primary": "#111111"}}

    first = await adapter.generate_css_variables(theme)
    second = await adapter.generate_css_variables(dict(theme))
    assert first == second
    assert build.call_count == 1

    await adapter.generate_css_variables({"colors": {"primary": "#222222"}})
    assert build.call_count == 2
    assert adapter.cache_key("css", theme) != adapter.cache_key(
        "css", {"colors": {"primary": "#222222"}}
    )


def test_cdn_links() -> None:
    """
    测试 CDN 地址
    """
    adapter = BootstrapAdapter(bootstrap_version="5.2.3")
    assert adapter.get_cdn_link() == (
        "https://cdn.jsdelivr.net/npm/bootstrap@5.2.3/dist/css/bootstrap.min.css"
    )
    assert "bootstrap-dark-5@5.2.3" in adapter.get_cdn_link("bootstrap-dark")
    assert "bootstrap-icons@1.10.0" in adapter.get_cdn_link("bootstrap-icons")
    scripts = adapter.get_scripts()
    assert "bootstrap@5.2.3/dist/js/bootstrap.bundle.min.js" in scripts["bootstrap"]
    assert "@popperjs/core@2.11.6" in scripts["popper"]


@pytest.mark.parametrize(
    ("component_type", "component_id", "expected"),
    [
        ("header", "modern-header", "bs-navbar"),
        ("footer", "ecommerce-footer", "bs-footer-ecommerce"),
        ("cart", "cart-summary", "bs-cart-summary"),
        ("header", "unknown", "bs-header-default"),
        ("gallery", "slider", "bs-gallery-default"),
    ],
)
def test_map_component_to_bootstrap(
    component_type: str, component_id: str, expected: str
) -> None:
    """
    测试通用组件到 Bootstrap 组件的映射
    """
    assert (
        BootstrapAdapter.map_component_to_bootstrap(component_type, component_id)
        == expected
    )


async def test_empty_colors_use_defaults() -> None:
    """
    测试 colors 为空映射时输出全部默认颜色
    """
    adapter = BootstrapAdapter()
    css = await adapter.generate_css_variables({"colors": {}})
    assert css.count("--bs-") == 10
    assert "  --bs-primary: #0d6efd;" in css
    assert "  --bs-danger: #dc3545;" in css
    assert "  --bs-body-bg: #ffffff;" in css

    sass = await adapter.generate_sass_variables({"colors": {}})
    assert "$success: #198754;" in sass
    assert "$body-color: #212529;" in sass
