import pytest

from sitedesign.services.design import dsl
from sitedesign.utils.exception import TemplateSyntaxError


def test_parse_include() -> None:
    """
    测试解析 include 指令
    """
    nodes = dsl.parse('<div>{% include "header/modern-header" %}</div>')
    assert len(nodes) == 3
    include = nodes[1]
    assert isinstance(include, dsl.Include)
    assert include.category == "header"
    assert include.component_id == "modern-header"
    assert include.key == "header_modern_header"


def test_translate_include() -> None:
    """
    测试 include 生成为局部模板引用
    """
    assert (
        dsl.translate("a{% include 'product/product-card' %}b")
        == 'a{% include "product_product_card" %}b'
    )


def test_translate_nested_blocks() -> None:
    """
    测试嵌套的 for/if 块
    """
    source = (
        "{% for p in products.featured %}"
        "{% if p.discount %}<b>{% include \"product/badge\" %}</b>"
        "{% else %}<i></i>{% endif %}"
        "{% for img in p.images %}<img>{% endfor %}"
        "{% endfor %}"
    )
    nodes = dsl.parse(source)
    assert len(nodes) == 1
    loop = nodes[0]
    assert isinstance(loop, dsl.For)
    assert loop.target == "p"
    assert loop.iterable == "products.featured"
    branch, inner = loop.body
    assert isinstance(branch, dsl.If)
    assert branch.condition == "p.discount"
    assert branch.orelse is not None
    assert isinstance(inner, dsl.For)
    assert dsl.translate(source) == (
        "{% for p in products.featured %}"
        '{% if p.discount %}<b>{% include "product_badge" %}</b>'
        "{% else %}<i></i>{% endif %}"
        "{% for img in p.images %}<img>{% endfor %}"
        "{% endfor %}"
    )


def test_expressions_untouched() -> None:
    """
    测试表达式与注释原样保留
    """
    source = "{{ product.price | currency }}{# note #}"
    assert dsl.translate(source) == source


def test_comments_are_not_parsed() -> None:
    """
    测试注释中的指令不会被解析，也不会被当作组件引用
    """
    source = '{# {% include "x/y" %} {% if a %} #}<p>{% include "header/nav" %}</p>'
    nodes = dsl.parse(source)
    assert dsl.collect_includes(nodes) == ["header/nav"]
    assert dsl.translate(source) == (
        '{# {% include "x/y" %} {% if a %} #}<p>{% include "header_nav" %}</p>'
    )


def test_whitespace_control_preserved() -> None:
    """
    测试空白控制符被保留到生成的 Jinja2 标签中
    """
    assert dsl.translate('a {%- include "header/nav" -%} b') == (
        'a {%- include "header_nav" -%} b'
    )
    assert dsl.translate(
        "{%- for p in items -%}{{ p }}{%- endfor %}"
        "{% if a -%}x{%- else -%}y{%- endif -%}"
    ) == (
        "{%- for p in items -%}{{ p }}{%- endfor %}"
        "{% if a -%}x{%- else -%}y{%- endif -%}"
    )


def test_collect_includes_dedup_in_order() -> None:
    """
    测试收集组件路径时去重并保持顺序
    """
    nodes = dsl.parse(
        '{% include "a/x" %}{% if y %}{% include "b/y" %}'
        '{% else %}{% include "a/x" %}{% endif %}'
        '{% for i in items %}{% include "c/z" %}{% endfor %}'
    )
    assert dsl.collect_includes(nodes) == ["a/x", "b/y", "c/z"]


def test_multi_level_category() -> None:
    """
    测试多级分类的组件路径
    """
    assert dsl.split_component_path("bootstrap/navbar/bs-navbar") == (
        "bootstrap/navbar",
        "bs-navbar",
    )
    assert dsl.partial_key("bootstrap/navbar", "bs-navbar") == (
        "bootstrap_navbar_bs_navbar"
    )


@pytest.mark.parametrize(
    ("source", "lineno"),
    [
        ("{% for x in items %}<li>", 1),
        ("\n\n{% if x %}a", 3),
        ("a{% endif %}", 1),
        ("{% else %}", 1),
        ("{% for x in items %}{% endif %}", 1),
        ("line\n{% include header %}", 2),
        ("{% macro x() %}", 1),
    ],
)
def test_syntax_errors(source: str, lineno: int) -> None:
    """
    测试不匹配的块与无效指令
    """
    with pytest.raises(TemplateSyntaxError) as exc_info:
        dsl.parse(source)
    assert exc_info.value.lineno == lineno


def test_invalid_component_path() -> None:
    """
    测试不含分类的组件路径
    """
    with pytest.raises(TemplateSyntaxError):
        dsl.split_component_path("header")
