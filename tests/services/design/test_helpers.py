from datetime import datetime, timezone

from jinja2 import Environment
from markupsafe import Markup
import pytest

from sitedesign.configs.config import CurrencyFormat
from sitedesign.services.design.helpers import (
    bs_col,
    bs_icon,
    format_currency,
    format_date,
    in_array,
    register_bootstrap_helpers,
    register_helpers,
    screen_size,
    truncate,
)


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (1234.56, "R$ 1.234,56"),
        ("99.9", "R$ 99,90"),
        (0, "R$ 0,00"),
        (-1, "-R$ 1,00"),
        (1234567.891, "R$ 1.234.567,89"),
        ("abc", "abc"),
        (None, ""),
    ],
)
def test_format_currency(value, expected: str) -> None:
    """
    测试默认货币格式
    """
    assert format_currency(value) == expected


def test_format_currency_custom() -> None:
    """
    测试自定义货币格式
    """
    fmt = CurrencyFormat(
        symbol="$", decimal_separator=".", thousands_separator=",", digits=2
    )
    assert format_currency(1234.5, fmt) == "$ 1,234.50"
    assert format_currency(12, CurrencyFormat(symbol="¥", digits=0)) == "¥ 12"


def test_truncate() -> None:
    """
    测试文本截断
    """
    assert truncate("a" * 60) == "a" * 50 + "..."
    assert truncate("short") == "short"
    assert truncate("abcdef", 3) == "abc..."
    assert truncate(None) == ""


def test_format_date() -> None:
    """
    测试日期格式化
    """
    moment = datetime(2024, 3, 5, 14, 30, 15, tzinfo=timezone.utc)
    assert format_date(moment) == "05/03/2024"
    assert format_date(moment, "datetime") == "05/03/2024 14:30:15"
    assert format_date(moment, "time", "America/Sao_Paulo") == "11:30:15"
    assert format_date("2024-03-05T14:30:15Z", "%Y-%m-%d") == "2024-03-05"
    assert format_date(None) == ""
    assert format_date("") == ""


def test_in_array() -> None:
    assert in_array(["a", "b"], "a")
    assert not in_array(["a"], "c")
    assert not in_array(None, "a")


@pytest.mark.parametrize(
    ("size", "operator", "breakpoint", "expected"),
    [
        ("sm", "lt", "md", True),
        ("md", "lte", "md", True),
        ("xl", "gt", "lg", True),
        ("xs", "gte", "sm", False),
        ("lg", "eq", "lg", True),
        ("lg", "ne", "lg", False),
        ("huge", "lt", "md", False),
    ],
)
def test_screen_size(size: str, operator: str, breakpoint: str, expected: bool) -> None:
    """
    测试断点比较
    """
    assert screen_size(size, operator, breakpoint) is expected


def test_bs_col_and_icon() -> None:
    """
    测试栅格类名与图标
    """
    assert bs_col() == "col-12 col-sm-6 col-md-4 col-lg-3 col-xl-3"
    assert bs_col(md=6, xl=2) == "col-12 col-sm-6 col-md-6 col-lg-3 col-xl-2"
    icon = bs_icon("cart", "me-1")
    assert isinstance(icon, Markup)
    assert icon == '<i class="bi bi-cart me-1"></i>'
    assert bs_icon("star") == '<i class="bi bi-star"></i>'


async def test_registered_helpers() -> None:
    """
    测试辅助函数在模板中可用
    """
    env = Environment(enable_async=True, autoescape=True)
    register_helpers(env, CurrencyFormat(symbol="€"), "UTC")
    register_bootstrap_helpers(env)
    template = env.from_string(
        "{{ 10 | currency }}|{{ text | truncate(3) }}|{{ data | dump_json }}|"
        "{{ bs_icon('house') }}|{% if 'a' is in_array(items) %}yes{% endif %}|"
        "{{ '2024-01-02T00:00:00Z' | date }}"
    )
    result = await template.render_async(
        text="abcdef", data={"a": 1}, items=["a", "b"]
    )
    assert result == (
        "€ 10,00|abc...|{&#34;a&#34;:1}|"
        '<i class="bi bi-house"></i>|yes|02/01/2024'
    )
