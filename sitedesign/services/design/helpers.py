"""
模板辅助函数

注册到 Jinja2 环境中的过滤器与全局函数:

- `currency`: 货币格式化，例如 `{{ price|currency }}` -> `R$ 1.234,56`
- `truncate`: 截断文本并追加省略号，例如 `{{ text|truncate(20) }}`
- `date`: 日期格式化，例如 `{{ created|date("long") }}`
- `dump_json`: 序列化为 JSON 文本

Bootstrap 模式下额外提供 `in_array`、`screen_size`、`bs_col`、`bs_icon`。
"""

from collections.abc import Iterable
from datetime import date, datetime
from typing import Any

from jinja2 import Environment
from markupsafe import Markup, escape
import ujson as json

from sitedesign.configs.config import CurrencyFormat
from sitedesign.utils.time_utils import TimeUtils

BREAKPOINTS: dict[str, int] = {
    "xs": 0,
    "sm": 576,
    "md": 768,
    "lg": 992,
    "xl": 1200,
    "xxl": 1400,
}
"""Bootstrap 断点（px）"""

DEFAULT_COLUMNS: dict[str, int] = {"xs": 12, "sm": 6, "md": 4, "lg": 3, "xl": 3}
"""bs_col 的默认列宽"""


def format_currency(value: Any, fmt: CurrencyFormat | None = None) -> str:
    """格式化货币

    参数:
        value: 金额，可以是数字或数字字符串
        fmt: 货币格式，为 None 时使用默认的 R$ 格式

    返回:
        str: 格式化后的金额，无法解析时原样返回
    """
    fmt = fmt or CurrencyFormat()
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return "" if value is None else str(value)
    text = f"{abs(amount):,.{fmt.digits}f}"
    integer, _, fraction = text.partition(".")
    integer = integer.replace(",", fmt.thousands_separator)
    number = f"{integer}{fmt.decimal_separator}{fraction}" if fraction else integer
    sign = "-" if amount < 0 and round(abs(amount), fmt.digits) else ""
    return f"{sign}{fmt.symbol} {number}"


def truncate(text: Any, length: int = 50) -> str:
    """截断文本，超出长度时截取前 length 个字符并追加 `...`"""
    if not text:
        return ""
    text = str(text)
    if len(text) <= length:
        return text
    return f"{text[:length]}..."


def format_date(
    value: str | datetime | date | float | None,
    fmt: str = "short",
    tz: str | None = None,
) -> str:
    """格式化日期，空值返回空字符串"""
    if value is None or value == "":
        return ""
    return TimeUtils.format_date(value, fmt, tz)


def dump_json(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False)


def in_array(array: Iterable[Any] | None, value: Any) -> bool:
    """值是否在列表中"""
    if not array:
        return False
    return value in array


def screen_size(size: str, operator: str, breakpoint: str) -> bool:
    """比较两个 Bootstrap 断点

    参数:
        size: 当前断点，例如 md
        operator: lt/lte/gt/gte/eq
        breakpoint: 比较的断点

    返回:
        bool: 比较结果，未知的断点或运算符返回 False
    """
    if size not in BREAKPOINTS or breakpoint not in BREAKPOINTS:
        return False
    left, right = BREAKPOINTS[size], BREAKPOINTS[breakpoint]
    match operator:
        case "lt":
            return left < right
        case "lte":
            return left <= right
        case "gt":
            return left > right
        case "gte":
            return left >= right
        case "eq":
            return left == right
    return False


def bs_col(**sizes: int) -> str:
    """生成 Bootstrap 栅格类名，例如 bs_col(md=6) -> `col-12 col-sm-6 col-md-6 ...`"""
    merged = {**DEFAULT_COLUMNS, **sizes}
    return " ".join(
        f"col-{cols}" if size == "xs" else f"col-{size}-{cols}"
        for size, cols in merged.items()
    )


def bs_icon(name: str, class_: str = "") -> Markup:
    """生成 Bootstrap 图标标签"""
    classes = f"bi bi-{escape(name)} {escape(class_)}".rstrip()
    return Markup(f'<i class="{classes}"></i>')


def register_helpers(
    env: Environment,
    currency_format: CurrencyFormat | None = None,
    timezone: str | None = None,
):
    """向 Jinja2 环境注册通用辅助函数

    参数:
        env: Jinja2 环境
        currency_format: 货币格式
        timezone: 日期格式化使用的时区
    """
    env.filters["currency"] = lambda value: format_currency(value, currency_format)
    env.filters["truncate"] = truncate
    env.filters["date"] = lambda value, fmt="short": format_date(value, fmt, timezone)
    env.filters["dump_json"] = dump_json
    env.globals["currency"] = env.filters["currency"]
    env.globals["truncate"] = truncate
    env.globals["date"] = env.filters["date"]


def register_bootstrap_helpers(env: Environment):
    """向 Jinja2 环境注册 Bootstrap 辅助函数"""
    env.globals["in_array"] = in_array
    env.globals["screen_size"] = screen_size
    env.globals["bs_col"] = bs_col
    env.globals["bs_icon"] = bs_icon
    env.tests["in_array"] = lambda value, array: in_array(array, value)
