"""
模板指令语言

模板源码是普通的标记文本，其中可以嵌入少量指令:

- `{% include "category/id" %}`: 在此处插入组件
- `{% for item in products.featured %} ... {% endfor %}`: 遍历列表
- `{% if cond %} ... {% else %} ... {% endif %}`: 条件分支，else 可省略

`{{ 表达式 }}` 与 `{# 注释 #}` 原样保留，由 Jinja2 处理。

源码先被解析为由 Literal/Include/For/If 节点组成的语法树，再生成
Jinja2 源码。块可以任意嵌套，不匹配的块和未知指令会抛出 TemplateSyntaxError。
"""

from collections.abc import Iterator
from dataclasses import dataclass, field
import re

from sitedesign.utils.exception import TemplateSyntaxError

TAG_PATTERN = re.compile(
    r"(?P<comment>\{#.*?#\})"
    r"|\{%(?P<left>-?)\s*(?P<body>.*?)\s*(?P<right>-?)%\}",
    re.DOTALL,
)

INCLUDE_PATTERN = re.compile(
    r"^include\s+(?P<quote>[\"'])(?P<path>[\w\-]+(?:/[\w\-]+)+)(?P=quote)$"
)
FOR_PATTERN = re.compile(
    r"^for\s+(?P<target>[A-Za-z_]\w*)\s+in\s+(?P<iterable>[A-Za-z_]\w*(?:\.\w+)*)$"
)
IF_PATTERN = re.compile(r"^if\s+(?P<condition>.+)$", re.DOTALL)


def split_component_path(path: str) -> tuple[str, str]:
    """将组件路径拆分为 (分类, 组件ID)

    分类可以包含多级，例如 `bootstrap/navbar/bs-navbar` 的分类为 `bootstrap/navbar`。

    参数:
        path: 组件路径

    返回:
        tuple[str, str]: 分类, 组件ID
    """
    category, sep, component_id = path.strip("/").rpartition("/")
    if not sep or not category or not component_id:
        raise TemplateSyntaxError(f"组件路径必须为 'category/id' 格式: '{path}'")
    return category, component_id


def partial_key(category: str, component_id: str) -> str:
    """局部模板的键，例如 header/modern-header -> header_modern_header"""
    return f"{category}_{component_id}".replace("/", "_").replace("-", "_")


Markers = tuple[str, str]
"""标签两侧的空白控制符 (`-` 或空字符串)，生成 Jinja2 源码时原样保留"""

NO_MARKERS: Markers = ("", "")


def _tag(body: str, markers: Markers) -> str:
    left, right = markers
    return f"{{%{left} {body} {right}%}}"


@dataclass
class Literal:
    text: str


@dataclass
class Include:
    path: str
    lineno: int = 0
    markers: Markers = NO_MARKERS

    @property
    def category(self) -> str:
        return split_component_path(self.path)[0]

    @property
    def component_id(self) -> str:
        return split_component_path(self.path)[1]

    @property
    def key(self) -> str:
        return partial_key(self.category, self.component_id)


@dataclass
class For:
    target: str
    iterable: str
    body: list["Node"] = field(default_factory=list)
    lineno: int = 0
    markers: Markers = NO_MARKERS
    end_markers: Markers = NO_MARKERS


@dataclass
class If:
    condition: str
    body: list["Node"] = field(default_factory=list)
    orelse: list["Node"] | None = None
    lineno: int = 0
    markers: Markers = NO_MARKERS
    else_markers: Markers = NO_MARKERS
    end_markers: Markers = NO_MARKERS


Node = Literal | Include | For | If


@dataclass
class _Token:
    kind: str
    """text 或 tag"""
    value: str
    lineno: int
    markers: Markers = NO_MARKERS


def _tokenize(source: str) -> Iterator[_Token]:
    """切分为文本与指令，`{# 注释 #}` 作为文本保留，其中的指令不会被解析"""
    position = 0
    lineno = 1
    for match in TAG_PATTERN.finditer(source):
        if match.start() > position:
            text = source[position : match.start()]
            yield _Token("text", text, lineno)
            lineno += text.count("\n")
        if match.group("comment") is not None:
            yield _Token("text", match.group(0), lineno)
        else:
            yield _Token(
                "tag",
                match.group("body").strip(),
                lineno,
                (match.group("left"), match.group("right")),
            )
        lineno += match.group(0).count("\n")
        position = match.end()
    if position < len(source):
        yield _Token("text", source[position:], lineno)


class _Parser:
    def __init__(self, source: str):
        self.tokens = list(_tokenize(source))
        self.index = 0

    def parse(self) -> list[Node]:
        nodes, end = self._parse_block(())
        if end is not None:
            raise TemplateSyntaxError(f"多余的指令 '{end.value}'", end.lineno)
        return nodes

    def _parse_block(
        self, terminators: tuple[str, ...]
    ) -> tuple[list[Node], _Token | None]:
        """解析到 terminators 中的任一指令为止，返回节点和终止指令"""
        nodes: list[Node] = []
        while self.index < len(self.tokens):
            token = self.tokens[self.index]
            self.index += 1
            if token.kind == "text":
                nodes.append(Literal(token.value))
                continue
            keyword = token.value.split(None, 1)[0] if token.value else ""
            if keyword in terminators:
                return nodes, token
            if keyword in ("else", "endfor", "endif"):
                raise TemplateSyntaxError(f"意外的指令 '{token.value}'", token.lineno)
            nodes.append(self._parse_directive(token))
        return nodes, None

    def _parse_directive(self, token: _Token) -> Node:
        if match := INCLUDE_PATTERN.match(token.value):
            path = match.group("path")
            split_component_path(path)
            return Include(path=path, lineno=token.lineno, markers=token.markers)
        if match := FOR_PATTERN.match(token.value):
            body, end = self._parse_block(("endfor",))
            if end is None:
                raise TemplateSyntaxError("for 块缺少 endfor", token.lineno)
            return For(
                target=match.group("target"),
                iterable=match.group("iterable"),
                body=body,
                lineno=token.lineno,
                markers=token.markers,
                end_markers=end.markers,
            )
        if match := IF_PATTERN.match(token.value):
            body, end = self._parse_block(("else", "endif"))
            if end is None:
                raise TemplateSyntaxError("if 块缺少 endif", token.lineno)
            orelse = None
            else_markers = NO_MARKERS
            if end.value == "else":
                else_markers = end.markers
                orelse, end = self._parse_block(("endif",))
                if end is None:
                    raise TemplateSyntaxError("if 块缺少 endif", token.lineno)
            elif end.value != "endif":
                raise TemplateSyntaxError(f"无效的指令 '{end.value}'", end.lineno)
            return If(
                condition=match.group("condition").strip(),
                body=body,
                orelse=orelse,
                lineno=token.lineno,
                markers=token.markers,
                else_markers=else_markers,
                end_markers=end.markers,
            )
        raise TemplateSyntaxError(f"无法识别的指令 '{token.value}'", token.lineno)


def parse(source: str) -> list[Node]:
    """将模板源码解析为语法树

    参数:
        source: 模板源码

    返回:
        list[Node]: 语法树的顶层节点
    """
    return _Parser(source).parse()


def iter_includes(nodes: list[Node]) -> Iterator[Include]:
    """按出现顺序遍历所有 include 节点（包括嵌套块中的）"""
    for node in nodes:
        if isinstance(node, Include):
            yield node
        elif isinstance(node, For):
            yield from iter_includes(node.body)
        elif isinstance(node, If):
            yield from iter_includes(node.body)
            if node.orelse is not None:
                yield from iter_includes(node.orelse)


def collect_includes(nodes: list[Node]) -> list[str]:
    """收集去重后的组件路径，保持首次出现的顺序"""
    seen: dict[str, None] = {}
    for include in iter_includes(nodes):
        seen.setdefault(include.path, None)
    return list(seen)


def lower(nodes: list[Node]) -> str:
    """将语法树生成为 Jinja2 源码

    参数:
        nodes: 语法树

    返回:
        str: Jinja2 源码
    """
    parts: list[str] = []
    for node in nodes:
        if isinstance(node, Literal):
            parts.append(node.text)
        elif isinstance(node, Include):
            parts.append(_tag(f'include "{node.key}"', node.markers))
        elif isinstance(node, For):
            parts.append(_tag(f"for {node.target} in {node.iterable}", node.markers))
            parts.append(lower(node.body))
            parts.append(_tag("endfor", node.end_markers))
        else:
            parts.append(_tag(f"if {node.condition}", node.markers))
            parts.append(lower(node.body))
            if node.orelse is not None:
                parts.append(_tag("else", node.else_markers))
                parts.append(lower(node.orelse))
            parts.append(_tag("endif", node.end_markers))
    return "".join(parts)


def translate(source: str) -> str:
    """解析并生成 Jinja2 源码"""
    return lower(parse(source))
