from pathlib import Path
from typing import Any

import ujson as json


def write_component(
    root: Path,
    category: str,
    component_id: str,
    html: str | None = None,
    config: dict[str, Any] | None = None,
    css: str | None = None,
    js: str | None = None,
) -> Path:
    """在 root 下创建组件目录，只写入提供的文件"""
    path = root / category / component_id
    path.mkdir(parents=True, exist_ok=True)
    if html is not None:
        (path / "index.html").write_text(html, encoding="utf-8")
    if config is not None:
        (path / "config.json").write_text(json.dumps(config), encoding="utf-8")
    if css is not None:
        (path / "style.css").write_text(css, encoding="utf-8")
    if js is not None:
        (path / "script.js").write_text(js, encoding="utf-8")
    return path


def write_template(root: Path, category: str, template_id: str, html: str) -> Path:
    path = root / category / template_id
    path.mkdir(parents=True, exist_ok=True)
    (path / "index.html").write_text(html, encoding="utf-8")
    return path
