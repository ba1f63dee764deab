"""
存储模块

- `AssetStore`: 模板/组件源码资源 (`category/id/文件名`)
- `DocumentStore`: JSON 文档 (主题、主题历史、预览)
"""

from .assets import AssetStore, FileAssetStore
from .documents import DocumentStore, JsonFileStore, MemoryDocumentStore

__all__ = [
    "AssetStore",
    "DocumentStore",
    "FileAssetStore",
    "JsonFileStore",
    "MemoryDocumentStore",
]
