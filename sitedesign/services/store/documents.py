import asyncio
import copy
from pathlib import Path
import re
from typing import Any, Protocol
from urllib.parse import quote, unquote
import uuid

import aiofiles
import aiofiles.os
import ujson as json

from sitedesign.services.log import logger
from sitedesign.utils.exception import StorageError

LOG_COMMAND = "DocumentStore"

COLLECTION_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_\-]*$")

FILE_SUFFIX = ".json"


class DocumentStore(Protocol):
    """
    文档存储协议

    每个文档是一个 JSON 对象，通过 `(collection, doc_id)` 定位。
    """

    async def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        """读取文档，不存在时返回 None。"""
        ...

    async def put(self, collection: str, doc_id: str, document: dict[str, Any]):
        """写入文档，已存在时整体替换。"""
        ...

    async def delete(self, collection: str, doc_id: str) -> bool:
        """删除文档，返回是否存在过。"""
        ...

    async def list_ids(self, collection: str) -> list[str]:
        """列出集合中所有文档 ID。"""
        ...


def _check_collection(collection: str):
    if not COLLECTION_PATTERN.match(collection):
        raise StorageError(f"非法的集合名: '{collection}'", collection=collection)


def encode_doc_id(doc_id: str) -> str:
    """将文档ID编码为文件名

    除字母、数字与 `_.-~` 外的字符都会被百分号编码，`/` 也不例外，
    因此任意ID都只对应集合目录下的一个文件。开头的 `.` 同样被编码，
    避免与隐藏文件和临时文件混淆。

    参数:
        doc_id: 文档ID

    返回:
        str: 不含扩展名的文件名

    异常:
        StorageError: ID 为空
    """
    if not doc_id:
        raise StorageError("文档ID不能为空")
    name = quote(doc_id, safe="")
    if name.startswith("."):
        name = f"%2E{name[1:]}"
    return name


def decode_doc_id(name: str) -> str:
    return unquote(name)


class JsonFileStore:
    """
    基于 JSON 文件的文档存储

    布局为 `root/<collection>/<编码后的 doc_id>.json`。
    写入先落到同目录的临时文件，再通过 `os.replace` 原子替换，
    读取方不会看到写了一半的文件。
    """

    def __init__(self, root: Path):
        self.root = root

    def _path(self, collection: str, doc_id: str) -> Path:
        _check_collection(collection)
        return self.root / collection / f"{encode_doc_id(doc_id)}{FILE_SUFFIX}"

    async def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        path = self._path(collection, doc_id)
        try:
            async with aiofiles.open(path, encoding="utf-8") as f:
                content = await f.read()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageError(f"读取文档失败: {path.as_posix()}") from e
        try:
            return json.loads(content)
        except ValueError as e:
            raise StorageError(f"文档内容不是合法的JSON: {path.as_posix()}") from e

    async def put(self, collection: str, doc_id: str, document: dict[str, Any]):
        path = self._path(collection, doc_id)
        tmp_path = path.with_name(f".{path.name}.{uuid.uuid4().hex}.tmp")
        try:
            await aiofiles.os.makedirs(path.parent, exist_ok=True)
            async with aiofiles.open(tmp_path, "w", encoding="utf-8") as f:
                await f.write(json.dumps(document, ensure_ascii=False, indent=2))
            await aiofiles.os.replace(tmp_path, path)
        except OSError as e:
            if await aiofiles.os.path.exists(tmp_path):
                await aiofiles.os.remove(tmp_path)
            raise StorageError(f"写入文档失败: {path.as_posix()}") from e
        logger.trace(f"文档已写入: {collection}/{doc_id}", LOG_COMMAND)

    async def delete(self, collection: str, doc_id: str) -> bool:
        path = self._path(collection, doc_id)
        try:
            await aiofiles.os.remove(path)
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageError(f"删除文档失败: {path.as_posix()}") from e
        return True

    async def list_ids(self, collection: str) -> list[str]:
        _check_collection(collection)
        directory = self.root / collection
        if not await aiofiles.os.path.isdir(directory):
            return []
        names = await aiofiles.os.listdir(directory)
        return sorted(
            decode_doc_id(name[: -len(FILE_SUFFIX)])
            for name in names
            if name.endswith(FILE_SUFFIX) and not name.startswith(".")
        )


class MemoryDocumentStore:
    """内存文档存储，读写都会深拷贝文档。"""

    def __init__(self):
        self._data: dict[str, dict[str, dict[str, Any]]] = {}
        self._lock = asyncio.Lock()

    async def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        document = self._data.get(collection, {}).get(doc_id)
        return copy.deepcopy(document) if document is not None else None

    async def put(self, collection: str, doc_id: str, document: dict[str, Any]):
        async with self._lock:
            self._data.setdefault(collection, {})[doc_id] = copy.deepcopy(document)

    async def delete(self, collection: str, doc_id: str) -> bool:
        async with self._lock:
            return self._data.get(collection, {}).pop(doc_id, None) is not None

    async def list_ids(self, collection: str) -> list[str]:
        return sorted(self._data.get(collection, {}))
