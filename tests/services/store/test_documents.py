from pathlib import Path

import pytest

from sitedesign.services.store import JsonFileStore, MemoryDocumentStore
from sitedesign.utils.exception import StorageError


@pytest.mark.parametrize("kind", ["json", "memory"])
async def test_document_store_crud(tmp_path: Path, kind: str) -> None:
    """
    测试文档的读写、删除与列出
    """
    store = JsonFileStore(tmp_path) if kind == "json" else MemoryDocumentStore()
    assert await store.get("themes", "t1") is None
    assert await store.list_ids("themes") == []

    await store.put("themes", "t2", {"id": "t2", "name": "主题"})
    await store.put("themes", "t1", {"id": "t1"})
    assert await store.get("themes", "t2") == {"id": "t2", "name": "主题"}
    assert await store.list_ids("themes") == ["t1", "t2"]

    await store.put("themes", "t1", {"id": "t1", "v": 2})
    assert await store.get("themes", "t1") == {"id": "t1", "v": 2}

    assert await store.delete("themes", "t1")
    assert not await store.delete("themes", "t1")
    assert await store.list_ids("themes") == ["t2"]


async def test_memory_store_copies() -> None:
    """
    测试内存存储读写时复制文档
    """
    store = MemoryDocumentStore()
    document = {"colors": {"primary": "#111"}}
    await store.put("themes", "t1", document)
    document["colors"]["primary"] = "#222"
    loaded = await store.get("themes", "t1")
    assert loaded == {"colors": {"primary": "#111"}}
    loaded["colors"]["primary"] = "#333"
    assert (await store.get("themes", "t1")) == {"colors": {"primary": "#111"}}


async def test_json_store_layout(tmp_path: Path) -> None:
    """
    测试文件布局，临时文件不会残留
    """
    store = JsonFileStore(tmp_path)
    await store.put("previews", "preview_s1_1", {"id": "preview_s1_1"})
    files = [p.name for p in (tmp_path / "previews").iterdir()]
    assert files == ["preview_s1_1.json"]


@pytest.mark.parametrize(
    "doc_id", ["loja central", "shop@acme", "站点一", "a/b", "%41"]
)
async def test_json_store_any_doc_id(tmp_path: Path, doc_id: str) -> None:
    """
    测试任意字符的文档ID都可以读写与列出
    """
    store = JsonFileStore(tmp_path)
    await store.put("themes", doc_id, {"id": doc_id})
    assert await store.get("themes", doc_id) == {"id": doc_id}
    assert await store.list_ids("themes") == [doc_id]
    assert [p.parent for p in tmp_path.rglob("*.json")] == [tmp_path / "themes"]
    assert await store.delete("themes", doc_id)
    assert await store.list_ids("themes") == []


async def test_json_store_path_traversal(tmp_path: Path) -> None:
    """
    测试包含路径分隔符的ID不会写到集合目录之外
    """
    store = JsonFileStore(tmp_path / "data")
    await store.put("themes", "../escape", {"id": "../escape"})
    await store.put("themes", ".hidden", {"id": ".hidden"})
    assert not (tmp_path / "escape.json").exists()
    assert sorted(await store.list_ids("themes")) == ["../escape", ".hidden"]
    assert await store.get("themes", "../escape") == {"id": "../escape"}


async def test_json_store_invalid(tmp_path: Path) -> None:
    """
    测试非法的集合名、空ID与损坏的文档
    """
    store = JsonFileStore(tmp_path)
    with pytest.raises(StorageError):
        await store.get("../themes", "t1")
    with pytest.raises(StorageError):
        await store.put("themes", "", {})
    (tmp_path / "themes").mkdir()
    (tmp_path / "themes" / "bad.json").write_text("{", encoding="utf-8")
    with pytest.raises(StorageError):
        await store.get("themes", "bad")
