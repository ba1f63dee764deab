import pytest

from sitedesign.configs.config import CacheMode, DesignConfig
from sitedesign.services.cache import CacheException, DesignCache, build_cache


async def test_cache_get_set_delete() -> None:
    """
    测试缓存的基本操作
    """
    cache = DesignCache(prefix="TEST")
    assert await cache.get("missing") is None
    assert await cache.get("missing", "default") == "default"

    await cache.set("theme:t1", {"colors": {"primary": "#111"}})
    assert await cache.has("theme:t1")
    assert await cache.get("theme:t1") == {"colors": {"primary": "#111"}}

    assert await cache.delete("theme:t1")
    assert not await cache.delete("theme:t1")
    assert not await cache.has("theme:t1")


async def test_cache_returns_copies() -> None:
    """
    测试修改读取结果不会影响缓存
    """
    cache = DesignCache()
    await cache.set("k", {"a": [1]})
    value = await cache.get("k")
    value["a"].append(2)
    assert await cache.get("k") == {"a": [1]}


async def test_cache_clear() -> None:
    cache = DesignCache()
    await cache.set("a", 1)
    await cache.set("b", "text")
    await cache.clear()
    assert await cache.get("a") is None
    assert await cache.get("b") is None


async def test_cache_unserializable() -> None:
    """
    测试无法序列化的值
    """
    cache = DesignCache()
    with pytest.raises(CacheException):
        await cache.set("k", object())


def test_build_cache() -> None:
    """
    测试根据配置构建缓存
    """
    assert build_cache(DesignConfig(cache_mode=CacheMode.NONE)) is None
    cache = build_cache(DesignConfig(cache_mode="memory", cache_expire=30))
    assert isinstance(cache, DesignCache)
    assert cache.default_expire == 30
    with pytest.raises(CacheException):
        build_cache(DesignConfig(cache_mode=CacheMode.REDIS))
    with pytest.raises(CacheException):
        build_cache(DesignConfig(cache_mode="disk"))
