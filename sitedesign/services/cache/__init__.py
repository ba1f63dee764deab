"""
缓存系统模块

提供统一的缓存访问接口，支持内存缓存和Redis缓存，后端由 aiocache 提供。

使用示例:
```python
from sitedesign.services.cache import build_cache

cache = build_cache(config)
if cache:
    await cache.set("theme:site_1", theme_json, 3600)
    data = await cache.get("theme:site_1")
```

缓存是可选的协作者：`CacheMode.NONE` 时 `build_cache` 返回 None，
调用方需在缓存缺失时重新计算。
"""

from typing import Any

from aiocache import SimpleMemoryCache
from aiocache.base import BaseCache
from aiocache.serializers import JsonSerializer

from sitedesign.configs.config import CacheMode, DesignConfig
from sitedesign.services.log import logger

from .config import CACHE_KEY_PREFIX, CACHE_KEY_SEPARATOR, DEFAULT_EXPIRE, LOG_COMMAND

__all__ = ["CacheException", "DesignCache", "build_cache"]


class CacheException(Exception):
    """缓存相关异常"""

    def __init__(self, info: str):
        self.info = info

    def __str__(self) -> str:
        return self.info


class DesignCache:
    """
    键值缓存

    所有值以 JSON 序列化保存，读取得到的是独立副本，调用方修改读取结果不会影响缓存。
    """

    def __init__(
        self,
        backend: BaseCache | None = None,
        prefix: str = CACHE_KEY_PREFIX,
        default_expire: int = DEFAULT_EXPIRE,
    ):
        """初始化缓存

        参数:
            backend: aiocache 缓存后端，为 None 时使用内存缓存
            prefix: 缓存键前缀
            default_expire: 默认过期时间（秒），0 表示永不过期
        """
        self._backend = backend or SimpleMemoryCache(serializer=JsonSerializer())
        self.prefix = prefix
        self.default_expire = default_expire

    def _key(self, key: str) -> str:
        if not self.prefix:
            return key
        return f"{self.prefix}{CACHE_KEY_SEPARATOR}{key}"

    def _ttl(self, ttl: int | None) -> int | None:
        expire = self.default_expire if ttl is None else ttl
        return expire if expire and expire > 0 else None

    async def get(self, key: str, default: Any = None) -> Any:
        """获取缓存值

        参数:
            key: 缓存键
            default: 未命中时的默认值

        返回:
            Any: 缓存值
        """
        value = await self._backend.get(self._key(key))
        if value is None:
            logger.trace(f"缓存未命中: {key}", LOG_COMMAND)
            return default
        return value

    async def set(self, key: str, value: Any, ttl: int | None = None):
        """设置缓存值

        参数:
            key: 缓存键
            value: 可被 JSON 序列化的值
            ttl: 过期时间（秒），为 None 时使用默认值，0 表示永不过期
        """
        try:
            await self._backend.set(self._key(key), value, ttl=self._ttl(ttl))
        except TypeError as e:
            raise CacheException(f"缓存值无法序列化: {key}") from e

    async def has(self, key: str) -> bool:
        """检查键是否存在"""
        return bool(await self._backend.exists(self._key(key)))

    async def delete(self, key: str) -> bool:
        """删除缓存键

        返回:
            bool: 是否删除了数据
        """
        return bool(await self._backend.delete(self._key(key)))

    async def clear(self):
        """清空缓存"""
        await self._backend.clear()


def build_cache(config: DesignConfig) -> DesignCache | None:
    """根据配置构建缓存

    参数:
        config: 设计服务配置

    返回:
        DesignCache | None: 缓存，NONE 模式下返回 None
    """
    mode = config.cache_mode.upper()
    if mode == CacheMode.NONE:
        logger.info("缓存已禁用", LOG_COMMAND)
        return None
    if mode == CacheMode.REDIS:
        if not config.redis_host:
            raise CacheException("REDIS 缓存模式需要配置 redis_host")
        from aiocache import RedisCache

        backend = RedisCache(
            serializer=JsonSerializer(),
            endpoint=config.redis_host,
            port=config.redis_port or 6379,
            password=config.redis_password,
            namespace=CACHE_KEY_PREFIX,
        )
        logger.info(
            f"使用 Redis 缓存: {config.redis_host}:{config.redis_port or 6379}",
            LOG_COMMAND,
        )
        return DesignCache(backend, prefix="", default_expire=config.cache_expire)
    if mode != CacheMode.MEMORY:
        raise CacheException(f"未知的缓存模式: {config.cache_mode}")
    logger.info("使用内存缓存", LOG_COMMAND)
    return DesignCache(default_expire=config.cache_expire)
