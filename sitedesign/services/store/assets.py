from pathlib import Path
from typing import Protocol

import aiofiles
import aiofiles.os

from sitedesign.utils.exception import StorageError


class AssetStore(Protocol):
    """
    源码资源存储协议

    资源按 `category/id/文件名` 的约定组织，例如
    `header/modern-header/config.json`。
    """

    async def read_text(self, *parts: str) -> str:
        """读取文本资源，资源不存在时抛出 FileNotFoundError。"""
        ...

    async def exists(self, *parts: str) -> bool:
        """资源是否存在。"""
        ...

    async def list_dirs(self, *parts: str) -> list[str]:
        """列出目录下的子目录名，目录不存在时抛出 FileNotFoundError。"""
        ...

    def describe(self, *parts: str) -> str:
        """返回资源的可读路径，用于错误信息。"""
        ...


class FileAssetStore:
    """基于文件系统的资源存储。"""

    def __init__(self, root: Path):
        self.root = root

    def _path(self, *parts: str) -> Path:
        path = self.root.joinpath(*parts).resolve()
        if not path.is_relative_to(self.root.resolve()):
            raise StorageError(f"资源路径越界: {'/'.join(parts)}", root=str(self.root))
        return path

    def describe(self, *parts: str) -> str:
        return self.root.joinpath(*parts).as_posix()

    async def read_text(self, *parts: str) -> str:
        path = self._path(*parts)
        try:
            async with aiofiles.open(path, encoding="utf-8") as f:
                return await f.read()
        except (FileNotFoundError, IsADirectoryError, NotADirectoryError) as e:
            raise FileNotFoundError(path.as_posix()) from e
        except OSError as e:
            raise StorageError(f"读取资源失败: {path.as_posix()}") from e

    async def exists(self, *parts: str) -> bool:
        return await aiofiles.os.path.exists(self._path(*parts))

    async def list_dirs(self, *parts: str) -> list[str]:
        path = self._path(*parts)
        if not await aiofiles.os.path.isdir(path):
            raise FileNotFoundError(path.as_posix())
        dirs = []
        for name in await aiofiles.os.listdir(path):
            if await aiofiles.os.path.isdir(path / name):
                dirs.append(name)
        return sorted(dirs)
