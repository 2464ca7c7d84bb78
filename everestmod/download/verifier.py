"""
文件校验器

实现 xxHash64 流式指纹计算与校验和比对。
"""

import os
from typing import Iterable

import aiofiles
import xxhash

CHUNK_SIZE = 64 * 1024


def normalize_checksum(value: str) -> str:
    """统一为小写十六进制，比较前两侧都要经过这里"""
    return value.strip().lower()


class ContentHasher:
    """
    增量计算 xxHash64 (seed 0)

    可以边下载边 update，不需要把整个文件放进内存。
    """

    def __init__(self):
        self._state = xxhash.xxh64(seed=0)
        self.size = 0

    def update(self, data: bytes) -> None:
        self._state.update(data)
        self.size += len(data)

    def hexdigest(self) -> str:
        """16 位小写十六进制字符串"""
        return self._state.hexdigest()


class FileVerifier:
    """文件校验器"""

    @staticmethod
    async def calc_xxhash(file_path: "str | os.PathLike[str]") -> str:
        """
        计算文件的 xxHash64 值

        Args:
            file_path: 文件路径

        Returns:
            16 位小写十六进制指纹

        Raises:
            OSError: 文件无法读取
        """
        hasher = ContentHasher()
        async with aiofiles.open(file_path, "rb") as f:
            while True:
                data = await f.read(CHUNK_SIZE)
                if not data:
                    break
                hasher.update(data)
        return hasher.hexdigest()

    @staticmethod
    def matches(computed: str, expected: Iterable[str]) -> bool:
        """指纹是否属于期望集合（精确匹配，不做前缀匹配）"""
        computed = normalize_checksum(computed)
        return any(computed == normalize_checksum(value) for value in expected)
