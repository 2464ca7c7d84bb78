"""
注册表客户端

获取远程 everest_update.yaml 并解析为 ModRegistry。
"""

import asyncio
from typing import Optional

import aiohttp
from loguru import logger

from everestmod.exceptions import RegistryFetchError
from everestmod.models import ModRegistry
from everestmod.models.config import DEFAULT_REGISTRY_URL


class RegistryClient:
    """Everest 模组注册表客户端"""

    def __init__(
        self,
        url: str = DEFAULT_REGISTRY_URL,
        session: Optional[aiohttp.ClientSession] = None,
        timeout: Optional[float] = None,
    ):
        self.url = url
        self._session = session
        self._owned_session = session is None
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    @property
    def session(self) -> aiohttp.ClientSession:
        """获取或创建 aiohttp session"""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
        return self._session

    async def fetch_raw(self) -> bytes:
        """
        下载注册表原始内容

        Raises:
            RegistryFetchError: 状态码不是 2xx 或网络失败
        """
        logger.info(f"[注册表] 正在获取: {self.url}")
        try:
            async with self.session.get(self.url) as response:
                if not 200 <= response.status < 300:
                    raise RegistryFetchError(
                        f"获取注册表失败 (状态码: {response.status})",
                        response=response,
                    )
                return await response.read()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise RegistryFetchError(
                f"获取注册表失败: {e}", context={"url": self.url}
            )

    async def fetch(self) -> ModRegistry:
        """获取并解析注册表"""
        registry = ModRegistry.from_yaml(await self.fetch_raw())
        logger.debug(f"[注册表] 共 {len(registry)} 个模组")
        return registry

    async def close(self):
        """关闭客户端"""
        if self._owned_session and self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self):
        """异步上下文管理器入口"""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """异步上下文管理器出口"""
        await self.close()
