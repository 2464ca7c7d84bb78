"""
下载任务队列

实现任务去重、队列状态监控。
"""

import asyncio
from typing import Set

from everestmod.models.task import UpdateTask


class DownloadQueue:
    """下载队列"""

    def __init__(self):
        self._queue: "asyncio.Queue[UpdateTask]" = asyncio.Queue()
        self._mods: Set[str] = set()  # 用于去重
        self._total_queued = 0

    async def put(self, task: UpdateTask) -> bool:
        """
        添加任务到队列

        同一模组只会入队一次，保证每个任务操作的文件互不重叠。

        Returns:
            True 如果任务是新添加的，False 如果是重复任务
        """
        if task.mod_name in self._mods:
            return False

        self._mods.add(task.mod_name)
        await self._queue.put(task)
        self._total_queued += 1
        return True

    async def get(self) -> UpdateTask:
        """获取下一个任务"""
        return await self._queue.get()

    def task_done(self):
        """标记任务完成"""
        self._queue.task_done()

    def qsize(self) -> int:
        """获取队列大小"""
        return self._queue.qsize()

    async def join(self):
        """等待所有任务完成"""
        await self._queue.join()

    def get_stats(self) -> dict:
        """获取队列统计"""
        return {
            "pending": self.qsize(),
            "total_queued": self._total_queued,
        }
