"""
下载管理器

并发执行更新任务：边下载边计算指纹，校验通过后才替换旧文件，
单个任务失败不影响其他任务。
"""

import asyncio
import os
import tempfile
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

import aiofiles
import aiohttp
from loguru import logger
from pathvalidate import sanitize_filename

from everestmod.download.progress import DownloadProgress
from everestmod.download.queue import DownloadQueue
from everestmod.download.verifier import CHUNK_SIZE, ContentHasher, FileVerifier
from everestmod.exceptions import (
    DownloadError,
    DownloadFileError,
    DownloadNetworkError,
    IntegrityError,
)
from everestmod.models.task import DownloadResult, TaskState, UpdateTask

ARCHIVE_SUFFIX = ".zip"
PART_PREFIX = ".everestmod-"
PART_SUFFIX = ".part"


@dataclass
class DownloadStats:
    """下载统计"""

    total: int = 0
    committed: int = 0
    rolled_back: int = 0
    failed: int = 0
    bytes_downloaded: int = 0


def resolve_filename(response: aiohttp.ClientResponse) -> str:
    """
    确定下载文件名

    优先取跳转后 URL 的最后一段路径，其次取 ETag，都没有时生成随机名。
    结果总是以 .zip 结尾，下次扫描才能识别。
    """
    name = response.url.name
    if not name:
        etag = response.headers.get("ETag", "")
        name = etag.removeprefix("W/").strip('"')

    name = sanitize_filename(name).lstrip(".")
    if not name:
        name = uuid.uuid4().hex
    if not name.lower().endswith(ARCHIVE_SUFFIX):
        name += ARCHIVE_SUFFIX
    return name


class DownloadManager:
    """下载管理器"""

    def __init__(
        self,
        download_dir: "str | os.PathLike[str]",
        max_concurrent: int = 5,
        session: Optional[aiohttp.ClientSession] = None,
        timeout: Optional[float] = None,
        progress: Optional[DownloadProgress] = None,
    ):
        self.download_dir = Path(download_dir)
        # <= 0 表示每个任务一个工作协程
        self.max_concurrent = max_concurrent
        self.queue = DownloadQueue()
        self.stats = DownloadStats()
        self.progress = progress
        self._session = session
        self._owned_session = session is None
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._workers: List[asyncio.Task] = []
        self._results: Dict[str, DownloadResult] = {}

    @property
    def session(self) -> aiohttp.ClientSession:
        """获取或创建 aiohttp session"""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
        return self._session

    async def execute(
        self, task: UpdateTask, result: Optional[DownloadResult] = None
    ) -> Path:
        """
        执行单个更新任务

        Args:
            task: 更新任务
            result: 记录状态变化的结果对象（可选）

        Returns:
            新文件的路径

        Raises:
            DownloadNetworkError: 请求失败或状态码不是 2xx
            IntegrityError: 指纹不在期望集合中，新文件已删除，旧文件保持不变
            DownloadFileError: 写入或替换文件失败
        """
        if result is None:
            result = DownloadResult(task)

        logger.info(f"[开始] 下载: {task.mod_name} ({task.download_url})")
        try:
            path = await self._execute(task, result)
        except IntegrityError as e:
            result.error = e
            result.advance(TaskState.ROLLED_BACK)
            self.stats.rolled_back += 1
            logger.error(f"[回滚] '{task.mod_name}' 校验失败: {e}")
            raise
        except DownloadError as e:
            result.error = e
            result.advance(TaskState.FAILED)
            self.stats.failed += 1
            logger.error(f"[错误] 下载 '{task.mod_name}' 失败: {e}")
            raise

        result.path = path
        result.advance(TaskState.COMMITTED)
        self.stats.committed += 1
        logger.success(
            f"[完成] '{task.mod_name}' 已更新到 {task.available_version} ({path.name})"
        )
        return path

    async def _execute(self, task: UpdateTask, result: DownloadResult) -> Path:
        result.advance(TaskState.DOWNLOADING)
        try:
            fd, tmp_name = tempfile.mkstemp(
                prefix=PART_PREFIX, suffix=PART_SUFFIX, dir=self.download_dir
            )
            os.close(fd)
        except OSError as e:
            raise DownloadFileError(
                f"无法在 {self.download_dir} 创建临时文件: {e}",
                context={"mod": task.mod_name},
            )
        part_path = Path(tmp_name)

        try:
            filename, computed = await self._fetch(task, part_path)

            result.advance(TaskState.VERIFYING)
            if not FileVerifier.matches(computed, task.expected_checksums):
                raise IntegrityError(
                    f"'{task.mod_name}' 的指纹 {computed} 不在期望集合 "
                    f"{sorted(task.expected_checksums)} 中",
                    computed=computed,
                    expected=task.expected_checksums,
                    context={"mod": task.mod_name, "url": task.download_url},
                )
            logger.debug(f"[校验] '{task.mod_name}' 指纹匹配: {computed}")

            return self._commit(task, part_path, filename)
        finally:
            self._discard(part_path)

    async def _fetch(self, task: UpdateTask, part_path: Path) -> Tuple[str, str]:
        """下载到临时文件，同一遍中更新指纹与进度条"""
        hasher = ContentHasher()
        progress_id = None
        success = False
        try:
            async with self.session.get(task.download_url) as response:
                if not 200 <= response.status < 300:
                    raise DownloadNetworkError(
                        f"HTTP {response.status}",
                        context={"mod": task.mod_name},
                        response=response,
                    )

                filename = resolve_filename(response)
                total_size = int(response.headers.get("Content-Length", 0))
                logger.debug(
                    f"[信息] {task.mod_name}: {filename}, "
                    f"{total_size / (1024 * 1024):.2f} MB"
                )
                if self.progress is not None:
                    progress_id = self.progress.add_task(task.mod_name, total_size)

                async with aiofiles.open(part_path, "wb") as f:
                    async for chunk in response.content.iter_chunked(CHUNK_SIZE):
                        await f.write(chunk)
                        hasher.update(chunk)
                        self.stats.bytes_downloaded += len(chunk)
                        if progress_id is not None:
                            self.progress.advance(progress_id, len(chunk))
            success = True
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise DownloadNetworkError(
                f"下载 '{task.mod_name}' 失败: {e!r}",
                context={"mod": task.mod_name, "url": task.download_url},
            )
        except OSError as e:
            raise DownloadFileError(
                f"写入 '{part_path.name}' 失败: {e}",
                context={"mod": task.mod_name},
            )
        finally:
            if progress_id is not None:
                self.progress.finish(progress_id, success)

        logger.debug(f"[下载] '{task.mod_name}' 共接收 {hasher.size} 字节")
        return filename, hasher.hexdigest()

    def _commit(self, task: UpdateTask, part_path: Path, filename: str) -> Path:
        """新文件就位后删除全部被替换的旧文件"""
        superseded = task.paths_to_supersede
        destination = self.download_dir / filename
        if destination.exists() and not _in_paths(destination, superseded):
            # 与其他模组的文件重名
            destination = destination.with_name(
                f"{destination.stem}-{uuid.uuid4().hex[:8]}{destination.suffix}"
            )

        try:
            os.replace(part_path, destination)
        except OSError as e:
            raise DownloadFileError(
                f"无法写入 {destination.name}: {e}", context={"mod": task.mod_name}
            )

        failed = []
        for old in superseded:
            if _in_paths(old, [destination]) or not old.exists():
                continue
            try:
                os.remove(old)
            except OSError as e:
                logger.error(f"[替换] 无法删除旧文件 {old.name}: {e}")
                failed.append(old)
                continue
            logger.debug(f"[替换] 已删除旧文件 {old.name}")

        if failed:
            raise DownloadFileError(
                f"新文件已写入 {destination.name}，但无法删除旧文件 "
                f"{', '.join(old.name for old in failed)}",
                context={
                    "mod": task.mod_name,
                    "new": str(destination),
                    "old": [str(old) for old in failed],
                },
            )
        return destination

    @staticmethod
    def _discard(path: Path) -> None:
        """清理临时文件"""
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"[清理] 无法删除临时文件 {path.name}: {e}")

    async def _worker(self):
        """下载工作协程"""
        while True:
            try:
                task = await self.queue.get()
            except asyncio.CancelledError:
                break

            result = self._results[task.mod_name]
            try:
                await self.execute(task, result)
            except DownloadError:
                # 已在 execute 中记录
                pass
            except Exception as e:
                # 工作协程不应该因为单个任务失败而退出
                logger.exception(f"[错误] 处理 '{task.mod_name}' 时发生意外: {e}")
                if not result.state.terminal:
                    result.error = e
                    result.state = TaskState.FAILED
                    self.stats.failed += 1
            finally:
                self.queue.task_done()

    async def run(self, tasks: Iterable[UpdateTask]) -> List[DownloadResult]:
        """
        并发执行全部任务，等待每个任务都进入终态后返回

        同一模组的重复任务不会下载，以 FAILED 结果返回。

        Returns:
            与传入顺序一致的 DownloadResult 列表
        """
        results = []
        for task in tasks:
            result = DownloadResult(task)
            results.append(result)
            self.stats.total += 1
            if not await self.queue.put(task):
                logger.warning(f"[队列] '{task.mod_name}' 重复，已忽略")
                result.error = DownloadError(
                    f"同一次运行中 '{task.mod_name}' 已有下载任务",
                    context={"mod": task.mod_name},
                )
                result.advance(TaskState.FAILED)
                self.stats.failed += 1
                continue
            self._results[task.mod_name] = result

        queued = self.queue.get_stats()["pending"]
        if not queued:
            return results

        if self.max_concurrent <= 0:
            worker_count = queued
        else:
            worker_count = min(self.max_concurrent, queued)
        logger.info(f"[启动] 共 {queued} 个更新，并发数: {worker_count}")
        logger.debug(f"[队列] {self.queue.get_stats()}")

        self._workers = [
            asyncio.create_task(self._worker(), name=f"downloader-{i}")
            for i in range(worker_count)
        ]
        try:
            await self.queue.join()
        finally:
            await self.stop()
        return results

    async def stop(self):
        """停止工作协程"""
        for worker in self._workers:
            worker.cancel()

        if self._workers:
            await asyncio.gather(*self._workers, return_exceptions=True)
            self._workers.clear()

    async def close(self):
        """关闭 session"""
        await self.stop()
        if self._owned_session and self._session and not self._session.closed:
            await self._session.close()

    def get_stats(self) -> DownloadStats:
        """获取下载统计"""
        return self.stats

    async def __aenter__(self):
        """异步上下文管理器入口"""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """异步上下文管理器出口"""
        await self.close()


def _in_paths(path: Path, paths: Iterable[Path]) -> bool:
    target = os.path.abspath(path)
    return any(os.path.abspath(other) == target for other in paths)
