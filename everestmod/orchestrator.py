"""
主协调器

组合注册表获取、本地扫描、更新计划与下载执行。
"""

from contextlib import nullcontext
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple

from loguru import logger

from everestmod.download import DownloadManager, DownloadProgress
from everestmod.exceptions import ModNotFoundError
from everestmod.models import (
    DownloadResult,
    EverestModConfig,
    LocalModInfo,
    ModRegistry,
    RemoteModEntry,
    TaskState,
    UpdateTask,
)
from everestmod.services import (
    InventoryScanner,
    RegistryClient,
    ScanReport,
    UpdatePlanner,
)


@dataclass
class SyncReport:
    """一次同步的结果"""

    tasks: List[UpdateTask] = field(default_factory=list)
    results: List[DownloadResult] = field(default_factory=list)
    skipped: List[Tuple[Path, str]] = field(default_factory=list)

    @property
    def committed(self) -> List[DownloadResult]:
        return [r for r in self.results if r.state == TaskState.COMMITTED]

    @property
    def failed(self) -> List[DownloadResult]:
        return [r for r in self.results if r.state != TaskState.COMMITTED]

    @property
    def ok(self) -> bool:
        """部分失败是正常结果，只有存在失败任务时才为 False"""
        return not self.failed


class SyncOrchestrator:
    """everestmod 主协调器"""

    def __init__(
        self,
        config: EverestModConfig,
        progress: Optional[DownloadProgress] = None,
    ):
        self.config = config
        self.progress = progress
        self.scanner = InventoryScanner()
        self.planner = UpdatePlanner()

    async def fetch_registry(self) -> ModRegistry:
        """获取远程注册表，失败时整个流程中止"""
        async with RegistryClient(
            self.config.registry_url, timeout=self.config.request_timeout
        ) as client:
            return await client.fetch()

    async def scan(self) -> ScanReport:
        """扫描本地模组目录，目录不存在时整个流程中止"""
        logger.info(f"[扫描] {self.config.mods_dir}")
        report = await self.scanner.scan_with_report(self.config.mods_dir)
        logger.info(
            f"[扫描] 共 {len(report.inventory)} 个模组，跳过 {len(report.skipped)} 个文件"
        )
        return report

    async def list_installed(self) -> List[LocalModInfo]:
        return (await self.scan()).inventory

    async def show(self, name: str) -> Optional[LocalModInfo]:
        """按模组名查找已安装模组"""
        for info in await self.list_installed():
            if info.mod_name == name:
                return info
        return None

    async def search(self, query: str) -> List[RemoteModEntry]:
        registry = await self.fetch_registry()
        return registry.search(query)

    async def info(self, name: str) -> RemoteModEntry:
        registry = await self.fetch_registry()
        entry = registry.get(name)
        if entry is None:
            raise ModNotFoundError(f"注册表中没有模组 '{name}'", context={"mod": name})
        return entry

    async def check_updates(self) -> Tuple[List[UpdateTask], ScanReport]:
        """
        检查可用更新

        Returns:
            (更新任务列表, 扫描结果)
        """
        report = await self.scan()
        registry = await self.fetch_registry()
        tasks = self.planner.plan(report.inventory, registry)
        logger.info(f"[检查] 发现 {len(tasks)} 个可用更新")
        return tasks, report

    async def update(self, install: bool = False) -> SyncReport:
        """检查更新，install 为 True 时下载并替换"""
        tasks, scan_report = await self.check_updates()
        report = SyncReport(tasks=tasks, skipped=scan_report.skipped)
        if install and tasks:
            report.results = await self.execute(tasks)
        return report

    async def install(self, name: str) -> SyncReport:
        """
        安装或更新单个模组

        Raises:
            ModNotFoundError: 注册表中没有该模组
        """
        scan_report = await self.scan()
        registry = await self.fetch_registry()
        task = self.planner.plan_install(name, registry, scan_report.inventory)
        report = SyncReport(skipped=scan_report.skipped)
        if task is None:
            logger.info(f"[跳过] '{name}' 已是最新")
            return report

        report.tasks = [task]
        report.results = await self.execute(report.tasks)
        return report

    async def execute(self, tasks: List[UpdateTask]) -> List[DownloadResult]:
        """并发执行任务并汇总结果"""
        async with DownloadManager(
            self.config.mods_dir,
            max_concurrent=self.config.max_concurrent,
            timeout=self.config.request_timeout,
            progress=self.progress,
        ) as manager:
            with self.progress if self.progress is not None else nullcontext():
                results = await manager.run(tasks)
            stats = manager.get_stats()

        logger.info(
            f"[汇总] {stats.committed} 成功, {stats.rolled_back} 校验失败, "
            f"{stats.failed} 失败"
        )
        return results
