"""
本地模组扫描服务

枚举模组目录下的压缩包，读取清单并计算指纹，生成按名称排序的清单快照。
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple

from loguru import logger

from everestmod.archive import ArchiveInspector
from everestmod.download.verifier import FileVerifier
from everestmod.exceptions import ArchiveError, ManifestParseError, MissingDirectoryError
from everestmod.models import MANIFEST_FILENAME, LocalModInfo, ModManifest

ARCHIVE_SUFFIX = ".zip"


@dataclass
class ScanReport:
    """扫描结果，附带被跳过的文件及原因"""

    inventory: List[LocalModInfo] = field(default_factory=list)
    skipped: List[Tuple[Path, str]] = field(default_factory=list)


def find_mod_archives(directory: Path) -> List[Path]:
    """
    列出目录下的 .zip 文件（不递归）

    Raises:
        MissingDirectoryError: 目录不存在
    """
    if not directory.is_dir():
        raise MissingDirectoryError(
            f"模组目录不存在: {directory}，请确认 Everest 已正确安装",
            context={"directory": str(directory)},
        )
    return sorted(
        path
        for path in directory.iterdir()
        if path.suffix.lower() == ARCHIVE_SUFFIX and path.is_file()
    )


class InventoryScanner:
    """本地模组扫描器"""

    def __init__(
        self,
        inspector: Optional[ArchiveInspector] = None,
        verifier: Optional[FileVerifier] = None,
    ):
        self.inspector = inspector or ArchiveInspector()
        self.verifier = verifier or FileVerifier()

    async def scan(self, directory: "str | os.PathLike[str]") -> List[LocalModInfo]:
        """
        扫描模组目录

        Args:
            directory: 模组目录

        Returns:
            按模组名升序排列的 LocalModInfo 列表

        Raises:
            MissingDirectoryError: 目录不存在
        """
        report = await self.scan_with_report(directory)
        return report.inventory

    async def scan_with_report(self, directory: "str | os.PathLike[str]") -> ScanReport:
        """扫描模组目录，并返回被跳过的文件列表"""
        directory = Path(directory)
        archives = find_mod_archives(directory)
        logger.debug(f"[扫描] {directory} 中发现 {len(archives)} 个压缩包")

        report = ScanReport()
        for archive_path in archives:
            try:
                info = await self.inspect(archive_path)
            except (ArchiveError, ManifestParseError, OSError) as e:
                logger.warning(f"[跳过] '{archive_path.name}': {e}")
                report.skipped.append((archive_path, str(e)))
                continue

            if info is None:
                reason = f"未找到 {MANIFEST_FILENAME}"
                logger.warning(f"[跳过] '{archive_path.name}': {reason}")
                report.skipped.append((archive_path, reason))
                continue

            report.inventory.append(info)

        report.inventory.sort(key=lambda info: info.mod_name)
        return report

    async def inspect(self, archive_path: Path) -> Optional[LocalModInfo]:
        """
        读取单个压缩包

        Returns:
            LocalModInfo；压缩包不含清单时返回 None
        """
        manifest_bytes = self.inspector.find_manifest(archive_path)
        if manifest_bytes is None:
            return None

        try:
            manifest = ModManifest.parse(manifest_bytes)
        except ManifestParseError as e:
            e.context.setdefault("archive", str(archive_path))
            raise

        # 指纹覆盖整个压缩包，而不只是清单
        checksum = await self.verifier.calc_xxhash(archive_path)
        return LocalModInfo.from_manifest(archive_path, manifest, checksum)
