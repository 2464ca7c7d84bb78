"""
本地模组模型
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from everestmod.models.manifest import ModManifest


@dataclass(frozen=True)
class LocalModInfo:
    """
    扫描已安装压缩包得到的一条记录。

    每次扫描重新计算，不做跨运行缓存。
    """

    archive_path: Path
    mod_name: str
    version: str
    # 整个压缩包的 xxHash64，不信任任何外部来源
    checksum: str
    manifest: Optional[ModManifest] = None

    @property
    def filename(self) -> str:
        return self.archive_path.name

    @classmethod
    def from_manifest(
        cls, archive_path: Path, manifest: ModManifest, checksum: str
    ) -> "LocalModInfo":
        return cls(
            archive_path=archive_path,
            mod_name=manifest.name,
            version=manifest.version,
            checksum=checksum,
            manifest=manifest,
        )
