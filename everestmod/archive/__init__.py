"""
everestmod 压缩包层

负责读取本地模组压缩包中的清单。
"""

from everestmod.archive.inspector import ArchiveInspector, select_manifest_entry

__all__ = [
    "ArchiveInspector",
    "select_manifest_entry",
]
