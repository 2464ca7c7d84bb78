"""
everestmod 数据模型包

包含配置模型、清单模型、注册表模型与更新任务定义。
"""

from everestmod.models.config import EverestModConfig
from everestmod.models.manifest import MANIFEST_FILENAME, Dependency, ModManifest
from everestmod.models.registry import ModRegistry, RemoteModEntry
from everestmod.models.local import LocalModInfo
from everestmod.models.task import DownloadResult, TaskState, UpdateTask

__all__ = [
    # 配置模型
    "EverestModConfig",
    # 清单模型
    "MANIFEST_FILENAME",
    "Dependency",
    "ModManifest",
    # 注册表模型
    "ModRegistry",
    "RemoteModEntry",
    # 本地模型
    "LocalModInfo",
    # 任务模型
    "DownloadResult",
    "TaskState",
    "UpdateTask",
]
