"""
更新任务模型

UpdateTask 只存在于一次同步过程中，从不持久化。
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Tuple


class TaskState(Enum):
    """单个更新任务的状态"""

    PENDING = "pending"
    DOWNLOADING = "downloading"
    VERIFYING = "verifying"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"
    FAILED = "failed"

    @property
    def terminal(self) -> bool:
        return self in (TaskState.COMMITTED, TaskState.ROLLED_BACK, TaskState.FAILED)


@dataclass(frozen=True)
class UpdateTask:
    """需要下载的一个模组"""

    mod_name: str
    current_version: Optional[str]
    available_version: str
    download_url: str
    expected_checksums: frozenset[str]
    # 同名模组可能有多个旧压缩包，全部在提交后删除；为空表示全新安装
    paths_to_supersede: Tuple[Path, ...] = ()

    @property
    def is_fresh_install(self) -> bool:
        return not self.paths_to_supersede


@dataclass
class DownloadResult:
    """单个任务的执行结果"""

    task: UpdateTask
    state: TaskState = TaskState.PENDING
    path: Optional[Path] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.state == TaskState.COMMITTED

    def advance(self, state: TaskState) -> None:
        """推进状态，终态之后不允许再变化"""
        if self.state.terminal:
            raise RuntimeError(
                f"任务 {self.task.mod_name} 已处于终态 {self.state.value}"
            )
        self.state = state
