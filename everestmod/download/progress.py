"""
下载进度显示

使用 rich 为每个并发下载显示一条进度条。
"""

from typing import Optional

from rich.console import Console
from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeRemainingColumn,
    TransferSpeedColumn,
)


class DownloadProgress:
    """并发下载的进度条集合"""

    def __init__(self, console: Optional[Console] = None, transient: bool = False):
        self.progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}", justify="left"),
            BarColumn(bar_width=30),
            "[progress.percentage]{task.percentage:>3.0f}%",
            "•",
            DownloadColumn(),
            "•",
            TransferSpeedColumn(),
            "•",
            TimeRemainingColumn(),
            console=console or Console(stderr=True),
            transient=transient,
        )

    def add_task(self, description: str, total: Optional[int] = None) -> TaskID:
        """total 为 None 时显示为不确定进度"""
        return self.progress.add_task(description, total=total or None, start=True)

    def advance(self, task_id: TaskID, size: int) -> None:
        self.progress.update(task_id, advance=size)

    def finish(self, task_id: TaskID, success: bool = True) -> None:
        task = next(t for t in self.progress.tasks if t.id == task_id)
        if success:
            # 无 Content-Length 时用实际字节数收尾
            self.progress.update(
                task_id,
                total=task.completed,
                description=f"[green]{task.description}",
            )
        else:
            self.progress.update(task_id, description=f"[red]{task.description}")
        self.progress.stop_task(task_id)

    def __enter__(self):
        self.progress.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.progress.stop()
