"""
更新计划服务

按模组名与内容指纹比较本地清单和远程注册表，生成需要下载的任务列表。
版本号由作者随意填写，可能缺失或不递增，因此只比较指纹。
"""

from typing import Dict, Iterable, List, Optional

from everestmod.exceptions import ModNotFoundError
from everestmod.models import LocalModInfo, ModRegistry, RemoteModEntry, UpdateTask


def group_by_name(inventory: Iterable[LocalModInfo]) -> Dict[str, List[LocalModInfo]]:
    """按模组名分组，保持清单中的先后顺序"""
    groups: Dict[str, List[LocalModInfo]] = {}
    for info in inventory:
        groups.setdefault(info.mod_name, []).append(info)
    return groups


class UpdatePlanner:
    """更新计划器"""

    def plan(
        self,
        inventory: Iterable[LocalModInfo],
        registry: ModRegistry,
    ) -> List[UpdateTask]:
        """
        生成更新任务

        同名的多个压缩包合并为一个任务，提交后全部被替换。
        只要其中一个与注册表指纹一致，就视为已是最新。

        Args:
            inventory: 本地扫描结果
            registry: 远程注册表快照

        Returns:
            按本地清单顺序排列的 UpdateTask 列表，每个模组至多一个
        """
        tasks = []
        for name, installed in group_by_name(inventory).items():
            remote = registry.get(name)
            if remote is None:
                # 注册表未收录，无法更新
                continue
            if self._is_current(remote, installed):
                continue
            tasks.append(self._make_task(remote, installed))
        return tasks

    def plan_install(
        self,
        name: str,
        registry: ModRegistry,
        inventory: Iterable[LocalModInfo] = (),
    ) -> Optional[UpdateTask]:
        """
        为指定模组生成安装任务

        Returns:
            UpdateTask；已安装且为最新时返回 None

        Raises:
            ModNotFoundError: 注册表中没有该模组
        """
        remote = registry.get(name)
        if remote is None:
            raise ModNotFoundError(
                f"注册表中没有模组 '{name}'", context={"mod": name}
            )

        installed = [info for info in inventory if info.mod_name == name]
        if self._is_current(remote, installed):
            return None
        return self._make_task(remote, installed)

    @staticmethod
    def _is_current(remote: RemoteModEntry, installed: List[LocalModInfo]) -> bool:
        return any(remote.has_matching_hash(info.checksum) for info in installed)

    @staticmethod
    def _make_task(
        remote: RemoteModEntry, installed: List[LocalModInfo]
    ) -> UpdateTask:
        return UpdateTask(
            mod_name=remote.name,
            current_version=installed[0].version if installed else None,
            available_version=remote.version,
            download_url=remote.download_url,
            expected_checksums=remote.checksums,
            paths_to_supersede=tuple(info.archive_path for info in installed),
        )
