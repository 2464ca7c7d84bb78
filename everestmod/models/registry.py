"""
远程注册表模型

对应 everest_update.yaml：以模组名为键，记录最新发布文件的元数据与校验和。
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Iterator, List, Mapping, Optional

import yaml

from everestmod.exceptions import RegistryParseError
from everestmod.download.verifier import normalize_checksum


@dataclass(frozen=True)
class RemoteModEntry:
    """注册表中的一条模组记录"""

    name: str
    version: str
    download_url: str
    checksums: frozenset[str]
    updated_at: int
    size_bytes: Optional[int] = None
    category: Optional[str] = None
    external_id: Optional[int] = None

    def has_matching_hash(self, checksum: str) -> bool:
        """计算出的指纹是否属于该模组已发布的某个文件"""
        return normalize_checksum(checksum) in self.checksums

    @classmethod
    def from_dict(cls, name: str, data: Any) -> "RemoteModEntry":
        """
        将注册表中的一条记录转换为 RemoteModEntry。

        name 来自文档的键，而不是记录中的字段。
        """
        if not isinstance(data, dict):
            raise RegistryParseError(
                f"模组 '{name}' 的记录不是映射", context={"mod": name}
            )

        missing = [
            key for key in ("Version", "URL", "LastUpdate") if key not in data
        ]
        hashes = data.get("xxHash", data.get("MD5"))
        if hashes is None:
            missing.append("xxHash")
        if missing:
            raise RegistryParseError(
                f"模组 '{name}' 缺少字段: {', '.join(missing)}",
                context={"mod": name, "missing": missing},
            )
        if isinstance(hashes, str):
            hashes = [hashes] if hashes else []
        if not isinstance(hashes, list):
            raise RegistryParseError(
                f"模组 '{name}' 的 xxHash 必须是列表", context={"mod": name}
            )

        return cls(
            name=name,
            version=str(data["Version"]),
            download_url=str(data["URL"]),
            checksums=frozenset(normalize_checksum(str(h)) for h in hashes),
            updated_at=_to_int(name, "LastUpdate", data["LastUpdate"]),
            size_bytes=_optional_int(name, "Size", data.get("Size")),
            category=data.get("GameBananaType") or None,
            external_id=_optional_int(name, "GameBananaId", data.get("GameBananaId")),
        )


class ModRegistry:
    """
    远程注册表快照

    条目通过只读映射暴露，一次同步过程中不会被修改。
    """

    def __init__(self, entries: Mapping[str, RemoteModEntry]):
        self._entries = MappingProxyType(dict(entries))

    @property
    def entries(self) -> Mapping[str, RemoteModEntry]:
        return self._entries

    @classmethod
    def from_yaml(cls, data: bytes) -> "ModRegistry":
        """
        从注册表原始文档构建快照

        Args:
            data: everest_update.yaml 原始字节

        Raises:
            RegistryParseError: 文档不是映射或任一记录缺少必填字段
        """
        try:
            document = yaml.load(data.decode("utf-8-sig"), Loader=yaml.BaseLoader)
        except (UnicodeDecodeError, yaml.YAMLError) as e:
            raise RegistryParseError(f"无法解析注册表: {e}")

        if document is None or document == "":
            document = {}
        if not isinstance(document, dict):
            raise RegistryParseError(
                "注册表必须是以模组名为键的映射",
                context={"type": type(document).__name__},
            )

        return cls(
            {name: RemoteModEntry.from_dict(name, raw) for name, raw in document.items()}
        )

    def get(self, name: str) -> Optional[RemoteModEntry]:
        return self._entries.get(name)

    def search(self, query: str) -> List[RemoteModEntry]:
        """按名称做不区分大小写的子串搜索"""
        needle = query.lower()
        return [
            entry
            for name, entry in sorted(self._entries.items())
            if needle in name.lower()
        ]

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)


def _to_int(name: str, key: str, value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise RegistryParseError(
            f"模组 '{name}' 的 {key} 必须是整数",
            context={"mod": name, key: repr(value)},
        )


def _optional_int(name: str, key: str, value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    return _to_int(name, key, value)
