"""
模组清单模型

everest.yaml 描述压缩包内包含的一个或多个模组。
"""

from dataclasses import dataclass
from typing import Any, List, Optional, Tuple

import yaml

from everestmod.exceptions import ManifestParseError

MANIFEST_FILENAME = "everest.yaml"


@dataclass(frozen=True)
class Dependency:
    """必需或可选依赖"""

    name: str
    version: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> "Dependency":
        if not isinstance(data, dict) or not data.get("Name"):
            raise ManifestParseError(
                "依赖项缺少 Name 字段", context={"dependency": repr(data)}
            )
        return cls(name=data["Name"], version=data.get("Version") or None)


@dataclass(frozen=True)
class ModManifest:
    """everest.yaml 中的一条模组声明"""

    name: str
    version: str
    dll: Optional[str] = None
    dependencies: Tuple[Dependency, ...] = ()
    optional_dependencies: Tuple[Dependency, ...] = ()

    @classmethod
    def from_dict(cls, data: Any) -> "ModManifest":
        if not isinstance(data, dict):
            raise ManifestParseError(
                "清单条目必须是映射", context={"entry": repr(data)}
            )
        for key in ("Name", "Version"):
            if not isinstance(data.get(key), str) or not data[key]:
                raise ManifestParseError(
                    f"清单条目缺少 {key} 字段", context={"entry": repr(data)}
                )

        return cls(
            name=data["Name"],
            version=data["Version"],
            dll=data.get("DLL") or None,
            dependencies=_parse_dependencies(data.get("Dependencies")),
            optional_dependencies=_parse_dependencies(
                data.get("OptionalDependencies")
            ),
        )

    @classmethod
    def parse_entries(cls, data: bytes) -> List["ModManifest"]:
        """
        解析 everest.yaml 的全部条目。

        标量一律按原始字符串读取，"1.10" 这类版本号不会被当作浮点数。

        Args:
            data: 清单原始字节

        Returns:
            按文档顺序排列的条目列表（至少一项）

        Raises:
            ManifestParseError: 编码、YAML 语法或字段缺失
        """
        try:
            text = data.decode("utf-8-sig")
            document = yaml.load(text, Loader=yaml.BaseLoader)
        except (UnicodeDecodeError, yaml.YAMLError) as e:
            raise ManifestParseError(f"无法解析 {MANIFEST_FILENAME}: {e}")

        if not isinstance(document, list) or not document:
            raise ManifestParseError(
                f"{MANIFEST_FILENAME} 必须是非空列表",
                context={"type": type(document).__name__},
            )
        return [cls.from_dict(entry) for entry in document]

    @classmethod
    def parse(cls, data: bytes) -> "ModManifest":
        """只返回第一条声明，它代表整个压缩包的身份"""
        return cls.parse_entries(data)[0]


def _parse_dependencies(raw: Any) -> Tuple[Dependency, ...]:
    if raw is None or raw == "":
        return ()
    if not isinstance(raw, list):
        raise ManifestParseError("依赖列表格式错误", context={"value": repr(raw)})
    return tuple(Dependency.from_dict(item) for item in raw)
