"""
配置文件加载

支持 toml / json / yaml 三种格式。
"""

import json
from pathlib import Path
from typing import Any, Optional

import toml
import yaml

from everestmod.exceptions import ConfigParseError
from everestmod.models import EverestModConfig


def load_config_file(config_path: "str | Path") -> dict[str, Any]:
    """
    读取配置文件为字典

    Raises:
        ConfigParseError: 文件不存在、格式不支持或内容无法解析
    """
    path = Path(config_path)

    if not path.is_file():
        raise ConfigParseError(
            f"配置文件不存在: {config_path}", context={"path": str(config_path)}
        )

    suffix = path.suffix.lower()
    try:
        if suffix == ".toml":
            data = toml.load(path)
        elif suffix == ".json":
            data = json.loads(path.read_text(encoding="utf-8"))
        elif suffix in (".yaml", ".yml"):
            data = yaml.safe_load(path.read_text(encoding="utf-8"))
        else:
            raise ConfigParseError(
                f"不支持的配置文件格式: {suffix}", context={"path": str(path)}
            )
    except (OSError, toml.TomlDecodeError, json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigParseError(
            f"无法解析配置文件 {path.name}: {e}", context={"path": str(path)}
        )

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigParseError(
            f"配置文件 {path.name} 顶层必须是映射", context={"path": str(path)}
        )
    return data


def load_config(
    config_path: Optional["str | Path"] = None, **overrides: Any
) -> EverestModConfig:
    """
    加载配置

    优先级：命令行参数 > 配置文件 > 环境变量 > 默认值。值为 None 的覆盖项会被忽略。
    """
    data = load_config_file(config_path) if config_path else {}
    data.update({key: value for key, value in overrides.items() if value is not None})
    return EverestModConfig.from_dict(data)
