"""
配置模型

定义运行所需的配置项，并负责从字典加载与校验。
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from everestmod.exceptions import ConfigValidationError

DEFAULT_REGISTRY_URL = "https://maddie480.ovh/celeste/everest_update.yaml"
STEAM_MODS_DIRECTORY = ".local/share/Steam/steamapps/common/Celeste/Mods"
DEFAULT_MAX_CONCURRENT = 5


def default_mods_dir() -> Path:
    """Steam 安装下的 Celeste Mods 目录"""
    return Path.home() / STEAM_MODS_DIRECTORY


@dataclass
class EverestModConfig:
    """everestmod 运行配置"""

    mods_dir: Path = field(default_factory=default_mods_dir)
    registry_url: str = DEFAULT_REGISTRY_URL
    # <= 0 表示不限制并发
    max_concurrent: int = DEFAULT_MAX_CONCURRENT
    request_timeout: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]] = None) -> "EverestModConfig":
        """
        从字典创建配置，未给出的字段依次回退到环境变量和默认值。

        Args:
            data: 配置字典（可包含 mods_dir, registry_url, max_concurrent, request_timeout）

        Returns:
            EverestModConfig 实例

        Raises:
            ConfigValidationError: 字段类型或取值非法
        """
        data = dict(data or {})

        mods_dir = data.get("mods_dir") or os.environ.get("EVERESTMOD_MODS_DIR")
        registry_url = data.get("registry_url") or os.environ.get(
            "EVERESTMOD_REGISTRY_URL", DEFAULT_REGISTRY_URL
        )
        max_concurrent = data.get("max_concurrent", DEFAULT_MAX_CONCURRENT)
        request_timeout = data.get("request_timeout")

        if mods_dir is not None and not isinstance(mods_dir, (str, os.PathLike)):
            raise ConfigValidationError(
                "mods_dir 必须为路径字符串", context={"mods_dir": repr(mods_dir)}
            )
        if not isinstance(registry_url, str) or not registry_url.startswith(
            ("http://", "https://")
        ):
            raise ConfigValidationError(
                "registry_url 必须为 http(s) URL",
                context={"registry_url": repr(registry_url)},
            )
        if isinstance(max_concurrent, bool) or not isinstance(max_concurrent, int):
            raise ConfigValidationError(
                "max_concurrent 必须为整数",
                context={"max_concurrent": repr(max_concurrent)},
            )
        if request_timeout is not None:
            if isinstance(request_timeout, bool) or not isinstance(
                request_timeout, (int, float)
            ):
                raise ConfigValidationError(
                    "request_timeout 必须为数字",
                    context={"request_timeout": repr(request_timeout)},
                )
            if request_timeout <= 0:
                raise ConfigValidationError(
                    "request_timeout 必须大于 0",
                    context={"request_timeout": request_timeout},
                )
            request_timeout = float(request_timeout)

        return cls(
            mods_dir=(
                Path(mods_dir).expanduser() if mods_dir is not None else default_mods_dir()
            ),
            registry_url=registry_url,
            max_concurrent=max_concurrent,
            request_timeout=request_timeout,
        )
