"""
everestmod 统一异常体系

提供分层的异常结构，支持错误代码、上下文信息和 JSON 序列化。
"""

from typing import Any, Dict, Iterable, Optional
import aiohttp


class EverestModError(Exception):
    """everestmod 基础异常类"""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self._get_default_code()
        self.context = context or {}

    def _get_default_code(self) -> str:
        """获取默认错误代码"""
        return "E000"

    def to_dict(self) -> Dict[str, Any]:
        """将异常转换为字典格式"""
        return {
            "error": True,
            "code": self.code,
            "message": self.message,
            "context": self.context,
            "type": self.__class__.__name__,
        }

    def __str__(self) -> str:
        if self.code:
            return f"[{self.code}] {self.message}"
        return self.message


class ConfigError(EverestModError):
    """配置相关错误"""

    def _get_default_code(self) -> str:
        return "E100"


class ConfigParseError(ConfigError):
    """配置解析错误"""

    def _get_default_code(self) -> str:
        return "E101"


class ConfigValidationError(ConfigError):
    """配置验证错误"""

    def _get_default_code(self) -> str:
        return "E102"


class NetworkError(EverestModError):
    """网络相关错误"""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        response: Optional[aiohttp.ClientResponse] = None,
    ):
        super().__init__(message, code, context)
        self.response = response
        if response is not None:
            self.context["status_code"] = response.status
            self.context["url"] = str(response.url)

    def _get_default_code(self) -> str:
        return "E200"


class RegistryFetchError(NetworkError):
    """远程注册表获取失败"""

    def _get_default_code(self) -> str:
        return "E201"


class RegistryParseError(EverestModError):
    """远程注册表格式错误"""

    def _get_default_code(self) -> str:
        return "E202"


class ModNotFoundError(EverestModError):
    """注册表中不存在该模组"""

    def _get_default_code(self) -> str:
        return "E204"


class DownloadError(EverestModError):
    """下载相关错误"""

    def _get_default_code(self) -> str:
        return "E300"


class DownloadNetworkError(DownloadError, NetworkError):
    """下载网络错误"""

    def _get_default_code(self) -> str:
        return "E301"


class IntegrityError(DownloadError):
    """下载校验错误：计算出的指纹不在注册表给出的集合中"""

    def __init__(
        self,
        message: str,
        computed: str,
        expected: Iterable[str],
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, code, context)
        self.computed = computed
        self.expected = sorted(expected)
        self.context.setdefault("computed", self.computed)
        self.context.setdefault("expected", self.expected)

    def _get_default_code(self) -> str:
        return "E302"


class DownloadFileError(DownloadError):
    """下载文件操作错误"""

    def _get_default_code(self) -> str:
        return "E303"


class LocalModError(EverestModError):
    """本地模组目录相关错误"""

    def _get_default_code(self) -> str:
        return "E400"


class MissingDirectoryError(LocalModError):
    """模组目录不存在"""

    def _get_default_code(self) -> str:
        return "E401"


class ArchiveError(LocalModError):
    """压缩包无法打开或结构损坏"""

    def _get_default_code(self) -> str:
        return "E402"


class ManifestParseError(LocalModError):
    """everest.yaml 内容格式错误"""

    def _get_default_code(self) -> str:
        return "E403"


__all__ = [
    # 基础异常
    "EverestModError",
    # 配置异常
    "ConfigError",
    "ConfigParseError",
    "ConfigValidationError",
    # 网络 / 注册表异常
    "NetworkError",
    "RegistryFetchError",
    "RegistryParseError",
    "ModNotFoundError",
    # 下载异常
    "DownloadError",
    "DownloadNetworkError",
    "IntegrityError",
    "DownloadFileError",
    # 本地异常
    "LocalModError",
    "MissingDirectoryError",
    "ArchiveError",
    "ManifestParseError",
]
