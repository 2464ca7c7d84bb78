"""
压缩包检查器

从模组压缩包中找出 everest.yaml 并读取其原始字节。
"""

import os
import zipfile
import zlib
from typing import Iterable, Optional

from everestmod.exceptions import ArchiveError

MANIFEST_NAMES = ("everest.yaml", "everest.yml")
UTF8_BOM = b"\xef\xbb\xbf"


def select_manifest_entry(names: Iterable[str]) -> Optional[str]:
    """
    从条目名列表中选出清单文件

    文件名不区分大小写，可以位于任意层级的子目录。
    多个候选时取层级最浅的，同层级按完整路径字典序，与压缩包内的条目顺序无关。

    Args:
        names: 压缩包内的条目名

    Returns:
        选中的条目名，没有候选时返回 None
    """
    candidates = [
        name
        for name in names
        if not name.endswith("/")
        and name.rsplit("/", 1)[-1].lower() in MANIFEST_NAMES
    ]
    if not candidates:
        return None
    return min(candidates, key=lambda name: (name.count("/"), name))


def strip_bom(data: bytes) -> bytes:
    if data.startswith(UTF8_BOM):
        return data[len(UTF8_BOM) :]
    return data


class ArchiveInspector:
    """模组压缩包检查器"""

    @staticmethod
    def find_manifest(archive_path: "str | os.PathLike[str]") -> Optional[bytes]:
        """
        读取压缩包中的 everest.yaml

        Args:
            archive_path: 压缩包路径

        Returns:
            去掉 BOM 后的清单字节；压缩包不含清单时返回 None

        Raises:
            ArchiveError: 压缩包无法打开或已损坏
        """
        try:
            with zipfile.ZipFile(archive_path) as z:
                entry = select_manifest_entry(
                    info.filename.replace("\\", "/") for info in z.infolist()
                )
                if entry is None:
                    return None
                # 条目名可能用反斜杠分隔，按原始 ZipInfo 读取
                info = next(
                    i for i in z.infolist() if i.filename.replace("\\", "/") == entry
                )
                return strip_bom(z.read(info))
        except (
            zipfile.BadZipFile,
            zipfile.LargeZipFile,
            zlib.error,
            OSError,
            EOFError,
        ) as e:
            raise ArchiveError(
                f"无法读取压缩包 '{os.path.basename(archive_path)}': {e}",
                context={"archive": os.fspath(archive_path)},
            )
        except (RuntimeError, NotImplementedError, ValueError) as e:
            # 加密条目或不支持的压缩方式
            raise ArchiveError(
                f"无法解压 '{os.path.basename(archive_path)}' 中的清单: {e}",
                context={"archive": os.fspath(archive_path)},
            )
