import zipfile
from pathlib import Path
from typing import Dict

import xxhash


def xxh64(data: bytes) -> str:
    return xxhash.xxh64(data).hexdigest()


def manifest_yaml(*mods: tuple) -> bytes:
    """每个参数是 (name, version)"""
    lines = []
    for name, version in mods:
        lines.append(f"- Name: {name}\n  Version: {version}\n")
    return "".join(lines).encode("utf-8")


def build_zip(path: Path, files: Dict[str, bytes]) -> Path:
    with zipfile.ZipFile(path, "w") as z:
        for name, data in files.items():
            z.writestr(name, data)
    return path


def mod_zip_bytes(tmp_path: Path, name: str, version: str, filler: bytes = b"") -> bytes:
    """构建一个模组压缩包并返回其字节，用作下载内容"""
    path = tmp_path / f"payload-{name}-{version}-{xxh64(filler)}.zip"
    build_zip(
        path,
        {"everest.yaml": manifest_yaml((name, version)), "Maps/a.bin": filler},
    )
    return path.read_bytes()
