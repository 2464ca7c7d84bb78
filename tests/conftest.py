from pathlib import Path
from typing import Dict, Optional

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from tests.helpers import build_zip


@pytest.fixture
def mods_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "Mods"
    directory.mkdir()
    return directory


@pytest.fixture
def make_archive(mods_dir: Path):
    def _make(filename: str, files: Dict[str, bytes]) -> Path:
        return build_zip(mods_dir / filename, files)

    return _make


class PayloadServer:
    """在进程内提供下载内容的 HTTP 服务"""

    def __init__(self):
        self.routes: Dict[str, tuple] = {}
        self.redirects: Dict[str, str] = {}
        self.hits: Dict[str, int] = {}
        self.server: Optional[TestServer] = None

    def add(self, path: str, body: bytes, status: int = 200, headers=None):
        self.routes[path] = (status, body, headers or {})

    def redirect(self, path: str, target: str):
        self.redirects[path] = target

    def url(self, path: str) -> str:
        return str(self.server.make_url(path))

    async def handle(self, request: web.Request) -> web.StreamResponse:
        path = request.path
        self.hits[path] = self.hits.get(path, 0) + 1
        if path in self.redirects:
            raise web.HTTPFound(self.redirects[path])
        if path not in self.routes:
            raise web.HTTPNotFound()
        status, body, headers = self.routes[path]
        return web.Response(status=status, body=body, headers=headers)


@pytest.fixture
async def payload_server():
    payloads = PayloadServer()
    app = web.Application()
    app.router.add_get("/{tail:.*}", payloads.handle)
    payloads.server = TestServer(app)
    await payloads.server.start_server()
    yield payloads
    await payloads.server.close()
