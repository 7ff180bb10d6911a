from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from file_browser.config import Settings
from file_browser.main import create_app
from file_browser.services.file_ops import FileOps


@pytest.fixture
def root(tmp_path):
    base = tmp_path / 'root'
    base.mkdir()
    (base / 'subdir').mkdir()
    (base / 'test.txt').write_bytes(b'hello world')
    (base / 'subdir' / 'nested.txt').write_bytes(b'nested content')
    return base


@pytest.fixture
def outside(tmp_path):
    target = tmp_path / 'outside'
    target.mkdir()
    (target / 'secret.txt').write_text('top secret')
    return target


@pytest.fixture
def ops(root):
    return FileOps(str(root), preview_max=1024 * 1024, search_max_results=100)


@pytest.fixture
def make_client(root, tmp_path):
    def _make(**overrides) -> TestClient:
        static_dir = tmp_path / 'static'
        static_dir.mkdir(exist_ok=True)
        overrides.setdefault('root', str(root))
        overrides.setdefault('static_dir', str(static_dir))
        return TestClient(create_app(Settings(**overrides)))

    return _make


@pytest.fixture
def client(make_client):
    with make_client() as test_client:
        yield test_client
