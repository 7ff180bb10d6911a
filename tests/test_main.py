from __future__ import annotations

import asyncio
import json

import pytest
from fastapi.responses import JSONResponse
from starlette.requests import Request

from file_browser import main


def _request(path: str) -> Request:
    scope = {
        'type': 'http',
        'http_version': '1.1',
        'method': 'GET',
        'scheme': 'http',
        'path': path,
        'raw_path': path.encode(),
        'query_string': b'',
        'headers': [],
        'client': ('127.0.0.1', 12345),
        'server': ('testserver', 80),
    }
    return Request(scope)


def test_unhandled_exception_handler_response_is_safe():
    request = _request('/api/files')
    response = asyncio.run(main.unhandled_exception_handler(request, RuntimeError('boom at /srv/private/path')))

    assert response.status_code == 500
    assert response.body == b'{"error":"internal server error","code":"INTERNAL_ERROR"}'
    assert b'/srv/private/path' not in response.body
    assert response.headers['X-Content-Type-Options'] == 'nosniff'


@pytest.mark.asyncio
async def test_security_headers_added_on_success_response():
    async def _next(_request: Request):
        return JSONResponse({'status': 'ok'})

    response = await main.security_middleware(_request('/healthz'), _next)

    assert response.status_code == 200
    assert response.headers['Content-Security-Policy'].startswith("default-src 'self'")
    assert response.headers['Referrer-Policy'] == 'strict-origin-when-cross-origin'


def test_load_index_falls_back_to_placeholder(tmp_path):
    assert b'file-browser' in main.load_index(str(tmp_path / 'missing'))


def test_spa_fallback_serves_index_with_base_path(make_client, tmp_path):
    (tmp_path / 'static').mkdir()
    (tmp_path / 'static' / 'index.html').write_text('<base href="__BASE_PATH__/"><div id="app"></div>')

    with make_client(base_path='/files') as client:
        deep = client.get('/files/some/client/route')
        root = client.get('/files')

    assert deep.status_code == 200
    assert deep.headers['content-type'].startswith('text/html')
    assert '<base href="/files/">' in deep.text
    assert root.text == deep.text


def test_spa_fallback_without_base_path(make_client, tmp_path):
    (tmp_path / 'static').mkdir()
    (tmp_path / 'static' / 'index.html').write_text('<base href="__BASE_PATH__/">')

    with make_client() as client:
        response = client.get('/')

    assert response.text == '<base href="/">'


def test_static_asset_is_served(make_client, tmp_path):
    assets = tmp_path / 'static' / 'assets'
    assets.mkdir(parents=True)
    (assets / 'app.js').write_text('console.log(1)')

    with make_client() as client:
        response = client.get('/assets/app.js')

    assert response.status_code == 200
    assert response.text == 'console.log(1)'


def test_static_traversal_serves_index(make_client, tmp_path):
    (tmp_path / 'static').mkdir()
    (tmp_path / 'static' / 'index.html').write_text('index')
    (tmp_path / 'private.txt').write_text('private')

    with make_client() as client:
        response = client.get('/..%2Fprivate.txt')

    assert response.text == 'index'


def test_packaged_index_is_used_by_default(root):
    from file_browser.config import Settings

    app = main.create_app(Settings(root=str(root)))

    assert b'__BASE_PATH__/' in app.state.index


def test_api_errors_use_error_envelope(client):
    response = client.get('/api/preview', params={'path': '/missing.txt'})

    assert response.status_code == 404
    assert set(json.loads(response.content)) == {'error', 'code'}
