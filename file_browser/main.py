from __future__ import annotations

import logging
import os
import posixpath
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, HTMLResponse, JSONResponse, RedirectResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import Settings, format_config
from .errors import ApiError
from .routers import files
from .schemas import HealthResponse
from .services.file_ops import FileOps

log = logging.getLogger(__name__)

_SECURITY_HEADERS = {
    'Content-Security-Policy': "default-src 'self'; img-src 'self' data: blob:; style-src 'self' 'unsafe-inline'",
    'X-Frame-Options': 'DENY',
    'X-Content-Type-Options': 'nosniff',
    'Referrer-Policy': 'strict-origin-when-cross-origin',
}

_HTTP_ERROR_CODES = {
    404: 'NOT_FOUND',
    405: 'METHOD_NOT_ALLOWED',
}

_PLACEHOLDER_INDEX = b'<!doctype html><html><body>file-browser</body></html>'


def _parse_cors_origins(value: str) -> list[str]:
    return [origin.strip() for origin in value.split(',') if origin.strip()]


def _apply_security_headers(response):
    for key, value in _SECURITY_HEADERS.items():
        response.headers.setdefault(key, value)
    return response


def _error_response(status_code: int, code: str, message: str, headers: dict | None = None) -> JSONResponse:
    return _apply_security_headers(
        JSONResponse({'error': message, 'code': code}, status_code=status_code, headers=headers)
    )


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )


def load_index(static_dir: str) -> bytes:
    try:
        return (Path(static_dir) / 'index.html').read_bytes()
    except OSError:
        return _PLACEHOLDER_INDEX


async def security_middleware(request: Request, call_next):
    response = await call_next(request)
    return _apply_security_headers(response)


async def api_error_handler(request: Request, exc: ApiError):
    return _error_response(exc.status_code, exc.code, exc.message)


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    code = _HTTP_ERROR_CODES.get(exc.status_code, 'HTTP_ERROR')
    return _error_response(exc.status_code, code, str(exc.detail).lower(), headers=getattr(exc, 'headers', None))


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    fields = ', '.join(str(err.get('loc', ('',))[-1]) for err in exc.errors())
    return _error_response(400, 'INVALID_REQUEST', f'invalid parameter: {fields}')


async def unhandled_exception_handler(request: Request, exc: Exception):
    log.error('unhandled error on %s %s', request.method, request.url.path, exc_info=exc)
    return _error_response(500, 'INTERNAL_ERROR', 'internal server error')


def serve_index(request: Request) -> HTMLResponse:
    base_path = request.app.state.settings.base_path
    base_path = f'{base_path}/' if base_path else '/'
    html = request.app.state.index.replace(b'__BASE_PATH__/', base_path.encode())
    return HTMLResponse(html)


def serve_static(request: Request, full_path: str):
    cfg: Settings = request.app.state.settings
    request_path = request.url.path
    if cfg.base_path and request_path.startswith(cfg.base_path):
        request_path = request_path[len(cfg.base_path):]

    rel = posixpath.normpath('/' + request_path).lstrip('/')
    if rel == 'api' or rel.startswith('api/'):
        if request_path.endswith('/') and rel != 'api':
            return RedirectResponse(request.url.replace(path=request.url.path.rstrip('/')), status_code=301)
        raise ApiError(404, 'NOT_FOUND', 'not found')
    if rel in ('', '.'):
        return serve_index(request)

    candidate = os.path.normpath(os.path.join(cfg.static_dir, *rel.split('/')))
    escaped = os.path.relpath(candidate, cfg.static_dir).split(os.sep)[0] == os.pardir
    if escaped or not os.path.isfile(candidate):
        return serve_index(request)
    return FileResponse(candidate)


def create_app(cfg: Settings | None = None) -> FastAPI:
    cfg = cfg or Settings()
    configure_logging(cfg.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        log.info('file-browser: %s', format_config(cfg))
        yield

    app = FastAPI(title=cfg.app_name, lifespan=lifespan)
    app.state.settings = cfg
    app.state.file_ops = FileOps(cfg.root, preview_max=cfg.preview_max, search_max_results=cfg.search_max_results)
    app.state.index = load_index(cfg.static_dir)

    cors_origins = _parse_cors_origins(cfg.cors_origins)
    if cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=cors_origins,
            allow_methods=['GET', 'HEAD', 'OPTIONS'],
            allow_headers=['Range', 'Content-Type'],
        )
    app.middleware('http')(security_middleware)

    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    @app.get('/healthz', response_model=HealthResponse)
    def healthz():
        return HealthResponse()

    app.include_router(files.router)
    app.add_api_route('/{full_path:path}', serve_static, methods=['GET'], include_in_schema=False)
    return app
