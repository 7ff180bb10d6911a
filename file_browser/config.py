from __future__ import annotations

import math
import os
import stat
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_PREVIEW_MAX = 1 * 1024 * 1024
DEFAULT_STATIC_DIR = str(Path(__file__).resolve().parent / 'web')

_SIZE_SUFFIXES = (
    ('KB', 1024),
    ('K', 1024),
    ('MB', 1024 * 1024),
    ('M', 1024 * 1024),
    ('GB', 1024 * 1024 * 1024),
    ('G', 1024 * 1024 * 1024),
)


def parse_bytes(text: str) -> int:
    """Parse a size such as ``1024``, ``512KB`` or ``1.5 MB`` into bytes."""
    value = str(text).strip().upper()
    if not value:
        raise ValueError('empty size')
    if value == '0':
        return 0

    multiplier = 1
    for suffix, factor in _SIZE_SUFFIXES:
        if value.endswith(suffix):
            multiplier = factor
            value = value[: -len(suffix)]
            break

    value = value.strip()
    if not value:
        raise ValueError('invalid size')

    try:
        parsed = float(value)
    except ValueError as exc:
        raise ValueError(f'invalid size: {text!r}') from exc
    if not math.isfinite(parsed):
        raise ValueError(f'invalid size: {text!r}')
    if parsed < 0:
        raise ValueError('size must be >= 0')
    return int(parsed * multiplier)


def normalize_base_path(base_path: str) -> str:
    base_path = (base_path or '').strip()
    if base_path in ('', '/'):
        return ''
    if not base_path.startswith('/'):
        base_path = '/' + base_path
    return base_path.rstrip('/')


def validate_root(root: str) -> str:
    abs_root = os.path.abspath(root)
    try:
        info = os.lstat(abs_root)
    except OSError as exc:
        raise ValueError(f'root not accessible: {exc}') from exc

    if stat.S_ISLNK(info.st_mode):
        raise ValueError('root path cannot be a symlink')
    if not stat.S_ISDIR(info.st_mode):
        raise ValueError('root path must be a directory')
    return abs_root


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix='FILE_BROWSER_', env_file='.env', env_file_encoding='utf-8', extra='ignore')

    app_name: str = 'file-browser'
    root: str = '.'
    host: str = '127.0.0.1'
    port: int = Field(default=3000, ge=1, le=65535)
    preview_max: int = DEFAULT_PREVIEW_MAX
    base_path: str = ''
    search_max_results: int = Field(default=100, ge=1)
    log_level: Literal['critical', 'error', 'warning', 'info', 'debug'] = 'info'
    cors_origins: str = ''
    static_dir: str = DEFAULT_STATIC_DIR

    @field_validator('root')
    @classmethod
    def _check_root(cls, value: str) -> str:
        return validate_root(value)

    @field_validator('preview_max', mode='before')
    @classmethod
    def _parse_preview_max(cls, value):
        size = value if isinstance(value, int) else parse_bytes(value)
        if size <= 0:
            return DEFAULT_PREVIEW_MAX
        return size

    @field_validator('base_path')
    @classmethod
    def _normalize_base_path(cls, value: str) -> str:
        return normalize_base_path(value)

    @field_validator('log_level', mode='before')
    @classmethod
    def _lower_log_level(cls, value):
        return value.strip().lower() if isinstance(value, str) else value

    @property
    def addr(self) -> str:
        return f'{self.host}:{self.port}'


def format_config(cfg: Settings) -> str:
    fields = (
        ('root', cfg.root),
        ('host', cfg.host),
        ('port', cfg.port),
        ('preview-max', cfg.preview_max),
        ('base-path', cfg.base_path),
        ('search-max-results', cfg.search_max_results),
    )
    return ' '.join(f'{name}={value}' for name, value in fields)
