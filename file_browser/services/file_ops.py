from __future__ import annotations

import errno
import logging
import os
import posixpath
import stat
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import BinaryIO, Iterator

from ..errors import AccessDenied, InvalidRange
from .filetypes import file_extension

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedPath:
    absolute: str
    relative: str

    @property
    def url_path(self) -> str:
        return posixpath.join('/', self.relative)


@dataclass(frozen=True)
class FileEntry:
    name: str
    path: str
    type: str
    size: int
    modified: datetime
    extension: str

    @property
    def is_dir(self) -> bool:
        return self.type == 'dir'


@dataclass(frozen=True)
class OpenedFile:
    handle: BinaryIO
    info: os.stat_result


@dataclass(frozen=True)
class PreviewResult:
    content: bytes
    offset: int
    limit: int
    has_more: bool
    size: int
    modified: datetime


def validate_path(requested_path: str, root: str) -> ResolvedPath:
    """Map an untrusted request path onto ``root``.

    The request is first cleaned as a virtual POSIX path so ``..`` cannot climb
    above ``/``. The native join is then re-checked against the root, and every
    component below the root is probed with ``lstat``: a symlink anywhere in the
    chain is refused even when its target would stay inside the root.
    """
    clean = posixpath.normpath('/' + (requested_path or '').strip())
    rel = clean.lstrip('/')
    if rel == '.':
        rel = ''

    parts = [p for p in rel.split('/') if p]
    candidate = os.path.normpath(os.path.join(root, *parts))

    try:
        root_rel = os.path.relpath(candidate, root)
    except ValueError as exc:
        # different drive on Windows
        raise AccessDenied() from exc
    if root_rel == os.pardir or root_rel.startswith(os.pardir + os.sep):
        log.warning('path traversal rejected: %r', requested_path)
        raise AccessDenied()

    ensure_no_symlink(root, parts)
    return ResolvedPath(absolute=candidate, relative='/'.join(parts))


def ensure_no_symlink(root: str, parts: list[str]) -> None:
    current = root
    for part in parts:
        current = os.path.join(current, part)
        info = os.lstat(current)
        if stat.S_ISLNK(info.st_mode):
            log.warning('symlink component rejected: %s', current)
            raise AccessDenied()


def format_modified(value: datetime) -> str:
    return value.strftime('%Y-%m-%dT%H:%M:%SZ')


def _modified(info: os.stat_result) -> datetime:
    return datetime.fromtimestamp(int(info.st_mtime), tz=timezone.utc)


def make_entry(name: str, rel_dir: str, info: os.stat_result) -> FileEntry:
    is_dir = stat.S_ISDIR(info.st_mode)
    return FileEntry(
        name=name,
        path=posixpath.join('/', rel_dir, name),
        type='dir' if is_dir else 'file',
        size=0 if is_dir else info.st_size,
        modified=_modified(info),
        extension='' if is_dir else file_extension(name),
    )


def sort_entries(entries: list[FileEntry]) -> list[FileEntry]:
    return sorted(entries, key=lambda e: (not e.is_dir, e.name.lower(), e.name))


def iter_entries(abs_dir: str, rel_dir: str) -> Iterator[tuple[os.DirEntry, FileEntry]]:
    """Yield the direct children of ``abs_dir``, skipping symlinks and unstat-able entries."""
    with os.scandir(abs_dir) as it:
        for child in it:
            try:
                info = child.stat(follow_symlinks=False)
            except OSError:
                continue
            if stat.S_ISLNK(info.st_mode):
                continue
            yield child, make_entry(child.name, rel_dir, info)


def _read_at(handle: BinaryIO, size: int, offset: int) -> bytes:
    if not hasattr(os, 'pread'):
        handle.seek(offset)
        return handle.read(size)

    chunks: list[bytes] = []
    remaining = size
    fd = handle.fileno()
    while remaining > 0:
        chunk = os.pread(fd, remaining, offset)
        if not chunk:
            break
        chunks.append(chunk)
        offset += len(chunk)
        remaining -= len(chunk)
    return b''.join(chunks)


class FileOps:
    def __init__(self, root: str, preview_max: int = 0, search_max_results: int = 100):
        self.root = root
        self.preview_max = preview_max
        self.search_max_results = search_max_results

    def safe_path(self, rel: str) -> ResolvedPath:
        return validate_path(rel, self.root)

    def list_dir(self, resolved: ResolvedPath) -> list[FileEntry]:
        if not stat.S_ISDIR(os.stat(resolved.absolute).st_mode):
            raise NotADirectoryError(errno.ENOTDIR, 'not a directory')
        items = [entry for _, entry in iter_entries(resolved.absolute, resolved.relative)]
        return sort_entries(items)

    def stat_file(self, resolved: ResolvedPath) -> os.stat_result:
        info = os.stat(resolved.absolute)
        if stat.S_ISDIR(info.st_mode):
            raise IsADirectoryError(errno.EISDIR, 'path is a directory')
        return info

    @contextmanager
    def open_file(self, resolved: ResolvedPath) -> Iterator[OpenedFile]:
        info = self.stat_file(resolved)
        with open(resolved.absolute, 'rb') as handle:
            yield OpenedFile(handle=handle, info=info)

    def preview(self, resolved: ResolvedPath, offset: int = 0, limit: int = 0) -> PreviewResult:
        if offset < 0 or limit < 0:
            raise InvalidRange('offset/limit must be >= 0')

        with self.open_file(resolved) as opened:
            size = opened.info.st_size
            offset = min(offset, size)

            read_limit = limit or size
            if self.preview_max > 0:
                read_limit = min(read_limit, self.preview_max)
            read_limit = min(read_limit, size - offset)

            content = _read_at(opened.handle, read_limit, offset)

        return PreviewResult(
            content=content,
            offset=offset,
            limit=read_limit,
            has_more=offset + len(content) < size,
            size=size,
            modified=_modified(opened.info),
        )
