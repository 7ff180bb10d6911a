from __future__ import annotations

import logging
import os
import re

from fastapi import APIRouter, Depends, Query
from fastapi.responses import FileResponse

from ..deps import get_file_ops
from ..errors import ApiError, InvalidRange, UnsupportedType, error_message, status_from_error
from ..schemas import ErrorResponse, FileEntryOut, PreviewResponse
from ..services.file_ops import FileOps, ResolvedPath, format_modified, sort_entries
from ..services.filetypes import file_extension, image_media_type, is_image_file, is_text_file
from ..services.search import search_flat, search_recursive

log = logging.getLogger(__name__)

router = APIRouter(
    prefix='/api',
    tags=['files'],
    responses={
        400: {'model': ErrorResponse},
        403: {'model': ErrorResponse},
        404: {'model': ErrorResponse},
        500: {'model': ErrorResponse},
    },
)


def _api_error(exc: BaseException, code: str) -> ApiError:
    return ApiError(status_from_error(exc), code, error_message(exc))


def _resolve(ops: FileOps, path: str) -> ResolvedPath:
    try:
        return ops.safe_path(path)
    except (OSError, ValueError) as exc:
        raise _api_error(exc, 'INVALID_PATH')


def _stat_regular_file(ops: FileOps, resolved: ResolvedPath) -> os.stat_result:
    try:
        return ops.stat_file(resolved)
    except IsADirectoryError:
        raise ApiError(400, 'NOT_A_FILE', 'path is a directory')
    except OSError as exc:
        raise _api_error(exc, 'STAT_FAILED')


_INT_PATTERN = re.compile(r'[+-]?[0-9]+')
_INT64_MAX = 2 ** 63 - 1


def _parse_int(value: str, name: str) -> int:
    if not value:
        return 0
    if not _INT_PATTERN.fullmatch(value):
        raise InvalidRange(f'invalid {name}')
    parsed = int(value)
    if abs(parsed) > _INT64_MAX:
        raise InvalidRange(f'invalid {name}')
    return parsed


def parse_offset_limit(offset: str, limit: str, max_limit: int) -> tuple[int, int]:
    parsed_offset = _parse_int(offset, 'offset')
    parsed_limit = _parse_int(limit, 'limit')

    if parsed_offset < 0 or parsed_limit < 0:
        raise InvalidRange('offset/limit must be >= 0')
    if max_limit > 0 and parsed_limit > max_limit:
        parsed_limit = max_limit
    return parsed_offset, parsed_limit


@router.get('/files', response_model=list[FileEntryOut])
def list_files(path: str = Query(default='/'), ops: FileOps = Depends(get_file_ops)):
    resolved = _resolve(ops, path)
    try:
        items = ops.list_dir(resolved)
    except OSError as exc:
        raise _api_error(exc, 'READ_DIR_FAILED')
    return [FileEntryOut.from_entry(item) for item in items]


@router.get('/preview', response_model=PreviewResponse)
def preview(
    path: str = Query(default='/'),
    offset: str = Query(default=''),
    limit: str = Query(default=''),
    ops: FileOps = Depends(get_file_ops),
):
    resolved = _resolve(ops, path)
    _stat_regular_file(ops, resolved)

    try:
        start, count = parse_offset_limit(offset, limit, ops.preview_max)
    except InvalidRange as exc:
        raise ApiError(400, 'INVALID_RANGE', str(exc))

    try:
        result = ops.preview(resolved, start, count)
    except IsADirectoryError:
        raise ApiError(400, 'NOT_A_FILE', 'path is a directory')
    except OSError:
        log.exception('preview read failed for %s', resolved.url_path)
        raise ApiError(500, 'READ_FAILED', 'failed to read file')

    name = os.path.basename(resolved.absolute)
    ext = file_extension(name)
    return PreviewResponse(
        path=resolved.url_path,
        name=name,
        content=result.content.decode('utf-8', errors='replace'),
        size=result.size,
        modified=format_modified(result.modified),
        type=ext,
        is_binary=not is_text_file(ext),
        offset=result.offset,
        limit=result.limit,
        has_more=result.has_more,
    )


@router.get('/image', responses={415: {'model': ErrorResponse}})
def image(path: str = Query(default='/'), ops: FileOps = Depends(get_file_ops)):
    resolved = _resolve(ops, path)
    info = _stat_regular_file(ops, resolved)

    ext = file_extension(os.path.basename(resolved.absolute))
    if not is_image_file(ext):
        raise _api_error(UnsupportedType(f'unsupported image type: {ext or "none"}'), 'UNSUPPORTED_IMAGE')

    return FileResponse(resolved.absolute, media_type=image_media_type(ext), stat_result=info)


@router.get('/download')
def download(path: str = Query(default='/'), ops: FileOps = Depends(get_file_ops)):
    resolved = _resolve(ops, path)
    info = _stat_regular_file(ops, resolved)
    return FileResponse(resolved.absolute, filename=os.path.basename(resolved.absolute), stat_result=info)


@router.get('/search', response_model=list[FileEntryOut])
def search(
    path: str = Query(default='/'),
    q: str = Query(default=''),
    recursive: bool = Query(default=False),
    ops: FileOps = Depends(get_file_ops),
):
    query = q.strip()
    if not query:
        return []

    resolved = _resolve(ops, path)
    query_lower = query.lower()
    if recursive:
        results = search_recursive(resolved, query_lower, ops.search_max_results)
    else:
        results = search_flat(resolved, query_lower)
    return [FileEntryOut.from_entry(item) for item in sort_entries(results)]
