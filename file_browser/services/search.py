from __future__ import annotations

import logging
import posixpath

from .file_ops import FileEntry, ResolvedPath, iter_entries

log = logging.getLogger(__name__)


def search_flat(resolved: ResolvedPath, query_lower: str) -> list[FileEntry]:
    if not query_lower:
        return []

    try:
        return [entry for _, entry in iter_entries(resolved.absolute, resolved.relative) if query_lower in entry.name.lower()]
    except OSError as exc:
        log.debug('search skipped %s: %s', resolved.absolute, exc)
        return []


def search_recursive(resolved: ResolvedPath, query_lower: str, max_results: int) -> list[FileEntry]:
    """Depth-first name search below ``resolved``.

    Symlinks are neither reported nor descended into, unreadable directories are
    skipped, and the whole walk stops once ``max_results`` matches are collected.
    """
    if not query_lower or max_results <= 0:
        return []

    results: list[FileEntry] = []
    stack = [(resolved.absolute, resolved.relative)]
    while stack:
        abs_dir, rel_dir = stack.pop()
        try:
            children = sorted(iter_entries(abs_dir, rel_dir), key=lambda pair: pair[1].name)
        except OSError as exc:
            log.debug('search skipped %s: %s', abs_dir, exc)
            continue

        subdirs = []
        for dir_entry, entry in children:
            if query_lower in entry.name.lower():
                results.append(entry)
                if len(results) >= max_results:
                    return results
            if entry.is_dir:
                subdirs.append((dir_entry.path, posixpath.join(rel_dir, entry.name)))

        stack.extend(reversed(subdirs))

    return results
