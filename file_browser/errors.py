from __future__ import annotations


class AccessDenied(PermissionError):
    """Request path escapes the root, either via ``..`` or a symlink component."""

    def __init__(self, message: str = 'access denied'):
        super().__init__(message)


class InvalidRange(ValueError):
    pass


class UnsupportedType(ValueError):
    pass


class ApiError(Exception):
    def __init__(self, status_code: int, code: str, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.message = message


def status_from_error(exc: BaseException) -> int:
    if isinstance(exc, PermissionError):
        return 403
    if isinstance(exc, FileNotFoundError):
        return 404
    if isinstance(exc, UnsupportedType):
        return 415
    if isinstance(exc, (NotADirectoryError, IsADirectoryError, ValueError)):
        return 400
    return 500


def error_message(exc: BaseException) -> str:
    if isinstance(exc, AccessDenied):
        return str(exc)
    if isinstance(exc, OSError):
        # strerror keeps absolute host paths out of client responses
        return (exc.strerror or exc.__class__.__name__).lower()
    return str(exc)
