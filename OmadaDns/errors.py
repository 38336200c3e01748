from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Optional

@dataclass(frozen=True)
class ApiErrorDetails:
    status: Optional[int] = None
    error_code: Optional[int] = None
    message: Optional[str] = None
    detail: Any = None
    url: Optional[str] = None
    method: Optional[str] = None

class ApiError(RuntimeError):
    def __init__(self, msg: str, *, details: Optional[ApiErrorDetails] = None) -> None:
        super().__init__(msg)
        self.details = details or ApiErrorDetails()

class BadRequestError(ApiError):
    pass

class NotFoundError(ApiError):
    pass

class AuthenticationError(ApiError):
    pass

class SettingsError(ValueError):
    pass

# Omada errorCode values that mean the session is gone or the login was refused.
AUTH_ERROR_CODES = frozenset({-1005, -1200, -30109, -30110, -30112})

def map_http_error(
    *,
    status: Optional[int],
    error_code: Optional[int] = None,
) -> type[ApiError]:
    if status in (401, 403) or (error_code is not None and error_code in AUTH_ERROR_CODES):
        return AuthenticationError
    if status == 404:
        return NotFoundError
    if status == 400:
        return BadRequestError
    return ApiError
