"""커스텀 HTTP 예외 클래스 모듈.

Custom HTTP exception classes module.
Each subclass pairs an HTTP status with the procedure error code that
clients switch on (UNAUTHORIZED, FORBIDDEN, NOT_FOUND, BAD_REQUEST).
The handler in main.py renders them as {"code": ..., "detail": ...}.

Usage:
    from teamhub.utils.exceptions import NotFoundError, ForbiddenError
    raise NotFoundError("Team not found")
"""

from fastapi import HTTPException, status


class ProcedureError(HTTPException):
    """프로시저 오류 베이스 — code 속성을 가진 HTTPException.

    Base class for coded procedure failures.

    Args:
        status_code: HTTP 상태 코드 (HTTP status)
        detail: 오류 메시지 (Human readable message)
    """

    code: str = "INTERNAL_SERVER_ERROR"

    def __init__(self, status_code: int, detail: str) -> None:
        super().__init__(status_code=status_code, detail=detail)


class NotFoundError(ProcedureError):
    """404 Not Found — 요청한 리소스를 찾을 수 없을 때 사용.

    Raised when a team, member or membership does not exist.
    """

    code = "NOT_FOUND"

    def __init__(self, detail: str = "Resource not found") -> None:
        super().__init__(status.HTTP_404_NOT_FOUND, detail)


class ForbiddenError(ProcedureError):
    """403 Forbidden — 권한은 있으나 허용되지 않는 동작일 때 사용.

    Raised when the caller is authorized for the procedure but the specific
    action is not allowed (e.g. removing yourself from a team you own).
    """

    code = "FORBIDDEN"

    def __init__(self, detail: str = "Forbidden") -> None:
        super().__init__(status.HTTP_403_FORBIDDEN, detail)


class UnauthorizedError(ProcedureError):
    """401 Unauthorized — 인증 실패 또는 역할 부족 시 사용.

    Raised for missing/invalid credentials and for callers whose team role
    is too low for the procedure.
    """

    code = "UNAUTHORIZED"

    def __init__(self, detail: str = "Unauthorized") -> None:
        super().__init__(status.HTTP_401_UNAUTHORIZED, detail)


class BadRequestError(ProcedureError):
    """400 Bad Request — 비즈니스 규칙 검증 실패 시 사용."""

    code = "BAD_REQUEST"

    def __init__(self, detail: str = "Bad request") -> None:
        super().__init__(status.HTTP_400_BAD_REQUEST, detail)
