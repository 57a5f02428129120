from __future__ import annotations


class AppError(Exception):
    """Base application error."""

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        super().__init__(detail)


class NotFoundError(AppError):
    pass


class ForbiddenError(AppError):
    pass


class EntitlementError(ForbiddenError):
    """Access denied by a plan/subscription gate the user can lift by upgrading."""

    def __init__(self, detail: str = "", code: str = "") -> None:
        self.code = code
        super().__init__(detail)


class ValidationError(AppError):
    pass


class TransientError(AppError):
    """Network or server failure; the same call may succeed later."""
