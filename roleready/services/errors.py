from __future__ import annotations


class ServiceError(RuntimeError):
    def __init__(self, message: str, status_code: int = 400) -> None:
        super().__init__(message)
        self.status_code = status_code


class NotFoundError(ServiceError):
    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=404)


class ForbiddenError(ServiceError):
    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=403)


class ConflictError(ServiceError):
    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=409)
