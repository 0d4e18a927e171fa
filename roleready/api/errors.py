from __future__ import annotations

from typing import NoReturn

from fastapi import HTTPException

from roleready.services.errors import ServiceError


def raise_service_error(exc: ServiceError) -> NoReturn:
    raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc
