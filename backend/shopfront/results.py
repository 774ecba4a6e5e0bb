# Overview: Uniform service return value (success/data or error + HTTP status).

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass
class ServiceResult:
    """
    What every service operation returns for expected outcomes.

    Business-rule violations (not found, duplicate, insufficient stock...)
    come back as success=False with a status for the route layer; only
    unexpected failures raise.
    """
    success: bool
    data: Any = None
    error: Any = None
    status: int = 200


def ok(data: Any = None) -> ServiceResult:
    return ServiceResult(success=True, data=data, status=200)


def fail(error: Any, status: int = 400) -> ServiceResult:
    return ServiceResult(success=False, error=error, status=status)


def not_found(error: str) -> ServiceResult:
    return fail(error, 404)


def forbidden(error: str = "Forbidden") -> ServiceResult:
    return fail(error, 403)


def unauthorized(error: str = "Unauthorized") -> ServiceResult:
    return fail(error, 401)
