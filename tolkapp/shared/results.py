"""Structured operation results returned to the request layer"""

from typing import Any, Optional

from ..enums import ErrorType


def success(**payload: Any) -> dict:
    return {"status": "success", **payload}


def fail(message: str, error_type: ErrorType, field_name: Optional[str] = None) -> dict:
    result = {"status": "fail", "message": message, "error_type": error_type.value}
    if field_name:
        result["field_name"] = field_name
    return result


def validation_fail(message: str, field_name: Optional[str] = None) -> dict:
    return fail(message, ErrorType.VALIDATION, field_name)


def authorization_fail(message: str) -> dict:
    return fail(message, ErrorType.AUTHORIZATION)


def conflict_fail(message: str) -> dict:
    return fail(message, ErrorType.CONFLICT)
