"""
Outcome types returned by every core operation.

Core functions never raise across their boundary: they return an ActionResult
carrying either the data or a failure kind plus a user-facing message.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Generic, List, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)


class ErrorKind(str, enum.Enum):
    VALIDATION = "validation"
    NOT_AUTHENTICATED = "not_authenticated"
    NOT_FOUND = "not_found"
    UPSTREAM = "upstream"


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str


@dataclass
class ActionResult(Generic[T]):
    success: bool
    data: Optional[T] = None
    error: Optional[str] = None
    kind: Optional[ErrorKind] = None
    field_errors: List[FieldError] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


def ok(data: Any = None, warnings: Optional[List[str]] = None) -> ActionResult:
    return ActionResult(success=True, data=data, warnings=list(warnings or []))


def fail(kind: ErrorKind, error: str, field_errors: Optional[List[FieldError]] = None, data: Any = None) -> ActionResult:
    return ActionResult(success=False, kind=kind, error=error, field_errors=list(field_errors or []), data=data)


def not_authenticated() -> ActionResult:
    return fail(ErrorKind.NOT_AUTHENTICATED, "Not authenticated")


def not_found(what: str) -> ActionResult:
    return fail(ErrorKind.NOT_FOUND, f"{what} not found")


def upstream(error: str) -> ActionResult:
    return fail(ErrorKind.UPSTREAM, error)


def field_errors_from(exc: ValidationError) -> List[FieldError]:
    """First message per field, in the order pydantic reported them."""
    errors: List[FieldError] = []
    seen = set()
    for issue in exc.errors():
        loc = issue.get("loc") or ("__root__",)
        name = str(loc[0])
        if name in seen:
            continue
        seen.add(name)
        message = issue.get("msg", "Invalid value")
        # pydantic prefixes messages raised from validators
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        errors.append(FieldError(field=name, message=message))
    return errors


def validate(schema: Type[M], raw: Any) -> tuple[Optional[M], Optional[ActionResult]]:
    """Parse raw input into `schema`; on failure return a validation result instead."""
    try:
        return schema.model_validate(raw or {}), None
    except ValidationError as e:
        errors = field_errors_from(e)
        message = errors[0].message if errors else "Invalid input"
        return None, fail(ErrorKind.VALIDATION, message, errors)
