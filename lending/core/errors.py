"""Typed outcomes of the lending core.

Every operation exposed to the application layer returns a ``Result``;
failures carry a ``LendingError`` whose ``kind`` tells the caller how to
render it and whose ``code``/``field``/``resource`` say what went wrong.
"""

import functools
from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class ErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"
    CONFLICT = "conflict"
    VALIDATION = "validation"
    INTERNAL = "internal"


class ErrorCode:
    NOT_FOUND = "NotFound"
    FORBIDDEN = "Forbidden"
    TENANT_CONTEXT_REQUIRED = "TenantContextRequired"
    NO_COPIES_AVAILABLE = "NoCopiesAvailable"
    LOAN_LIMIT_REACHED = "LoanLimitReached"
    ALREADY_RETURNED = "AlreadyReturned"
    COPIES_ON_LOAN = "CopiesOnLoan"
    INVALID_VALUE = "InvalidValue"
    INVENTORY_OVERFLOW = "InventoryOverflow"
    INTEGRITY_VIOLATION = "IntegrityViolation"
    WRITE_CONFLICT = "WriteConflict"
    DATABASE_FAILURE = "DatabaseFailure"


GENERIC_FAILURE = "The request could not be completed"


class LendingError(Exception):
    def __init__(self, kind: ErrorKind, code: str, message: str,
                 field: Optional[str] = None, resource: Optional[str] = None):
        super().__init__(message)
        self.kind = kind
        self.code = code
        self.message = message
        self.field = field
        self.resource = resource

    def __repr__(self):
        return f"LendingError({self.kind.value}, {self.code}, {self.message!r})"

    def to_dict(self) -> dict:
        """Caller-facing payload; internal detail is never exposed."""
        if self.kind is ErrorKind.INTERNAL:
            return {"kind": self.kind.value, "code": "Internal", "message": GENERIC_FAILURE}
        payload = {"kind": self.kind.value, "code": self.code, "message": self.message}
        if self.field:
            payload["field"] = self.field
        if self.resource:
            payload["resource"] = self.resource
        return payload


def not_found(resource: str) -> LendingError:
    return LendingError(ErrorKind.NOT_FOUND, ErrorCode.NOT_FOUND,
                        f"{resource.capitalize()} not found", resource=resource)


def forbidden(message: str, code: str = ErrorCode.FORBIDDEN,
              resource: Optional[str] = None) -> LendingError:
    return LendingError(ErrorKind.FORBIDDEN, code, message, resource=resource)


def conflict(code: str, message: str, resource: Optional[str] = None) -> LendingError:
    return LendingError(ErrorKind.CONFLICT, code, message, resource=resource)


def invalid(field: str, message: str) -> LendingError:
    return LendingError(ErrorKind.VALIDATION, ErrorCode.INVALID_VALUE, message, field=field)


def internal(code: str, message: str, resource: Optional[str] = None) -> LendingError:
    return LendingError(ErrorKind.INTERNAL, code, message, resource=resource)


@dataclass(frozen=True)
class Result(Generic[T]):
    value: Optional[T] = None
    error: Optional[LendingError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        if self.error is not None:
            raise self.error
        return self.value

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: LendingError) -> "Result[T]":
        return cls(error=error)


def returns_result(fn):
    """Turn a raising core operation into one returning ``Result``."""

    @functools.wraps(fn)
    def wrapper(*args, **kwargs):
        try:
            return Result.success(fn(*args, **kwargs))
        except LendingError as exc:
            return Result.failure(exc)

    return wrapper
