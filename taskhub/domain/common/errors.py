from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str


class DomainError(Exception):
    """Base for errors raised by domain services. `status` is the HTTP status it maps to."""

    status = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(DomainError):
    status = 400

    def __init__(self, message: str, errors: Optional[Sequence[FieldError]] = None) -> None:
        super().__init__(message)
        self.errors = list(errors or [])

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationError":
        return cls(message, [FieldError(field=field, message=message)])


class ConflictError(DomainError):
    # duplicates are reported as a bad request naming the clashing field
    status = 400

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.field = field


class NotFoundError(DomainError):
    status = 404


class ForbiddenError(DomainError):
    status = 403


class UnauthenticatedError(DomainError):
    status = 401
