"""Repository exception hierarchy and standardized error payloads.

Exception Hierarchy:
    RepositoryError                 any store failure, wrapped with the operation name
    ├── RepositoryValidationError   document failed schema validation on create/update
    ├── RepositoryIntegrityError    store constraint violation (unique, not null, fk)
    └── TransactionStateError       transaction token used outside its active state

"No match" is never an exception: single-document reads and deletes return None.

Usage:
    try:
        await products.update_by_id(product_id, {"price": -5})
    except RepositoryValidationError as exc:
        exc.errors  # {"price": ["Input should be greater than or equal to 0"]}
"""

from typing import Any

from pydantic import BaseModel, Field, ValidationError
from sqlalchemy.exc import IntegrityError

__all__ = [
    "ErrorResponse",
    "RepositoryError",
    "RepositoryIntegrityError",
    "RepositoryValidationError",
    "TransactionStateError",
]


class ErrorResponse(BaseModel):
    """Standardized error payload a calling service can hand to its transport."""

    success: bool = Field(default=False, description="Always False for errors")
    error_code: str = Field(description="Error code identifier")
    message: str = Field(description="Human-readable error message")
    operation: str | None = Field(default=None, description="Repository operation that failed")
    detail: dict[str, Any] | None = Field(default=None, description="Additional error details")


class RepositoryError(Exception):
    """Base exception for every failure raised by the data-access layer."""

    def __init__(
        self,
        message: str = "Repository operation failed",
        operation: str | None = None,
        error_code: str | None = None,
        detail: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.operation = operation
        self.error_code = error_code or self.__class__.__name__
        self.detail = detail
        super().__init__(message)

    @classmethod
    def wrap(cls, operation: str, exc: BaseException) -> "RepositoryError":
        """Build the error raised for an unexpected failure inside ``operation``.

        Constraint violations keep their own kind so callers can tell a
        duplicate key apart from an unreachable store.
        """
        underlying = str(getattr(exc, "orig", None) or exc)
        error_cls = RepositoryIntegrityError if isinstance(exc, IntegrityError) else cls
        return error_cls(
            f"Repository {operation} operation failed: {underlying}",
            operation=operation,
            detail={"cause": type(exc).__name__},
        )

    def to_error_response(self) -> ErrorResponse:
        """Convert exception to ErrorResponse object."""
        return ErrorResponse(
            error_code=self.error_code,
            message=self.message,
            operation=self.operation,
            detail=self.detail,
        )


class RepositoryValidationError(RepositoryError):
    """Document failed persistence-time schema validation.

    ``errors`` maps each offending field path to its messages.
    """

    def __init__(
        self,
        errors: dict[str, list[str]],
        operation: str | None = None,
        model: str | None = None,
        detail: dict[str, Any] | None = None,
    ) -> None:
        self.errors = errors
        self.model = model
        fields = ", ".join(sorted(errors))
        subject = f"{model} validation failed" if model else "Validation failed"
        super().__init__(
            f"{subject}: {fields}",
            operation=operation,
            error_code="ValidationError",
            detail={**(detail or {}), "errors": errors},
        )

    @classmethod
    def from_pydantic(
        cls,
        exc: ValidationError,
        operation: str,
        model: str | None = None,
        detail: dict[str, Any] | None = None,
    ) -> "RepositoryValidationError":
        errors: dict[str, list[str]] = {}
        for error in exc.errors():
            field = ".".join(str(part) for part in error["loc"]) or "__root__"
            errors.setdefault(field, []).append(error["msg"])
        return cls(errors, operation=operation, model=model, detail=detail)


class RepositoryIntegrityError(RepositoryError):
    """Store rejected the write because of a constraint violation."""


class TransactionStateError(RepositoryError):
    """Transaction token used after it was committed, aborted or ended."""
