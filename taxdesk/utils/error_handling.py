"""
TaxDesk NG - Error Handling

Exception tree for validation, lookup and computation failures, and the
FastAPI handlers that turn them into a single JSON error envelope.
"""

from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict, Optional, Union
from uuid import UUID
import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import (
    SQLAlchemyError,
    IntegrityError,
    OperationalError,
    DataError,
)
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger("taxdesk.errors")


class ErrorCode(str, Enum):
    """Machine-readable codes returned in the error envelope"""

    # Validation Errors (422)
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_INPUT = "INVALID_INPUT"
    INVALID_AMOUNT = "INVALID_AMOUNT"
    INVALID_TAX_PERIOD = "INVALID_TAX_PERIOD"
    UNSUPPORTED_TAX_YEAR = "UNSUPPORTED_TAX_YEAR"

    # Resource Errors (404/409)
    NOT_FOUND = "NOT_FOUND"
    ENTITY_NOT_FOUND = "ENTITY_NOT_FOUND"
    REMITTANCE_NOT_FOUND = "REMITTANCE_NOT_FOUND"
    RESOURCE_CONFLICT = "RESOURCE_CONFLICT"
    DUPLICATE_ENTRY = "DUPLICATE_ENTRY"

    # Computation Errors (500)
    INVALID_RATE = "INVALID_RATE"
    COMPUTATION_INCONSISTENCY = "COMPUTATION_INCONSISTENCY"

    # Database Errors (500)
    DATABASE_ERROR = "DATABASE_ERROR"
    CONNECTION_ERROR = "CONNECTION_ERROR"
    DATA_INTEGRITY_ERROR = "DATA_INTEGRITY_ERROR"

    # Internal Errors (500)
    INTERNAL_ERROR = "INTERNAL_ERROR"


class AppException(Exception):
    """Carries an error code, HTTP status and the fields of the JSON envelope"""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Optional[Dict[str, Any]] = None,
        field: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.field = field
        self.original_error = original_error
        self.timestamp = datetime.now(timezone.utc)
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Envelope body, without the outer `detail` key"""
        result = {
            "code": self.code.value,
            "message": self.message,
            "timestamp": self.timestamp.isoformat(),
        }
        if self.field:
            result["field"] = self.field
        if self.details:
            result["details"] = self.details
        return result

    def to_response(self) -> JSONResponse:
        return create_error_response(
            code=self.code,
            message=self.message,
            status_code=self.status_code,
            details=self.details,
            field=self.field,
        )


# ============================================================================
# Validation Exceptions
# ============================================================================

class ValidationException(AppException):
    """Input rejected before any computation runs"""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        code: ErrorCode = ErrorCode.VALIDATION_ERROR,
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            details=details,
            field=field,
        )


class InvalidAmountException(ValidationException):
    """Invalid monetary amount"""

    def __init__(self, amount: Any, field: str = "amount", message: Optional[str] = None):
        super().__init__(
            message=message or f"Invalid amount: {amount}. Amount must be a finite, non-negative number.",
            field=field,
            code=ErrorCode.INVALID_AMOUNT,
            details={"provided_amount": str(amount)},
        )


class InvalidPeriodException(ValidationException):
    """Tax year or month outside the accepted range"""

    def __init__(self, message: str, field: str = "tax_year", year: Any = None, month: Any = None):
        super().__init__(
            message=message,
            field=field,
            code=ErrorCode.INVALID_TAX_PERIOD,
            details={"tax_year": year, "month": month},
        )


class UnsupportedTaxYearException(ValidationException):
    """No rate table exists for the requested year"""

    def __init__(self, year: int, supported_from: int):
        super().__init__(
            message=f"No tax tables for year {year}. Supported from {supported_from}.",
            field="tax_year",
            code=ErrorCode.UNSUPPORTED_TAX_YEAR,
            details={"tax_year": year, "supported_from": supported_from},
        )


# ============================================================================
# Resource Exceptions
# ============================================================================

class NotFoundException(AppException):
    """A referenced record does not exist"""

    def __init__(
        self,
        resource_type: str,
        resource_id: Optional[Union[str, UUID]] = None,
        message: Optional[str] = None,
        code: ErrorCode = ErrorCode.NOT_FOUND,
    ):
        if message is None:
            if resource_id:
                message = f"{resource_type} with ID '{resource_id}' not found"
            else:
                message = f"{resource_type} not found"
        super().__init__(
            code=code,
            message=message,
            status_code=status.HTTP_404_NOT_FOUND,
            details={"resource_type": resource_type, "resource_id": str(resource_id) if resource_id else None},
        )


class EntityNotFoundException(NotFoundException):
    """Taxable entity not found"""

    def __init__(self, entity_id: Union[str, UUID]):
        super().__init__(
            resource_type="Entity",
            resource_id=entity_id,
            code=ErrorCode.ENTITY_NOT_FOUND,
        )


class RemittanceNotFoundException(NotFoundException):
    """Remittance not found"""

    def __init__(self, remittance_id: Union[str, UUID]):
        super().__init__(
            resource_type="Remittance",
            resource_id=remittance_id,
            code=ErrorCode.REMITTANCE_NOT_FOUND,
        )


class ConflictException(AppException):
    """Request conflicts with stored state"""

    def __init__(
        self,
        message: str,
        resource_type: Optional[str] = None,
        code: ErrorCode = ErrorCode.RESOURCE_CONFLICT,
        details: Optional[Dict[str, Any]] = None,
    ):
        _details = details or {}
        if resource_type:
            _details["resource_type"] = resource_type
        super().__init__(
            code=code,
            message=message,
            status_code=status.HTTP_409_CONFLICT,
            details=_details,
        )


class DuplicateEntryException(ConflictException):
    """A unique business key (such as a remittance reference) is already taken"""

    def __init__(
        self,
        resource_type: str,
        field: str,
        value: str,
    ):
        super().__init__(
            message=f"{resource_type} with {field} '{value}' already exists",
            resource_type=resource_type,
            code=ErrorCode.DUPLICATE_ENTRY,
            details={"field": field, "value": value},
        )


# ============================================================================
# Computation Exceptions
# ============================================================================

class TaxComputationException(AppException):
    """
    A computation defect.

    These abort the current computation. A figure is never substituted
    for a failed calculation.
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            details=details,
        )


class InvalidRateException(TaxComputationException):
    """A rate resolved to something other than a finite, non-negative number"""

    def __init__(self, rate: Any, rate_name: str):
        super().__init__(
            code=ErrorCode.INVALID_RATE,
            message=f"Invalid {rate_name} rate: {rate!r}",
            details={"rate_name": rate_name, "rate": repr(rate)},
        )


class ComputationInconsistencyException(TaxComputationException):
    """Otherwise-valid inputs produced a negative or non-finite figure"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            code=ErrorCode.COMPUTATION_INCONSISTENCY,
            message=message,
            details=details,
        )


# ============================================================================
# Exception Handlers
# ============================================================================

HTTP_STATUS_CODES = {
    400: ErrorCode.INVALID_INPUT,
    404: ErrorCode.NOT_FOUND,
    405: ErrorCode.INVALID_INPUT,
    409: ErrorCode.RESOURCE_CONFLICT,
    422: ErrorCode.VALIDATION_ERROR,
}


def create_error_response(
    code: ErrorCode,
    message: str,
    status_code: int,
    details: Optional[Dict[str, Any]] = None,
    field: Optional[str] = None,
) -> JSONResponse:
    """Build the `{"detail": {...}}` envelope every error answers with"""
    body: Dict[str, Any] = {
        "code": code.value,
        "message": message,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    if field:
        body["field"] = field
    if details:
        body["details"] = details
    return JSONResponse(status_code=status_code, content={"detail": body})


def _request_context(request: Request) -> Dict[str, Any]:
    return {"path": request.url.path, "method": request.method}


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Domain errors: client mistakes log at WARNING, aborted computations at ERROR"""
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        f"{exc.code.value}: {exc.message}",
        extra={**_request_context(request), "code": exc.code.value, "details": exc.details},
        exc_info=exc.original_error,
    )
    return exc.to_response()


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    logger.warning(f"HTTP {exc.status_code}: {message}", extra=_request_context(request))
    return create_error_response(
        code=HTTP_STATUS_CODES.get(exc.status_code, ErrorCode.INTERNAL_ERROR),
        message=message,
        status_code=exc.status_code,
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Request body, query or path parameters failed schema validation.

    The first offending parameter is reported as `field`; all of them are
    listed under `details.errors`.
    """
    errors = [
        {
            "field": ".".join(str(loc) for loc in error["loc"] if loc not in ("body", "query", "path")),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]
    logger.warning(
        f"Request validation failed with {len(errors)} error(s)",
        extra={**_request_context(request), "errors": errors},
    )
    return create_error_response(
        code=ErrorCode.VALIDATION_ERROR,
        message="Request validation failed",
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        details={"errors": errors},
        field=(errors[0]["field"] or None) if errors else None,
    )


def _classify_database_error(exc: SQLAlchemyError):
    """Map a driver error to (code, message, status)"""
    if isinstance(exc, IntegrityError):
        text = str(exc.orig).lower() if exc.orig else ""
        if "unique" in text or "duplicate" in text:
            return ErrorCode.DUPLICATE_ENTRY, "A record with this value already exists", status.HTTP_409_CONFLICT
        if "foreign key" in text:
            return (
                ErrorCode.DATA_INTEGRITY_ERROR,
                "Referenced record does not exist",
                status.HTTP_422_UNPROCESSABLE_ENTITY,
            )
        return ErrorCode.DATA_INTEGRITY_ERROR, "Data integrity constraint violated", status.HTTP_500_INTERNAL_SERVER_ERROR
    if isinstance(exc, OperationalError):
        return ErrorCode.CONNECTION_ERROR, "Database operation failed", status.HTTP_500_INTERNAL_SERVER_ERROR
    if isinstance(exc, DataError):
        return ErrorCode.DATABASE_ERROR, "Invalid data format for database", status.HTTP_422_UNPROCESSABLE_ENTITY
    return ErrorCode.DATABASE_ERROR, "A database error occurred", status.HTTP_500_INTERNAL_SERVER_ERROR


async def sqlalchemy_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    code, message, status_code = _classify_database_error(exc)
    logger.error(
        f"Database error {type(exc).__name__}: {exc}",
        extra=_request_context(request),
        exc_info=True,
    )
    return create_error_response(code=code, message=message, status_code=status_code)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.critical(
        f"Unhandled {type(exc).__name__}: {exc}",
        extra=_request_context(request),
        exc_info=True,
    )
    return create_error_response(
        code=ErrorCode.INTERNAL_ERROR,
        message="An unexpected error occurred. Please try again later.",
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register the JSON error handlers on the application"""
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(SQLAlchemyError, sqlalchemy_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)


# ============================================================================
# Utility Functions
# ============================================================================

def validate_amount(amount: Any, field: str = "amount", allow_zero: bool = True) -> Decimal:
    """Validate a monetary amount: finite, non-negative, optionally non-zero"""
    if amount is None or isinstance(amount, bool):
        raise InvalidAmountException(amount, field)
    try:
        value = amount if isinstance(amount, Decimal) else Decimal(str(amount))
    except (InvalidOperation, ValueError):
        raise InvalidAmountException(amount, field)
    if not value.is_finite() or value < 0 or (not allow_zero and value == 0):
        raise InvalidAmountException(amount, field)
    return value


__all__ = [
    "AppException",
    "ErrorCode",
    "ValidationException",
    "InvalidAmountException",
    "InvalidPeriodException",
    "UnsupportedTaxYearException",
    "NotFoundException",
    "EntityNotFoundException",
    "RemittanceNotFoundException",
    "ConflictException",
    "DuplicateEntryException",
    "TaxComputationException",
    "InvalidRateException",
    "ComputationInconsistencyException",
    "setup_exception_handlers",
    "validate_amount",
]
