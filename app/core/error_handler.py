"""
Error handling for the SRI Document Identity API
Maps domain exceptions to structured JSON error responses
"""
import logging
import threading
import uuid
from datetime import datetime, timezone
from typing import Dict, Any, Optional, List
from enum import Enum

from fastapi import Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError, IntegrityError, OperationalError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.logging import audit_logger
from app.utils.error_responses import (
    APIError,
    ErrorSeverity,
    ValidationError as CustomValidationError,
    NotFoundError,
    ConflictError,
    BusinessRuleError,
    DataIntegrityError,
)

logger = logging.getLogger(__name__)


class ErrorCategory(str, Enum):
    """Error categories for monitoring and alerting"""
    VALIDATION = "validation"
    BUSINESS_LOGIC = "business_logic"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    INTEGRITY = "integrity"
    DATABASE = "database"
    SYSTEM = "system"


class ErrorHandler:
    """
    Error handler with structured responses, categorization,
    and in-process error counters
    """

    def __init__(self):
        self.error_counts: Dict[str, int] = {}
        self._counts_lock = threading.Lock()

        # Error code mappings
        self.error_codes = {
            # Validation errors (4000-4099)
            "VALIDATION_ERROR": 4000,
            "FIELD_VALIDATION_ERROR": 4001,
            "SCHEMA_VALIDATION_ERROR": 4002,
            "BUSINESS_RULE_VALIDATION": 4003,
            "IDENTIFICATION_INVALID": 4005,
            "INVALID_ARGUMENT": 4006,
            "ACCESS_KEY_INVALID": 4009,
            "DOCUMENT_NUMBER_INVALID": 4010,
            "UNSUPPORTED_DOCUMENT_TYPE": 4011,
            "UNSUPPORTED_REGIME": 4012,

            # Resource errors (4200-4299)
            "RESOURCE_NOT_FOUND": 4200,
            "DOCUMENT_NOT_FOUND": 4201,
            "TENANT_NOT_FOUND": 4204,
            "ESTABLISHMENT_NOT_FOUND": 4205,
            "EMISSION_POINT_NOT_FOUND": 4206,
            "SEQUENCE_NOT_FOUND": 4207,
            "RESOURCE_CONFLICT": 4290,
            "ACCESS_KEY_COLLISION": 4291,

            # Integrity errors (4500-4599)
            "DOCUMENT_IDENTITY_CORRUPT": 4500,

            # Database errors (5000-5099)
            "DATABASE_ERROR": 5000,
            "DATABASE_TIMEOUT": 5003,
            "DATABASE_INTEGRITY_ERROR": 5004,

            # System errors (5200-5299)
            "INTERNAL_SERVER_ERROR": 5200,
        }

        # HTTP status code mappings
        self.status_mappings = {
            ErrorCategory.VALIDATION: status.HTTP_422_UNPROCESSABLE_ENTITY,
            ErrorCategory.BUSINESS_LOGIC: status.HTTP_422_UNPROCESSABLE_ENTITY,
            ErrorCategory.NOT_FOUND: status.HTTP_404_NOT_FOUND,
            ErrorCategory.CONFLICT: status.HTTP_409_CONFLICT,
            ErrorCategory.INTEGRITY: status.HTTP_409_CONFLICT,
            ErrorCategory.DATABASE: status.HTTP_500_INTERNAL_SERVER_ERROR,
            ErrorCategory.SYSTEM: status.HTTP_500_INTERNAL_SERVER_ERROR,
        }

        logger.info("Error handler initialized")

    async def handle_exception(
        self,
        request: Request,
        exc: Exception
    ) -> JSONResponse:
        """
        Main exception handler that routes to specific handlers

        Args:
            request: FastAPI request object
            exc: Exception to handle

        Returns:
            JSONResponse with structured error information
        """
        error_id = str(uuid.uuid4())

        try:
            self._log_exception(exc, request, error_id)

            if isinstance(exc, RequestValidationError):
                return self._handle_request_validation_error(exc, error_id, "FIELD_VALIDATION_ERROR")
            elif isinstance(exc, ValidationError):
                return self._handle_request_validation_error(exc, error_id, "SCHEMA_VALIDATION_ERROR")
            elif isinstance(exc, StarletteHTTPException):
                return self._handle_http_exception(exc, error_id)
            elif isinstance(exc, CustomValidationError):
                return self._handle_api_error(exc, error_id, ErrorCategory.VALIDATION)
            elif isinstance(exc, NotFoundError):
                return self._handle_api_error(exc, error_id, ErrorCategory.NOT_FOUND)
            elif isinstance(exc, ConflictError):
                return self._handle_api_error(exc, error_id, ErrorCategory.CONFLICT)
            elif isinstance(exc, DataIntegrityError):
                return self._handle_api_error(exc, error_id, ErrorCategory.INTEGRITY)
            elif isinstance(exc, BusinessRuleError):
                return self._handle_api_error(exc, error_id, ErrorCategory.BUSINESS_LOGIC)
            elif isinstance(exc, APIError):
                return self._handle_api_error(exc, error_id, ErrorCategory.SYSTEM)
            elif isinstance(exc, SQLAlchemyError):
                return self._handle_database_error(exc, error_id)
            else:
                return self._handle_generic_error(error_id)

        except Exception as handler_exc:
            logger.error(f"Error in exception handler: {handler_exc}")
            return self._create_fallback_response(error_id)

    def _handle_request_validation_error(
        self,
        exc,
        error_id: str,
        error_code: str
    ) -> JSONResponse:
        """Handle FastAPI request validation and Pydantic errors"""
        field_errors = {}
        for error in exc.errors():
            field_path = " -> ".join(str(loc) for loc in error["loc"])
            field_errors[field_path] = {
                "message": error["msg"],
                "type": error["type"],
                "input": error.get("input")
            }

        error_response = self._create_error_response(
            error_id=error_id,
            error_code=error_code,
            message="Request validation failed",
            category=ErrorCategory.VALIDATION,
            severity=ErrorSeverity.HIGH,
            field_errors=jsonable_encoder(field_errors),
            suggestions=["Review request data", "Check field formats"],
            is_retryable=False
        )
        self._track_error(error_code, ErrorCategory.VALIDATION)

        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content=error_response
        )

    def _handle_http_exception(self, exc: StarletteHTTPException, error_id: str) -> JSONResponse:
        """Handle FastAPI/Starlette HTTP exceptions"""
        category = self._categorize_http_exception(exc.status_code)
        error_code = self._get_error_code_from_status(exc.status_code)

        error_response = self._create_error_response(
            error_id=error_id,
            error_code=error_code,
            message=str(exc.detail),
            category=category,
            severity=ErrorSeverity.HIGH if exc.status_code < 500 else ErrorSeverity.CRITICAL,
            is_retryable=exc.status_code in {500, 502, 503, 504}
        )
        self._track_error(error_code, category)

        return JSONResponse(
            status_code=exc.status_code,
            content=error_response,
            headers=getattr(exc, "headers", None)
        )

    def _handle_api_error(self, exc: APIError, error_id: str, category: ErrorCategory) -> JSONResponse:
        """Handle errors raised by the domain layer"""
        error_code = exc.error_code or "INTERNAL_SERVER_ERROR"
        kind = getattr(exc, "kind", None)

        error_response = self._create_error_response(
            error_id=error_id,
            error_code=error_code,
            message=exc.message,
            category=category,
            severity=exc.severity,
            suggestions=exc.suggestions,
            field_errors=exc.field_errors,
            is_retryable=exc.is_retryable,
            kind=kind.value if kind is not None else None
        )
        self._track_error(error_code, category)

        if isinstance(exc, DataIntegrityError):
            audit_logger.log_integrity_violation(exc.message, error_id=error_id, **exc.context)

        return JSONResponse(
            status_code=self.status_mappings[category],
            content=error_response
        )

    def _handle_database_error(self, exc: SQLAlchemyError, error_id: str) -> JSONResponse:
        """Handle database errors"""
        if isinstance(exc, IntegrityError):
            error_code = "DATABASE_INTEGRITY_ERROR"
            message = "Data integrity constraint violation"
        elif isinstance(exc, OperationalError):
            error_code = "DATABASE_TIMEOUT"
            message = "Database is busy, the operation was not applied"
        else:
            error_code = "DATABASE_ERROR"
            message = "Database operation failed"

        error_response = self._create_error_response(
            error_id=error_id,
            error_code=error_code,
            message=message,
            category=ErrorCategory.DATABASE,
            severity=ErrorSeverity.HIGH,
            suggestions=["Retry the operation", "Contact support if problem persists"],
            is_retryable=True
        )
        self._track_error(error_code, ErrorCategory.DATABASE)

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_response
        )

    def _handle_generic_error(self, error_id: str) -> JSONResponse:
        """Handle generic/unknown errors"""
        error_response = self._create_error_response(
            error_id=error_id,
            error_code="INTERNAL_SERVER_ERROR",
            message="An unexpected error occurred",
            category=ErrorCategory.SYSTEM,
            severity=ErrorSeverity.CRITICAL,
            suggestions=["Contact support with error ID if problem persists"],
            is_retryable=True
        )
        self._track_error("INTERNAL_SERVER_ERROR", ErrorCategory.SYSTEM)

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_response
        )

    def _create_error_response(
        self,
        error_id: str,
        error_code: str,
        message: str,
        category: ErrorCategory,
        severity: ErrorSeverity,
        suggestions: Optional[List[str]] = None,
        is_retryable: bool = False,
        field_errors: Optional[Dict[str, Any]] = None,
        kind: Optional[str] = None
    ) -> Dict[str, Any]:
        """Create structured error response"""
        response = {
            "error": {
                "id": error_id,
                "code": self.error_codes.get(error_code, 5000),
                "error_code": error_code,
                "message": message,
                "category": category.value,
                "severity": severity.value,
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "is_retryable": is_retryable
            }
        }

        if kind:
            response["error"]["kind"] = kind

        if suggestions:
            response["error"]["suggestions"] = suggestions

        if field_errors:
            response["error"]["field_errors"] = field_errors

        response["error"]["recovery_actions"] = self._get_recovery_actions(category, is_retryable)

        return response

    def _get_recovery_actions(self, category: ErrorCategory, is_retryable: bool) -> List[str]:
        """Get recovery actions based on error category"""
        actions = []

        if is_retryable:
            actions.append("Retry the operation after a short delay")

        if category == ErrorCategory.VALIDATION:
            actions.append("Review and correct the highlighted fields")
        elif category == ErrorCategory.INTEGRITY:
            actions.append("Do not retry; the stored document identity needs review")
        elif category == ErrorCategory.DATABASE:
            actions.append("Verify database connectivity")

        actions.append("Contact support if problem persists")
        return actions

    def _categorize_http_exception(self, status_code: int) -> ErrorCategory:
        """Categorize HTTP exception by status code"""
        if status_code == 404:
            return ErrorCategory.NOT_FOUND
        elif status_code == 409:
            return ErrorCategory.CONFLICT
        elif 400 <= status_code < 500:
            return ErrorCategory.VALIDATION
        return ErrorCategory.SYSTEM

    def _get_error_code_from_status(self, status_code: int) -> str:
        """Get error code from HTTP status"""
        status_to_code = {
            404: "RESOURCE_NOT_FOUND",
            409: "RESOURCE_CONFLICT",
            422: "VALIDATION_ERROR",
            500: "INTERNAL_SERVER_ERROR",
        }
        return status_to_code.get(status_code, "HTTP_ERROR")

    def _log_exception(self, exc: Exception, request: Request, error_id: str):
        """Log exception with context"""
        log = logger.error if not isinstance(exc, (APIError, StarletteHTTPException, RequestValidationError)) else logger.info
        log(
            f"Exception occurred: {type(exc).__name__}: {str(exc)}",
            exc_info=log is logger.error,
            extra={
                "error_id": error_id,
                "exception_type": type(exc).__name__,
                "request_method": request.method,
                "request_url": str(request.url),
            }
        )

    def _track_error(self, error_code: str, category: ErrorCategory):
        """Track error counts for monitoring"""
        key = f"{category.value}:{error_code}"
        with self._counts_lock:
            self.error_counts[key] = self.error_counts.get(key, 0) + 1

    def _create_fallback_response(self, error_id: str) -> JSONResponse:
        """Create fallback response when error handler fails"""
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": {
                    "id": error_id,
                    "code": 5200,
                    "error_code": "INTERNAL_SERVER_ERROR",
                    "message": "An unexpected error occurred",
                    "category": "system",
                    "severity": "critical",
                    "timestamp": datetime.now(timezone.utc).isoformat(),
                    "is_retryable": True,
                    "recovery_actions": ["Retry operation", "Contact support"]
                }
            }
        )

    def get_error_statistics(self) -> Dict[str, Any]:
        """Get error statistics for monitoring"""
        with self._counts_lock:
            counts = self.error_counts.copy()
        return {
            "error_counts": counts,
            "total_errors": sum(counts.values()),
            "categories": self._get_category_stats(counts),
            "timestamp": datetime.now(timezone.utc).isoformat()
        }

    def _get_category_stats(self, counts: Dict[str, int]) -> Dict[str, int]:
        """Get error statistics by category"""
        category_stats: Dict[str, int] = {}
        for key, count in counts.items():
            category = key.split(":")[0]
            category_stats[category] = category_stats.get(category, 0) + count
        return category_stats

    def reset_error_statistics(self):
        """Reset error statistics"""
        with self._counts_lock:
            self.error_counts.clear()
        logger.info("Error statistics reset")


# Global error handler instance
error_handler = ErrorHandler()
