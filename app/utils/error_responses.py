"""
Custom error classes for the SRI Document Identity API
Provides structured error information with categorization and recovery suggestions
"""
from typing import Dict, Any, Optional, List
from enum import Enum

from app.schemas.enums import ErrorKind


class ErrorSeverity(str, Enum):
    """Error severity levels for prioritization and alerting"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class APIError(Exception):
    """
    Base API error class with structured error information
    """
    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        suggestions: Optional[List[str]] = None,
        field_errors: Optional[Dict[str, str]] = None,
        is_retryable: bool = False,
        context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.severity = severity
        self.suggestions = suggestions or []
        self.field_errors = field_errors or {}
        self.is_retryable = is_retryable
        self.context = context or {}


class ValidationError(APIError):
    """Raised when a value fails validation; carries the offending field and reason"""
    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        kind: Optional[ErrorKind] = None,
        suggestions: Optional[List[str]] = None,
        error_code: str = "VALIDATION_ERROR",
        **kwargs
    ):
        self.field = field
        self.kind = kind
        field_errors = kwargs.pop("field_errors", None)
        if field and not field_errors:
            field_errors = {field: message}
        super().__init__(
            message=message,
            error_code=error_code,
            severity=ErrorSeverity.HIGH,
            field_errors=field_errors,
            suggestions=suggestions or [
                "Review the provided data for correctness",
                "Check field formats and requirements"
            ],
            is_retryable=False,
            **kwargs
        )


class InvalidArgumentError(ValidationError, ValueError):
    """Raised when a caller violates a parameter contract (wrong shape or range)"""
    def __init__(self, field: str, message: str, **kwargs):
        super().__init__(
            message=message,
            field=field,
            kind=ErrorKind.INVALID_ARGUMENT,
            error_code=kwargs.pop("error_code", "INVALID_ARGUMENT"),
            **kwargs
        )


class AccessKeyError(InvalidArgumentError):
    """Raised when an access key string cannot be parsed"""
    def __init__(self, message: str, access_key: Optional[str] = None, **kwargs):
        context = kwargs.pop("context", {})
        if access_key is not None:
            context["access_key"] = access_key
        super().__init__(
            field="access_key",
            message=message,
            error_code="ACCESS_KEY_INVALID",
            suggestions=[
                "Verify the access key has exactly 49 digits",
                "Check the key was not truncated or mistyped"
            ],
            context=context,
            **kwargs
        )


class UnsupportedDocumentTypeError(InvalidArgumentError):
    """Raised when a document type without an emission point counter is sequenced"""
    def __init__(self, document_type: Any):
        super().__init__(
            field="document_type",
            message=f"Unsupported document type for sequencing: {document_type}",
            error_code="UNSUPPORTED_DOCUMENT_TYPE"
        )


class UnsupportedRegimeError(ValidationError):
    """Raised when a RUC carries a regime marker outside the known set"""
    def __init__(self, marker: str, field: str = "ruc"):
        super().__init__(
            message=f"Unsupported taxpayer regime marker: {marker}",
            field=field,
            kind=ErrorKind.UNSUPPORTED,
            error_code="UNSUPPORTED_REGIME"
        )


class NotFoundError(APIError):
    """Raised when a resource is not found"""
    def __init__(
        self,
        message: str = "Resource not found",
        resource_type: Optional[str] = None,
        resource_id: Optional[str] = None,
        suggestions: Optional[List[str]] = None,
        **kwargs
    ):
        context = kwargs.pop("context", {})
        if resource_type:
            context["resource_type"] = resource_type
        if resource_id:
            context["resource_id"] = resource_id

        super().__init__(
            message=message,
            error_code=kwargs.pop("error_code", "RESOURCE_NOT_FOUND"),
            severity=ErrorSeverity.MEDIUM,
            suggestions=suggestions or [
                "Verify the resource ID is correct",
                "Check the resource belongs to the tenant"
            ],
            is_retryable=False,
            context=context,
            **kwargs
        )


class SequenceScopeNotFoundError(NotFoundError):
    """Raised when no counter exists for a (tenant, emission point, document type) scope"""
    def __init__(self, scope: Any):
        super().__init__(
            message=f"No document sequence for scope {scope}",
            resource_type="document_sequence",
            error_code="SEQUENCE_NOT_FOUND"
        )


class ConflictError(APIError):
    """Raised when a write would duplicate a unique business identifier"""
    def __init__(self, message: str, **kwargs):
        super().__init__(
            message=message,
            error_code=kwargs.pop("error_code", "RESOURCE_CONFLICT"),
            severity=ErrorSeverity.MEDIUM,
            suggestions=kwargs.pop("suggestions", None) or [
                "Use a different code or identifier",
                "Fetch the existing resource instead of creating it again"
            ],
            is_retryable=kwargs.pop("is_retryable", False),
            **kwargs
        )


class BusinessRuleError(APIError):
    """Raised when business rule validation fails"""
    def __init__(
        self,
        message: str,
        rule_code: Optional[str] = None,
        suggestions: Optional[List[str]] = None,
        **kwargs
    ):
        context = kwargs.pop("context", {})
        if rule_code:
            context["rule_code"] = rule_code

        super().__init__(
            message=message,
            error_code="BUSINESS_RULE_VALIDATION",
            severity=ErrorSeverity.HIGH,
            suggestions=suggestions or [
                "Check the tenant and emission point are active",
                "Review emission point configuration"
            ],
            is_retryable=False,
            context=context,
            **kwargs
        )


class DataIntegrityError(APIError):
    """Raised when stored document identity data is corrupt or inconsistent"""
    def __init__(self, message: str, **kwargs):
        super().__init__(
            message=message,
            error_code="DOCUMENT_IDENTITY_CORRUPT",
            severity=ErrorSeverity.CRITICAL,
            suggestions=[
                "Do not reissue or repair the document identity",
                "Escalate to an administrator for investigation"
            ],
            is_retryable=False,
            **kwargs
        )
