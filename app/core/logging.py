"""
Structured audit logging for the SRI Document Identity API
Every reserved sequential and generated access key is traceable through these records
"""
import json
import logging
import sys
import time
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Dict, Any, Optional
from enum import Enum
from contextlib import contextmanager

from app.core.config import settings

_correlation_id: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)


class LogLevel(str, Enum):
    """Log levels for structured logging"""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogCategory(str, Enum):
    """Log categories for filtering and analysis"""
    API_REQUEST = "api_request"
    DOCUMENT_IDENTITY = "document_identity"
    SEQUENCE = "sequence"
    VALIDATION = "validation"
    DATABASE = "database"
    SYSTEM = "system"


class AuditLogger:
    """
    Audit logger emitting one JSON document per event
    """

    def __init__(self, name: str = "sri_document_identity"):
        self.logger = logging.getLogger(name)

    @property
    def correlation_id(self) -> Optional[str]:
        """Correlation ID of the current request or operation"""
        return _correlation_id.get()

    def set_correlation_id(self, correlation_id: Optional[str]):
        """Set correlation ID for request tracking"""
        _correlation_id.set(correlation_id)

    def generate_correlation_id(self) -> str:
        """Generate new correlation ID"""
        correlation_id = str(uuid.uuid4())
        self.set_correlation_id(correlation_id)
        return correlation_id

    def log_structured(
        self,
        level: LogLevel,
        category: LogCategory,
        message: str,
        **kwargs
    ):
        """
        Log structured message with metadata

        Args:
            level: Log level
            category: Log category
            message: Log message
            **kwargs: Additional metadata, None values are dropped
        """
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": level.value,
            "category": category.value,
            "message": message,
            "correlation_id": self.correlation_id,
            **kwargs
        }
        log_data = {k: v for k, v in log_data.items() if v is not None}

        self.logger.log(getattr(logging, level.value), json.dumps(log_data, default=str))

    def log_api_request(self, method: str, path: str, status_code: int, duration_ms: float):
        """Log a completed HTTP request"""
        level = LogLevel.WARNING if status_code >= 400 else LogLevel.INFO
        self.log_structured(
            level=level,
            category=LogCategory.API_REQUEST,
            message=f"{method} {path} -> {status_code}",
            method=method,
            path=path,
            status_code=status_code,
            duration_ms=round(duration_ms, 2)
        )

    def log_sequence_reserved(
        self,
        tenant_id: str,
        emission_point_id: str,
        document_type: str,
        sequential: int
    ):
        """Log a sequential handed out by the document sequencer"""
        self.log_structured(
            level=LogLevel.INFO,
            category=LogCategory.SEQUENCE,
            message=f"Reserved sequential {sequential} for document type {document_type}",
            tenant_id=tenant_id,
            emission_point_id=emission_point_id,
            document_type=document_type,
            sequential=sequential
        )

    def log_access_key_generated(
        self,
        tenant_id: str,
        document_number: str,
        access_key: str,
        attempt: int = 1
    ):
        """Log an access key assigned to a document"""
        self.log_structured(
            level=LogLevel.INFO,
            category=LogCategory.DOCUMENT_IDENTITY,
            message=f"Assigned identity {document_number}",
            tenant_id=tenant_id,
            document_number=document_number,
            access_key=access_key,
            attempt=attempt
        )

    def log_validation_failure(self, field: str, kind: str, value: Optional[str] = None):
        """Log a rejected identification or key"""
        self.log_structured(
            level=LogLevel.DEBUG,
            category=LogCategory.VALIDATION,
            message=f"Validation failed for {field}: {kind}",
            field=field,
            kind=kind,
            value=value
        )

    def log_integrity_violation(self, message: str, **kwargs):
        """Log stored data that no longer agrees with itself"""
        self.log_structured(
            level=LogLevel.CRITICAL,
            category=LogCategory.DOCUMENT_IDENTITY,
            message=message,
            **kwargs
        )

    def log_system_event(self, event: str, details: Optional[Dict[str, Any]] = None):
        """Log application lifecycle events"""
        self.log_structured(
            level=LogLevel.INFO,
            category=LogCategory.SYSTEM,
            message=event,
            details=details
        )


class JsonFormatter(logging.Formatter):
    """JSON formatter for structured logging"""

    def format(self, record):
        message = record.getMessage()
        if message.startswith('{') and message.endswith('}'):
            # Already JSON formatted by AuditLogger
            return message

        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": message,
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno
        }
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_data, default=str)


class StructuredFormatter(logging.Formatter):
    """Structured text formatter for human-readable logs"""

    def __init__(self):
        super().__init__(
            fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        )


def setup_logging(level: Optional[str] = None, log_format: Optional[str] = None):
    """
    Configure the root logger from settings

    Args:
        level: Overrides LOG_LEVEL
        log_format: "json" or "text", overrides LOG_FORMAT
    """
    level = (level or settings.LOG_LEVEL).upper()
    log_format = (log_format or settings.LOG_FORMAT).lower()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter() if log_format == "json" else StructuredFormatter())

    root = logging.getLogger()
    for existing in root.handlers[:]:
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(getattr(logging, level, logging.INFO))


@contextmanager
def log_operation_context(
    operation_name: str,
    category: LogCategory = LogCategory.SYSTEM,
    tenant_id: Optional[str] = None,
    additional_data: Optional[Dict[str, Any]] = None
):
    """Context manager for logging operations with timing"""
    start_time = time.time()
    correlation_id = audit_logger.generate_correlation_id()

    audit_logger.log_structured(
        level=LogLevel.DEBUG,
        category=category,
        message=f"Starting operation: {operation_name}",
        operation=operation_name,
        tenant_id=tenant_id,
        additional_data=additional_data
    )

    try:
        yield correlation_id
        duration_ms = (time.time() - start_time) * 1000
        audit_logger.log_structured(
            level=LogLevel.DEBUG,
            category=category,
            message=f"Completed operation: {operation_name}",
            operation=operation_name,
            duration_ms=duration_ms,
            tenant_id=tenant_id,
            success=True
        )
    except Exception as e:
        duration_ms = (time.time() - start_time) * 1000
        audit_logger.log_structured(
            level=LogLevel.ERROR,
            category=category,
            message=f"Failed operation: {operation_name}",
            operation=operation_name,
            duration_ms=duration_ms,
            tenant_id=tenant_id,
            success=False,
            error_message=str(e)
        )
        raise


# Global audit logger instance
audit_logger = AuditLogger()
