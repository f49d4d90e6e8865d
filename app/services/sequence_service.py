"""
Document sequencer for Ecuador (SRI) electronic documents.
Hands out sequentials per (tenant, emission point, document type) and formats
the 17-character document number NNN-NNN-NNNNNNNNN.
"""
import logging
import re
from typing import Dict, NamedTuple, Optional, Union
from uuid import UUID

from sqlalchemy import select, text, update
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.logging import audit_logger
from app.models.document_sequence import DocumentSequence
from app.schemas.enums import DocumentType, SEQUENCED_DOCUMENT_TYPES
from app.utils.error_responses import (
    BusinessRuleError,
    InvalidArgumentError,
    NotFoundError,
    SequenceScopeNotFoundError,
    UnsupportedDocumentTypeError,
)
from app.utils.key_generator import MAX_SEQUENTIAL

logger = logging.getLogger(__name__)

MAX_LOCATION_CODE = 999
DOCUMENT_NUMBER_LENGTH = 17

_DOCUMENT_NUMBER_PATTERN = re.compile(r"([0-9]{3})-([0-9]{3})-([0-9]{9})")


class SequenceScope(NamedTuple):
    """Counter scope: one independent sequence per tenant, emission point and document type"""
    tenant_id: UUID
    emission_point_id: UUID
    document_type: DocumentType


class DocumentNumber(NamedTuple):
    """Parsed document number"""
    establishment: int
    emission_point: int
    sequential: int

    def __str__(self) -> str:
        return DocumentSequencer.format_document_number(
            self.establishment, self.emission_point, self.sequential
        )


def sequenced_document_type(document_type: Union[str, DocumentType]) -> DocumentType:
    """
    Resolve a document type that owns an emission point counter

    Raises:
        UnsupportedDocumentTypeError: If the type is unknown or not sequenced
    """
    try:
        resolved = DocumentType(document_type)
    except ValueError:
        raise UnsupportedDocumentTypeError(document_type)
    if resolved not in SEQUENCED_DOCUMENT_TYPES:
        raise UnsupportedDocumentTypeError(resolved.value)
    return resolved


def _coerce_component(field: str, value: Union[int, str], maximum: int) -> int:
    if isinstance(value, bool):
        raise InvalidArgumentError(field, f"{field} must be an integer or digit string: {value!r}")
    if isinstance(value, str):
        if not re.fullmatch(r"[0-9]+", value):
            raise InvalidArgumentError(field, f"{field} must contain only digits: {value!r}")
        value = int(value)
    if not isinstance(value, int):
        raise InvalidArgumentError(field, f"{field} must be an integer or digit string: {value!r}")
    if not 0 <= value <= maximum:
        raise InvalidArgumentError(field, f"{field} must be between 0 and {maximum}: {value}")
    return value


class DocumentSequencer:
    """
    Durable, collision-free sequential numbering

    Counters are incremented with a single UPDATE ... RETURNING statement in the
    caller's session; the row lock taken by the UPDATE serializes concurrent
    reservations of the same scope and nothing is committed here.
    """

    def __init__(self, db: Session):
        self.db = db

    def _scope_filter(self, scope: SequenceScope):
        return (
            DocumentSequence.tenant_id == scope.tenant_id,
            DocumentSequence.punto_emision_id == scope.emission_point_id,
            DocumentSequence.tipo_documento == scope.document_type.value,
        )

    def _apply_lock_timeout(self):
        if self.db.get_bind().dialect.name == "postgresql":
            # SET LOCAL does not accept bind parameters
            self.db.execute(text(f"SET LOCAL lock_timeout = {int(settings.SEQUENCE_LOCK_TIMEOUT_MS)}"))

    def reserve_next(self, scope: SequenceScope) -> int:
        """
        Reserve the next sequential for a scope

        The reservation belongs to the caller's transaction: a rollback returns
        the number, a commit makes it permanent even if the document is later
        abandoned.

        Args:
            scope: Tenant, emission point and document type

        Returns:
            Reserved sequential (starts at 1)

        Raises:
            UnsupportedDocumentTypeError: If the document type has no counter
            SequenceScopeNotFoundError: If no counter row exists for the scope
            BusinessRuleError: If the counter is past the 9-digit range
        """
        scope = scope._replace(document_type=sequenced_document_type(scope.document_type))
        self._apply_lock_timeout()

        stmt = (
            update(DocumentSequence)
            .where(*self._scope_filter(scope))
            .values(siguiente_secuencial=DocumentSequence.siguiente_secuencial + 1)
            .returning(DocumentSequence.siguiente_secuencial)
            .execution_options(synchronize_session=False)
        )
        next_value = self.db.execute(stmt).scalar_one_or_none()
        if next_value is None:
            raise SequenceScopeNotFoundError(scope)

        reserved = next_value - 1
        if reserved > MAX_SEQUENTIAL:
            raise BusinessRuleError(
                f"Sequence exhausted for document type {scope.document_type.value}",
                rule_code="SEQUENCE_EXHAUSTED",
                suggestions=["Register a new emission point for this document type"]
            )

        logger.debug(f"Reserved sequential {reserved} for {scope}")
        audit_logger.log_sequence_reserved(
            tenant_id=str(scope.tenant_id),
            emission_point_id=str(scope.emission_point_id),
            document_type=scope.document_type.value,
            sequential=reserved
        )
        return reserved

    def peek_current(self, scope: SequenceScope) -> int:
        """
        Next sequential that reserve_next would hand out, for display only

        Raises:
            SequenceScopeNotFoundError: If no counter row exists for the scope
        """
        scope = scope._replace(document_type=sequenced_document_type(scope.document_type))
        value = self.db.execute(
            select(DocumentSequence.siguiente_secuencial).where(*self._scope_filter(scope))
        ).scalar_one_or_none()
        if value is None:
            raise SequenceScopeNotFoundError(scope)
        return value

    def peek_all(self, tenant_id: UUID, emission_point_id: UUID) -> Dict[DocumentType, int]:
        """
        Next sequential of every counter of an emission point

        Raises:
            NotFoundError: If the emission point has no counters for the tenant
        """
        rows = self.db.execute(
            select(DocumentSequence.tipo_documento, DocumentSequence.siguiente_secuencial)
            .where(
                DocumentSequence.tenant_id == tenant_id,
                DocumentSequence.punto_emision_id == emission_point_id,
            )
            .order_by(DocumentSequence.tipo_documento)
        ).all()
        if not rows:
            raise NotFoundError(
                "Emission point not found",
                resource_type="emission_point",
                resource_id=str(emission_point_id),
                error_code="EMISSION_POINT_NOT_FOUND"
            )
        return {DocumentType(tipo): value for tipo, value in rows}

    @staticmethod
    def format_document_number(
        establishment: Union[int, str],
        emission_point: Union[int, str],
        sequential: Union[int, str]
    ) -> str:
        """
        Format a document number as NNN-NNN-NNNNNNNNN

        Example: (1, 2, 123) -> 001-002-000000123

        Raises:
            InvalidArgumentError: If a component is not a digit value in range
        """
        est = _coerce_component("establishment", establishment, MAX_LOCATION_CODE)
        pos = _coerce_component("emission_point", emission_point, MAX_LOCATION_CODE)
        seq = _coerce_component("sequential", sequential, MAX_SEQUENTIAL)
        return f"{est:03d}-{pos:03d}-{seq:09d}"

    @staticmethod
    def parse_document_number(value: Optional[str]) -> Optional[DocumentNumber]:
        """Parse NNN-NNN-NNNNNNNNN; returns None for anything else"""
        if not isinstance(value, str):
            return None
        match = _DOCUMENT_NUMBER_PATTERN.fullmatch(value)
        if not match:
            return None
        return DocumentNumber(*(int(group) for group in match.groups()))
