"""
Document identity workflow: reserve a sequential, format the document number,
generate the access key and persist both on the issued document record.
"""
import logging
import random
from datetime import date, datetime, timezone
from typing import Optional, Union
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.logging import audit_logger, log_operation_context, LogCategory
from app.models.issued_document import IssuedDocument
from app.schemas.enums import DocumentType, EmissionType
from app.services.emission_point_service import EmissionPointService
from app.services.sequence_service import DocumentSequencer, SequenceScope, sequenced_document_type
from app.utils.error_responses import (
    BusinessRuleError,
    ConflictError,
    DataIntegrityError,
    InvalidArgumentError,
    NotFoundError,
)
from app.utils.key_generator import AccessKeyComponents, generate_access_key, parse_access_key

logger = logging.getLogger(__name__)


class DocumentIdentityService:
    """
    Assigns and verifies the identity (document number + access key) of fiscal documents

    assign_identity and void_document only flush; the caller owns the
    transaction and decides when to commit.
    """

    def __init__(self, db: Session):
        self.db = db
        self.registry = EmissionPointService(db)
        self.sequencer = DocumentSequencer(db)

    def assign_identity(
        self,
        tenant_id: UUID,
        emission_point_id: UUID,
        document_type: Union[str, DocumentType],
        issue_date: date,
        emission_type: Union[str, EmissionType] = EmissionType.NORMAL,
        random_source: Optional[random.Random] = None
    ) -> IssuedDocument:
        """
        Reserve a number and generate the access key for a new document

        Args:
            tenant_id: Issuing tenant
            emission_point_id: Emission point that numbers the document
            document_type: Sequenced document type
            issue_date: Document issue date embedded in the key
            emission_type: Normal or contingency emission
            random_source: Source for the key's numeric code

        Returns:
            Flushed IssuedDocument

        Raises:
            NotFoundError: If the tenant or emission point does not exist
            BusinessRuleError: If the tenant, establishment or emission point is inactive
            UnsupportedDocumentTypeError: If the document type has no counter
            ConflictError: If no unique access key could be generated
            DataIntegrityError: If the reserved number was already issued
        """
        tenant = self.registry.get_tenant(tenant_id)
        if not tenant.activo:
            raise BusinessRuleError("Tenant is inactive", rule_code="TENANT_INACTIVE")

        emission_point = self.registry.get_emission_point(tenant_id, emission_point_id)
        establishment = emission_point.establecimiento
        if not establishment.activo:
            raise BusinessRuleError("Establishment is inactive", rule_code="ESTABLISHMENT_INACTIVE")
        if not emission_point.activo:
            raise BusinessRuleError("Emission point is inactive", rule_code="EMISSION_POINT_INACTIVE")

        tipo = sequenced_document_type(document_type)

        with log_operation_context("assign_identity", LogCategory.DOCUMENT_IDENTITY, str(tenant_id)):
            sequential = self.sequencer.reserve_next(SequenceScope(tenant.id, emission_point.id, tipo))
            numero = DocumentSequencer.format_document_number(
                establishment.codigo, emission_point.codigo, sequential
            )

            for attempt in range(1, settings.ACCESS_KEY_MAX_ATTEMPTS + 1):
                access_key = generate_access_key(
                    issue_date=issue_date,
                    document_type_code=tipo,
                    tax_registration_number=tenant.ruc,
                    environment=tenant.ambiente,
                    establishment_code=establishment.codigo,
                    emission_point_code=emission_point.codigo,
                    sequential=sequential,
                    emission_type=emission_type,
                    random_source=random_source
                )
                document = IssuedDocument(
                    tenant_id=tenant.id,
                    punto_emision_id=emission_point.id,
                    tipo_documento=tipo.value,
                    numero_documento=numero,
                    secuencial=sequential,
                    clave_acceso=access_key.value,
                    fecha_emision=issue_date,
                    ambiente=tenant.ambiente,
                    tipo_emision=access_key.components().emission_type,
                    anulado=False
                )

                try:
                    with self.db.begin_nested():
                        self.db.add(document)
                except IntegrityError:
                    if self._access_key_exists(access_key.value):
                        logger.warning(f"Access key collision on attempt {attempt} for {numero}, regenerating")
                        continue
                    raise DataIntegrityError(
                        f"Document number {numero} was already issued for type {tipo.value}",
                        context={"numero_documento": numero, "tipo_documento": tipo.value}
                    )

                audit_logger.log_access_key_generated(
                    tenant_id=str(tenant.id),
                    document_number=numero,
                    access_key=access_key.value,
                    attempt=attempt
                )
                return document

        raise ConflictError(
            f"Could not generate a unique access key for {numero} after "
            f"{settings.ACCESS_KEY_MAX_ATTEMPTS} attempts",
            error_code="ACCESS_KEY_COLLISION",
            is_retryable=True
        )

    def _access_key_exists(self, clave_acceso: str) -> bool:
        return self.db.execute(
            select(IssuedDocument.id).where(IssuedDocument.clave_acceso == clave_acceso)
        ).first() is not None

    @staticmethod
    def verify_identity(numero_documento: str, clave_acceso: str) -> AccessKeyComponents:
        """
        Check that an access key embeds the given document number

        Args:
            numero_documento: Document number NNN-NNN-NNNNNNNNN
            clave_acceso: 49-digit access key

        Returns:
            Components of the access key

        Raises:
            InvalidArgumentError: If the document number is malformed
            AccessKeyError: If the access key is malformed
            DataIntegrityError: If establishment, emission point or sequential differ
        """
        parsed_number = DocumentSequencer.parse_document_number(numero_documento)
        if parsed_number is None:
            raise InvalidArgumentError(
                "numero_documento",
                f"Document number must match NNN-NNN-NNNNNNNNN: {numero_documento}",
                error_code="DOCUMENT_NUMBER_INVALID"
            )

        access_key = parse_access_key(clave_acceso)
        if access_key.document_number != numero_documento:
            raise DataIntegrityError(
                f"Access key embeds {access_key.document_number} but document number is {numero_documento}",
                context={"numero_documento": numero_documento, "clave_acceso": clave_acceso}
            )
        return access_key.components()

    def get_document(self, tenant_id: UUID, document_id: UUID) -> IssuedDocument:
        """Retrieve an issued document owned by the tenant"""
        document = self.db.execute(
            select(IssuedDocument).where(
                IssuedDocument.id == document_id,
                IssuedDocument.tenant_id == tenant_id
            )
        ).scalar_one_or_none()
        if document is None:
            raise NotFoundError(
                "Document not found",
                resource_type="document",
                resource_id=str(document_id),
                error_code="DOCUMENT_NOT_FOUND"
            )
        return document

    def verify_document(self, tenant_id: UUID, document_id: UUID) -> AccessKeyComponents:
        """
        Re-verify a stored document identity against its own record

        Raises:
            DataIntegrityError: If the stored key disagrees with the stored number,
                document type or issuer
        """
        document = self.get_document(tenant_id, document_id)
        tenant = self.registry.get_tenant(tenant_id)
        components = self.verify_identity(document.numero_documento, document.clave_acceso)

        mismatches = {}
        if components.document_type != document.tipo_documento:
            mismatches["tipo_documento"] = components.document_type
        if components.ruc != tenant.ruc:
            mismatches["ruc"] = components.ruc
        if int(components.sequential) != document.secuencial:
            mismatches["secuencial"] = components.sequential
        if mismatches:
            raise DataIntegrityError(
                f"Stored access key of document {document.id} disagrees with its record",
                context={"document_id": str(document.id), "mismatches": mismatches}
            )
        return components

    def void_document(self, tenant_id: UUID, document_id: UUID) -> IssuedDocument:
        """
        Mark a document as voided; its number and key stay assigned

        Raises:
            NotFoundError: If the document does not exist
            BusinessRuleError: If the document is already voided
        """
        document = self.get_document(tenant_id, document_id)
        if document.anulado:
            raise BusinessRuleError(
                f"Document {document.numero_documento} is already voided",
                rule_code="DOCUMENT_ALREADY_VOIDED"
            )

        document.anulado = True
        document.fecha_anulacion = datetime.now(timezone.utc)
        self.db.flush()

        logger.info(f"Document {document.numero_documento} voided for tenant {tenant_id}")
        return document
