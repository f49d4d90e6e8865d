"""
Tests for the document identity workflow
"""
import random
import uuid
from datetime import date

import pytest
from sqlalchemy import update

from app.models.document_sequence import DocumentSequence
from app.models.issued_document import IssuedDocument
from app.schemas.enums import DocumentType, EmissionType
from app.services.document_identity_service import DocumentIdentityService
from app.services.sequence_service import DocumentSequencer, SequenceScope
from app.utils.error_responses import (
    AccessKeyError,
    BusinessRuleError,
    ConflictError,
    DataIntegrityError,
    InvalidArgumentError,
    NotFoundError,
    UnsupportedDocumentTypeError,
)
from app.utils.key_generator import generate_access_key, parse_access_key

ISSUE_DATE = date(2024, 12, 15)


class FixedRandom:
    """Random source that always returns the same numeric code"""

    def __init__(self, value: int = 12345678):
        self.value = value

    def randint(self, a, b):
        return self.value


def assign(db, tenant, emission_point, document_type=DocumentType.FACTURA, **kwargs):
    return DocumentIdentityService(db).assign_identity(
        tenant_id=tenant.id,
        emission_point_id=emission_point.id,
        document_type=document_type,
        issue_date=ISSUE_DATE,
        **kwargs
    )


class TestAssignIdentity:
    def test_first_invoice(self, db, tenant, emission_point):
        document = assign(db, tenant, emission_point, random_source=random.Random(5))
        db.commit()

        assert document.numero_documento == "001-002-000000001"
        assert document.secuencial == 1
        assert document.tipo_documento == "01"
        assert document.ambiente == "1"
        assert document.tipo_emision == "1"
        assert not document.anulado

        key = parse_access_key(document.clave_acceso)
        assert key.value.startswith("1512202401" + tenant.ruc)
        assert key.document_number == document.numero_documento

    def test_numbers_follow_the_counter(self, db, tenant, emission_point):
        numbers = [assign(db, tenant, emission_point).numero_documento for _ in range(3)]
        db.commit()
        assert numbers == ["001-002-000000001", "001-002-000000002", "001-002-000000003"]

    def test_each_document_type_has_its_own_sequence(self, db, tenant, emission_point):
        assign(db, tenant, emission_point, DocumentType.FACTURA)
        assign(db, tenant, emission_point, DocumentType.FACTURA)
        retention = assign(db, tenant, emission_point, DocumentType.COMPROBANTE_RETENCION)
        assert retention.numero_documento == "001-002-000000001"
        assert parse_access_key(retention.clave_acceso).components().document_type == "07"

    def test_contingency_emission(self, db, tenant, emission_point):
        document = assign(db, tenant, emission_point, emission_type=EmissionType.CONTINGENCIA)
        assert document.tipo_emision == "2"
        assert document.clave_acceso[47] == "2"

    def test_rollback_releases_number_and_identity(self, db, tenant, emission_point):
        assign(db, tenant, emission_point)
        db.rollback()
        assert db.query(IssuedDocument).count() == 0
        assert assign(db, tenant, emission_point).secuencial == 1

    def test_access_key_collision_regenerates_numeric_code(self, db, tenant, emission_point):
        first = assign(db, tenant, emission_point, random_source=random.Random(11))
        db.commit()
        # Pre-store the key the next document would get with the fixed code
        blocking = generate_access_key(
            ISSUE_DATE, DocumentType.FACTURA, tenant.ruc, "1", "001", "002", 2,
            random_source=FixedRandom()
        )
        db.add(IssuedDocument(
            tenant_id=tenant.id, punto_emision_id=emission_point.id, tipo_documento="04",
            numero_documento="001-002-000000999", secuencial=999, clave_acceso=blocking.value,
            fecha_emision=ISSUE_DATE, ambiente="1", tipo_emision="1"
        ))
        db.commit()

        class CollideOnce:
            calls = 0

            def randint(self, a, b):
                self.calls += 1
                return 12345678 if self.calls == 1 else 87654321

        source = CollideOnce()
        second = assign(db, tenant, emission_point, random_source=source)
        db.commit()

        assert source.calls == 2
        assert second.numero_documento == "001-002-000000002"
        assert second.clave_acceso != blocking.value
        assert second.clave_acceso[39:47] == "87654321"
        assert first.clave_acceso != second.clave_acceso

    def test_persistent_collision_gives_up(self, db, tenant, emission_point):
        blocking = generate_access_key(
            ISSUE_DATE, DocumentType.FACTURA, tenant.ruc, "1", "001", "002", 1,
            random_source=FixedRandom()
        )
        db.add(IssuedDocument(
            tenant_id=tenant.id, punto_emision_id=emission_point.id, tipo_documento="04",
            numero_documento="001-002-000000999", secuencial=999, clave_acceso=blocking.value,
            fecha_emision=ISSUE_DATE, ambiente="1", tipo_emision="1"
        ))
        db.commit()

        with pytest.raises(ConflictError) as exc_info:
            assign(db, tenant, emission_point, random_source=FixedRandom())
        assert exc_info.value.error_code == "ACCESS_KEY_COLLISION"

    def test_reissued_number_is_reported_as_corruption(self, db, tenant, emission_point):
        assign(db, tenant, emission_point)
        db.commit()
        # Simulate a counter that went backwards
        scope = SequenceScope(tenant.id, emission_point.id, DocumentType.FACTURA)
        db.execute(
            update(DocumentSequence)
            .where(DocumentSequence.punto_emision_id == emission_point.id,
                   DocumentSequence.tipo_documento == "01")
            .values(siguiente_secuencial=1)
        )
        db.commit()
        assert DocumentSequencer(db).peek_current(scope) == 1

        with pytest.raises(DataIntegrityError):
            assign(db, tenant, emission_point)

    def test_inactive_emission_point(self, db, tenant, emission_point):
        emission_point.activo = False
        db.commit()
        with pytest.raises(BusinessRuleError):
            assign(db, tenant, emission_point)

    def test_inactive_tenant(self, db, tenant, emission_point):
        tenant.activo = False
        db.commit()
        with pytest.raises(BusinessRuleError):
            assign(db, tenant, emission_point)

    def test_unsupported_document_type(self, db, tenant, emission_point):
        with pytest.raises(UnsupportedDocumentTypeError):
            assign(db, tenant, emission_point, DocumentType.GUIA_REMISION)

    def test_emission_point_of_another_tenant(self, db, tenant, emission_point):
        with pytest.raises(NotFoundError):
            DocumentIdentityService(db).assign_identity(
                tenant_id=tenant.id,
                emission_point_id=uuid.uuid4(),
                document_type=DocumentType.FACTURA,
                issue_date=ISSUE_DATE
            )


class TestVerifyIdentity:
    def test_matching_identity(self, db, tenant, emission_point):
        document = assign(db, tenant, emission_point)
        components = DocumentIdentityService.verify_identity(document.numero_documento, document.clave_acceso)
        assert components.sequential == "000000001"
        assert components.ruc == tenant.ruc

    def test_mismatched_sequential(self, db, tenant, emission_point):
        document = assign(db, tenant, emission_point)
        with pytest.raises(DataIntegrityError):
            DocumentIdentityService.verify_identity("001-002-000000002", document.clave_acceso)

    def test_mismatched_location(self, db, tenant, emission_point):
        document = assign(db, tenant, emission_point)
        with pytest.raises(DataIntegrityError):
            DocumentIdentityService.verify_identity("001-003-000000001", document.clave_acceso)

    def test_malformed_number(self, db, tenant, emission_point):
        document = assign(db, tenant, emission_point)
        with pytest.raises(InvalidArgumentError) as exc_info:
            DocumentIdentityService.verify_identity("1-2-3", document.clave_acceso)
        assert exc_info.value.field == "numero_documento"

    def test_malformed_key(self):
        with pytest.raises(AccessKeyError):
            DocumentIdentityService.verify_identity("001-002-000000001", "123")

    def test_stored_document_verifies(self, db, tenant, emission_point):
        document = assign(db, tenant, emission_point)
        db.commit()
        components = DocumentIdentityService(db).verify_document(tenant.id, document.id)
        assert components.document_type == "01"

    def test_stored_document_with_foreign_type_is_corrupt(self, db, tenant, emission_point):
        document = assign(db, tenant, emission_point)
        document.tipo_documento = "05"
        db.commit()
        with pytest.raises(DataIntegrityError) as exc_info:
            DocumentIdentityService(db).verify_document(tenant.id, document.id)
        assert exc_info.value.context["mismatches"] == {"tipo_documento": "01"}


class TestVoidDocument:
    def test_void_keeps_number_and_counter(self, db, tenant, emission_point):
        document = assign(db, tenant, emission_point)
        db.commit()
        service = DocumentIdentityService(db)

        voided = service.void_document(tenant.id, document.id)
        db.commit()

        assert voided.anulado
        assert voided.fecha_anulacion is not None
        assert voided.numero_documento == "001-002-000000001"
        assert assign(db, tenant, emission_point).numero_documento == "001-002-000000002"

    def test_void_twice(self, db, tenant, emission_point):
        document = assign(db, tenant, emission_point)
        db.commit()
        service = DocumentIdentityService(db)
        service.void_document(tenant.id, document.id)
        with pytest.raises(BusinessRuleError):
            service.void_document(tenant.id, document.id)

    def test_void_unknown_document(self, db, tenant):
        with pytest.raises(NotFoundError):
            DocumentIdentityService(db).void_document(tenant.id, uuid.uuid4())
