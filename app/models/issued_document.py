"""
Issued document identity: document number and access key assigned to a fiscal document
"""
import uuid
from datetime import datetime, timezone
from sqlalchemy import (
    Column, String, Integer, Boolean, Date, DateTime, ForeignKey,
    CheckConstraint, UniqueConstraint, Index, Uuid, func
)

from app.core.database import Base


class IssuedDocument(Base):
    """
    Identity of an issued fiscal document

    Both numero_documento and clave_acceso are opaque, immutable strings once
    assigned. Voiding sets anulado but never frees the number.
    """
    __tablename__ = "documentos_emitidos"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, index=True)
    tenant_id = Column(Uuid, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)
    punto_emision_id = Column(Uuid, ForeignKey("puntos_emision.id"), nullable=False)

    tipo_documento = Column(String(2), nullable=False, comment="SRI document type code")
    numero_documento = Column(String(17), nullable=False, comment="NNN-NNN-NNNNNNNNN")
    secuencial = Column(Integer, nullable=False)
    clave_acceso = Column(String(49), nullable=False, comment="49-digit SRI access key")

    fecha_emision = Column(Date, nullable=False)
    ambiente = Column(String(1), nullable=False)
    tipo_emision = Column(String(1), nullable=False, default="1")

    anulado = Column(Boolean, nullable=False, default=False)
    fecha_anulacion = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False,
                        default=lambda: datetime.now(timezone.utc),
                        server_default=func.now())

    __table_args__ = (
        UniqueConstraint("tenant_id", "tipo_documento", "numero_documento",
                         name="uq_documentos_emitidos_numero"),
        UniqueConstraint("clave_acceso", name="uq_documentos_emitidos_clave"),
        CheckConstraint("length(numero_documento) = 17", name="ck_documentos_emitidos_numero_length"),
        CheckConstraint("length(clave_acceso) = 49", name="ck_documentos_emitidos_clave_length"),
        Index("idx_documentos_emitidos_punto_tipo", "punto_emision_id", "tipo_documento"),
    )

    def __repr__(self) -> str:
        return f"<IssuedDocument(numero='{self.numero_documento}', clave='{self.clave_acceso}')>"
