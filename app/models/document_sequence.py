"""
Document sequence model: one durable counter per (tenant, emission point, document type)
"""
import uuid
from sqlalchemy import (
    Column, String, Integer, ForeignKey, CheckConstraint, UniqueConstraint, Uuid
)
from sqlalchemy.orm import relationship

from app.core.database import Base


class DocumentSequence(Base):
    """
    Next sequential to hand out for a scope

    Rows are never reset or deleted while the emission point exists; voided
    documents keep their numbers.
    """
    __tablename__ = "secuencias_documento"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    tenant_id = Column(Uuid, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False)
    punto_emision_id = Column(Uuid, ForeignKey("puntos_emision.id", ondelete="CASCADE"), nullable=False)
    tipo_documento = Column(String(2), nullable=False, comment="SRI document type code")
    siguiente_secuencial = Column(Integer, nullable=False, default=1,
                                  comment="Next sequential to be reserved")

    punto_emision = relationship("EmissionPoint", back_populates="secuencias")

    __table_args__ = (
        UniqueConstraint("tenant_id", "punto_emision_id", "tipo_documento",
                         name="uq_secuencias_documento_scope"),
        CheckConstraint("siguiente_secuencial >= 1", name="ck_secuencias_documento_positive"),
    )

    def __repr__(self) -> str:
        return (
            f"<DocumentSequence(punto_emision_id={self.punto_emision_id}, "
            f"tipo_documento='{self.tipo_documento}', siguiente={self.siguiente_secuencial})>"
        )
