"""
Establishment and emission point models
SRI numbers every document by establishment code + emission point code + sequential
"""
import uuid
from datetime import datetime, timezone
from typing import Dict
from sqlalchemy import (
    Column, String, Boolean, DateTime, ForeignKey, CheckConstraint,
    UniqueConstraint, Uuid, func
)
from sqlalchemy.orm import relationship

from app.core.database import Base


class Establishment(Base):
    """Physical establishment registered with SRI (establecimiento)"""
    __tablename__ = "establecimientos"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, index=True)
    tenant_id = Column(Uuid, ForeignKey("tenants.id", ondelete="CASCADE"),
                       nullable=False, index=True)

    codigo = Column(String(3), nullable=False, comment="3-digit establishment code (001-999)")
    nombre = Column(String(300), nullable=False, comment="Establishment name")
    direccion = Column(String(300), nullable=True, comment="Establishment address")
    activo = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), nullable=False,
                        default=lambda: datetime.now(timezone.utc),
                        server_default=func.now())

    tenant = relationship("Tenant", back_populates="establecimientos")
    puntos_emision = relationship("EmissionPoint", back_populates="establecimiento",
                                  cascade="all, delete-orphan")

    __table_args__ = (
        UniqueConstraint("tenant_id", "codigo", name="uq_establecimientos_tenant_codigo"),
        CheckConstraint("codigo <> '000'", name="ck_establecimientos_codigo"),
    )

    def __repr__(self) -> str:
        return f"<Establishment(codigo='{self.codigo}', tenant_id={self.tenant_id})>"


class EmissionPoint(Base):
    """
    Point of sale within an establishment (punto de emision)

    Counters live in DocumentSequence rows, one per document type. Loaded
    instances are read-only snapshots for display; numbers are only handed out
    through the document sequencer.
    """
    __tablename__ = "puntos_emision"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, index=True)
    tenant_id = Column(Uuid, ForeignKey("tenants.id", ondelete="CASCADE"),
                       nullable=False, index=True)
    establecimiento_id = Column(Uuid, ForeignKey("establecimientos.id", ondelete="CASCADE"),
                                nullable=False, index=True)

    codigo = Column(String(3), nullable=False, comment="3-digit emission point code (001-999)")
    nombre = Column(String(300), nullable=False, comment="Emission point name")
    activo = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), nullable=False,
                        default=lambda: datetime.now(timezone.utc),
                        server_default=func.now())

    establecimiento = relationship("Establishment", back_populates="puntos_emision")
    secuencias = relationship("DocumentSequence", back_populates="punto_emision",
                              cascade="all, delete-orphan")

    __table_args__ = (
        UniqueConstraint("establecimiento_id", "codigo", name="uq_puntos_emision_establecimiento_codigo"),
        CheckConstraint("codigo <> '000'", name="ck_puntos_emision_codigo"),
    )

    @property
    def counters(self) -> Dict[str, int]:
        """Snapshot of next sequentials keyed by document type code"""
        return {s.tipo_documento: s.siguiente_secuencial for s in self.secuencias}

    def __repr__(self) -> str:
        return f"<EmissionPoint(codigo='{self.codigo}', establecimiento_id={self.establecimiento_id})>"
