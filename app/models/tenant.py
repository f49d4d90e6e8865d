"""
Tenant model for the multi-tenant SRI document identity service
"""
import uuid
from datetime import datetime, timezone
from sqlalchemy import (
    Column, String, Boolean, DateTime, CheckConstraint, Uuid, func
)
from sqlalchemy.orm import relationship

from app.core.database import Base


class Tenant(Base):
    """
    Issuing taxpayer (emisor)

    The RUC is validated before insertion and embedded in every access key
    the tenant issues.
    """
    __tablename__ = "tenants"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, index=True)

    # Business information
    ruc = Column(String(13), nullable=False, unique=True, index=True,
                 comment="Ecuadorian tax registration number (13 digits)")
    razon_social = Column(String(300), nullable=False, comment="Legal name")
    nombre_comercial = Column(String(300), nullable=True, comment="Commercial/trade name")

    # SRI configuration
    ambiente = Column(String(1), nullable=False, default="1",
                      comment="SRI environment: 1 = pruebas, 2 = produccion")

    # Account status
    activo = Column(Boolean, nullable=False, default=True, comment="Account active status")

    # Audit fields
    created_at = Column(DateTime(timezone=True), nullable=False,
                        default=lambda: datetime.now(timezone.utc),
                        server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False,
                        default=lambda: datetime.now(timezone.utc),
                        onupdate=lambda: datetime.now(timezone.utc),
                        server_default=func.now())

    establecimientos = relationship("Establishment", back_populates="tenant",
                                    cascade="all, delete-orphan")

    __table_args__ = (
        CheckConstraint("length(ruc) = 13", name="ck_tenants_ruc_length"),
        CheckConstraint("ambiente IN ('1', '2')", name="ck_tenants_ambiente"),
    )

    def __repr__(self) -> str:
        return f"<Tenant(id={self.id}, ruc='{self.ruc}', razon_social='{self.razon_social}')>"
