"""
Issued document identity models.
"""
from datetime import date, datetime
from typing import Optional
from uuid import UUID
from pydantic import BaseModel, ConfigDict, Field

from .access_keys import AccessKeyComponentsResponse
from .enums import DocumentType, EmissionType


class DocumentIdentityRequest(BaseModel):
    """Request a number and access key for a new document."""
    punto_emision_id: UUID
    tipo_documento: DocumentType
    fecha_emision: date = Field(default_factory=date.today, description="Document issue date")
    tipo_emision: EmissionType = EmissionType.NORMAL


class IssuedDocumentResponse(BaseModel):
    """Identity assigned to a document."""
    id: UUID
    tenant_id: UUID
    punto_emision_id: UUID
    tipo_documento: DocumentType
    numero_documento: str
    secuencial: int
    clave_acceso: str
    fecha_emision: date
    ambiente: str
    tipo_emision: str
    anulado: bool
    fecha_anulacion: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class DocumentIdentityVerifyRequest(BaseModel):
    """Document number and access key that should agree."""
    numero_documento: str
    clave_acceso: str


class DocumentIdentityVerifyResponse(BaseModel):
    """Successful identity verification."""
    valido: bool = True
    numero_documento: str
    componentes: AccessKeyComponentsResponse
