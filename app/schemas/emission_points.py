"""
Tenant, establishment and emission point models for the SRI document identity API.
"""
from datetime import datetime
from typing import Dict, Optional
from uuid import UUID
from pydantic import BaseModel, ConfigDict, Field

from .enums import DocumentType, SriEnvironment, TaxpayerRegime


class TenantCreate(BaseModel):
    """Model for registering an issuing taxpayer."""
    ruc: str = Field(..., description="13-digit RUC of the issuer")
    razon_social: str = Field(..., min_length=1, max_length=300, description="Legal name")
    nombre_comercial: Optional[str] = Field(None, max_length=300, description="Trade name")
    ambiente: Optional[SriEnvironment] = Field(None, description="SRI environment, defaults to settings")


class TenantResponse(BaseModel):
    """Tenant information response."""
    id: UUID
    ruc: str
    razon_social: str
    nombre_comercial: Optional[str] = None
    ambiente: SriEnvironment
    regimen: Optional[TaxpayerRegime] = None
    activo: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class EstablishmentCreate(BaseModel):
    """Model for creating an establishment."""
    codigo: str = Field(..., description="3-digit establishment code (001-999)")
    nombre: str = Field(..., min_length=1, max_length=300)
    direccion: Optional[str] = Field(None, max_length=300)


class EstablishmentResponse(BaseModel):
    """Establishment information response."""
    id: UUID
    tenant_id: UUID
    codigo: str
    nombre: str
    direccion: Optional[str] = None
    activo: bool

    model_config = ConfigDict(from_attributes=True)


class EmissionPointCreate(BaseModel):
    """Model for creating an emission point."""
    codigo: str = Field(..., description="3-digit emission point code (001-999)")
    nombre: str = Field(..., min_length=1, max_length=300)


class EmissionPointResponse(BaseModel):
    """Emission point with a snapshot of its counters."""
    id: UUID
    tenant_id: UUID
    establecimiento_id: UUID
    codigo: str
    nombre: str
    activo: bool
    secuencias: Dict[str, int] = Field(default_factory=dict, description="Next sequential by document type")


class SequenceStatus(BaseModel):
    """Next sequential of one counter."""
    tipo_documento: DocumentType
    siguiente_secuencial: int


class SequenceReservation(BaseModel):
    """Sequential reserved outside the document identity workflow."""
    tipo_documento: DocumentType
    secuencial: int
    numero_documento: str
