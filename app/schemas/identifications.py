"""
Identification validation models (cedula, RUC, passport, consumidor final).
"""
from typing import Optional
from pydantic import BaseModel, Field

from .enums import ErrorKind, IdentificationType, TaxpayerRegime


class IdentificationValidationRequest(BaseModel):
    """Identifier to validate; the type is detected when omitted."""
    tipo: Optional[IdentificationType] = Field(None, description="SRI identification type code")
    numero: Optional[str] = Field(None, description="Identification number")


class IdentificationValidationResponse(BaseModel):
    """Validation outcome for an identifier."""
    numero: Optional[str] = None
    tipo: Optional[IdentificationType] = None
    valido: bool
    error: Optional[ErrorKind] = None
    mensaje: Optional[str] = None
    regimen: Optional[TaxpayerRegime] = Field(None, description="Taxpayer regime for a valid RUC")
