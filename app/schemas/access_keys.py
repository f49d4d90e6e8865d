"""
Access key (clave de acceso) and document number models.
"""
from datetime import date
from typing import Optional, Union
from pydantic import BaseModel, Field

from .enums import DocumentType, EmissionType, SriEnvironment


class AccessKeyGenerateRequest(BaseModel):
    """Fields embedded in a new access key."""
    fecha_emision: date = Field(..., description="Document issue date")
    tipo_documento: DocumentType
    ruc: str = Field(..., description="13-digit issuer RUC")
    ambiente: SriEnvironment = SriEnvironment.PRUEBAS
    establecimiento: str = Field(..., description="3-digit establishment code")
    punto_emision: str = Field(..., description="3-digit emission point code")
    secuencial: int = Field(..., description="Document sequential (1-999999999)")
    tipo_emision: EmissionType = EmissionType.NORMAL


class AccessKeyValidateRequest(BaseModel):
    """Access key to check."""
    clave_acceso: Optional[str] = None


class AccessKeyComponentsResponse(BaseModel):
    """Decoded access key fields."""
    fecha_emision: date
    tipo_documento: str
    ruc: str
    ambiente: str
    establecimiento: str
    punto_emision: str
    secuencial: str
    codigo_numerico: str
    tipo_emision: str
    digito_verificador: str

    @classmethod
    def from_components(cls, components) -> "AccessKeyComponentsResponse":
        return cls(
            fecha_emision=components.issue_date,
            tipo_documento=components.document_type,
            ruc=components.ruc,
            ambiente=components.environment,
            establecimiento=components.establishment,
            punto_emision=components.emission_point,
            secuencial=components.sequential,
            codigo_numerico=components.numeric_code,
            tipo_emision=components.emission_type,
            digito_verificador=components.check_digit,
        )


class AccessKeyResponse(BaseModel):
    """A valid access key with its decoded fields."""
    clave_acceso: str
    numero_documento: str
    componentes: AccessKeyComponentsResponse


class AccessKeyValidationResponse(BaseModel):
    """Non-throwing access key check."""
    clave_acceso: Optional[str] = None
    valido: bool
    mensaje: Optional[str] = None


class DocumentNumberFormatRequest(BaseModel):
    """Components of a document number, as integers or digit strings."""
    establecimiento: Union[int, str]
    punto_emision: Union[int, str]
    secuencial: Union[int, str]


class DocumentNumberResponse(BaseModel):
    """Formatted document number with its integer components."""
    numero_documento: str
    establecimiento: int
    punto_emision: int
    secuencial: int
