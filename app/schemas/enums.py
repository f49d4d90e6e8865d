"""
Core enums for Ecuador (SRI) electronic document identity.
Codes follow the SRI electronic documents technical sheet (ficha tecnica).
"""
from enum import Enum


class DocumentType(str, Enum):
    """Document type codes (codDoc) according to SRI."""
    FACTURA = "01"
    LIQUIDACION_COMPRA = "03"
    NOTA_CREDITO = "04"
    NOTA_DEBITO = "05"
    GUIA_REMISION = "06"
    COMPROBANTE_RETENCION = "07"


# Document types numbered by an emission point counter
SEQUENCED_DOCUMENT_TYPES = (
    DocumentType.FACTURA,
    DocumentType.NOTA_CREDITO,
    DocumentType.NOTA_DEBITO,
    DocumentType.COMPROBANTE_RETENCION,
)


class SriEnvironment(str, Enum):
    """SRI reception environment (ambiente)."""
    PRUEBAS = "1"
    PRODUCCION = "2"


class EmissionType(str, Enum):
    """Emission type (tipoEmision)."""
    NORMAL = "1"
    CONTINGENCIA = "2"


class IdentificationType(str, Enum):
    """Buyer identification types (tipoIdentificacionComprador)."""
    RUC = "04"
    CEDULA = "05"
    PASAPORTE = "06"
    CONSUMIDOR_FINAL = "07"
    IDENTIFICACION_EXTERIOR = "08"


class TaxpayerRegime(str, Enum):
    """Taxpayer regime encoded in the third digit of a RUC."""
    PERSONA_NATURAL = "persona_natural"      # 0-5
    SECTOR_PUBLICO = "sector_publico"        # 6
    SOCIEDAD_PRIVADA = "sociedad_privada"    # 9


class ErrorKind(str, Enum):
    """Validation failure reasons surfaced as field-level messages."""
    REQUIRED = "required"
    WRONG_LENGTH = "wrong_length"
    NON_NUMERIC = "non_numeric"
    INVALID_PROVINCE = "invalid_province"
    INVALID_THIRD_DIGIT = "invalid_third_digit"
    INVALID_CHECK_DIGIT = "invalid_check_digit"
    INVALID_ARGUMENT = "invalid_argument"
    UNSUPPORTED = "unsupported"
