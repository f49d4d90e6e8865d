"""
Identification validation endpoints (cedula, RUC and buyer identifications).
"""
from typing import Optional
from fastapi import APIRouter

from app.core.logging import audit_logger
from app.schemas.enums import ErrorKind, IdentificationType
from app.schemas.identifications import (
    IdentificationValidationRequest, IdentificationValidationResponse
)
from app.utils.validators import IdentificationValidator, TaxRegistrationValidator


router = APIRouter()


def _validate(tipo: Optional[IdentificationType], numero: Optional[str]) -> IdentificationValidationResponse:
    tipo = tipo or IdentificationValidator.detect_identification_type(numero)
    if tipo is None:
        return IdentificationValidationResponse(
            numero=numero,
            valido=False,
            error=ErrorKind.REQUIRED,
            mensaje="Identification number is required"
        )

    kind = IdentificationValidator.error_for(tipo, numero)
    valido, mensaje = IdentificationValidator.validate_identification(tipo, numero)
    if kind is not None:
        audit_logger.log_validation_failure(field=tipo.name.lower(), kind=kind.value, value=numero)

    regimen = None
    if valido and tipo == IdentificationType.RUC:
        regimen = TaxRegistrationValidator.regime_for(numero)

    return IdentificationValidationResponse(
        numero=numero,
        tipo=tipo,
        valido=valido,
        error=kind,
        mensaje=mensaje or None,
        regimen=regimen
    )


@router.post("/validate", response_model=IdentificationValidationResponse)
def validate_identification(request: IdentificationValidationRequest):
    """
    Validate an identification number.

    When no type is given it is detected from the number: 9999999999999 is
    consumidor final, 13 digits a RUC, 10 digits a cedula, anything else a passport.
    """
    return _validate(request.tipo, request.numero)


@router.get("/cedula/{numero}", response_model=IdentificationValidationResponse)
def validate_cedula(numero: str):
    """Validate a 10-digit cedula."""
    return _validate(IdentificationType.CEDULA, numero)


@router.get("/ruc/{numero}", response_model=IdentificationValidationResponse)
def validate_ruc(numero: str):
    """Validate a 13-digit RUC and report its taxpayer regime."""
    return _validate(IdentificationType.RUC, numero)
