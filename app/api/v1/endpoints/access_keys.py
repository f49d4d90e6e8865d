"""
Access key (clave de acceso) endpoints: generate, validate and decode.
"""
from fastapi import APIRouter, status

from app.schemas.access_keys import (
    AccessKeyComponentsResponse, AccessKeyGenerateRequest, AccessKeyResponse,
    AccessKeyValidateRequest, AccessKeyValidationResponse
)
from app.utils.error_responses import AccessKeyError
from app.utils.key_generator import AccessKey, generate_access_key, parse_access_key


router = APIRouter()


def _to_response(access_key: AccessKey) -> AccessKeyResponse:
    return AccessKeyResponse(
        clave_acceso=access_key.value,
        numero_documento=access_key.document_number,
        componentes=AccessKeyComponentsResponse.from_components(access_key.components())
    )


@router.post("", response_model=AccessKeyResponse, status_code=status.HTTP_201_CREATED)
def create_access_key(request: AccessKeyGenerateRequest):
    """
    Generate a 49-digit access key.

    The 8-digit numeric code is drawn from the OS entropy source, so two calls
    with the same fields return different keys.
    """
    access_key = generate_access_key(
        issue_date=request.fecha_emision,
        document_type_code=request.tipo_documento,
        tax_registration_number=request.ruc,
        environment=request.ambiente,
        establishment_code=request.establecimiento,
        emission_point_code=request.punto_emision,
        sequential=request.secuencial,
        emission_type=request.tipo_emision
    )
    return _to_response(access_key)


@router.post("/validate", response_model=AccessKeyValidationResponse)
def validate_access_key(request: AccessKeyValidateRequest):
    """Check length, digits and check digit of an access key without raising."""
    try:
        parse_access_key(request.clave_acceso)
    except AccessKeyError as e:
        return AccessKeyValidationResponse(clave_acceso=request.clave_acceso, valido=False, mensaje=e.message)
    return AccessKeyValidationResponse(clave_acceso=request.clave_acceso, valido=True)


@router.get("/{clave_acceso}", response_model=AccessKeyResponse)
def decode_access_key(clave_acceso: str):
    """Decode an access key into its fields; invalid keys are rejected with 422."""
    return _to_response(parse_access_key(clave_acceso))
