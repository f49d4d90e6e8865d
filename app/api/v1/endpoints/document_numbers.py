"""
Document number (NNN-NNN-NNNNNNNNN) endpoints.
"""
from fastapi import APIRouter

from app.schemas.access_keys import DocumentNumberFormatRequest, DocumentNumberResponse
from app.services.sequence_service import DocumentNumber, DocumentSequencer
from app.utils.error_responses import InvalidArgumentError


router = APIRouter()


def _to_response(numero: str, parsed: DocumentNumber) -> DocumentNumberResponse:
    return DocumentNumberResponse(
        numero_documento=numero,
        establecimiento=parsed.establishment,
        punto_emision=parsed.emission_point,
        secuencial=parsed.sequential
    )


@router.post("/format", response_model=DocumentNumberResponse)
def format_document_number(request: DocumentNumberFormatRequest):
    """Zero-pad and join establishment, emission point and sequential."""
    numero = DocumentSequencer.format_document_number(
        request.establecimiento, request.punto_emision, request.secuencial
    )
    parsed = DocumentSequencer.parse_document_number(numero)
    return _to_response(numero, parsed)


@router.get("/{numero_documento}/parse", response_model=DocumentNumberResponse)
def parse_document_number(numero_documento: str):
    """Split a document number into its integer components."""
    parsed = DocumentSequencer.parse_document_number(numero_documento)
    if parsed is None:
        raise InvalidArgumentError(
            "numero_documento",
            f"Document number must match NNN-NNN-NNNNNNNNN: {numero_documento}",
            error_code="DOCUMENT_NUMBER_INVALID"
        )
    return _to_response(numero_documento, parsed)
