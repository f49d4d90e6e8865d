"""
Tenant, establishment and emission point endpoints.
Includes read access to the document counters and manual sequential reservation.
"""
from typing import List
from uuid import UUID
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.models.establishment import EmissionPoint
from app.models.tenant import Tenant
from app.schemas.emission_points import (
    EmissionPointCreate, EmissionPointResponse, EstablishmentCreate, EstablishmentResponse,
    SequenceReservation, SequenceStatus, TenantCreate, TenantResponse
)
from app.schemas.enums import DocumentType
from app.services.emission_point_service import EmissionPointService
from app.services.sequence_service import DocumentSequencer, SequenceScope
from app.utils.validators import TaxRegistrationValidator


router = APIRouter()


def _tenant_response(tenant: Tenant) -> TenantResponse:
    response = TenantResponse.model_validate(tenant)
    response.regimen = TaxRegistrationValidator.regime_for(tenant.ruc)
    return response


def _emission_point_response(emission_point: EmissionPoint) -> EmissionPointResponse:
    return EmissionPointResponse(
        id=emission_point.id,
        tenant_id=emission_point.tenant_id,
        establecimiento_id=emission_point.establecimiento_id,
        codigo=emission_point.codigo,
        nombre=emission_point.nombre,
        activo=emission_point.activo,
        secuencias=EmissionPointService.counters_snapshot(emission_point)
    )


@router.post("", response_model=TenantResponse, status_code=status.HTTP_201_CREATED)
def create_tenant(
    tenant_data: TenantCreate,
    db: Session = Depends(get_db)
):
    """
    Register an issuing taxpayer.

    The RUC must pass the SRI checksum for its regime; duplicates are rejected with 409.
    """
    tenant = EmissionPointService(db).create_tenant(tenant_data)
    return _tenant_response(tenant)


@router.get("/{tenant_id}", response_model=TenantResponse)
def get_tenant(
    tenant_id: UUID,
    db: Session = Depends(get_db)
):
    """Retrieve tenant information by ID."""
    return _tenant_response(EmissionPointService(db).get_tenant(tenant_id))


@router.post(
    "/{tenant_id}/establishments",
    response_model=EstablishmentResponse,
    status_code=status.HTTP_201_CREATED
)
def create_establishment(
    tenant_id: UUID,
    establishment_data: EstablishmentCreate,
    db: Session = Depends(get_db)
):
    """Create an establishment with a 3-digit code unique for the tenant."""
    return EmissionPointService(db).create_establishment(tenant_id, establishment_data)


@router.post(
    "/{tenant_id}/establishments/{establishment_id}/emission-points",
    response_model=EmissionPointResponse,
    status_code=status.HTTP_201_CREATED
)
def create_emission_point(
    tenant_id: UUID,
    establishment_id: UUID,
    emission_point_data: EmissionPointCreate,
    db: Session = Depends(get_db)
):
    """Create an emission point; its four document counters start at 1."""
    emission_point = EmissionPointService(db).create_emission_point(
        tenant_id, establishment_id, emission_point_data
    )
    return _emission_point_response(emission_point)


@router.get(
    "/{tenant_id}/establishments/{establishment_id}/emission-points",
    response_model=List[EmissionPointResponse]
)
def list_emission_points(
    tenant_id: UUID,
    establishment_id: UUID,
    db: Session = Depends(get_db)
):
    """List the emission points of an establishment."""
    emission_points = EmissionPointService(db).list_emission_points(tenant_id, establishment_id)
    return [_emission_point_response(ep) for ep in emission_points]


@router.get("/{tenant_id}/emission-points/{emission_point_id}/sequences", response_model=List[SequenceStatus])
def get_sequences(
    tenant_id: UUID,
    emission_point_id: UUID,
    db: Session = Depends(get_db)
):
    """Next sequential of every counter of an emission point."""
    counters = DocumentSequencer(db).peek_all(tenant_id, emission_point_id)
    return [
        SequenceStatus(tipo_documento=tipo, siguiente_secuencial=value)
        for tipo, value in counters.items()
    ]


@router.get(
    "/{tenant_id}/emission-points/{emission_point_id}/sequences/{tipo_documento}",
    response_model=SequenceStatus
)
def get_sequence(
    tenant_id: UUID,
    emission_point_id: UUID,
    tipo_documento: str,
    db: Session = Depends(get_db)
):
    """Next sequential of one counter, for display only."""
    scope = SequenceScope(tenant_id, emission_point_id, tipo_documento)
    value = DocumentSequencer(db).peek_current(scope)
    return SequenceStatus(tipo_documento=DocumentType(tipo_documento), siguiente_secuencial=value)


@router.post(
    "/{tenant_id}/emission-points/{emission_point_id}/sequences/{tipo_documento}/reserve",
    response_model=SequenceReservation,
    status_code=status.HTTP_201_CREATED
)
def reserve_sequence(
    tenant_id: UUID,
    emission_point_id: UUID,
    tipo_documento: str,
    db: Session = Depends(get_db)
):
    """
    Reserve a sequential without creating a document.

    The number is committed immediately and never handed out again; use
    it for documents numbered outside this service.
    """
    emission_point = EmissionPointService(db).get_emission_point(tenant_id, emission_point_id)
    scope = SequenceScope(tenant_id, emission_point.id, tipo_documento)
    sequential = DocumentSequencer(db).reserve_next(scope)
    numero = DocumentSequencer.format_document_number(
        emission_point.establecimiento.codigo, emission_point.codigo, sequential
    )
    db.commit()
    return SequenceReservation(
        tipo_documento=DocumentType(tipo_documento),
        secuencial=sequential,
        numero_documento=numero
    )
