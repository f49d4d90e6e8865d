"""
Emission point registry: tenants, establishments, emission points and their counters.
"""
import logging
import re
from typing import Dict, List, Optional
from uuid import UUID
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.models.document_sequence import DocumentSequence
from app.models.establishment import Establishment, EmissionPoint
from app.models.tenant import Tenant
from app.schemas.emission_points import EmissionPointCreate, EstablishmentCreate, TenantCreate
from app.schemas.enums import SEQUENCED_DOCUMENT_TYPES, SriEnvironment
from app.utils.error_responses import ConflictError, NotFoundError, ValidationError
from app.utils.validators import TaxRegistrationValidator

logger = logging.getLogger(__name__)

_LOCATION_CODE = re.compile(r"[0-9]{3}")


def validate_location_code(field: str, codigo: Optional[str]) -> str:
    """
    Validate an establishment or emission point code (001-999)

    Raises:
        ValidationError: If the code is not 3 digits or is 000
    """
    if codigo is None or not _LOCATION_CODE.fullmatch(codigo) or codigo == "000":
        raise ValidationError(
            f"{field} must be a 3-digit code between 001 and 999: {codigo}",
            field=field,
            error_code="INVALID_ARGUMENT",
            suggestions=["Use a zero-padded code such as 001"]
        )
    return codigo


class EmissionPointService:
    """
    Registry of issuers and the locations that number their documents

    Lookups are always scoped by tenant; an id that belongs to another tenant
    is reported as not found.
    """

    def __init__(self, db: Session):
        self.db = db

    def create_tenant(self, tenant_data: TenantCreate) -> Tenant:
        """
        Register an issuing taxpayer

        Args:
            tenant_data: Tenant creation data

        Returns:
            Created tenant

        Raises:
            ValidationError: If the RUC fails validation
            ConflictError: If a tenant with the same RUC exists
        """
        ruc = (tenant_data.ruc or "").strip()
        error = TaxRegistrationValidator.error_for(ruc)
        if error is not None:
            raise ValidationError(
                TaxRegistrationValidator.message_for(ruc),
                field="ruc",
                kind=error,
                error_code="IDENTIFICATION_INVALID"
            )

        if self.db.execute(select(Tenant.id).where(Tenant.ruc == ruc)).first():
            raise ConflictError(f"A tenant with RUC {ruc} already exists")

        ambiente = tenant_data.ambiente or SriEnvironment(settings.SRI_DEFAULT_ENVIRONMENT)
        tenant = Tenant(
            ruc=ruc,
            razon_social=tenant_data.razon_social.strip(),
            nombre_comercial=tenant_data.nombre_comercial,
            ambiente=ambiente.value,
            activo=True
        )

        try:
            self.db.add(tenant)
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ConflictError(f"A tenant with RUC {ruc} already exists")
        self.db.refresh(tenant)

        logger.info(f"Tenant created: {tenant.id} ({ruc})")
        return tenant

    def get_tenant(self, tenant_id: UUID) -> Tenant:
        """
        Retrieve tenant by ID

        Raises:
            NotFoundError: If the tenant does not exist
        """
        tenant = self.db.get(Tenant, tenant_id)
        if tenant is None:
            raise NotFoundError(
                "Tenant not found",
                resource_type="tenant",
                resource_id=str(tenant_id),
                error_code="TENANT_NOT_FOUND"
            )
        return tenant

    def create_establishment(self, tenant_id: UUID, establishment_data: EstablishmentCreate) -> Establishment:
        """
        Create an establishment for a tenant

        Raises:
            NotFoundError: If the tenant does not exist
            ValidationError: If the code is not 001-999
            ConflictError: If the tenant already has the code
        """
        self.get_tenant(tenant_id)
        codigo = validate_location_code("codigo", establishment_data.codigo)

        existing = self.db.execute(
            select(Establishment.id).where(
                Establishment.tenant_id == tenant_id,
                Establishment.codigo == codigo
            )
        ).first()
        if existing:
            raise ConflictError(f"Establishment {codigo} already exists for this tenant")

        establishment = Establishment(
            tenant_id=tenant_id,
            codigo=codigo,
            nombre=establishment_data.nombre.strip(),
            direccion=establishment_data.direccion,
            activo=True
        )
        try:
            self.db.add(establishment)
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ConflictError(f"Establishment {codigo} already exists for this tenant")
        self.db.refresh(establishment)

        logger.info(f"Establishment {codigo} created for tenant {tenant_id}")
        return establishment

    def get_establishment(self, tenant_id: UUID, establishment_id: UUID) -> Establishment:
        """Retrieve an establishment owned by the tenant"""
        establishment = self.db.execute(
            select(Establishment).where(
                Establishment.id == establishment_id,
                Establishment.tenant_id == tenant_id
            )
        ).scalar_one_or_none()
        if establishment is None:
            raise NotFoundError(
                "Establishment not found",
                resource_type="establishment",
                resource_id=str(establishment_id),
                error_code="ESTABLISHMENT_NOT_FOUND"
            )
        return establishment

    def create_emission_point(
        self,
        tenant_id: UUID,
        establishment_id: UUID,
        emission_point_data: EmissionPointCreate
    ) -> EmissionPoint:
        """
        Create an emission point and its counters

        One DocumentSequence row per sequenced document type is created at 1 in
        the same transaction.

        Raises:
            NotFoundError: If the tenant or establishment does not exist
            ValidationError: If the code is not 001-999
            ConflictError: If the establishment already has the code
        """
        establishment = self.get_establishment(tenant_id, establishment_id)
        codigo = validate_location_code("codigo", emission_point_data.codigo)

        existing = self.db.execute(
            select(EmissionPoint.id).where(
                EmissionPoint.establecimiento_id == establishment.id,
                EmissionPoint.codigo == codigo
            )
        ).first()
        if existing:
            raise ConflictError(f"Emission point {codigo} already exists in establishment {establishment.codigo}")

        emission_point = EmissionPoint(
            tenant_id=tenant_id,
            establecimiento_id=establishment.id,
            codigo=codigo,
            nombre=emission_point_data.nombre.strip(),
            activo=True
        )
        emission_point.secuencias = [
            DocumentSequence(tenant_id=tenant_id, tipo_documento=tipo.value, siguiente_secuencial=1)
            for tipo in SEQUENCED_DOCUMENT_TYPES
        ]

        try:
            self.db.add(emission_point)
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ConflictError(f"Emission point {codigo} already exists in establishment {establishment.codigo}")
        self.db.refresh(emission_point)

        logger.info(f"Emission point {establishment.codigo}-{codigo} created for tenant {tenant_id}")
        return emission_point

    def get_emission_point(self, tenant_id: UUID, emission_point_id: UUID) -> EmissionPoint:
        """Retrieve an emission point owned by the tenant"""
        emission_point = self.db.execute(
            select(EmissionPoint).where(
                EmissionPoint.id == emission_point_id,
                EmissionPoint.tenant_id == tenant_id
            )
        ).scalar_one_or_none()
        if emission_point is None:
            raise NotFoundError(
                "Emission point not found",
                resource_type="emission_point",
                resource_id=str(emission_point_id),
                error_code="EMISSION_POINT_NOT_FOUND"
            )
        return emission_point

    def list_emission_points(self, tenant_id: UUID, establishment_id: UUID) -> List[EmissionPoint]:
        """Emission points of an establishment ordered by code"""
        establishment = self.get_establishment(tenant_id, establishment_id)
        return list(self.db.execute(
            select(EmissionPoint)
            .where(EmissionPoint.establecimiento_id == establishment.id)
            .order_by(EmissionPoint.codigo)
        ).scalars())

    @staticmethod
    def counters_snapshot(emission_point: EmissionPoint) -> Dict[str, int]:
        """Next sequentials of a loaded emission point, for display"""
        return dict(sorted(emission_point.counters.items()))
