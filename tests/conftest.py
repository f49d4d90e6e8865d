"""
Shared fixtures: a SQLite file database per test and a seeded issuer
"""
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

import app.models  # noqa: F401  register mappers on Base.metadata
from app.core.database import Base, build_engine, get_db
from app.core.error_handler import error_handler
from app.main import app as fastapi_app
from app.schemas.emission_points import EmissionPointCreate, EstablishmentCreate, TenantCreate
from app.services.emission_point_service import EmissionPointService

PRIVATE_COMPANY_RUC = "1790011674001"
PUBLIC_SECTOR_RUC = "1760011611001"
NATURAL_PERSON_RUC = "1234567897001"


@pytest.fixture
def engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'test.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    fastapi_app.dependency_overrides[get_db] = override_get_db
    error_handler.reset_error_statistics()
    yield TestClient(fastapi_app)
    fastapi_app.dependency_overrides.clear()
    error_handler.reset_error_statistics()


@pytest.fixture
def tenant(db):
    return EmissionPointService(db).create_tenant(
        TenantCreate(ruc=PRIVATE_COMPANY_RUC, razon_social="Comercial Andina S.A.")
    )


@pytest.fixture
def establishment(db, tenant):
    return EmissionPointService(db).create_establishment(
        tenant.id, EstablishmentCreate(codigo="001", nombre="Matriz Quito")
    )


@pytest.fixture
def emission_point(db, tenant, establishment):
    return EmissionPointService(db).create_emission_point(
        tenant.id, establishment.id, EmissionPointCreate(codigo="002", nombre="Caja 2")
    )
