"""
API tests for identification, access key, document number, registry and
document identity endpoints
"""
import uuid

import pytest

from tests.conftest import NATURAL_PERSON_RUC, PRIVATE_COMPANY_RUC, PUBLIC_SECTOR_RUC

API = "/api/v1"


@pytest.fixture
def issuer(client):
    """Tenant, establishment and emission point created through the API"""
    tenant = client.post(f"{API}/tenants", json={
        "ruc": PRIVATE_COMPANY_RUC,
        "razon_social": "Comercial Andina S.A."
    }).json()
    establishment = client.post(f"{API}/tenants/{tenant['id']}/establishments", json={
        "codigo": "001",
        "nombre": "Matriz Quito"
    }).json()
    emission_point = client.post(
        f"{API}/tenants/{tenant['id']}/establishments/{establishment['id']}/emission-points",
        json={"codigo": "002", "nombre": "Caja 2"}
    ).json()
    return {"tenant": tenant, "establishment": establishment, "emission_point": emission_point}


class TestIdentificationEndpoints:
    def test_validate_detects_ruc(self, client):
        response = client.post(f"{API}/identifications/validate", json={"numero": PUBLIC_SECTOR_RUC})
        assert response.status_code == 200
        data = response.json()
        assert data["valido"] is True
        assert data["tipo"] == "04"
        assert data["regimen"] == "sector_publico"
        assert data["error"] is None

    def test_validate_consumidor_final(self, client):
        response = client.post(f"{API}/identifications/validate", json={"numero": "9999999999999"})
        data = response.json()
        assert data["valido"] is True
        assert data["tipo"] == "07"

    def test_validate_blank(self, client):
        data = client.post(f"{API}/identifications/validate", json={"numero": ""}).json()
        assert data["valido"] is False
        assert data["error"] == "required"

    def test_over_long_number_is_a_field_level_error(self, client):
        response = client.post(f"{API}/identifications/validate", json={"tipo": "04", "numero": "1" * 30})
        assert response.status_code == 200
        data = response.json()
        assert data["valido"] is False
        assert data["error"] == "wrong_length"

        data = client.post(f"{API}/identifications/validate", json={"numero": "A" * 25}).json()
        assert data["tipo"] == "06"
        assert data["error"] == "wrong_length"

    def test_validate_with_explicit_type(self, client):
        data = client.post(f"{API}/identifications/validate", json={"tipo": "06", "numero": "AB123456"}).json()
        assert data["valido"] is True
        assert data["tipo"] == "06"

    def test_unknown_type_is_rejected(self, client):
        response = client.post(f"{API}/identifications/validate", json={"tipo": "99", "numero": "1"})
        assert response.status_code == 422
        assert response.json()["error"]["error_code"] == "FIELD_VALIDATION_ERROR"

    def test_cedula(self, client):
        assert client.get(f"{API}/identifications/cedula/1234567897").json()["valido"] is True
        data = client.get(f"{API}/identifications/cedula/1234567890").json()
        assert data["valido"] is False
        assert data["error"] == "invalid_check_digit"
        assert data["mensaje"] == "Invalid cedula check digit"

    def test_ruc(self, client):
        data = client.get(f"{API}/identifications/ruc/{NATURAL_PERSON_RUC}").json()
        assert data["valido"] is True
        assert data["regimen"] == "persona_natural"
        data = client.get(f"{API}/identifications/ruc/1774567897001").json()
        assert data["valido"] is False
        assert data["error"] == "invalid_check_digit"


class TestAccessKeyEndpoints:
    payload = {
        "fecha_emision": "2024-12-15",
        "tipo_documento": "01",
        "ruc": PRIVATE_COMPANY_RUC,
        "ambiente": "1",
        "establecimiento": "001",
        "punto_emision": "002",
        "secuencial": 123,
    }

    def test_generate_and_decode(self, client):
        response = client.post(f"{API}/access-keys", json=self.payload)
        assert response.status_code == 201
        data = response.json()
        clave = data["clave_acceso"]
        assert clave.startswith("1512202401")
        assert data["numero_documento"] == "001-002-000000123"
        assert data["componentes"]["ruc"] == PRIVATE_COMPANY_RUC

        decoded = client.get(f"{API}/access-keys/{clave}")
        assert decoded.status_code == 200
        assert decoded.json()["componentes"]["secuencial"] == "000000123"

        validation = client.post(f"{API}/access-keys/validate", json={"clave_acceso": clave}).json()
        assert validation["valido"] is True

    def test_generate_with_bad_ruc_names_the_field(self, client):
        response = client.post(f"{API}/access-keys", json={**self.payload, "ruc": "123"})
        assert response.status_code == 422
        error = response.json()["error"]
        assert error["kind"] == "invalid_argument"
        assert "tax_registration_number" in error["field_errors"]

    def test_generate_with_sequential_out_of_range(self, client):
        response = client.post(f"{API}/access-keys", json={**self.payload, "secuencial": 0})
        assert response.status_code == 422
        assert "sequential" in response.json()["error"]["field_errors"]

    def test_validate_does_not_raise(self, client):
        data = client.post(f"{API}/access-keys/validate", json={"clave_acceso": "123"}).json()
        assert data["valido"] is False
        assert "49 digits" in data["mensaje"]

    def test_decode_invalid_key(self, client):
        response = client.get(f"{API}/access-keys/{'1' * 49}")
        assert response.status_code == 422
        assert response.json()["error"]["error_code"] == "ACCESS_KEY_INVALID"


class TestDocumentNumberEndpoints:
    def test_format(self, client):
        response = client.post(f"{API}/document-numbers/format", json={
            "establecimiento": 1, "punto_emision": 2, "secuencial": 123
        })
        assert response.status_code == 200
        assert response.json()["numero_documento"] == "001-002-000000123"

    def test_format_out_of_range(self, client):
        response = client.post(f"{API}/document-numbers/format", json={
            "establecimiento": 1000, "punto_emision": 2, "secuencial": 123
        })
        assert response.status_code == 422
        assert "establishment" in response.json()["error"]["field_errors"]

    def test_parse(self, client):
        data = client.get(f"{API}/document-numbers/001-002-000000123/parse").json()
        assert data == {
            "numero_documento": "001-002-000000123",
            "establecimiento": 1,
            "punto_emision": 2,
            "secuencial": 123,
        }

    def test_parse_invalid(self, client):
        response = client.get(f"{API}/document-numbers/001002000000123/parse")
        assert response.status_code == 422
        assert response.json()["error"]["error_code"] == "DOCUMENT_NUMBER_INVALID"


class TestRegistryEndpoints:
    def test_create_and_get_tenant(self, client):
        response = client.post(f"{API}/tenants", json={
            "ruc": PRIVATE_COMPANY_RUC, "razon_social": "Comercial Andina S.A."
        })
        assert response.status_code == 201
        tenant = response.json()
        assert tenant["ruc"] == PRIVATE_COMPANY_RUC
        assert tenant["ambiente"] == "1"
        assert tenant["regimen"] == "sociedad_privada"

        fetched = client.get(f"{API}/tenants/{tenant['id']}")
        assert fetched.status_code == 200
        assert fetched.json()["id"] == tenant["id"]

    def test_invalid_ruc(self, client):
        response = client.post(f"{API}/tenants", json={"ruc": "1790011675001", "razon_social": "X"})
        assert response.status_code == 422
        error = response.json()["error"]
        assert error["kind"] == "invalid_check_digit"
        assert error["field_errors"] == {"ruc": "Invalid RUC check digit"}

    def test_duplicate_ruc(self, client, issuer):
        response = client.post(f"{API}/tenants", json={"ruc": PRIVATE_COMPANY_RUC, "razon_social": "Otra"})
        assert response.status_code == 409

    def test_unknown_tenant(self, client):
        response = client.get(f"{API}/tenants/{uuid.uuid4()}")
        assert response.status_code == 404
        assert response.json()["error"]["error_code"] == "TENANT_NOT_FOUND"

    @pytest.mark.parametrize("codigo", ["000", "1", "1000", "0a1"])
    def test_invalid_establishment_code(self, client, issuer, codigo):
        tenant_id = issuer["tenant"]["id"]
        response = client.post(f"{API}/tenants/{tenant_id}/establishments", json={
            "codigo": codigo, "nombre": "Sucursal"
        })
        assert response.status_code == 422

    def test_duplicate_establishment_code(self, client, issuer):
        tenant_id = issuer["tenant"]["id"]
        response = client.post(f"{API}/tenants/{tenant_id}/establishments", json={
            "codigo": "001", "nombre": "Otra"
        })
        assert response.status_code == 409

    def test_emission_point_starts_counters_at_one(self, issuer):
        assert issuer["emission_point"]["secuencias"] == {"01": 1, "04": 1, "05": 1, "07": 1}

    def test_list_emission_points(self, client, issuer):
        tenant_id = issuer["tenant"]["id"]
        establishment_id = issuer["establishment"]["id"]
        response = client.get(f"{API}/tenants/{tenant_id}/establishments/{establishment_id}/emission-points")
        assert response.status_code == 200
        assert [ep["codigo"] for ep in response.json()] == ["002"]

    def test_sequences_and_reservation(self, client, issuer):
        tenant_id = issuer["tenant"]["id"]
        ep_id = issuer["emission_point"]["id"]
        base = f"{API}/tenants/{tenant_id}/emission-points/{ep_id}/sequences"

        reserved = client.post(f"{base}/01/reserve")
        assert reserved.status_code == 201
        assert reserved.json() == {"tipo_documento": "01", "secuencial": 1, "numero_documento": "001-002-000000001"}

        assert client.get(f"{base}/01").json()["siguiente_secuencial"] == 2
        sequences = {s["tipo_documento"]: s["siguiente_secuencial"] for s in client.get(base).json()}
        assert sequences == {"01": 2, "04": 1, "05": 1, "07": 1}

    def test_sequence_of_unsupported_type(self, client, issuer):
        tenant_id = issuer["tenant"]["id"]
        ep_id = issuer["emission_point"]["id"]
        response = client.get(f"{API}/tenants/{tenant_id}/emission-points/{ep_id}/sequences/06")
        assert response.status_code == 422
        assert response.json()["error"]["error_code"] == "UNSUPPORTED_DOCUMENT_TYPE"

    def test_sequences_of_another_tenant(self, client, issuer):
        ep_id = issuer["emission_point"]["id"]
        response = client.get(f"{API}/tenants/{uuid.uuid4()}/emission-points/{ep_id}/sequences")
        assert response.status_code == 404


class TestDocumentIdentityEndpoints:
    def _assign(self, client, issuer, tipo="01"):
        tenant_id = issuer["tenant"]["id"]
        return client.post(f"{API}/tenants/{tenant_id}/documents/identity", json={
            "punto_emision_id": issuer["emission_point"]["id"],
            "tipo_documento": tipo,
            "fecha_emision": "2024-12-15",
        })

    def test_assign_identity(self, client, issuer):
        response = self._assign(client, issuer)
        assert response.status_code == 201
        document = response.json()
        assert document["numero_documento"] == "001-002-000000001"
        assert document["clave_acceso"].startswith("1512202401" + PRIVATE_COMPANY_RUC)
        assert self._assign(client, issuer).json()["numero_documento"] == "001-002-000000002"

    def test_assign_unsupported_type(self, client, issuer):
        response = self._assign(client, issuer, tipo="06")
        assert response.status_code == 422

    def test_get_and_verify_stored_document(self, client, issuer):
        document = self._assign(client, issuer).json()
        tenant_id = issuer["tenant"]["id"]

        fetched = client.get(f"{API}/tenants/{tenant_id}/documents/{document['id']}")
        assert fetched.status_code == 200
        assert fetched.json()["clave_acceso"] == document["clave_acceso"]

        verified = client.get(f"{API}/tenants/{tenant_id}/documents/{document['id']}/verify")
        assert verified.status_code == 200
        assert verified.json()["valido"] is True

    def test_verify_identity(self, client, issuer):
        document = self._assign(client, issuer).json()
        response = client.post(f"{API}/documents/identity/verify", json={
            "numero_documento": document["numero_documento"],
            "clave_acceso": document["clave_acceso"],
        })
        assert response.status_code == 200
        assert response.json()["componentes"]["secuencial"] == "000000001"

    def test_verify_mismatch_is_integrity_error(self, client, issuer):
        document = self._assign(client, issuer).json()
        response = client.post(f"{API}/documents/identity/verify", json={
            "numero_documento": "001-002-000000005",
            "clave_acceso": document["clave_acceso"],
        })
        assert response.status_code == 409
        error = response.json()["error"]
        assert error["error_code"] == "DOCUMENT_IDENTITY_CORRUPT"
        assert error["severity"] == "critical"

    def test_void(self, client, issuer):
        document = self._assign(client, issuer).json()
        tenant_id = issuer["tenant"]["id"]

        response = client.post(f"{API}/tenants/{tenant_id}/documents/{document['id']}/void")
        assert response.status_code == 200
        voided = response.json()
        assert voided["anulado"] is True
        assert voided["numero_documento"] == document["numero_documento"]
        assert voided["clave_acceso"] == document["clave_acceso"]

        again = client.post(f"{API}/tenants/{tenant_id}/documents/{document['id']}/void")
        assert again.status_code == 422

        assert self._assign(client, issuer).json()["numero_documento"] == "001-002-000000002"
