"""
Tests for cedula, RUC and buyer identification validation
"""
import random

import pytest

from app.schemas.enums import ErrorKind, IdentificationType, TaxpayerRegime
from app.utils.error_responses import UnsupportedRegimeError, ValidationError
from app.utils.validators import (
    CONSUMIDOR_FINAL_ID,
    IdentificationValidator,
    NationalId,
    NationalIdValidator,
    TaxRegistrationNumber,
    TaxRegistrationValidator,
)


def make_cedula(rng: random.Random) -> str:
    """Random valid cedula built from the published rules"""
    province = rng.randint(1, 24)
    third = rng.randint(0, 5)
    rest = "".join(str(rng.randint(0, 9)) for _ in range(6))
    first_nine = f"{province:02d}{third}{rest}"
    return f"{first_nine}{NationalIdValidator.check_digit(first_nine)}"


class TestNationalIdValidator:
    @pytest.mark.parametrize("cedula", ["1234567897", "1710034065"])
    def test_valid_cedulas(self, cedula):
        assert NationalIdValidator.is_valid(cedula)
        assert NationalIdValidator.error_for(cedula) is None
        assert NationalIdValidator.message_for(cedula) is None

    @pytest.mark.parametrize("value, kind", [
        (None, ErrorKind.REQUIRED),
        ("", ErrorKind.REQUIRED),
        ("   ", ErrorKind.REQUIRED),
        ("12345", ErrorKind.WRONG_LENGTH),
        ("12345678901", ErrorKind.WRONG_LENGTH),
        ("12345678a7", ErrorKind.NON_NUMERIC),
        ("0012345678", ErrorKind.INVALID_PROVINCE),
        ("2534567890", ErrorKind.INVALID_PROVINCE),
        ("1264567890", ErrorKind.INVALID_THIRD_DIGIT),
        ("1234567890", ErrorKind.INVALID_CHECK_DIGIT),
    ])
    def test_error_precedence(self, value, kind):
        assert NationalIdValidator.error_for(value) == kind
        assert not NationalIdValidator.is_valid(value)

    def test_wrong_length_wins_over_non_numeric(self):
        assert NationalIdValidator.error_for("abc") == ErrorKind.WRONG_LENGTH

    def test_messages_map_from_error_kind(self):
        assert NationalIdValidator.message_for("1234567890") == "Invalid cedula check digit"
        assert NationalIdValidator.message_for("") == "Cedula is required"

    def test_generated_cedulas_are_valid_and_single_digit_changes_detected(self):
        rng = random.Random(42)
        for _ in range(200):
            cedula = make_cedula(rng)
            assert NationalIdValidator.is_valid(cedula)
            wrong = (int(cedula[9]) + rng.randint(1, 9)) % 10
            assert NationalIdValidator.error_for(cedula[:9] + str(wrong)) == ErrorKind.INVALID_CHECK_DIGIT

    def test_value_object(self):
        cedula = NationalId("1234567897")
        assert cedula.province_code == 12
        assert str(cedula) == "1234567897"
        with pytest.raises(ValidationError) as exc_info:
            NationalId("1234567890")
        assert exc_info.value.kind == ErrorKind.INVALID_CHECK_DIGIT


class TestTaxRegistrationValidator:
    @pytest.mark.parametrize("ruc, regime", [
        ("1234567897001", TaxpayerRegime.PERSONA_NATURAL),
        ("1760011611001", TaxpayerRegime.SECTOR_PUBLICO),
        ("1790011674001", TaxpayerRegime.SOCIEDAD_PRIVADA),
    ])
    def test_reference_rucs(self, ruc, regime):
        assert TaxRegistrationValidator.is_valid(ruc)
        assert TaxRegistrationValidator.regime_for(ruc) == regime

    @pytest.mark.parametrize("value, kind", [
        (None, ErrorKind.REQUIRED),
        ("", ErrorKind.REQUIRED),
        ("123456789", ErrorKind.WRONG_LENGTH),
        ("123456789700a", ErrorKind.NON_NUMERIC),
        # natural person: suffix must be 001
        ("1234567897002", ErrorKind.INVALID_CHECK_DIGIT),
        # natural person: embedded cedula check digit
        ("1234567890001", ErrorKind.INVALID_CHECK_DIGIT),
        # public sector check digit at position 8
        ("1760011621001", ErrorKind.INVALID_CHECK_DIGIT),
        # private company check digit at position 9
        ("1790011675001", ErrorKind.INVALID_CHECK_DIGIT),
        # province out of range
        ("2590011674001", ErrorKind.INVALID_CHECK_DIGIT),
        ("0060011611001", ErrorKind.INVALID_CHECK_DIGIT),
        # regime markers SRI does not assign
        ("1774567897001", ErrorKind.INVALID_CHECK_DIGIT),
        ("1784567897001", ErrorKind.INVALID_CHECK_DIGIT),
    ])
    def test_error_for(self, value, kind):
        assert TaxRegistrationValidator.error_for(value) == kind

    def test_public_sector_ignores_trailing_positions(self):
        assert TaxRegistrationValidator.is_valid("1760011611999")

    def test_private_company_ignores_suffix(self):
        assert TaxRegistrationValidator.is_valid("1790011674002")

    @pytest.mark.parametrize("ruc", ["1774567897001", "1784567897001"])
    def test_regime_for_unknown_marker_raises(self, ruc):
        with pytest.raises(UnsupportedRegimeError) as exc_info:
            TaxRegistrationValidator.regime_for(ruc)
        assert exc_info.value.kind == ErrorKind.UNSUPPORTED

    def test_regime_for_malformed_raises(self):
        with pytest.raises(ValidationError) as exc_info:
            TaxRegistrationValidator.regime_for("123")
        assert exc_info.value.kind == ErrorKind.WRONG_LENGTH

    def test_natural_person_ruc_from_any_valid_cedula(self):
        rng = random.Random(7)
        for _ in range(100):
            assert TaxRegistrationValidator.is_valid(make_cedula(rng) + "001")

    def test_every_single_digit_change_is_rejected(self):
        ruc = "1234567897001"
        for position in range(len(ruc)):
            for digit in "0123456789":
                if digit == ruc[position]:
                    continue
                mutated = ruc[:position] + digit + ruc[position + 1:]
                assert not TaxRegistrationValidator.is_valid(mutated), mutated

    def test_value_object_fields(self):
        ruc = TaxRegistrationNumber("1790011674001")
        assert ruc.base_id == "1790011674"
        assert ruc.regime_marker == "9"
        assert ruc.establishment_suffix == "001"
        assert ruc.regime == TaxpayerRegime.SOCIEDAD_PRIVADA
        with pytest.raises(ValidationError):
            TaxRegistrationNumber("1790011675001")


class TestIdentificationValidator:
    @pytest.mark.parametrize("numero, tipo", [
        (CONSUMIDOR_FINAL_ID, IdentificationType.CONSUMIDOR_FINAL),
        ("1790011674001", IdentificationType.RUC),
        ("1234567897", IdentificationType.CEDULA),
        ("AB123456", IdentificationType.PASAPORTE),
        ("12345", IdentificationType.PASAPORTE),
        ("", None),
        (None, None),
    ])
    def test_detect_identification_type(self, numero, tipo):
        assert IdentificationValidator.detect_identification_type(numero) == tipo

    @pytest.mark.parametrize("tipo, numero, valid", [
        (IdentificationType.RUC, "1790011674001", True),
        (IdentificationType.RUC, "1790011675001", False),
        (IdentificationType.CEDULA, "1234567897", True),
        (IdentificationType.CEDULA, "1234567890", False),
        (IdentificationType.CONSUMIDOR_FINAL, "9999999999999", True),
        (IdentificationType.CONSUMIDOR_FINAL, "9999999999998", False),
        (IdentificationType.PASAPORTE, "AB123456", True),
        (IdentificationType.PASAPORTE, "AB-123", False),
        (IdentificationType.IDENTIFICACION_EXTERIOR, "X" * 20, True),
        (IdentificationType.IDENTIFICACION_EXTERIOR, "X" * 21, False),
    ])
    def test_validate_identification(self, tipo, numero, valid):
        is_valid, message = IdentificationValidator.validate_identification(tipo, numero)
        assert is_valid is valid
        assert (message == "") is valid

    def test_long_foreign_ids_report_wrong_length(self):
        assert IdentificationValidator.error_for(IdentificationType.PASAPORTE, "A" * 21) == ErrorKind.WRONG_LENGTH
        assert IdentificationValidator.error_for(IdentificationType.PASAPORTE, "A" * 20) is None

    def test_required_for_free_form_types(self):
        assert IdentificationValidator.error_for(IdentificationType.PASAPORTE, "") == ErrorKind.REQUIRED

    def test_unknown_type(self):
        is_valid, message = IdentificationValidator.validate_identification("99", "123")
        assert not is_valid
        assert "Unknown identification type" in message
