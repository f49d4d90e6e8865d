"""
Validators for Ecuadorian identification numbers.
Covers the cedula (national ID), the RUC (tax registration number) and the
buyer identification types accepted on SRI electronic documents.
"""
import re
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from app.schemas.enums import ErrorKind, IdentificationType, TaxpayerRegime
from app.utils.checksums import compute_mod10, compute_mod11, to_digits, weight_fixed
from app.utils.error_responses import UnsupportedRegimeError, ValidationError

CONSUMIDOR_FINAL_ID = "9999999999999"

MIN_PROVINCE = 1
MAX_PROVINCE = 24

PUBLIC_SECTOR_WEIGHTS = (3, 2, 7, 6, 5, 4, 3, 2)
PRIVATE_COMPANY_WEIGHTS = (4, 3, 2, 7, 6, 5, 4, 3, 2)
NATURAL_PERSON_SUFFIX = "001"

_ASCII_DIGITS = re.compile(r"[0-9]+")
FOREIGN_ID_MAX_LENGTH = 20
_FOREIGN_ID = re.compile(r"[A-Za-z0-9]{1,20}")


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def _is_numeric(value: str) -> bool:
    return _ASCII_DIGITS.fullmatch(value) is not None


def _province_in_range(value: str) -> bool:
    return MIN_PROVINCE <= int(value[:2]) <= MAX_PROVINCE


class NationalIdValidator:
    """Validator for the 10-digit cedula de identidad."""

    LENGTH = 10

    MESSAGES: Dict[ErrorKind, str] = {
        ErrorKind.REQUIRED: "Cedula is required",
        ErrorKind.WRONG_LENGTH: "Cedula must be 10 digits",
        ErrorKind.NON_NUMERIC: "Cedula must contain only digits",
        ErrorKind.INVALID_PROVINCE: "Invalid province code in cedula",
        ErrorKind.INVALID_THIRD_DIGIT: "Invalid third digit in cedula",
        ErrorKind.INVALID_CHECK_DIGIT: "Invalid cedula check digit",
    }

    @staticmethod
    def check_digit(first_nine: str) -> int:
        """Modulo 10 check digit for the first nine digits of a cedula."""
        return compute_mod10(to_digits(first_nine))

    @classmethod
    def error_for(cls, value: Optional[str]) -> Optional[ErrorKind]:
        """
        Return the first failing rule for a cedula, or None when valid.

        Rules are checked in a fixed order (required, length, digits, province,
        third digit, check digit); field messages depend on that precedence.
        """
        if _is_blank(value):
            return ErrorKind.REQUIRED
        if len(value) != cls.LENGTH:
            return ErrorKind.WRONG_LENGTH
        if not _is_numeric(value):
            return ErrorKind.NON_NUMERIC
        if not _province_in_range(value):
            return ErrorKind.INVALID_PROVINCE
        if int(value[2]) > 5:
            return ErrorKind.INVALID_THIRD_DIGIT
        if cls.check_digit(value[:9]) != int(value[9]):
            return ErrorKind.INVALID_CHECK_DIGIT
        return None

    @classmethod
    def is_valid(cls, value: Optional[str]) -> bool:
        return cls.error_for(value) is None

    @classmethod
    def message_for(cls, value: Optional[str]) -> Optional[str]:
        kind = cls.error_for(value)
        return cls.MESSAGES[kind] if kind else None


class TaxRegistrationValidator:
    """Validator for the 13-digit RUC (Registro Unico de Contribuyentes)."""

    LENGTH = 13

    MESSAGES: Dict[ErrorKind, str] = {
        ErrorKind.REQUIRED: "RUC is required",
        ErrorKind.WRONG_LENGTH: "RUC must be 13 digits",
        ErrorKind.NON_NUMERIC: "RUC must contain only digits",
        ErrorKind.INVALID_CHECK_DIGIT: "Invalid RUC check digit",
    }

    @staticmethod
    def _natural_person_valid(value: str) -> bool:
        return (
            NationalIdValidator.is_valid(value[:10])
            and value[10:] == NATURAL_PERSON_SUFFIX
        )

    @staticmethod
    def _public_sector_valid(value: str) -> bool:
        if not _province_in_range(value):
            return False
        weighted = weight_fixed(to_digits(value[:8]), PUBLIC_SECTOR_WEIGHTS)
        return compute_mod11(weighted) == int(value[8])

    @staticmethod
    def _private_company_valid(value: str) -> bool:
        if not _province_in_range(value):
            return False
        weighted = weight_fixed(to_digits(value[:9]), PRIVATE_COMPANY_WEIGHTS)
        return compute_mod11(weighted) == int(value[9])

    @staticmethod
    def regime_of_marker(marker: str) -> Optional[TaxpayerRegime]:
        """Map the third RUC digit to a regime; None for markers SRI does not assign."""
        if marker in "012345":
            return TaxpayerRegime.PERSONA_NATURAL
        if marker == "6":
            return TaxpayerRegime.SECTOR_PUBLICO
        if marker == "9":
            return TaxpayerRegime.SOCIEDAD_PRIVADA
        return None

    @classmethod
    def error_for(cls, value: Optional[str]) -> Optional[ErrorKind]:
        """
        Return the first failing rule for a RUC, or None when valid.

        Structural problems are reported individually; every regime-level
        failure (province, suffix, checksum, unknown regime) collapses into
        INVALID_CHECK_DIGIT.
        """
        if _is_blank(value):
            return ErrorKind.REQUIRED
        if len(value) != cls.LENGTH:
            return ErrorKind.WRONG_LENGTH
        if not _is_numeric(value):
            return ErrorKind.NON_NUMERIC

        regime = cls.regime_of_marker(value[2])
        if regime == TaxpayerRegime.PERSONA_NATURAL:
            valid = cls._natural_person_valid(value)
        elif regime == TaxpayerRegime.SECTOR_PUBLICO:
            valid = cls._public_sector_valid(value)
        elif regime == TaxpayerRegime.SOCIEDAD_PRIVADA:
            valid = cls._private_company_valid(value)
        else:
            valid = False

        return None if valid else ErrorKind.INVALID_CHECK_DIGIT

    @classmethod
    def is_valid(cls, value: Optional[str]) -> bool:
        return cls.error_for(value) is None

    @classmethod
    def message_for(cls, value: Optional[str]) -> Optional[str]:
        kind = cls.error_for(value)
        return cls.MESSAGES[kind] if kind else None

    @classmethod
    def regime_for(cls, value: str) -> TaxpayerRegime:
        """
        Classify a 13-digit RUC by its regime marker.

        Raises:
            ValidationError: If the value is not 13 digits
            UnsupportedRegimeError: If the third digit is not 0-6 or 9
        """
        kind = cls.error_for(value)
        if kind in (ErrorKind.REQUIRED, ErrorKind.WRONG_LENGTH, ErrorKind.NON_NUMERIC):
            raise ValidationError(cls.MESSAGES[kind], field="ruc", kind=kind)
        regime = cls.regime_of_marker(value[2])
        if regime is None:
            raise UnsupportedRegimeError(value[2])
        return regime


@dataclass(frozen=True)
class NationalId:
    """A validated cedula."""
    value: str

    def __post_init__(self):
        kind = NationalIdValidator.error_for(self.value)
        if kind is not None:
            raise ValidationError(NationalIdValidator.MESSAGES[kind], field="cedula", kind=kind)

    @property
    def province_code(self) -> int:
        return int(self.value[:2])

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class TaxRegistrationNumber:
    """A validated RUC split into its structural fields."""
    value: str

    def __post_init__(self):
        kind = TaxRegistrationValidator.error_for(self.value)
        if kind is not None:
            raise ValidationError(TaxRegistrationValidator.MESSAGES[kind], field="ruc", kind=kind)

    @property
    def base_id(self) -> str:
        return self.value[:10]

    @property
    def regime_marker(self) -> str:
        return self.value[2]

    @property
    def establishment_suffix(self) -> str:
        return self.value[10:]

    @property
    def regime(self) -> TaxpayerRegime:
        return TaxRegistrationValidator.regime_for(self.value)

    def __str__(self) -> str:
        return self.value


class IdentificationValidator:
    """Validator for buyer identifications by SRI identification type."""

    @staticmethod
    def validate_consumidor_final(numero: str) -> bool:
        return numero == CONSUMIDOR_FINAL_ID

    @staticmethod
    def validate_foreign(numero: str) -> bool:
        """Passports and foreign IDs are free-form alphanumerics up to 20 chars."""
        return _FOREIGN_ID.fullmatch(numero) is not None

    @staticmethod
    def detect_identification_type(numero: Optional[str]) -> Optional[IdentificationType]:
        """Guess the identification type of a raw identifier."""
        if _is_blank(numero):
            return None
        numero = numero.strip()
        if numero == CONSUMIDOR_FINAL_ID:
            return IdentificationType.CONSUMIDOR_FINAL
        if _is_numeric(numero) and len(numero) == TaxRegistrationValidator.LENGTH:
            return IdentificationType.RUC
        if _is_numeric(numero) and len(numero) == NationalIdValidator.LENGTH:
            return IdentificationType.CEDULA
        return IdentificationType.PASAPORTE

    @classmethod
    def error_for(cls, tipo: IdentificationType, numero: Optional[str]) -> Optional[ErrorKind]:
        """Return the failure reason for an identification of the given type."""
        if tipo == IdentificationType.RUC:
            return TaxRegistrationValidator.error_for(numero)
        if tipo == IdentificationType.CEDULA:
            return NationalIdValidator.error_for(numero)
        if _is_blank(numero):
            return ErrorKind.REQUIRED
        if tipo == IdentificationType.CONSUMIDOR_FINAL:
            return None if cls.validate_consumidor_final(numero) else ErrorKind.INVALID_ARGUMENT
        if tipo in (IdentificationType.PASAPORTE, IdentificationType.IDENTIFICACION_EXTERIOR):
            if len(numero) > FOREIGN_ID_MAX_LENGTH:
                return ErrorKind.WRONG_LENGTH
            return None if cls.validate_foreign(numero) else ErrorKind.INVALID_ARGUMENT
        return ErrorKind.UNSUPPORTED

    @classmethod
    def validate_identification(cls, tipo: IdentificationType, numero: Optional[str]) -> Tuple[bool, str]:
        """
        Validate identification number based on type.
        Returns (is_valid, error_message).
        """
        try:
            tipo = IdentificationType(tipo)
        except ValueError:
            return False, f"Unknown identification type: {tipo}"

        kind = cls.error_for(tipo, numero)
        if kind is None:
            return True, ""
        if tipo == IdentificationType.RUC:
            return False, TaxRegistrationValidator.MESSAGES[kind]
        if tipo == IdentificationType.CEDULA:
            return False, NationalIdValidator.MESSAGES[kind]
        if kind == ErrorKind.REQUIRED:
            return False, "Identification number is required"
        if kind == ErrorKind.WRONG_LENGTH:
            return False, f"Identification number must be at most {FOREIGN_ID_MAX_LENGTH} characters"
        if tipo == IdentificationType.CONSUMIDOR_FINAL:
            return False, f"Consumidor final must be {CONSUMIDOR_FINAL_ID}"
        return False, f"Invalid {tipo.name.lower()} format: {numero}"
