"""
Access key (clave de acceso) utilities for SRI electronic documents.
Provides functions for generating, parsing and validating the 49-digit key.
"""
import random
import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import NamedTuple, Optional, Union

from app.schemas.enums import DocumentType, EmissionType, SriEnvironment
from app.utils.checksums import compute_mod11, to_digits, weight_cyclic_right_to_left
from app.utils.error_responses import AccessKeyError, InvalidArgumentError

ACCESS_KEY_LENGTH = 49
MAX_SEQUENTIAL = 999_999_999
NUMERIC_CODE_MIN = 10_000_000
NUMERIC_CODE_MAX = 99_999_999

_system_random = random.SystemRandom()


class AccessKeyComponents(NamedTuple):
    """Fields embedded in an access key, in layout order"""
    issue_date: date
    document_type: str
    ruc: str
    environment: str
    establishment: str
    emission_point: str
    sequential: str
    numeric_code: str
    emission_type: str
    check_digit: str


def _access_key_error(value: Optional[str]) -> Optional[str]:
    if value is None or not value.strip():
        return "Access key is required"
    if len(value) != ACCESS_KEY_LENGTH:
        return f"Access key must be {ACCESS_KEY_LENGTH} digits"
    if not re.fullmatch(r"[0-9]+", value):
        return "Access key must contain only digits"
    if compute_access_key_check_digit(value[:48]) != int(value[48]):
        return "Invalid access key check digit"
    return None


@dataclass(frozen=True)
class AccessKey:
    """Immutable 49-digit access key; equal when the digit strings are equal."""
    value: str

    def __post_init__(self):
        error = _access_key_error(self.value)
        if error:
            raise AccessKeyError(error, access_key=self.value)

    def components(self) -> AccessKeyComponents:
        """Split the key into its fixed-width fields."""
        v = self.value
        try:
            issue_date = datetime.strptime(v[0:8], "%d%m%Y").date()
        except ValueError as e:
            raise AccessKeyError(f"Invalid date in access key: {e}", access_key=v)
        return AccessKeyComponents(
            issue_date=issue_date,
            document_type=v[8:10],
            ruc=v[10:23],
            environment=v[23:24],
            establishment=v[24:27],
            emission_point=v[27:30],
            sequential=v[30:39],
            numeric_code=v[39:47],
            emission_type=v[47:48],
            check_digit=v[48:49],
        )

    @property
    def document_number(self) -> str:
        """Document number (NNN-NNN-NNNNNNNNN) rebuilt from the embedded fields."""
        return f"{self.value[24:27]}-{self.value[27:30]}-{self.value[30:39]}"

    @property
    def issue_date(self) -> date:
        return self.components().issue_date

    def __str__(self) -> str:
        return self.value


def _code(value: Union[str, DocumentType, SriEnvironment, EmissionType]) -> str:
    return value.value if hasattr(value, "value") else str(value)


def _require_digits(field: str, value: Optional[str], length: int, label: str) -> str:
    if value is None or not re.fullmatch(rf"[0-9]{{{length}}}", value):
        raise InvalidArgumentError(field, f"{label} must be exactly {length} digits: {value}")
    return value


def compute_access_key_check_digit(first_48: str) -> int:
    """
    Modulo 11 check digit of the first 48 access key digits.

    Weights 2-7 are applied cyclically from the rightmost digit.
    """
    return compute_mod11(weight_cyclic_right_to_left(to_digits(first_48)))


def generate_numeric_code(random_source: Optional[random.Random] = None) -> str:
    """
    Generate the 8-digit numeric code (codigo numerico) of an access key

    Args:
        random_source: Object exposing randint(a, b); defaults to the OS entropy source

    Returns:
        8-digit numeric code
    """
    source = random_source or _system_random
    return f"{source.randint(NUMERIC_CODE_MIN, NUMERIC_CODE_MAX):08d}"


def generate_access_key(
    issue_date: Union[date, datetime],
    document_type_code: Union[str, DocumentType],
    tax_registration_number: str,
    environment: Union[str, SriEnvironment],
    establishment_code: str,
    emission_point_code: str,
    sequential: int,
    emission_type: Union[str, EmissionType] = EmissionType.NORMAL,
    random_source: Optional[random.Random] = None
) -> AccessKey:
    """
    Generate a 49-digit access key following the SRI format

    Format: Date(8 DDMMYYYY) + DocType(2) + RUC(13) + Environment(1) +
            Establishment(3) + EmissionPoint(3) + Sequential(9) +
            NumericCode(8) + EmissionType(1) + CheckDigit(1)

    Args:
        issue_date: Document issue date
        document_type_code: 2-digit document type code (DocumentType or raw code)
        tax_registration_number: Issuer RUC; format only, checksum is the caller's concern
        environment: 1 = pruebas, 2 = produccion
        establishment_code: 3-digit establishment code
        emission_point_code: 3-digit emission point code
        sequential: Document sequential (1-999999999)
        emission_type: 1 = normal, 2 = contingencia
        random_source: Source for the numeric code; pass a seeded random.Random for
            reproducible keys

    Returns:
        AccessKey value

    Raises:
        InvalidArgumentError: If a parameter has the wrong shape, naming the field
    """
    doc_type = _require_digits("document_type_code", _code(document_type_code), 2, "Document type code")
    ruc = _require_digits("tax_registration_number", tax_registration_number, 13, "RUC")
    establishment = _require_digits("establishment_code", establishment_code, 3, "Establishment code")
    emission_point = _require_digits("emission_point_code", emission_point_code, 3, "Emission point code")

    env = _code(environment)
    if env not in {e.value for e in SriEnvironment}:
        raise InvalidArgumentError("environment", f"Environment must be 1 or 2: {env}")

    emission = _code(emission_type)
    if emission not in {e.value for e in EmissionType}:
        raise InvalidArgumentError("emission_type", f"Emission type must be 1 or 2: {emission}")

    if isinstance(sequential, bool) or not isinstance(sequential, int) or not 1 <= sequential <= MAX_SEQUENTIAL:
        raise InvalidArgumentError("sequential", f"Sequential must be between 1 and {MAX_SEQUENTIAL}: {sequential}")

    if not isinstance(issue_date, date):
        raise InvalidArgumentError("issue_date", f"Issue date must be a date: {issue_date!r}")

    day = f"{issue_date.day:02d}"
    month = f"{issue_date.month:02d}"
    year = f"{issue_date.year:04d}"

    first_48 = (
        f"{day}{month}{year}{doc_type}{ruc}{env}{establishment}{emission_point}"
        f"{sequential:09d}{generate_numeric_code(random_source)}{emission}"
    )
    check_digit = compute_access_key_check_digit(first_48)

    return AccessKey(f"{first_48}{check_digit}")


def parse_access_key(value: Optional[str]) -> AccessKey:
    """
    Build an AccessKey from an existing string

    Raises:
        AccessKeyError: If the value is blank, not 49 digits, or has a wrong check digit
    """
    return AccessKey(value)


def is_valid_access_key(value: Optional[str]) -> bool:
    """Non-throwing equivalent of parse_access_key"""
    return _access_key_error(value) is None


def extract_document_type_from_key(access_key: str) -> DocumentType:
    """
    Extract the document type from an access key

    Raises:
        AccessKeyError: If the key is invalid
        ValueError: If the embedded code is not a known document type
    """
    return DocumentType(parse_access_key(access_key).components().document_type)
