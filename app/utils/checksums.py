"""
Check digit algorithms shared by the SRI validators and the access key codec.
"""
from itertools import cycle
from typing import Iterable, List, Sequence, Tuple

ACCESS_KEY_WEIGHTS = (2, 3, 4, 5, 6, 7)


def to_digits(value: str) -> List[int]:
    """Convert an ASCII digit string into a list of ints."""
    digits = []
    for char in value:
        if char < "0" or char > "9":
            raise ValueError(f"Not an ASCII digit: {char!r}")
        digits.append(ord(char) - 48)
    return digits


def _check_digit_range(digit: int) -> None:
    if not 0 <= digit <= 9:
        raise ValueError(f"Digit out of range: {digit}")


def compute_mod10(payload_digits: Sequence[int]) -> int:
    """
    Modulo 10 check digit.

    Digits at even positions (0, 2, 4, ...) are doubled, subtracting 9 when the
    product exceeds 9; odd positions are added untouched.

    Args:
        payload_digits: Digits the check digit protects, left to right

    Returns:
        Check digit in the range 0-9

    Raises:
        ValueError: If the payload is empty or holds a non-digit value
    """
    if not payload_digits:
        raise ValueError("Modulo 10 payload cannot be empty")

    total = 0
    for position, digit in enumerate(payload_digits):
        _check_digit_range(digit)
        if position % 2 == 0:
            digit *= 2
            if digit > 9:
                digit -= 9
        total += digit

    return (10 - (total % 10)) % 10


def compute_mod11(weighted_digits: Iterable[Tuple[int, int]]) -> int:
    """
    Modulo 11 check digit over (digit, weight) pairs.

    Result is 11 - (sum % 11), except that a remainder of 0 yields 0 and a
    remainder of 1 yields 1, so the result always fits in one digit.
    """
    total = 0
    for digit, weight in weighted_digits:
        _check_digit_range(digit)
        total += digit * weight

    remainder = total % 11
    if remainder == 0:
        return 0
    if remainder == 1:
        return 1
    return 11 - remainder


def weight_fixed(digits: Sequence[int], weights: Sequence[int]) -> List[Tuple[int, int]]:
    """Pair digits with a fixed coefficient table, position by position."""
    if len(digits) != len(weights):
        raise ValueError(f"Expected {len(weights)} digits, got {len(digits)}")
    return list(zip(digits, weights))


def weight_cyclic_right_to_left(
    digits: Sequence[int],
    weights: Sequence[int] = ACCESS_KEY_WEIGHTS
) -> List[Tuple[int, int]]:
    """Pair digits with a repeating weight table applied from the rightmost digit."""
    return list(zip(reversed(digits), cycle(weights)))
