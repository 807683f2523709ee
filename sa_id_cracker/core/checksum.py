"""
Checksum and validation for South African identity numbers.

An identity number is 13 digits, YYMMDDSSSSCAZ. The last digit Z is a
Luhn-family check digit over the first twelve.
"""

import re
from datetime import date

from sa_id_cracker.utils.exceptions import InvalidArgumentError

ID_LENGTH = 13
PREFIX_LENGTH = ID_LENGTH - 1

_PREFIX_RE = re.compile(r"[0-9]{%d}" % PREFIX_LENGTH)
_ID_RE = re.compile(r"[0-9]{%d}" % ID_LENGTH)


def compute_checksum(prefix: str) -> int:
    """Calculate the check digit for the first 12 digits of an identity number

    Digits are weighted 1, 2, 1, 2, ... from the left. A product of two digits
    is collapsed to the sum of its digits, the collapsed values are summed and
    the check digit is ``total * 9 % 10``.

    Args:
        prefix: Exactly 12 ASCII digits, YYMMDDSSSSCA

    Returns:
        The check digit, 0-9

    Raises:
        InvalidArgumentError: If prefix is empty, not 12 characters or not all digits
    """
    if not prefix:
        raise InvalidArgumentError("Identity number prefix is required")
    if not isinstance(prefix, str) or not _PREFIX_RE.fullmatch(prefix):
        raise InvalidArgumentError(
            f"Identity number prefix must be exactly {PREFIX_LENGTH} digits: {prefix!r}"
        )

    total = 0
    for position, char in enumerate(prefix, start=1):
        multiplier = 2 if position % 2 == 0 else 1
        product = int(char) * multiplier
        total += product // 10 + product % 10

    return total * 9 % 10


def birth_date(identity_number: str):
    """Return the date of birth encoded in the first six digits, or None

    The century is always taken to be the 1900s.
    """
    try:
        return date(
            1900 + int(identity_number[0:2]),
            int(identity_number[2:4]),
            int(identity_number[4:6]),
        )
    except ValueError:
        return None


def is_valid_identity_number(candidate: str) -> bool:
    """Check whether a string is a structurally valid identity number

    Never raises; anything that is not 13 digits with a real date of birth
    and a matching check digit is simply invalid.
    """
    if not isinstance(candidate, str) or not _ID_RE.fullmatch(candidate):
        return False

    if birth_date(candidate) is None:
        return False

    return compute_checksum(candidate[:PREFIX_LENGTH]) == int(candidate[PREFIX_LENGTH])
