"""
Partial identity numbers.

This module provides the IdentityPattern class describing what is known
about a 13-digit South African identity number, YYMMDDSSSSCAZ:

* YYMMDD - date of birth, 20 February 1992 is 920220
* SSSS - sequence; the first digit is the gender digit, 0-4 female, 5-9 male
* C - 0 for a South African citizen, 1 for a permanent resident
* A - historically race, now unused; usually 8 or 9
* Z - check digit
"""

import string
from dataclasses import dataclass
from datetime import date
from enum import Enum, IntEnum
from typing import Optional, Tuple

from sa_id_cracker.core.checksum import ID_LENGTH
from sa_id_cracker.utils.exceptions import InvalidArgumentError
from sa_id_cracker.utils.logger import get_logger

MASK_CHAR = "*"
MIN_YEAR = 1900

logger = get_logger(__name__)

DigitPair = Tuple[Optional[int], Optional[int]]


class GenderType(Enum):
    """Gender encoded by the first sequence digit"""

    FEMALE = "female"
    MALE = "male"

    @classmethod
    def from_digit(cls, digit: int) -> "GenderType":
        return cls.FEMALE if digit < 5 else cls.MALE

    @property
    def digit_range(self) -> Tuple[int, int]:
        """Inclusive range of gender digits for this gender"""
        return (0, 4) if self is GenderType.FEMALE else (5, 9)


class CitizenshipType(IntEnum):
    CITIZEN = 0
    OTHER = 1


def resolve_year(year: Optional[int], today: Optional[date] = None) -> int:
    """Resolve a supplied year of birth to a concrete four digit year

    Two digit years are placed in the 1900s. Unknown years, and years
    outside 1900 to the current year, resolve to the current year.
    """
    current_year = (today or date.today()).year
    if year is None:
        return current_year
    if 0 <= year <= 99:
        year += MIN_YEAR
    if year < MIN_YEAR or year > current_year:
        logger.warning(f"Year of birth {year} outside {MIN_YEAR}-{current_year}, "
                       f"using {current_year}")
        return current_year
    return year


def _check_range(name: str, value: Optional[int], low: int, high: int) -> None:
    if value is None:
        return
    if isinstance(value, bool) or not isinstance(value, int) or not low <= value <= high:
        raise InvalidArgumentError(f"{name} must be between {low} and {high}, got {value!r}")


def _split_field(name: str, value: Optional[int], digits: DigitPair,
                 low: int, high: int) -> Tuple[Optional[int], DigitPair]:
    """Reconcile a two digit field given as a whole value and/or per digit"""
    for digit in digits:
        _check_range(f"{name} digit", digit, 0, 9)
    _check_range(name, value, low, high)

    if value is not None:
        whole = divmod(value, 10)
        if any(d is not None and d != w for d, w in zip(digits, whole)):
            raise InvalidArgumentError(f"{name} {value} contradicts digits {digits}")
        return value, whole

    if None not in digits:
        value = digits[0] * 10 + digits[1]
        _check_range(name, value, low, high)
    return value, tuple(digits)


@dataclass(frozen=True)
class IdentityPattern:
    """What is known about an identity number

    Every field except the year is either a known value or None for unknown.
    The year is always resolved to a concrete year at construction, see
    resolve_year(). Month and day additionally keep per-digit knowledge so a
    mask like ``9210*3`` still constrains the day to 03, 13, 23 or 33.
    """

    year_of_birth: Optional[int] = None
    month_of_birth: Optional[int] = None
    day_of_birth: Optional[int] = None
    gender_digit: Optional[int] = None
    gender_sequence_digit1: Optional[int] = None
    gender_sequence_digit2: Optional[int] = None
    gender_sequence_digit3: Optional[int] = None
    citizenship: Optional[int] = None
    obsolete_digit: Optional[int] = None
    checksum_digit: Optional[int] = None
    month_digits: DigitPair = (None, None)
    day_digits: DigitPair = (None, None)

    def __post_init__(self):
        if self.year_of_birth is not None and (isinstance(self.year_of_birth, bool)
                                               or not isinstance(self.year_of_birth, int)):
            raise InvalidArgumentError(f"year_of_birth must be an integer, got {self.year_of_birth!r}")
        object.__setattr__(self, "year_of_birth", resolve_year(self.year_of_birth))

        month, month_digits = _split_field("month_of_birth", self.month_of_birth,
                                           self.month_digits, 1, 12)
        object.__setattr__(self, "month_of_birth", month)
        object.__setattr__(self, "month_digits", month_digits)

        day, day_digits = _split_field("day_of_birth", self.day_of_birth,
                                       self.day_digits, 1, 31)
        object.__setattr__(self, "day_of_birth", day)
        object.__setattr__(self, "day_digits", day_digits)

        for name in ("gender_digit", "gender_sequence_digit1", "gender_sequence_digit2",
                     "gender_sequence_digit3", "obsolete_digit", "checksum_digit"):
            _check_range(name, getattr(self, name), 0, 9)
        _check_range("citizenship", self.citizenship, 0, 1)

    @property
    def year_digits(self) -> str:
        return f"{self.year_of_birth % 100:02d}"

    @property
    def gender(self) -> Optional[GenderType]:
        if self.gender_digit is None:
            return None
        return GenderType.from_digit(self.gender_digit)

    @property
    def citizenship_type(self) -> Optional[CitizenshipType]:
        if self.citizenship is None:
            return None
        return CitizenshipType(self.citizenship)

    @property
    def sequence_digits(self) -> Tuple[Optional[int], Optional[int], Optional[int]]:
        return (self.gender_sequence_digit1, self.gender_sequence_digit2,
                self.gender_sequence_digit3)

    def known_digits(self) -> Tuple[Optional[int], ...]:
        """The 13 positions of the pattern, None where a digit is unknown"""
        return (
            self.year_of_birth // 10 % 10, self.year_of_birth % 10,
            *self.month_digits,
            *self.day_digits,
            self.gender_digit,
            *self.sequence_digits,
            self.citizenship,
            self.obsolete_digit,
            self.checksum_digit,
        )

    def mask(self) -> str:
        """Render the pattern as a 13 character string with ``*`` for unknowns"""
        return "".join(MASK_CHAR if d is None else str(d) for d in self.known_digits())

    def matches(self, candidate: str) -> bool:
        """Check that a 13 digit candidate agrees with every known digit"""
        if len(candidate) != ID_LENGTH:
            return False
        return all(d is None or str(d) == c for d, c in zip(self.known_digits(), candidate))

    def __str__(self) -> str:
        return self.mask()


def parse_pattern(masked: str) -> IdentityPattern:
    """Parse a 13 character masked identity number

    Each position is either a digit or any other character meaning unknown,
    conventionally ``*``. The year needs both digits to be known; an unknown
    year resolves to the current year.

    Raises:
        InvalidArgumentError: If the string is not 13 characters or a known
            field is outside its legal range (month 13, day 00, citizenship 2)
    """
    if not isinstance(masked, str) or len(masked) != ID_LENGTH:
        raise InvalidArgumentError(
            f"Identity pattern must be exactly {ID_LENGTH} characters: {masked!r}"
        )

    digits = [int(c) if c in string.digits else None for c in masked]

    year = None
    if digits[0] is not None and digits[1] is not None:
        year = MIN_YEAR + digits[0] * 10 + digits[1]

    return IdentityPattern(
        year_of_birth=year,
        month_digits=(digits[2], digits[3]),
        day_digits=(digits[4], digits[5]),
        gender_digit=digits[6],
        gender_sequence_digit1=digits[7],
        gender_sequence_digit2=digits[8],
        gender_sequence_digit3=digits[9],
        citizenship=digits[10],
        obsolete_digit=digits[11],
        checksum_digit=digits[12],
    )
