"""
Candidate generator for the SA ID password cracker.

Turns an IdentityPattern into every structurally valid identity number
consistent with it, in a fixed nested order:
month, day, gender digit, sequence, citizenship, obsolete digit.
"""

import calendar
import itertools
from typing import Iterator, List, Optional, Sequence

from sa_id_cracker.core.checksum import compute_checksum, is_valid_identity_number
from sa_id_cracker.core.pattern import GenderType, IdentityPattern, DigitPair
from sa_id_cracker.utils.exceptions import InvalidArgumentError
from sa_id_cracker.utils.logger import get_logger

# Historically the race digit; real numbers are nearly always 8 or 9
DEFAULT_OBSOLETE_DIGITS = (8, 9)
ALL_DIGITS = tuple(range(10))

logger = get_logger(__name__)


def _digit_choices(digit: Optional[int]) -> Sequence[int]:
    return ALL_DIGITS if digit is None else (digit,)


def _two_digit_values(start: int, end: int, digits: DigitPair) -> List[int]:
    """Values in [start, end] whose two digit rendering agrees with the known digits"""
    tens, units = digits
    return [v for v in range(start, end + 1)
            if (tens is None or v // 10 == tens) and (units is None or v % 10 == units)]


class CandidateGenerator:
    """Enumerates valid identity numbers matching a pattern

    The generator is restartable: every iteration walks the same candidates
    in the same order.

    Args:
        pattern: What is known about the identity number
        gender: Optional hint narrowing an unknown gender digit to 0-4 or 5-9.
            Ignored when the pattern fixes the gender digit.
        obsolete_digits: Values tried for an unknown obsolete digit.
            Defaults to 8 and 9 only, a heuristic that misses rare numbers.
        legacy_sequence_range: Narrow the sequence the old additive way, where
            known second and third digits only raise the lower bound. Produces
            a superset of the default candidates.
    """

    def __init__(self, pattern: IdentityPattern, gender: Optional[GenderType] = None,
                 obsolete_digits: Sequence[int] = DEFAULT_OBSOLETE_DIGITS,
                 legacy_sequence_range: bool = False):
        if not isinstance(pattern, IdentityPattern):
            raise InvalidArgumentError(f"Expected an IdentityPattern, got {type(pattern).__name__}")
        if gender is not None and not isinstance(gender, GenderType):
            raise InvalidArgumentError(f"Expected a GenderType, got {gender!r}")

        obsolete_digits = tuple(sorted(set(int(d) for d in obsolete_digits)))
        if not obsolete_digits or any(not 0 <= d <= 9 for d in obsolete_digits):
            raise InvalidArgumentError(f"Obsolete digits must be 0-9, got {obsolete_digits}")

        self.pattern = pattern
        self.gender = gender
        self.obsolete_digits = obsolete_digits
        self.legacy_sequence_range = legacy_sequence_range

    def month_range(self) -> List[int]:
        return _two_digit_values(1, 12, self.pattern.month_digits)

    def day_range(self, month: int) -> List[int]:
        days_in_month = calendar.monthrange(self.pattern.year_of_birth, month)[1]
        return _two_digit_values(1, days_in_month, self.pattern.day_digits)

    def gender_range(self) -> Sequence[int]:
        if self.pattern.gender_digit is not None:
            return (self.pattern.gender_digit,)
        if self.gender is not None:
            start, end = self.gender.digit_range
            return range(start, end + 1)
        return ALL_DIGITS

    def sequence_range(self) -> Sequence[int]:
        """Values of the three digit sequence following the gender digit"""
        first, second, third = self.pattern.sequence_digits

        if self.legacy_sequence_range:
            start, end = 0, 999
            if first is not None:
                start = first * 100
                end = start + 99
            if second is not None:
                start += second * 10
            if third is not None:
                start += third
            return range(start, end + 1)

        return [a * 100 + b * 10 + c for a, b, c in itertools.product(
            _digit_choices(first), _digit_choices(second), _digit_choices(third))]

    def citizenship_range(self) -> Sequence[int]:
        if self.pattern.citizenship is not None:
            return (self.pattern.citizenship,)
        return (0, 1)

    def obsolete_range(self) -> Sequence[int]:
        if self.pattern.obsolete_digit is not None:
            return (self.pattern.obsolete_digit,)
        return self.obsolete_digits

    def space_size(self) -> int:
        """Number of combinations walked, before invalid candidates are dropped"""
        days = sum(len(self.day_range(m)) for m in self.month_range())
        return (days * len(self.gender_range()) * len(self.sequence_range())
                * len(self.citizenship_range()) * len(self.obsolete_range()))

    def count(self) -> int:
        """Exact number of valid candidates; walks the whole sequence"""
        return sum(1 for _ in self)

    def __iter__(self) -> Iterator[str]:
        year = self.pattern.year_digits
        checksum = self.pattern.checksum_digit
        genders = self.gender_range()
        sequences = self.sequence_range()
        citizenships = self.citizenship_range()
        obsoletes = self.obsolete_range()

        for month in self.month_range():
            for day in self.day_range(month):
                date_part = f"{year}{month:02d}{day:02d}"
                for gender, sequence, citizenship, obsolete in itertools.product(
                        genders, sequences, citizenships, obsoletes):
                    prefix = f"{date_part}{gender}{sequence:03d}{citizenship}{obsolete}"
                    check = checksum if checksum is not None else compute_checksum(prefix)
                    candidate = f"{prefix}{check}"
                    if is_valid_identity_number(candidate):
                        yield candidate

    def generate(self) -> Iterator[str]:
        """Return a fresh iterator over the candidates"""
        logger.debug(f"Generating candidates for {self.pattern.mask()} "
                     f"(gender hint: {self.gender.value if self.gender else 'none'})")
        return iter(self)


def generate_candidates(pattern: IdentityPattern,
                        gender: Optional[GenderType] = None,
                        **options) -> Iterator[str]:
    """Lazily yield every valid identity number matching ``pattern``"""
    return CandidateGenerator(pattern, gender, **options).generate()
