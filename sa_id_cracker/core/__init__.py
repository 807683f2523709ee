"""
Core functionality for the SA ID password cracker.
"""

from .checksum import compute_checksum, is_valid_identity_number
from .pattern import (
    IdentityPattern,
    GenderType,
    CitizenshipType,
    parse_pattern,
    resolve_year,
)
from .generator import CandidateGenerator, generate_candidates
from .cracker import BruteForceSearch, DocumentCracker, SearchResult
from .worker import (
    worker_process,
    DocumentPasswordTester,
    PdfPasswordTester,
    StriataPasswordTester,
)
