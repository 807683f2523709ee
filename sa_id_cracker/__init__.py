"""
SA ID Password Cracker

Recovers document passwords that are South African identity numbers with
some digits unknown, by trying every valid identity number that fits.
"""

from sa_id_cracker.core.checksum import compute_checksum, is_valid_identity_number
from sa_id_cracker.core.pattern import IdentityPattern, GenderType, parse_pattern
from sa_id_cracker.core.generator import CandidateGenerator, generate_candidates
from sa_id_cracker.core.cracker import BruteForceSearch, DocumentCracker, SearchResult

__version__ = "0.1.0"
