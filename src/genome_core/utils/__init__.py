"""Shared utility modules."""

from .validators import (
    NO_CALL,
    is_no_call,
    is_valid_rsid,
    normalize_rsid,
    validate_alleles,
)
from .variant_matching import (
    make_position_key,
    normalize_chromosome,
)

__all__ = [
    "NO_CALL",
    "is_no_call",
    "is_valid_rsid",
    "make_position_key",
    "normalize_chromosome",
    "normalize_rsid",
    "validate_alleles",
]
