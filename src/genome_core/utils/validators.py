"""Identifier and allele validation utilities."""

import re

RSID_PATTERN = re.compile(r"^rs\d+$", re.IGNORECASE)

INTERNAL_ID_PATTERN = re.compile(r"^i\d+$", re.IGNORECASE)

VALID_ALLELES = frozenset({"A", "C", "G", "T", "D", "I", "-"})

NO_CALL = "--"

NO_CALL_TOKENS = frozenset({"--", "0", "00", "."})


def is_valid_rsid(value: str | None, allow_internal: bool = False) -> bool:
    """Check whether a value is a dbSNP rsID.

    Args:
        value: Candidate identifier
        allow_internal: Also accept 23andMe internal ids (i123456)

    Returns:
        True if the identifier is well formed
    """
    if not value:
        return False
    value = value.strip()
    if RSID_PATTERN.match(value):
        return True
    return allow_internal and bool(INTERNAL_ID_PATTERN.match(value))


def normalize_rsid(value: str | None) -> str | None:
    """Normalize an rsID for keyed lookup.

    Strips whitespace and lower-cases so that "RS123" and "rs123" share a key.
    Empty values and the VCF missing marker "." normalize to None.
    """
    if value is None:
        return None
    value = value.strip()
    if not value or value == ".":
        return None
    return value.lower()


def is_no_call(genotype: str) -> bool:
    """Check if a genotype token denotes a no-call."""
    return genotype.strip() in NO_CALL_TOKENS


def validate_alleles(alleles: str) -> bool:
    """Check that every character of a flat-file genotype is a known allele."""
    return bool(alleles) and all(allele in VALID_ALLELES for allele in alleles.upper())
