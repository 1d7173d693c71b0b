"""Chromosome normalization and coordinate keys shared by parsers and the database."""

VALID_CHROMOSOMES = frozenset({str(n) for n in range(1, 23)} | {"X", "Y", "MT"})


def normalize_chromosome(chrom: str | None, add_chr: bool = False) -> str | None:
    """Normalize chromosome string for consistent matching.

    Handles "chr1" -> "1", "ChrX" -> "X", "M"/"chrM" -> "MT".

    Args:
        chrom: Chromosome string (may or may not have 'chr' prefix)
        add_chr: If True, return the value with a 'chr' prefix

    Returns:
        Normalized chromosome, or None if it is not a nuclear or
        mitochondrial chromosome
    """
    if chrom is None:
        return None

    normalized = chrom.strip()
    if normalized[:3].lower() == "chr":
        normalized = normalized[3:]
    normalized = normalized.upper()

    if normalized == "M":
        normalized = "MT"
    # "01" style zero padding shows up in some array exports
    if normalized.isdigit():
        normalized = str(int(normalized))

    if normalized not in VALID_CHROMOSOMES:
        return None

    if add_chr:
        return f"chr{normalized}"
    return normalized


def make_position_key(chromosome: str, position: int) -> tuple[str, int]:
    """Build the (chromosome, position) key used by the positional index."""
    normalized = normalize_chromosome(chromosome)
    return (normalized or chromosome.upper(), position)
