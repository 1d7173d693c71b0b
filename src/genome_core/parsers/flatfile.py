"""23andMe / AncestryDNA raw data parser.

Both vendors ship whitespace-delimited text with ``#`` provenance comments:

    # rsid  chromosome  position  genotype          (23andMe v3-v5)
    rs4477212   1   82154   AA

    rsid  chromosome  position  allele1  allele2    (AncestryDNA)
    rs4477212   1   82154   A   A

No-calls ("--", "0", "00", or a "0" allele) are kept as explicit no-call
variants so downstream counts stay accurate.
"""

from ..models import Variant
from ..utils.validators import NO_CALL, is_no_call, is_valid_rsid, normalize_rsid, validate_alleles
from ..utils.variant_matching import normalize_chromosome


def is_column_header(fields: list[str]) -> bool:
    """Check for the uncommented ``rsid chromosome position ...`` header row."""
    return bool(fields) and fields[0].lower() == "rsid"


def parse_genotype(fields: list[str]) -> str:
    """Build the genotype from a 4-column or 5-column row.

    Raises:
        ValueError: If the alleles are not valid array calls
    """
    if len(fields) == 4:
        raw = fields[3].strip()
        if is_no_call(raw):
            return NO_CALL
        alleles = raw.upper()
    else:
        allele1, allele2 = fields[3].strip(), fields[4].strip()
        if is_no_call(allele1) or is_no_call(allele2):
            return NO_CALL
        alleles = (allele1 + allele2).upper()

    if len(alleles) not in (1, 2) or not validate_alleles(alleles):
        raise ValueError("invalid genotype")

    return alleles


def parse_flat_line(fields: list[str]) -> Variant:
    """Parse one whitespace-split data row into a Variant.

    Raises:
        ValueError: For any per-line data problem; the caller skips the line
    """
    if len(fields) not in (4, 5):
        raise ValueError(f"expected 4 or 5 columns, got {len(fields)}")

    rsid, chrom, pos = fields[0], fields[1], fields[2]

    if not is_valid_rsid(rsid, allow_internal=True):
        raise ValueError(f"invalid rsid '{rsid}'")

    chromosome = normalize_chromosome(chrom)
    if chromosome is None:
        raise ValueError(f"unsupported chromosome '{chrom}'")

    try:
        position = int(pos)
    except ValueError as e:
        raise ValueError(f"invalid position '{pos}'") from e

    return Variant(
        rsid=normalize_rsid(rsid),
        chromosome=chromosome,
        position=position,
        genotype=parse_genotype(fields),
    )
