"""Genome file format auto-detection.

Detects VCF vs 23andMe-style flat files from the file extension first and
falls back to content signatures when the extension is not conclusive.

VCF: ``.vcf`` / ``.vcf.gz``, a leading ``##fileformat=VCF`` line or a
``#CHROM`` header line.
23andMe / AncestryDNA: 4 or 5 whitespace-delimited columns starting with an
rsID, preceded by ``#`` provenance comments or a ``rsid`` column header.

Flat files also get a provider tag (``23andme_v3``, ``23andme_v4``,
``23andme_v5`` or ``ancestrydna``) read from the same leading lines.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from .exceptions import UnsupportedFormatError
from .io_utils import is_gzipped, read_prefix
from .utils.validators import is_valid_rsid

logger = logging.getLogger(__name__)

DEFAULT_SNIFF_BYTES = 64 * 1024

FLAT_FILE_COLUMN_COUNTS = (4, 5)

VCF_FILEFORMAT_PREFIX = "##fileformat=VCF"

# v5 exports carry a long provenance block; v4 a shorter one; v3 almost none
V5_MIN_COMMENT_LINES = 10
V4_MIN_COMMENT_LINES = 6

TWENTYTHREE_COLUMN_HEADER = re.compile(
    r"^#\s*rsid\s+chromosome\s+position\s+genotype", re.IGNORECASE
)


class GenomeFormat(Enum):
    """Supported genotype file formats."""

    VCF = "vcf"
    TWENTYTHREE_AND_ME = "23andme"  # also AncestryDNA-style flat files


@dataclass(frozen=True, slots=True)
class DetectedFormat:
    """Result of format detection.

    Attributes:
        format: Detected genotype format
        compressed: True if the file content is gzip-compressed
        path: The classified file
        provider: Export provider and version for flat files, e.g. "23andme_v5"
    """

    format: GenomeFormat
    compressed: bool
    path: Path
    provider: str | None = None

    @property
    def tag(self) -> str:
        """Format tag surfaced to callers, e.g. "vcf" or "23andme.gz"."""
        if self.compressed:
            return f"{self.format.value}.gz"
        return self.format.value


def _format_from_extension(path: Path) -> GenomeFormat | None:
    """Classify from the file name alone; None means content must decide."""
    suffixes = [s.lower() for s in path.suffixes]
    if not suffixes:
        return None

    if suffixes[-1] == ".gz":
        suffixes = suffixes[:-1]
        if not suffixes:
            return None

    if suffixes[-1] == ".vcf":
        return GenomeFormat.VCF
    return None


def _is_column_header(fields: list[str]) -> bool:
    return bool(fields) and fields[0].lower() == "rsid"


def sniff_format(lines: list[str]) -> GenomeFormat | None:
    """Classify a file from its leading lines.

    Args:
        lines: Decoded lines from the start of the file

    Returns:
        The matching GenomeFormat, or None if no signature matches
    """
    has_provenance = False

    for line in lines:
        stripped = line.strip()
        if not stripped:
            continue

        if stripped.startswith(VCF_FILEFORMAT_PREFIX) or stripped.startswith("#CHROM"):
            return GenomeFormat.VCF

        if stripped.startswith("#"):
            has_provenance = True
            continue

        fields = stripped.split()
        if len(fields) not in FLAT_FILE_COLUMN_COUNTS:
            return None

        if _is_column_header(fields):
            # AncestryDNA puts an uncommented header row before the data
            has_provenance = True
            continue

        if has_provenance and is_valid_rsid(fields[0], allow_internal=True):
            return GenomeFormat.TWENTYTHREE_AND_ME
        return None

    return None


def detect_provider(lines: list[str]) -> str:
    """Identify which service exported a flat genotype file.

    AncestryDNA names itself in its provenance block. 23andMe versions are
    told apart by their header: v5 mentions build 37 or carries a long
    comment block, v4 has a commented column header after a few comment
    lines and v3 has little more than the column header.

    Args:
        lines: Decoded lines from the start of the file

    Returns:
        "ancestrydna", "23andme_v3", "23andme_v4" or "23andme_v5"
    """
    comments: list[str] = []
    for line in lines:
        stripped = line.strip()
        if not stripped:
            continue
        if not stripped.startswith("#"):
            break
        comments.append(stripped)

    text = "\n".join(comments)
    if "ancestrydna" in text.lower():
        return "ancestrydna"

    if "23andMe" in text and "build 37" in text:
        return "23andme_v5"
    if len(comments) >= V5_MIN_COMMENT_LINES:
        return "23andme_v5"
    if any(TWENTYTHREE_COLUMN_HEADER.match(line) for line in comments):
        if len(comments) >= V4_MIN_COMMENT_LINES:
            return "23andme_v4"
        return "23andme_v3"
    return "23andme_v5"


def detect_format(path: Path | str, sniff_bytes: int = DEFAULT_SNIFF_BYTES) -> DetectedFormat:
    """Detect the genotype format of a file.

    Args:
        path: Path to the genome file (may be gzipped)
        sniff_bytes: Maximum number of characters read for content sniffing

    Returns:
        DetectedFormat with format, compression flag and path

    Raises:
        UnsupportedFormatError: If no extension or content signature matches
        GenomeIOError: If the file cannot be read

    Examples:
        >>> detect_format(Path("genome.vcf.gz")).tag
        'vcf.gz'
    """
    path = Path(path)
    compressed = is_gzipped(path)

    genome_format = _format_from_extension(path)
    if genome_format is not None:
        logger.debug("Classified %s as %s from extension", path.name, genome_format.value)
        return DetectedFormat(format=genome_format, compressed=compressed, path=path)

    try:
        lines = read_prefix(path, sniff_bytes)
    except (UnicodeDecodeError, ValueError) as e:
        raise UnsupportedFormatError(path, "file is not text") from e

    if not any(line.strip() for line in lines):
        raise UnsupportedFormatError(path, "file is empty")

    genome_format = sniff_format(lines)
    if genome_format is None:
        raise UnsupportedFormatError(
            path,
            "no VCF '#CHROM' header and no 23andMe/AncestryDNA column layout found",
        )

    provider = None
    if genome_format is GenomeFormat.TWENTYTHREE_AND_ME:
        provider = detect_provider(lines)

    logger.debug(
        "Classified %s as %s from content (provider %s)",
        path.name,
        genome_format.value,
        provider or "n/a",
    )
    return DetectedFormat(
        format=genome_format, compressed=compressed, path=path, provider=provider
    )
