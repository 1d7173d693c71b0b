"""Streaming genome file parser.

Turns a detected genome file into a lazy sequence of Variant records with
O(line) memory. Iterating the parser again re-opens the file and yields the
same sequence; abandoning an iteration early closes the file.
"""

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

from cyvcf2 import VCF

from ..exceptions import GenomeParseError
from ..format_detection import VCF_FILEFORMAT_PREFIX, DetectedFormat, GenomeFormat, detect_format
from ..io_utils import smart_open
from ..models import Variant
from .flatfile import is_column_header, parse_flat_line
from .vcf import VCFRecordParser

logger = logging.getLogger(__name__)

MAX_CONSECUTIVE_RECORD_ERRORS = 1000


@dataclass
class ParseStats:
    """Counters for one pass over a genome file."""

    lines_read: int = 0
    header_lines: int = 0
    data_lines: int = 0
    variants: int = 0
    no_calls: int = 0
    skipped_lines: int = 0


class GenomeParser:
    """Lazy, restartable parser for VCF and 23andMe-style genome files.

    Example:
        parser = GenomeParser(Path("genome.txt"))
        for variant in parser:
            ...
        print(parser.stats.skipped_lines)
    """

    def __init__(
        self,
        path: Path | str,
        detected: DetectedFormat | None = None,
        samples: list[str] | None = None,
    ):
        self.path = Path(path)
        self.detected = detected or detect_format(self.path)
        self.samples = samples
        self.stats = ParseStats()

    @property
    def format(self) -> GenomeFormat:
        return self.detected.format

    def __iter__(self) -> Iterator[Variant]:
        self.stats = ParseStats()
        if self.format is GenomeFormat.VCF:
            return self._decoded(self._iter_vcf())
        return self._decoded(self._iter_flat())

    def _decoded(self, variants: Iterator[Variant]) -> Iterator[Variant]:
        try:
            yield from variants
        except UnicodeDecodeError as e:
            raise GenomeParseError(
                self.stats.lines_read + 1, f"undecodable text ({e.reason})", self.path
            ) from e

    def _skip(self, line_num: int, reason: Exception) -> None:
        self.stats.skipped_lines += 1
        logger.debug("Skipping %s line %d: %s", self.path.name, line_num, reason)

    def _emit(self, variant: Variant) -> Variant:
        self.stats.variants += 1
        if variant.is_no_call:
            self.stats.no_calls += 1
        return variant

    def _scan_vcf_header(self) -> int:
        """Check the header layout and return the number of header lines.

        htslib reports header problems without line numbers, so the header
        is walked once here to give structural errors a location.
        """
        header_lines = 0
        with smart_open(self.path) as f:
            for line_num, raw in enumerate(f, 1):
                line = raw.rstrip("\r\n")
                if line_num == 1 and not line.startswith(VCF_FILEFORMAT_PREFIX):
                    raise GenomeParseError(
                        1, "first line must be a ##fileformat=VCF declaration", self.path
                    )
                if line.startswith("##"):
                    header_lines += 1
                    continue
                if line.startswith("#"):
                    return header_lines + 1
                if line.strip():
                    raise GenomeParseError(
                        line_num, "data line found before #CHROM header line", self.path
                    )
                header_lines += 1

        raise GenomeParseError(header_lines, "missing #CHROM header line", self.path)

    def _iter_vcf(self) -> Iterator[Variant]:
        stats = self.stats
        header_lines = self._scan_vcf_header()
        stats.header_lines = stats.lines_read = header_lines

        try:
            vcf = VCF(str(self.path))
        except Exception as e:
            raise GenomeParseError(header_lines, f"invalid VCF header ({e})", self.path) from e

        try:
            if not vcf.samples:
                raise GenomeParseError(header_lines, "VCF header has no sample columns", self.path)
            try:
                record_parser = VCFRecordParser(vcf.samples, self.samples)
            except ValueError as e:
                raise GenomeParseError(header_lines, str(e), self.path) from e

            records = iter(vcf)
            line_num = header_lines
            consecutive_errors = 0
            while True:
                try:
                    variant = next(records)
                except StopIteration:
                    break
                except Exception as e:
                    # htslib rejected the record; the reader has moved past it
                    line_num += 1
                    stats.lines_read += 1
                    stats.data_lines += 1
                    consecutive_errors += 1
                    if consecutive_errors > MAX_CONSECUTIVE_RECORD_ERRORS:
                        raise GenomeParseError(
                            line_num, "too many consecutive unreadable records", self.path
                        ) from e
                    self._skip(line_num, e)
                    continue

                line_num += 1
                stats.lines_read += 1
                stats.data_lines += 1
                consecutive_errors = 0
                try:
                    variants = record_parser.parse_variant(variant)
                except ValueError as e:
                    self._skip(line_num, e)
                    continue

                for parsed in variants:
                    yield self._emit(parsed)
        finally:
            vcf.close()

        self._log_summary()

    def _iter_flat(self) -> Iterator[Variant]:
        stats = self.stats

        with smart_open(self.path) as f:
            for line_num, raw in enumerate(f, 1):
                stats.lines_read += 1
                line = raw.strip()
                if not line:
                    continue

                if line.startswith("#"):
                    stats.header_lines += 1
                    continue

                fields = line.split()
                if is_column_header(fields):
                    stats.header_lines += 1
                    continue

                stats.data_lines += 1
                try:
                    variant = parse_flat_line(fields)
                except ValueError as e:
                    self._skip(line_num, e)
                    continue

                yield self._emit(variant)

        self._log_summary()

    def _log_summary(self) -> None:
        logger.info(
            "Parsed %d variants from %s (%s, %d no-calls, %d lines skipped)",
            self.stats.variants,
            self.path.name,
            self.detected.tag,
            self.stats.no_calls,
            self.stats.skipped_lines,
        )


def parse_genome(
    path: Path | str,
    detected: DetectedFormat | None = None,
    samples: list[str] | None = None,
) -> GenomeParser:
    """Create a parser for a genome file, detecting its format if needed."""
    return GenomeParser(path, detected=detected, samples=samples)
