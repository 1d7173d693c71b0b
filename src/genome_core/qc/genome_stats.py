"""Genome-level QC metric computation.

Computes whole-file quality metrics over the parsed variant stream:
- Variant counts per chromosome
- No-call rate
- Heterozygosity rate among called genotypes
- Reference build (see build.py)
"""

import logging
from collections import Counter
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import TypedDict

from ..models import Variant
from ..utils.variant_matching import VALID_CHROMOSOMES
from .build import BuildDetection, BuildDetector

logger = logging.getLogger(__name__)

CHROMOSOME_ORDER = [str(n) for n in range(1, 23)] + ["X", "Y", "MT"]


class GenomeStatsDict(TypedDict):
    total_variants: int
    no_calls: int
    heterozygous: int
    no_call_rate: float
    heterozygosity_rate: float
    chromosome_counts: dict[str, int]
    build: str
    build_confidence: float
    build_markers_checked: int


def compute_no_call_rate(n_no_calls: int, n_total: int) -> float:
    """Compute the share of variants without a genotype call.

    Args:
        n_no_calls: Number of no-call variants
        n_total: Total number of variants

    Returns:
        No-call rate as float between 0 and 1
    """
    if n_total == 0:
        return 0.0
    return n_no_calls / n_total


def compute_heterozygosity_rate(n_het: int, n_called: int) -> float:
    """Compute the share of called genotypes that are heterozygous.

    Args:
        n_het: Number of heterozygous genotypes
        n_called: Number of variants with a genotype call

    Returns:
        Heterozygosity rate as float between 0 and 1
    """
    if n_called == 0:
        return 0.0
    return n_het / n_called


def sort_chromosome_counts(counts: dict[str, int]) -> dict[str, int]:
    """Order chromosome counts 1-22, X, Y, MT."""
    return {chrom: counts[chrom] for chrom in CHROMOSOME_ORDER if chrom in counts}


@dataclass(frozen=True)
class GenomeStats:
    """QC summary of one parsed genome file."""

    total_variants: int = 0
    no_calls: int = 0
    heterozygous: int = 0
    chromosome_counts: dict[str, int] = field(default_factory=dict)
    build: BuildDetection = field(default_factory=BuildDetection)

    @property
    def no_call_rate(self) -> float:
        return compute_no_call_rate(self.no_calls, self.total_variants)

    @property
    def heterozygosity_rate(self) -> float:
        return compute_heterozygosity_rate(
            self.heterozygous, self.total_variants - self.no_calls
        )

    def to_dict(self) -> GenomeStatsDict:
        return GenomeStatsDict(
            total_variants=self.total_variants,
            no_calls=self.no_calls,
            heterozygous=self.heterozygous,
            no_call_rate=self.no_call_rate,
            heterozygosity_rate=self.heterozygosity_rate,
            chromosome_counts=dict(self.chromosome_counts),
            build=self.build.build.value,
            build_confidence=self.build.confidence,
            build_markers_checked=self.build.markers_checked,
        )


class GenomeStatsCollector:
    """Accumulate QC counters while variants stream past.

    Example:
        collector = GenomeStatsCollector()
        for variant in collector.track(parser):
            ...
        stats = collector.result()
    """

    def __init__(self):
        self._total = 0
        self._no_calls = 0
        self._het = 0
        self._chromosomes: Counter[str] = Counter()
        self._build = BuildDetector()

    def observe(self, variant: Variant) -> None:
        self._total += 1
        if variant.chromosome in VALID_CHROMOSOMES:
            self._chromosomes[variant.chromosome] += 1
        if variant.is_no_call:
            self._no_calls += 1
        elif variant.is_heterozygous:
            self._het += 1
        self._build.observe(variant)

    def track(self, variants: Iterable[Variant]) -> Iterator[Variant]:
        """Pass variants through unchanged, observing each one."""
        for variant in variants:
            self.observe(variant)
            yield variant

    def result(self) -> GenomeStats:
        stats = GenomeStats(
            total_variants=self._total,
            no_calls=self._no_calls,
            heterozygous=self._het,
            chromosome_counts=sort_chromosome_counts(dict(self._chromosomes)),
            build=self._build.result(),
        )
        logger.debug(
            "QC: %d variants, no-call rate %.4f, heterozygosity %.4f, build %s",
            stats.total_variants,
            stats.no_call_rate,
            stats.heterozygosity_rate,
            stats.build.build.value,
        )
        return stats


def compute_genome_stats(variants: Iterable[Variant]) -> GenomeStats:
    """Compute QC statistics for a sequence of variants."""
    collector = GenomeStatsCollector()
    for variant in variants:
        collector.observe(variant)
    return collector.result()
