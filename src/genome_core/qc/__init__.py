"""Genome-level quality control metrics."""

from .build import BuildDetection, BuildDetector, GenomeBuild, detect_build
from .genome_stats import (
    GenomeStats,
    GenomeStatsCollector,
    compute_genome_stats,
    compute_heterozygosity_rate,
    compute_no_call_rate,
)

__all__ = [
    "BuildDetection",
    "BuildDetector",
    "GenomeBuild",
    "GenomeStats",
    "GenomeStatsCollector",
    "compute_genome_stats",
    "compute_heterozygosity_rate",
    "compute_no_call_rate",
    "detect_build",
]
