"""Genome file parsers for VCF and 23andMe/AncestryDNA raw data."""

from .flatfile import parse_flat_line, parse_genotype
from .genome_parser import GenomeParser, ParseStats, parse_genome
from .vcf import VCFRecordParser, decode_genotype, extract_rsid

__all__ = [
    "GenomeParser",
    "ParseStats",
    "VCFRecordParser",
    "decode_genotype",
    "extract_rsid",
    "parse_flat_line",
    "parse_genome",
    "parse_genotype",
]
