"""VCF record decoding on top of cyvcf2.

cyvcf2 (htslib) owns the VCF text format. This module only turns its
variant objects into Variant records: CHROM, POS, ID, REF, ALT and the
per-sample GT calls are interpreted, everything else is ignored.
"""

from collections.abc import Sequence

from ..models import Variant
from ..utils.validators import NO_CALL, RSID_PATTERN, normalize_rsid
from ..utils.variant_matching import normalize_chromosome

# cyvcf2 genotype arrays: -1 is a missing allele, lower values pad mixed ploidy
MISSING_ALLELE = -1


def decode_genotype(gt_data: Sequence, ref: str, alts: list[str]) -> str:
    """Decode one sample's cyvcf2 genotype against the REF/ALT alleles.

    ``gt_data`` is an entry of ``variant.genotypes``: allele indices followed
    by the phased flag, e.g. ``[0, 1, False]``. With REF=A, ALT=G that gives
    "AG". Any missing allele gives the no-call token. Haploid calls give a
    single allele; indel alleles are joined with "/" so the allele
    boundaries survive.

    Raises:
        ValueError: If an allele index is out of range
    """
    indices = [index for index in gt_data[:-1] if index >= MISSING_ALLELE]
    if not indices or MISSING_ALLELE in indices:
        return NO_CALL

    table = [ref, *alts]
    called = []
    for index in indices:
        if index >= len(table):
            raise ValueError(f"GT allele index {index} out of range for {len(alts)} ALT allele(s)")
        called.append(table[index].upper())

    if any(len(allele) != 1 for allele in called):
        return "/".join(called)
    return "".join(called)


def extract_rsid(id_column: str | None) -> str | None:
    """Return the first dbSNP identifier from a (possibly ``;``-separated) ID column."""
    if not id_column:
        return None
    for token in id_column.split(";"):
        token = token.strip()
        if RSID_PATTERN.match(token):
            return normalize_rsid(token)
    return None


class VCFRecordParser:
    """Parser for cyvcf2 variants, one Variant per selected sample."""

    def __init__(self, vcf_samples: list[str], samples: list[str] | None = None):
        self.vcf_samples = list(vcf_samples)
        if samples:
            unknown = [s for s in samples if s not in self.vcf_samples]
            if unknown:
                raise ValueError(f"Samples not present in VCF header: {', '.join(unknown)}")
            self.sample_indices = [(name, self.vcf_samples.index(name)) for name in samples]
        else:
            self.sample_indices = [(name, idx) for idx, name in enumerate(self.vcf_samples)]

    def parse_variant(self, variant) -> list[Variant]:
        """Parse a cyvcf2 variant into Variant records.

        Raises:
            ValueError: For any per-record data problem; the caller skips the record
        """
        chromosome = normalize_chromosome(variant.CHROM)
        if chromosome is None:
            raise ValueError(f"unsupported chromosome '{variant.CHROM}'")

        ref = variant.REF
        if not ref or ref == ".":
            raise ValueError("missing REF allele")

        if "GT" not in (variant.FORMAT or []):
            raise ValueError("FORMAT has no GT key")

        alts = [alt for alt in variant.ALT if alt and alt != "."]
        rsid = extract_rsid(variant.ID)
        gt_array = variant.genotypes

        return [
            Variant(
                rsid=rsid,
                chromosome=chromosome,
                position=variant.POS,
                genotype=decode_genotype(gt_array[idx], ref, alts),
                sample=name,
            )
            for name, idx in self.sample_indices
        ]
