"""Join parsed variants against a reference database snapshot."""

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from .config import AnalysisConfig
from .database.loader import CLINVAR, GWAS, PHARMGKB
from .database.models import ClinicalRecord, ClinicalSignificance, PharmacoRecord, TraitRecord
from .database.store import DatabaseSnapshot
from .models import (
    ClinicalFinding,
    DrugResponse,
    Finding,
    TraitAssociation,
    Variant,
    VariantCategory,
)

logger = logging.getLogger(__name__)


@dataclass
class MatchCounts:
    """Variant and finding tallies for one match pass.

    Every variant lands in exactly one of analyzed, unnamed or unmatched:
    analyzed variants produced at least one finding, unnamed variants had
    no rsid and no finding, unmatched variants had an rsid and no finding.
    """

    total_variants: int = 0
    analyzed_variants: int = 0
    unnamed_variants: int = 0
    unmatched_variants: int = 0
    no_call_variants: int = 0
    clinical_count: int = 0
    drug_count: int = 0
    trait_count: int = 0


MAX_IMPACT_SCORE = 6.0

SIGNIFICANCE_IMPACT = {
    ClinicalSignificance.PATHOGENIC: 4.0,
    ClinicalSignificance.LIKELY_PATHOGENIC: 3.0,
    ClinicalSignificance.UNCERTAIN_SIGNIFICANCE: 1.0,
    ClinicalSignificance.CONFLICTING: 0.5,
}

REVIEW_STAR_IMPACT = 0.25

# PharmGKB level of evidence
EVIDENCE_IMPACT = {
    "1A": 2.0,
    "1B": 1.5,
    "2A": 1.0,
    "2B": 0.75,
    "3": 0.5,
    "4": 0.25,
}

PATHOGENIC_TIERS = frozenset(
    {ClinicalSignificance.PATHOGENIC, ClinicalSignificance.LIKELY_PATHOGENIC}
)


def clinical_impact(record: ClinicalRecord) -> float:
    """Score a clinical record 0-6 from its significance and review stars."""
    score = SIGNIFICANCE_IMPACT.get(record.significance, 0.0)
    score += record.review_stars * REVIEW_STAR_IMPACT
    return min(MAX_IMPACT_SCORE, score)


def drug_impact(record: PharmacoRecord) -> float:
    """Score a drug record 0-6 from its level of evidence."""
    level = (record.evidence_level or "").strip().upper()
    return min(MAX_IMPACT_SCORE, EVIDENCE_IMPACT.get(level, 0.0))


def categorize_clinical(record: ClinicalRecord, variant: Variant) -> VariantCategory:
    """Bucket a clinical hit.

    Pathogenic hits on a heterozygous genotype count as carrier status;
    benign hits whose condition is described as protective count as
    protective.
    """
    if record.significance in PATHOGENIC_TIERS:
        if variant.is_heterozygous:
            return VariantCategory.CARRIER
        return VariantCategory.PATHOGENIC
    if (
        record.significance is ClinicalSignificance.BENIGN
        and "protective" in record.condition.lower()
    ):
        return VariantCategory.PROTECTIVE
    return VariantCategory.NEUTRAL


def _coordinates(record: object, variant: Variant) -> tuple[str | None, int | None]:
    position = getattr(record, "position", None)
    if position is not None:
        return record.chromosome, position
    return variant.chromosome, variant.position


def clinical_finding(record: ClinicalRecord, variant: Variant) -> ClinicalFinding:
    chromosome, position = _coordinates(record, variant)
    return ClinicalFinding(
        rsid=record.rsid,
        genotype=variant.genotype,
        gene=record.gene,
        condition=record.condition,
        significance=record.significance.value,
        review_stars=record.review_stars,
        chromosome=chromosome,
        position=position,
        impact_score=clinical_impact(record),
        variant_category=categorize_clinical(record, variant).value,
    )


def drug_response(record: PharmacoRecord, variant: Variant) -> DrugResponse:
    return DrugResponse(
        rsid=record.rsid,
        genotype=variant.genotype,
        gene=record.gene,
        drug=record.drug,
        response=record.response,
        recommendation=record.recommendation,
        evidence_level=record.evidence_level,
        chromosome=variant.chromosome,
        position=variant.position,
        impact_score=drug_impact(record),
        variant_category=VariantCategory.DRUG.value,
    )


def trait_association(record: TraitRecord, variant: Variant) -> TraitAssociation:
    return TraitAssociation(
        rsid=record.rsid,
        genotype=variant.genotype,
        trait_name=record.trait,
        category=record.category,
        effect=record.effect,
        confidence=record.confidence,
        chromosome=variant.chromosome,
        position=variant.position,
        risk_allele=record.risk_allele,
    )


class Matcher:
    """Annotate variants with every clinical, drug and trait record they hit.

    The matcher holds one snapshot for its whole life, so a database reload
    mid-run does not change what a run sees.

    Example:
        matcher = Matcher(database.snapshot())
        findings = list(matcher.match(parse_genome(path)))
        print(matcher.counts.analyzed_variants)
    """

    def __init__(self, snapshot: DatabaseSnapshot, config: AnalysisConfig | None = None):
        self.snapshot = snapshot
        self.config = config or AnalysisConfig()
        self.counts = MatchCounts()

    def match(self, variants: Iterable[Variant]) -> Iterator[Finding]:
        """Lazily yield findings for each variant, in input order.

        Raises:
            DatabaseNotLoadedError: If a required table is missing; raised
                here, before any variant is consumed
        """
        self.snapshot.require(self.config.required_tables)
        self.counts = MatchCounts()
        return self._match(variants)

    def _lookup_findings(self, variant: Variant) -> list[Finding]:
        tables = self.snapshot.tables
        rsid = variant.rsid
        findings: list[Finding] = []

        if rsid is not None:
            if CLINVAR in tables:
                findings.extend(
                    clinical_finding(r, variant) for r in tables[CLINVAR].lookup(rsid)
                )
            if PHARMGKB in tables:
                findings.extend(
                    drug_response(r, variant) for r in tables[PHARMGKB].lookup(rsid)
                )
            if GWAS in tables:
                findings.extend(
                    trait_association(r, variant) for r in tables[GWAS].lookup(rsid)
                )
        elif self.config.positional_fallback and variant.chromosome is not None:
            if CLINVAR in tables:
                findings.extend(
                    clinical_finding(r, variant)
                    for r in tables[CLINVAR].lookup_position(variant.chromosome, variant.position)
                )

        return findings

    def _match(self, variants: Iterable[Variant]) -> Iterator[Finding]:
        counts = self.counts

        for variant in variants:
            counts.total_variants += 1
            if variant.is_no_call:
                counts.no_call_variants += 1

            findings: list[Finding] = []
            if not variant.is_no_call or self.config.match_no_calls:
                findings = self._lookup_findings(variant)

            if findings:
                counts.analyzed_variants += 1
            elif variant.rsid is None:
                counts.unnamed_variants += 1
            else:
                counts.unmatched_variants += 1

            for finding in findings:
                if isinstance(finding, ClinicalFinding):
                    counts.clinical_count += 1
                elif isinstance(finding, DrugResponse):
                    counts.drug_count += 1
                else:
                    counts.trait_count += 1
                yield finding

        logger.info(
            "Matched %d of %d variants: %d clinical, %d drug, %d trait findings",
            counts.analyzed_variants,
            counts.total_variants,
            counts.clinical_count,
            counts.drug_count,
            counts.trait_count,
        )
