"""Assemble findings into an analysis report."""

from collections.abc import Iterable, Mapping
from dataclasses import asdict, dataclass, field
from typing import Any, TypedDict

from .config import DEFAULT_ACTIONABLE
from .database.models import ClinicalSignificance
from .matcher import MatchCounts
from .models import ClinicalFinding, DrugResponse, Finding, TraitAssociation
from .qc.genome_stats import GenomeStats


class SummaryDict(TypedDict):
    total_variants: int
    analyzed_variants: int
    unnamed_variants: int
    unmatched_variants: int
    no_call_variants: int
    skipped_lines: int
    clinical_count: int
    drug_count: int
    trait_count: int
    actionable_findings: int


@dataclass(frozen=True)
class Summary:
    total_variants: int = 0
    analyzed_variants: int = 0
    unnamed_variants: int = 0
    unmatched_variants: int = 0
    no_call_variants: int = 0
    skipped_lines: int = 0
    clinical_count: int = 0
    drug_count: int = 0
    trait_count: int = 0
    actionable_findings: int = 0

    def to_dict(self) -> SummaryDict:
        return SummaryDict(**asdict(self))


@dataclass(frozen=True)
class AnalysisReport:
    """Findings grouped by kind plus run-level counters."""

    clinical_findings: tuple[ClinicalFinding, ...] = ()
    drug_responses: tuple[DrugResponse, ...] = ()
    trait_associations: tuple[TraitAssociation, ...] = ()
    summary: Summary = field(default_factory=Summary)
    source_format: str | None = None
    database_versions: Mapping[str, str | None] = field(default_factory=dict)
    genome_stats: GenomeStats | None = None

    @property
    def findings(self) -> tuple[Finding, ...]:
        return self.clinical_findings + self.drug_responses + self.trait_associations

    def to_dict(self) -> dict[str, Any]:
        """Plain JSON-compatible data for exporters."""
        return {
            "source_format": self.source_format,
            "database_versions": dict(self.database_versions),
            "summary": self.summary.to_dict(),
            "genome_stats": self.genome_stats.to_dict() if self.genome_stats else None,
            "clinical_findings": [asdict(f) for f in self.clinical_findings],
            "drug_responses": [asdict(f) for f in self.drug_responses],
            "trait_associations": [asdict(f) for f in self.trait_associations],
        }


class ReportAssembler:
    """Group findings by kind and compute the summary.

    Pure: the same findings and counts always produce an equal report.
    """

    def __init__(
        self, actionable_significance: Iterable[ClinicalSignificance | str] = DEFAULT_ACTIONABLE
    ):
        self.actionable_significance = frozenset(
            ClinicalSignificance(s) if isinstance(s, str) else s for s in actionable_significance
        )
        self._actionable_values = {s.value for s in self.actionable_significance}

    def is_actionable(self, finding: Finding) -> bool:
        if isinstance(finding, ClinicalFinding):
            return finding.significance in self._actionable_values
        if isinstance(finding, DrugResponse):
            return bool(finding.recommendation.strip())
        return False

    def assemble(
        self,
        findings: Iterable[Finding],
        counts: MatchCounts,
        skipped_lines: int = 0,
        source_format: str | None = None,
        database_versions: Mapping[str, str | None] | None = None,
        genome_stats: GenomeStats | None = None,
    ) -> AnalysisReport:
        clinical: list[ClinicalFinding] = []
        drugs: list[DrugResponse] = []
        traits: list[TraitAssociation] = []
        actionable = 0

        for finding in findings:
            if isinstance(finding, ClinicalFinding):
                clinical.append(finding)
            elif isinstance(finding, DrugResponse):
                drugs.append(finding)
            else:
                traits.append(finding)
            if self.is_actionable(finding):
                actionable += 1

        summary = Summary(
            total_variants=counts.total_variants,
            analyzed_variants=counts.analyzed_variants,
            unnamed_variants=counts.unnamed_variants,
            unmatched_variants=counts.unmatched_variants,
            no_call_variants=counts.no_call_variants,
            skipped_lines=skipped_lines,
            clinical_count=len(clinical),
            drug_count=len(drugs),
            trait_count=len(traits),
            actionable_findings=actionable,
        )

        return AnalysisReport(
            clinical_findings=tuple(clinical),
            drug_responses=tuple(drugs),
            trait_associations=tuple(traits),
            summary=summary,
            source_format=source_format,
            database_versions=dict(database_versions or {}),
            genome_stats=genome_stats,
        )
