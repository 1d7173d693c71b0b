"""Data models for parsed variants and database findings."""

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar

from .utils.validators import NO_CALL


@dataclass(frozen=True, slots=True)
class Variant:
    """One genotype observation from an input file.

    A coordinate is meaningless without its contig, so a chromosome
    without a position is rejected at construction.
    """

    rsid: str | None
    chromosome: str | None
    position: int | None
    genotype: str
    sample: str | None = None

    def __post_init__(self) -> None:
        if self.chromosome is not None and self.position is None:
            raise ValueError(
                f"Variant {self.rsid or '<unnamed>'} has chromosome "
                f"{self.chromosome} but no position"
            )
        if self.position is not None and self.position < 1:
            raise ValueError(f"Position must be 1-based, got {self.position}")
        if not self.genotype:
            raise ValueError("genotype cannot be empty")

    @property
    def is_no_call(self) -> bool:
        return self.genotype == NO_CALL

    @property
    def alleles(self) -> tuple[str, ...]:
        """Called alleles; empty for a no-call."""
        if self.is_no_call:
            return ()
        if "/" in self.genotype:
            return tuple(self.genotype.split("/"))
        return tuple(self.genotype)

    @property
    def is_heterozygous(self) -> bool:
        return len(set(self.alleles)) > 1


class VariantCategory(Enum):
    """Coarse interpretation bucket for a clinical or drug finding."""

    PATHOGENIC = "pathogenic"
    CARRIER = "carrier"
    PROTECTIVE = "protective"
    DRUG = "drug"
    NEUTRAL = "neutral"


class FindingKind(Enum):
    """Discriminant for the Finding union."""

    CLINICAL = "clinical"
    DRUG = "drug"
    TRAIT = "trait"


@dataclass(frozen=True, slots=True)
class ClinicalFinding:
    """A variant matched to a ClinVar-style clinical record."""

    kind: ClassVar[FindingKind] = FindingKind.CLINICAL

    rsid: str
    genotype: str
    gene: str | None
    condition: str
    significance: str
    review_stars: int = 0
    chromosome: str | None = None
    position: int | None = None
    impact_score: float = 0.0
    variant_category: str = "neutral"


@dataclass(frozen=True, slots=True)
class DrugResponse:
    """A variant matched to a pharmacogenomic record."""

    kind: ClassVar[FindingKind] = FindingKind.DRUG

    rsid: str
    genotype: str
    gene: str
    drug: str
    response: str
    recommendation: str
    evidence_level: str | None = None
    chromosome: str | None = None
    position: int | None = None
    impact_score: float = 0.0
    variant_category: str = "drug"


@dataclass(frozen=True, slots=True)
class TraitAssociation:
    """A variant matched to a GWAS trait association."""

    kind: ClassVar[FindingKind] = FindingKind.TRAIT

    rsid: str
    genotype: str
    trait_name: str
    category: str
    effect: str
    confidence: float
    chromosome: str | None = None
    position: int | None = None
    risk_allele: str | None = None


Finding = ClinicalFinding | DrugResponse | TraitAssociation
