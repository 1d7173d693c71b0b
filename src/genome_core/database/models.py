"""Data models for curated reference records."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from ..utils.validators import normalize_rsid


class ClinicalSignificance(Enum):
    """ClinVar clinical significance tiers."""

    PATHOGENIC = "pathogenic"
    LIKELY_PATHOGENIC = "likely_pathogenic"
    UNCERTAIN_SIGNIFICANCE = "uncertain_significance"
    LIKELY_BENIGN = "likely_benign"
    BENIGN = "benign"
    CONFLICTING = "conflicting"
    NOT_PROVIDED = "not_provided"


def parse_significance(value: str | ClinicalSignificance | None) -> ClinicalSignificance:
    """Map ClinVar free-text significance to a tier.

    Handles "Pathogenic", "Likely pathogenic", "Pathogenic/Likely_pathogenic",
    "Conflicting interpretations of pathogenicity", "VUS" and similar.
    """
    if isinstance(value, ClinicalSignificance):
        return value
    if not value:
        return ClinicalSignificance.NOT_PROVIDED

    normalized = value.strip().lower().replace("-", "_").replace(" ", "_")

    if "conflicting" in normalized:
        return ClinicalSignificance.CONFLICTING
    if "uncertain" in normalized or normalized == "vus":
        return ClinicalSignificance.UNCERTAIN_SIGNIFICANCE
    if "likely_pathogenic" in normalized and "/" not in normalized:
        return ClinicalSignificance.LIKELY_PATHOGENIC
    if "pathogenic" in normalized:
        return ClinicalSignificance.PATHOGENIC
    if "likely_benign" in normalized and "/" not in normalized:
        return ClinicalSignificance.LIKELY_BENIGN
    if "benign" in normalized:
        return ClinicalSignificance.BENIGN

    return ClinicalSignificance.NOT_PROVIDED


def _require_rsid(rsid: str) -> str:
    normalized = normalize_rsid(rsid)
    if normalized is None:
        raise ValueError("reference record requires an rsid")
    return normalized


@dataclass(frozen=True, slots=True)
class ClinicalRecord:
    """ClinVar-style clinical significance assertion for one condition."""

    rsid: str
    condition: str
    significance: ClinicalSignificance
    gene: str | None = None
    review_stars: int = 0
    chromosome: str | None = None
    position: int | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "rsid", _require_rsid(self.rsid))
        if not self.condition:
            raise ValueError(f"{self.rsid}: clinical record requires a condition")
        if not 0 <= self.review_stars <= 4:
            raise ValueError(f"{self.rsid}: review_stars must be 0-4, got {self.review_stars}")
        if self.chromosome is not None and self.position is None:
            raise ValueError(f"{self.rsid}: chromosome given without position")
        if self.position is not None and self.position < 1:
            raise ValueError(f"{self.rsid}: position must be >= 1, got {self.position}")


@dataclass(frozen=True, slots=True)
class PharmacoRecord:
    """PharmGKB-style drug-gene interaction."""

    rsid: str
    gene: str
    drug: str
    response: str
    recommendation: str = ""
    evidence_level: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "rsid", _require_rsid(self.rsid))
        if not self.gene or not self.drug:
            raise ValueError(f"{self.rsid}: pharmacogenomic record requires gene and drug")


@dataclass(frozen=True, slots=True)
class TraitRecord:
    """GWAS Catalog-style trait association."""

    rsid: str
    trait: str
    category: str
    effect: str
    confidence: float
    p_value: float | None = None
    risk_allele: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "rsid", _require_rsid(self.rsid))
        if not self.trait:
            raise ValueError(f"{self.rsid}: trait record requires a trait name")
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"{self.rsid}: confidence must be in [0, 1], got {self.confidence}")


@dataclass(frozen=True, slots=True)
class TableStatus:
    """Observability snapshot for one reference table."""

    loaded: bool
    record_count: int = 0
    last_updated: datetime | None = None
    version: str | None = None
