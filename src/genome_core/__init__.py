"""genome-core: consumer genome file parsing and reference annotation."""

__version__ = "0.1.0"

from .analysis import analyze_file, analyze_file_async  # noqa: E402
from .config import AnalysisConfig, load_config  # noqa: E402
from .database import ReferenceDatabase  # noqa: E402
from .format_detection import DetectedFormat, GenomeFormat, detect_format  # noqa: E402
from .matcher import Matcher, MatchCounts  # noqa: E402
from .models import (  # noqa: E402
    ClinicalFinding,
    DrugResponse,
    Finding,
    FindingKind,
    TraitAssociation,
    Variant,
)
from .parsers import GenomeParser, parse_genome  # noqa: E402
from .qc import GenomeBuild, GenomeStats, compute_genome_stats, detect_build  # noqa: E402
from .report import AnalysisReport, ReportAssembler, Summary  # noqa: E402

__all__ = [
    "AnalysisConfig",
    "AnalysisReport",
    "ClinicalFinding",
    "DetectedFormat",
    "DrugResponse",
    "Finding",
    "FindingKind",
    "GenomeFormat",
    "GenomeBuild",
    "GenomeParser",
    "GenomeStats",
    "MatchCounts",
    "Matcher",
    "ReferenceDatabase",
    "ReportAssembler",
    "Summary",
    "TraitAssociation",
    "Variant",
    "__version__",
    "analyze_file",
    "analyze_file_async",
    "compute_genome_stats",
    "detect_build",
    "detect_format",
    "load_config",
    "parse_genome",
]
