"""Reference genome build detection.

A handful of dbSNP markers sit at different coordinates in NCBI36, GRCh37
and GRCh38. Comparing the reported positions of those markers tells which
assembly a raw data file was called against.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum

from ..models import Variant

logger = logging.getLogger(__name__)


class GenomeBuild(Enum):
    """Reference assemblies that can be told apart."""

    GRCH36 = "GRCh36"
    GRCH37 = "GRCh37"
    GRCH38 = "GRCh38"
    UNKNOWN = "unknown"


BUILD_ORDER = (GenomeBuild.GRCH36, GenomeBuild.GRCH37, GenomeBuild.GRCH38)

# rsid -> (chromosome, (GRCh36, GRCh37, GRCh38) positions). Only markers whose
# position differs between at least two builds are listed.
BUILD_MARKERS: dict[str, tuple[str, tuple[int, int, int]]] = {
    "rs3094315": ("1", (742429, 752566, 817186)),
    "rs3131972": ("1", (742584, 752721, 817341)),
    "rs12184267": ("1", (754182, 764319, 828939)),
    "rs12562034": ("1", (758311, 768448, 833068)),
    "rs4040617": ("1", (769185, 779322, 843942)),
    "rs2980300": ("1", (780396, 790533, 855153)),
    "rs4970383": ("1", (828418, 838555, 903175)),
    "rs4475691": ("1", (836671, 846808, 911428)),
    "rs7537756": ("1", (844113, 854250, 918870)),
    "rs13302982": ("1", (861808, 871896, 936516)),
    "rs4233027": ("2", (101974, 110696, 110696)),
    "rs7574865": ("2", (191672878, 191964633, 191099907)),
    "rs3771300": ("2", (45966, 54688, 54688)),
    "rs7563836": ("2", (235587, 244309, 244309)),
    "rs17036206": ("2", (265875, 274597, 274597)),
    "rs2523608": ("6", (31428925, 31239520, 31239584)),
    "rs3129882": ("6", (32614851, 32425446, 32425510)),
    "rs2858870": ("6", (32669610, 32480205, 32480269)),
    "rs9565252": ("13", (20089866, 20089866, 19764180)),
    "rs8004058": ("14", (20222111, 20222111, 19889083)),
    "rs4785204": ("16", (87753, 87753, 37753)),
    "rs2853677": ("17", (1215395, 1215395, 1216591)),
    "rs429358": ("19", (50103781, 45411941, 44908684)),
    "rs2822442": ("21", (14425974, 14425974, 14090307)),
    "rs5746647": ("22", (16870021, 17057802, 16877205)),
    "rs5939319": ("X", (2821802, 2821802, 2781976)),
    "rs6625163": ("X", (3084016, 3084016, 3044190)),
    "rs2032597": ("Y", (14974418, 14974418, 14795628)),
}

MIN_MARKERS_CHECKED = 5
MIN_BUILD_CONFIDENCE = 0.7


@dataclass(frozen=True, slots=True)
class BuildDetection:
    """Outcome of build detection.

    Attributes:
        build: Best-supported build, or UNKNOWN when the evidence is thin
        confidence: Share of checked markers that agree with the best build
        markers_checked: Markers present in the file on the expected chromosome
        match_counts: Markers agreeing with each build
    """

    build: GenomeBuild = GenomeBuild.UNKNOWN
    confidence: float = 0.0
    markers_checked: int = 0
    match_counts: dict[str, int] = field(default_factory=dict)


class BuildDetector:
    """Accumulate marker positions from a variant stream.

    Only the first observation of each marker counts, so multi-sample VCFs
    do not weigh a site once per sample.
    """

    def __init__(self):
        self._seen: set[str] = set()
        self._checked = 0
        self._matches = dict.fromkeys(BUILD_ORDER, 0)

    def observe(self, variant: Variant) -> None:
        marker = BUILD_MARKERS.get(variant.rsid) if variant.rsid else None
        if marker is None or variant.rsid in self._seen:
            return
        self._seen.add(variant.rsid)

        chromosome, positions = marker
        if variant.chromosome != chromosome:
            return

        self._checked += 1
        for build, position in zip(BUILD_ORDER, positions, strict=True):
            if variant.position == position:
                self._matches[build] += 1

    def result(self) -> BuildDetection:
        """Pick the build supported by the most markers.

        The build stays UNKNOWN unless at least MIN_MARKERS_CHECKED markers
        were seen, the best build reaches MIN_BUILD_CONFIDENCE and no other
        build ties it.
        """
        best = max(BUILD_ORDER, key=lambda build: self._matches[build])
        best_count = self._matches[best]
        tied = sum(1 for count in self._matches.values() if count == best_count) > 1
        confidence = best_count / self._checked if self._checked else 0.0

        build = GenomeBuild.UNKNOWN
        if (
            self._checked >= MIN_MARKERS_CHECKED
            and confidence >= MIN_BUILD_CONFIDENCE
            and not tied
        ):
            build = best

        logger.debug(
            "Build detection: %s (%d markers, confidence %.2f)",
            build.value,
            self._checked,
            confidence,
        )
        return BuildDetection(
            build=build,
            confidence=confidence,
            markers_checked=self._checked,
            match_counts={b.value: self._matches[b] for b in BUILD_ORDER},
        )


def detect_build(variants: Iterable[Variant]) -> BuildDetection:
    """Detect the reference build of a sequence of variants."""
    detector = BuildDetector()
    for variant in variants:
        detector.observe(variant)
    return detector.result()
