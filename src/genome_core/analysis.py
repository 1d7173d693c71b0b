"""End-to-end analysis: detect, parse, match, report."""

import asyncio
import logging
from pathlib import Path

from .config import AnalysisConfig
from .database.store import ReferenceDatabase
from .format_detection import detect_format
from .matcher import Matcher
from .parsers.genome_parser import GenomeParser
from .qc.genome_stats import GenomeStatsCollector
from .report import AnalysisReport, ReportAssembler

logger = logging.getLogger(__name__)


def analyze_file(
    path: Path | str,
    database: ReferenceDatabase,
    config: AnalysisConfig | None = None,
) -> AnalysisReport:
    """Analyze one genome file against the current reference snapshot.

    The snapshot is taken once at the start, so a concurrent reload does
    not affect this run. A structural parse error aborts the run and no
    partial report is returned.

    Raises:
        UnsupportedFormatError: If the file format is not recognized
        GenomeParseError: On a structural parse failure
        GenomeIOError: If the file cannot be read
        DatabaseNotLoadedError: If a required table is not loaded
    """
    config = config or AnalysisConfig()
    path = Path(path)

    snapshot = database.snapshot()
    detected = detect_format(path, sniff_bytes=config.sniff_bytes)
    logger.info("Analyzing %s (%s)", path.name, detected.tag)

    parser = GenomeParser(path, detected=detected, samples=config.samples)
    matcher = Matcher(snapshot, config)
    collector = GenomeStatsCollector()
    findings = list(matcher.match(collector.track(parser)))
    genome_stats = collector.result()

    report = ReportAssembler(config.actionable_significance).assemble(
        findings,
        matcher.counts,
        skipped_lines=parser.stats.skipped_lines,
        source_format=detected.tag,
        database_versions=snapshot.versions,
        genome_stats=genome_stats,
    )

    summary = report.summary
    logger.info(
        "Finished %s: %d variants, %d analyzed, %d findings (%d actionable), %d lines skipped",
        path.name,
        summary.total_variants,
        summary.analyzed_variants,
        summary.clinical_count + summary.drug_count + summary.trait_count,
        summary.actionable_findings,
        summary.skipped_lines,
    )
    logger.info(
        "%s QC: build %s, no-call rate %.4f, heterozygosity %.4f",
        path.name,
        genome_stats.build.build.value,
        genome_stats.no_call_rate,
        genome_stats.heterozygosity_rate,
    )
    return report


async def analyze_file_async(
    path: Path | str,
    database: ReferenceDatabase,
    config: AnalysisConfig | None = None,
) -> AnalysisReport:
    """Run analyze_file in a worker thread so the event loop stays free."""
    return await asyncio.to_thread(analyze_file, path, database, config)
