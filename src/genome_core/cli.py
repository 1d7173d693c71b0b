"""genome-core: consumer genome file analysis CLI."""

import json
import logging
from pathlib import Path
from typing import Annotated, Any

import typer
from rich.console import Console
from rich.table import Table

from . import __version__
from .analysis import analyze_file
from .config import AnalysisConfig, config_from_dict, load_config
from .database.store import ReferenceDatabase
from .exceptions import GenomeCoreError
from .format_detection import detect_format
from .parsers.genome_parser import GenomeParser
from .qc.genome_stats import GenomeStatsCollector
from .report import AnalysisReport


def version_callback(value: bool) -> None:
    if value:
        print(__version__)
        raise typer.Exit()


app = typer.Typer(
    name="genome-core",
    help="Analyze 23andMe, AncestryDNA and VCF genome files against ClinVar, PharmGKB and GWAS",
)
console = Console()


@app.callback()
def main_callback(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version", callback=version_callback, is_eager=True, help="Show version and exit"
        ),
    ] = None,
) -> None:
    pass


def setup_logging(verbose: bool, quiet: bool) -> None:
    """Configure logging based on verbosity flags."""
    if quiet:
        level = logging.WARNING
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.INFO

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%H:%M:%S",
    )
    logging.getLogger("genome_core").setLevel(level)


def _fail(error: Exception) -> None:
    console.print(f"[red]Error: {error}[/red]")
    raise typer.Exit(1) from None


def _resolve_config(
    config_file: Path | None, overrides: dict[str, Any]
) -> AnalysisConfig:
    if config_file is not None:
        return load_config(config_file, overrides)
    return config_from_dict({k: v for k, v in overrides.items() if v is not None})


def _print_report(report: AnalysisReport) -> None:
    summary = report.summary
    console.print(f"Format: {report.source_format}")
    console.print(f"Variants: {summary.total_variants:,}")
    console.print(f"  Analyzed: {summary.analyzed_variants:,}")
    console.print(f"  Unmatched: {summary.unmatched_variants:,}")
    console.print(f"  Unnamed: {summary.unnamed_variants:,}")
    console.print(f"  No-calls: {summary.no_call_variants:,}")
    console.print(f"Skipped lines: {summary.skipped_lines:,}")
    if report.genome_stats is not None:
        qc = report.genome_stats
        console.print(f"Build: {qc.build.build.value}")
        console.print(f"Heterozygosity: {qc.heterozygosity_rate:.2%}")

    if report.clinical_findings:
        table = Table(title="Clinical findings")
        columns = ("rsID", "Gene", "Condition", "Significance", "Stars", "Impact", "Category")
        for column in columns:
            table.add_column(column)
        for f in report.clinical_findings:
            table.add_row(
                f.rsid,
                f.gene or "",
                f.condition,
                f.significance,
                str(f.review_stars),
                f"{f.impact_score:.2f}",
                f.variant_category,
            )
        console.print(table)

    if report.drug_responses:
        table = Table(title="Drug responses")
        for column in ("rsID", "Gene", "Drug", "Response", "Recommendation"):
            table.add_column(column)
        for f in report.drug_responses:
            table.add_row(f.rsid, f.gene, f.drug, f.response, f.recommendation)
        console.print(table)

    if report.trait_associations:
        table = Table(title="Trait associations")
        for column in ("rsID", "Trait", "Category", "Effect", "Confidence"):
            table.add_column(column)
        for f in report.trait_associations:
            table.add_row(f.rsid, f.trait_name, f.category, f.effect, f"{f.confidence:.2f}")
        console.print(table)

    console.print(
        f"[green]✓[/green] {summary.clinical_count} clinical, {summary.drug_count} drug, "
        f"{summary.trait_count} trait findings ({summary.actionable_findings} actionable)"
    )


@app.command()
def detect(
    path: Path = typer.Argument(..., help="Genome file to classify"),
    sniff_bytes: int = typer.Option(65536, "--sniff-bytes", help="Characters to inspect"),
) -> None:
    """Detect the format of a genome file."""
    try:
        detected = detect_format(path, sniff_bytes=sniff_bytes)
    except GenomeCoreError as e:
        _fail(e)

    if detected.provider:
        console.print(f"{path.name}: [cyan]{detected.tag}[/cyan] ({detected.provider})")
    else:
        console.print(f"{path.name}: [cyan]{detected.tag}[/cyan]")


@app.command()
def parse(
    path: Path = typer.Argument(..., help="Genome file to parse"),
    sample: list[str] | None = typer.Option(
        None, "--sample", "-s", help="VCF sample to read (repeatable, default all)"
    ),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress non-error output"),
) -> None:
    """Parse a genome file and report variant counts."""
    setup_logging(verbose, quiet)

    try:
        parser = GenomeParser(path, samples=sample or None)
        collector = GenomeStatsCollector()
        for _ in collector.track(parser):
            pass
    except GenomeCoreError as e:
        _fail(e)

    stats = parser.stats
    genome_stats = collector.result()
    if json_output:
        typer.echo(
            json.dumps(
                {
                    "format": parser.detected.tag,
                    "provider": parser.detected.provider,
                    "variants": stats.variants,
                    "no_calls": stats.no_calls,
                    "skipped_lines": stats.skipped_lines,
                    "chromosomes": genome_stats.chromosome_counts,
                    "no_call_rate": genome_stats.no_call_rate,
                    "heterozygosity_rate": genome_stats.heterozygosity_rate,
                    "build": genome_stats.build.build.value,
                    "build_confidence": genome_stats.build.confidence,
                },
                indent=2,
            )
        )
        return

    console.print(f"Format: {parser.detected.tag}")
    if parser.detected.provider:
        console.print(f"Provider: {parser.detected.provider}")
    console.print(f"Variants: {stats.variants:,}")
    console.print(f"No-calls: {stats.no_calls:,} ({genome_stats.no_call_rate:.2%})")
    console.print(f"Heterozygosity: {genome_stats.heterozygosity_rate:.2%}")
    console.print(
        f"Build: {genome_stats.build.build.value} "
        f"({genome_stats.build.markers_checked} markers checked)"
    )
    console.print(f"Skipped lines: {stats.skipped_lines:,}")



@app.command()
def analyze(
    path: Path = typer.Argument(..., help="Genome file to analyze"),
    db_path: Path = typer.Option(
        ..., "--db", "-d", help="Directory of clinvar/pharmgkb/gwas reference tables"
    ),
    config_file: Path | None = typer.Option(None, "--config", "-c", help="TOML config file"),
    sample: list[str] | None = typer.Option(
        None, "--sample", "-s", help="VCF sample to analyze (repeatable, default all)"
    ),
    output: Path | None = typer.Option(None, "--output", "-o", help="Write JSON report here"),
    json_output: bool = typer.Option(False, "--json", help="Print the report as JSON"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress non-error output"),
) -> None:
    """Analyze a genome file against the reference database."""
    setup_logging(verbose, quiet)

    try:
        config = _resolve_config(config_file, {"samples": sample or None})
        if not verbose and not quiet:
            logging.getLogger("genome_core").setLevel(config.log_level)
        database = ReferenceDatabase()
        database.load(db_path)
        report = analyze_file(path, database, config)
    except FileNotFoundError as e:
        _fail(e)
    except GenomeCoreError as e:
        _fail(e)

    if output is not None:
        output.write_text(json.dumps(report.to_dict(), indent=2))
        if not quiet:
            console.print(f"Report written to {output}")

    if json_output:
        typer.echo(json.dumps(report.to_dict(), indent=2))
    elif not quiet:
        _print_report(report)


@app.command("db-status")
def db_status(
    db_path: Path = typer.Option(
        ..., "--db", "-d", help="Directory of clinvar/pharmgkb/gwas reference tables"
    ),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Load the reference tables and show their status."""
    database = ReferenceDatabase()
    try:
        database.load(db_path)
    except GenomeCoreError as e:
        _fail(e)

    status = database.status()

    if json_output:
        typer.echo(
            json.dumps(
                {
                    name: {
                        "loaded": s.loaded,
                        "record_count": s.record_count,
                        "last_updated": s.last_updated.isoformat() if s.last_updated else None,
                        "version": s.version,
                    }
                    for name, s in status.items()
                },
                indent=2,
            )
        )
        return

    table = Table(title="Reference database")
    table.add_column("Table")
    table.add_column("Loaded")
    table.add_column("Records", justify="right")
    table.add_column("Version")
    table.add_column("Last updated")
    for name, s in status.items():
        table.add_row(
            name,
            "[green]✓[/green]" if s.loaded else "[red]✗[/red]",
            f"{s.record_count:,}",
            s.version or "",
            s.last_updated.isoformat() if s.last_updated else "",
        )
    console.print(table)


if __name__ == "__main__":
    app()
