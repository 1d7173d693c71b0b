"""Reference table loading from JSON bundles and TSV tables.

Bundle format (gzipped or plain JSON), one file per table:

    {
      "version": "2024-06",
      "generated": "2024-06-01T00:00:00Z",
      "records": [ ... ]
    }

ClinVar records may list several ``conditions`` and PharmGKB records several
``drugs``; each expands to one reference record. TSV tables carry one record
per row with a header row; column names are matched through COLUMN_ALIASES.
"""

import csv
import json
import logging
import math
import re
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from ..exceptions import DatabaseLoadError, GenomeIOError
from ..io_utils import smart_open
from ..utils.variant_matching import normalize_chromosome
from .models import ClinicalRecord, PharmacoRecord, TraitRecord, parse_significance

logger = logging.getLogger(__name__)

CLINVAR = "clinvar"
PHARMGKB = "pharmgkb"
GWAS = "gwas"

TABLE_NAMES = (CLINVAR, PHARMGKB, GWAS)

TABLE_FILE_SUFFIXES = (".json.gz", ".json", ".tsv.gz", ".tsv")

COLUMN_ALIASES = {
    "rs_id": "rsid",
    "snp": "rsid",
    "snps": "rsid",
    "variant": "rsid",
    "clinicalsignificance": "significance",
    "clinical_significance": "significance",
    "clnsig": "significance",
    "reviewstatus": "review_stars",
    "review_status": "review_stars",
    "reviewstars": "review_stars",
    "stars": "review_stars",
    "chr": "chromosome",
    "chrom": "chromosome",
    "chr_id": "chromosome",
    "pos": "position",
    "chr_pos": "position",
    "disease": "condition",
    "condition_name": "condition",
    "symbol": "gene",
    "genesymbol": "gene",
    "gene_symbol": "gene",
    "drugname": "drug",
    "drug_name": "drug",
    "phenotypetext": "response",
    "phenotype_text": "response",
    "response_class": "response",
    "dosingguideline": "recommendation",
    "dosing_guideline": "recommendation",
    "evidencelevel": "evidence_level",
    "level_of_evidence": "evidence_level",
    "trait_name": "trait",
    "traitname": "trait",
    "disease/trait": "trait",
    "effect_description": "effect",
    "confidence_score": "confidence",
    "p-value": "p_value",
    "pvalue": "p_value",
    "strongest snp-risk allele": "risk_allele",
    "riskallele": "risk_allele",
    "risk allele": "risk_allele",
}

REVIEW_STATUS_STARS = {
    "practice guideline": 4,
    "reviewed by expert panel": 3,
    "criteria provided, multiple submitters, no conflicts": 2,
    "criteria provided, conflicting interpretations": 1,
    "criteria provided, conflicting classifications": 1,
    "criteria provided, single submitter": 1,
    "no assertion criteria provided": 0,
    "no assertion provided": 0,
    "no classification provided": 0,
}

RSID_SEARCH = re.compile(r"rs\d+", re.IGNORECASE)

# GWAS Catalog "STRONGEST SNP-RISK ALLELE" values look like "rs123-G" or "rs123-?"
RISK_ALLELE_SUFFIX = re.compile(r"-([ACGT]+)\s*$", re.IGNORECASE)

# -log10(p) that maps to full confidence when a row carries only a p-value
CONFIDENCE_LOG10_SCALE = 15.0

ReferenceRecord = ClinicalRecord | PharmacoRecord | TraitRecord


@dataclass
class TableData:
    """Records and provenance parsed from one table source."""

    name: str
    records: list[ReferenceRecord]
    version: str | None
    last_updated: datetime | None
    source: Path
    rows_skipped: int = 0


class MissingRsidError(ValueError):
    """Row has no dbSNP identifier and cannot be keyed."""

    pass


def canonicalize(raw: dict[str, Any]) -> dict[str, Any]:
    """Lower-case keys and map aliases to canonical field names."""
    result = {}
    for key, value in raw.items():
        normalized = key.strip().lower()
        result[COLUMN_ALIASES.get(normalized, normalized)] = value
    return result


def _text(value: Any) -> str | None:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _rsid(row: dict[str, Any]) -> str:
    match = RSID_SEARCH.search(str(row.get("rsid") or ""))
    if not match:
        raise MissingRsidError("row has no rsid")
    return match.group(0)


def _review_stars(value: Any) -> int:
    if value is None or value == "":
        return 0
    if isinstance(value, int):
        return value
    text = str(value).strip().lower()
    if text in REVIEW_STATUS_STARS:
        return REVIEW_STATUS_STARS[text]
    return int(text)


def _coordinates(row: dict[str, Any]) -> tuple[str | None, int | None]:
    chromosome = normalize_chromosome(_text(row.get("chromosome")))
    position = _text(row.get("position"))
    if chromosome is None or position is None:
        return None, None
    return chromosome, int(position)


def clinical_records(raw: dict[str, Any]) -> list[ClinicalRecord]:
    """Build one ClinicalRecord per condition of a ClinVar entry."""
    row = canonicalize(raw)
    rsid = _rsid(row)
    chromosome, position = _coordinates(row)

    conditions = row.get("conditions")
    if conditions is None:
        conditions = [row.get("condition")]
    elif isinstance(conditions, str):
        conditions = conditions.split("|")

    names = []
    for condition in conditions:
        if isinstance(condition, dict):
            condition = condition.get("name") or canonicalize(condition).get("condition")
        name = _text(condition)
        if name:
            names.append(name)
    if not names:
        raise ValueError(f"{rsid}: no condition")

    return [
        ClinicalRecord(
            rsid=rsid,
            condition=name,
            significance=parse_significance(_text(row.get("significance"))),
            gene=_text(row.get("gene")),
            review_stars=_review_stars(row.get("review_stars")),
            chromosome=chromosome,
            position=position,
        )
        for name in names
    ]


def pharmaco_records(raw: dict[str, Any]) -> list[PharmacoRecord]:
    """Build one PharmacoRecord per drug of a PharmGKB entry."""
    row = canonicalize(raw)
    rsid = _rsid(row)
    drugs = row.get("drugs")
    if drugs is None:
        drugs = [row]

    records = []
    for drug in drugs:
        entry = row
        if drug is not row:
            if not isinstance(drug, dict):
                raise ValueError(f"{rsid}: drug entries must be objects")
            entry = {**row, **canonicalize(drug)}
            entry.setdefault("drug", drug.get("name"))
        records.append(
            PharmacoRecord(
                rsid=rsid,
                gene=_text(entry.get("gene")) or "",
                drug=_text(entry.get("drug")) or "",
                response=_text(entry.get("response")) or "",
                recommendation=_text(entry.get("recommendation")) or "",
                evidence_level=_text(entry.get("evidence_level")),
            )
        )
    return records


def confidence_from_p_value(p_value: float) -> float:
    """Map a GWAS p-value onto a [0, 1] confidence.

    Confidence is ``-log10(p) / CONFIDENCE_LOG10_SCALE`` clamped to [0, 1],
    so smaller p-values never score lower. p <= 0 scores 1.0.

    Examples:
        >>> confidence_from_p_value(1e-15)
        1.0
        >>> round(confidence_from_p_value(5e-8), 2)
        0.49
    """
    if math.isnan(p_value):
        raise ValueError("p-value is not a number")
    if p_value <= 0.0:
        return 1.0
    if p_value >= 1.0:
        return 0.0
    return min(1.0, -math.log10(p_value) / CONFIDENCE_LOG10_SCALE)


def _risk_allele(value: Any) -> str | None:
    text = _text(value)
    if text is None:
        return None
    match = RISK_ALLELE_SUFFIX.search(text)
    if match:
        return match.group(1).upper()
    if text.isalpha() and set(text.upper()) <= set("ACGT"):
        return text.upper()
    return None


def trait_records(raw: dict[str, Any]) -> list[TraitRecord]:
    """Build a TraitRecord from a GWAS association entry.

    Rows without an explicit confidence derive one from their p-value.
    """
    row = canonicalize(raw)
    rsid = _rsid(row)
    confidence = _text(row.get("confidence"))
    p_value = _text(row.get("p_value"))
    if confidence is None and p_value is None:
        raise ValueError("missing confidence and p-value")

    p = float(p_value) if p_value is not None else None
    score = float(confidence) if confidence is not None else confidence_from_p_value(p)

    return [
        TraitRecord(
            rsid=rsid,
            trait=_text(row.get("trait")) or "",
            category=_text(row.get("category")) or "other",
            effect=_text(row.get("effect")) or "",
            confidence=score,
            p_value=p,
            risk_allele=_risk_allele(row.get("risk_allele")),
        )
    ]


RECORD_BUILDERS: dict[str, Callable[[dict[str, Any]], list[ReferenceRecord]]] = {
    CLINVAR: clinical_records,
    PHARMGKB: pharmaco_records,
    GWAS: trait_records,
}


def _parse_timestamp(value: Any) -> datetime | None:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(str(value))
    except ValueError:
        logger.warning("Ignoring unparseable 'generated' timestamp: %s", value)
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def _build_records(
    name: str, path: Path, rows: Iterable[dict[str, Any]], first_row: int
) -> tuple[list[ReferenceRecord], int]:
    builder = RECORD_BUILDERS[name]
    records: list[ReferenceRecord] = []
    skipped = 0

    for row_num, row in enumerate(rows, start=first_row):
        if not isinstance(row, dict):
            raise DatabaseLoadError(path, f"record {row_num} is not an object")
        try:
            records.extend(builder(row))
        except MissingRsidError:
            skipped += 1
            logger.debug("Skipping %s record %d without rsid", name, row_num)
        except (TypeError, ValueError) as e:
            raise DatabaseLoadError(path, f"record {row_num}: {e}") from e

    return records, skipped


def _load_bundle(name: str, path: Path) -> TableData:
    try:
        with smart_open(path) as f:
            bundle = json.load(f)
    except ValueError as e:
        raise DatabaseLoadError(path, f"invalid JSON bundle: {e}") from e

    if not isinstance(bundle, dict) or not isinstance(bundle.get("records"), list):
        raise DatabaseLoadError(path, "bundle must be an object with a 'records' list")

    records, skipped = _build_records(name, path, bundle["records"], first_row=0)

    return TableData(
        name=name,
        records=records,
        version=_text(bundle.get("version")),
        last_updated=_parse_timestamp(bundle.get("generated")),
        source=path,
        rows_skipped=skipped,
    )


def _iter_tsv_rows(path: Path) -> Iterator[dict[str, Any]]:
    with smart_open(path) as f:
        lines = (line for line in f if line.strip() and not line.startswith("#"))
        reader = csv.DictReader(lines, delimiter="\t")
        if not reader.fieldnames:
            raise DatabaseLoadError(path, "TSV table has no header row")
        for row in reader:
            yield {key: value for key, value in row.items() if key is not None}


def _load_tsv(name: str, path: Path) -> TableData:
    try:
        records, skipped = _build_records(name, path, _iter_tsv_rows(path), first_row=2)
    except (UnicodeDecodeError, csv.Error) as e:
        raise DatabaseLoadError(path, f"invalid TSV table: {e}") from e

    return TableData(
        name=name,
        records=records,
        version=None,
        last_updated=datetime.fromtimestamp(path.stat().st_mtime, tz=UTC),
        source=path,
        rows_skipped=skipped,
    )


def load_table(name: str, path: Path | str) -> TableData:
    """Parse one reference table from a JSON bundle or TSV file.

    Args:
        name: Table name (clinvar, pharmgkb or gwas)
        path: Bundle or table path, optionally gzipped

    Returns:
        TableData with the parsed records

    Raises:
        DatabaseLoadError: If the file or any record is invalid
        GenomeIOError: If the file cannot be read
    """
    path = Path(path)
    if name not in RECORD_BUILDERS:
        raise DatabaseLoadError(path, f"unknown table '{name}', expected one of {TABLE_NAMES}")
    if not path.is_file():
        raise GenomeIOError(path, "reference table not found")

    if ".json" in [s.lower() for s in path.suffixes]:
        table = _load_bundle(name, path)
    else:
        table = _load_tsv(name, path)

    logger.info(
        "Loaded %d %s records from %s (%d rows without rsid skipped)",
        len(table.records),
        name,
        path.name,
        table.rows_skipped,
    )
    return table


def find_table_files(directory: Path) -> dict[str, Path]:
    """Locate table files named ``<table>.json[.gz]`` or ``<table>.tsv[.gz]``."""
    found = {}
    for name in TABLE_NAMES:
        for suffix in TABLE_FILE_SUFFIXES:
            candidate = directory / f"{name}{suffix}"
            if candidate.is_file():
                found[name] = candidate
                break
    return found


def resolve_source(source: Path | str | dict[str, Path | str]) -> dict[str, Path]:
    """Turn a directory or ``{table: path}`` mapping into table file paths."""
    if isinstance(source, dict):
        return {name: Path(path) for name, path in source.items()}

    directory = Path(source)
    if not directory.is_dir():
        raise GenomeIOError(directory, "reference database directory not found")

    tables = find_table_files(directory)
    if not tables:
        raise DatabaseLoadError(
            directory, f"no reference tables found (expected {', '.join(TABLE_NAMES)})"
        )
    return tables
