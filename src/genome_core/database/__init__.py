"""Reference database of ClinVar, PharmGKB and GWAS Catalog records."""

from .loader import CLINVAR, GWAS, PHARMGKB, TABLE_NAMES, TableData, load_table
from .models import (
    ClinicalRecord,
    ClinicalSignificance,
    PharmacoRecord,
    TableStatus,
    TraitRecord,
    parse_significance,
)
from .store import DatabaseSnapshot, ReferenceDatabase, ReferenceTable

__all__ = [
    "CLINVAR",
    "GWAS",
    "PHARMGKB",
    "TABLE_NAMES",
    "ClinicalRecord",
    "ClinicalSignificance",
    "DatabaseSnapshot",
    "PharmacoRecord",
    "ReferenceDatabase",
    "ReferenceTable",
    "TableData",
    "TableStatus",
    "TraitRecord",
    "load_table",
    "parse_significance",
]
