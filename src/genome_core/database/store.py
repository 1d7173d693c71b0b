"""In-memory reference database with atomic snapshot publishing.

Readers take the current DatabaseSnapshot with a single attribute read and
never see a partially loaded table. Loads build a complete new snapshot off
to the side and publish it with one reference swap; a failed load leaves the
previous snapshot in place.
"""

import logging
import threading
from collections import defaultdict
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from types import MappingProxyType

from ..exceptions import DatabaseNotLoadedError
from ..utils.validators import normalize_rsid
from ..utils.variant_matching import make_position_key, normalize_chromosome
from .loader import (
    CLINVAR,
    GWAS,
    PHARMGKB,
    TABLE_NAMES,
    ReferenceRecord,
    TableData,
    load_table,
    resolve_source,
)
from .models import ClinicalRecord, PharmacoRecord, TableStatus, TraitRecord

logger = logging.getLogger(__name__)


class ReferenceTable:
    """Immutable rsid-keyed index over one table's records."""

    def __init__(
        self,
        name: str,
        records: Iterable[ReferenceRecord],
        version: str | None = None,
        last_updated: datetime | None = None,
    ):
        by_rsid: dict[str, list[ReferenceRecord]] = defaultdict(list)
        by_position: dict[tuple[str, int], list[ReferenceRecord]] = defaultdict(list)
        count = 0

        for record in records:
            count += 1
            by_rsid[record.rsid].append(record)
            if getattr(record, "position", None) is not None:
                by_position[make_position_key(record.chromosome, record.position)].append(record)

        self.name = name
        self.version = version
        self.last_updated = last_updated
        self.record_count = count
        self._by_rsid = MappingProxyType({k: tuple(v) for k, v in by_rsid.items()})
        self._by_position = MappingProxyType({k: tuple(v) for k, v in by_position.items()})

    def __len__(self) -> int:
        return self.record_count

    def lookup(self, rsid: str) -> tuple[ReferenceRecord, ...]:
        key = normalize_rsid(rsid)
        if key is None:
            return ()
        return self._by_rsid.get(key, ())

    def lookup_position(self, chromosome: str, position: int) -> tuple[ReferenceRecord, ...]:
        chrom = normalize_chromosome(chromosome)
        if chrom is None:
            return ()
        return self._by_position.get(make_position_key(chrom, position), ())

    def status(self) -> TableStatus:
        return TableStatus(
            loaded=True,
            record_count=self.record_count,
            last_updated=self.last_updated,
            version=self.version,
        )


@dataclass(frozen=True)
class DatabaseSnapshot:
    """One consistent, read-only view of all loaded reference tables."""

    tables: Mapping[str, ReferenceTable] = field(
        default_factory=lambda: MappingProxyType({})
    )
    loaded_at: datetime | None = None

    def is_loaded(self, name: str) -> bool:
        return name in self.tables

    def table(self, name: str) -> ReferenceTable:
        try:
            return self.tables[name]
        except KeyError:
            raise DatabaseNotLoadedError([name]) from None

    def require(self, names: Iterable[str]) -> None:
        """Raise DatabaseNotLoadedError listing every missing table."""
        missing = [name for name in names if name not in self.tables]
        if missing:
            raise DatabaseNotLoadedError(missing)

    def lookup_clinical(self, rsid: str) -> tuple[ClinicalRecord, ...]:
        return self.table(CLINVAR).lookup(rsid)

    def lookup_pharmaco(self, rsid: str) -> tuple[PharmacoRecord, ...]:
        return self.table(PHARMGKB).lookup(rsid)

    def lookup_traits(self, rsid: str) -> tuple[TraitRecord, ...]:
        return self.table(GWAS).lookup(rsid)

    def status(self) -> dict[str, TableStatus]:
        return {
            name: self.tables[name].status() if name in self.tables else TableStatus(loaded=False)
            for name in TABLE_NAMES
        }

    @property
    def versions(self) -> dict[str, str | None]:
        return {name: table.version for name, table in self.tables.items()}


class ReferenceDatabase:
    """Holds the published snapshot of ClinVar, PharmGKB and GWAS tables.

    Lookups are safe from any number of threads while a reload runs.
    Concurrent loads are serialized; the last one to finish wins.

    Example:
        db = ReferenceDatabase()
        db.load(Path("reference/"))
        for record in db.lookup_clinical("rs429358"):
            print(record.condition)
    """

    def __init__(self) -> None:
        self._snapshot = DatabaseSnapshot()
        self._write_lock = threading.Lock()

    def snapshot(self) -> DatabaseSnapshot:
        """Return the current snapshot; it never changes after publishing."""
        return self._snapshot

    def _publish(self, tables: Iterable[TableData]) -> DatabaseSnapshot:
        built = {
            table.name: ReferenceTable(
                table.name,
                table.records,
                version=table.version,
                last_updated=table.last_updated,
            )
            for table in tables
        }
        snapshot = DatabaseSnapshot(
            tables=MappingProxyType(built), loaded_at=datetime.now(UTC)
        )
        self._snapshot = snapshot
        logger.info(
            "Published reference snapshot: %s",
            ", ".join(f"{name}={len(t)}" for name, t in built.items()) or "no tables",
        )
        return snapshot

    def load(self, source: Path | str | dict[str, Path | str]) -> DatabaseSnapshot:
        """Load every table from a directory or ``{table: path}`` mapping.

        The new snapshot replaces the previous one wholesale; tables absent
        from the source become not loaded.

        Raises:
            DatabaseLoadError: If any table is malformed; the previous
                snapshot stays published
            GenomeIOError: If a table file cannot be read
        """
        paths = resolve_source(source)
        with self._write_lock:
            tables = [load_table(name, path) for name, path in paths.items()]
            return self._publish(tables)

    def load_records(
        self,
        clinical: Iterable[ClinicalRecord] | None = None,
        pharmaco: Iterable[PharmacoRecord] | None = None,
        traits: Iterable[TraitRecord] | None = None,
        versions: Mapping[str, str] | None = None,
    ) -> DatabaseSnapshot:
        """Publish tables built from in-memory records.

        A table passed as None is not loaded; an empty iterable loads an
        empty table.
        """
        versions = versions or {}
        now = datetime.now(UTC)
        tables = []
        with self._write_lock:
            for name, records in ((CLINVAR, clinical), (PHARMGKB, pharmaco), (GWAS, traits)):
                if records is None:
                    continue
                tables.append(
                    TableData(
                        name=name,
                        records=list(records),
                        version=versions.get(name),
                        last_updated=now,
                        source=Path("<memory>"),
                    )
                )
            return self._publish(tables)

    def lookup_clinical(self, rsid: str) -> tuple[ClinicalRecord, ...]:
        return self._snapshot.lookup_clinical(rsid)

    def lookup_pharmaco(self, rsid: str) -> tuple[PharmacoRecord, ...]:
        return self._snapshot.lookup_pharmaco(rsid)

    def lookup_traits(self, rsid: str) -> tuple[TraitRecord, ...]:
        return self._snapshot.lookup_traits(rsid)

    def status(self) -> dict[str, TableStatus]:
        return self._snapshot.status()
