"""Error taxonomy for the genome analysis core.

Structural and I/O failures abort a run and carry enough context (path,
line number) for the caller to act. Per-line data problems are not errors:
parsers count them as skipped lines instead.
"""

from collections.abc import Iterable
from pathlib import Path


class GenomeCoreError(Exception):
    """Base class for all genome_core errors."""

    pass


class UnsupportedFormatError(GenomeCoreError):
    """Raised when an input file cannot be classified as a supported format."""

    def __init__(self, path: Path | str, reason: str):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Unsupported genome file format: {self.path.name}: {reason}")


class GenomeParseError(GenomeCoreError):
    """Structural parse failure; the whole file is rejected."""

    def __init__(self, line: int, reason: str, path: Path | str | None = None):
        self.line = line
        self.reason = reason
        self.path = Path(path) if path is not None else None
        location = f"{self.path.name}:{line}" if self.path is not None else f"line {line}"
        super().__init__(f"Error parsing {location}: {reason}")


class GenomeIOError(GenomeCoreError):
    """Underlying read failure on an input or database file."""

    def __init__(self, path: Path | str, reason: str):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Cannot read {self.path}: {reason}")


class DatabaseNotLoadedError(GenomeCoreError):
    """Matching or lookup attempted against a table that was never loaded."""

    def __init__(self, tables: Iterable[str]):
        self.tables = tuple(sorted(tables))
        super().__init__(f"Reference database not loaded: {', '.join(self.tables)}")


class DatabaseLoadError(GenomeCoreError):
    """A reference database source could not be parsed."""

    def __init__(self, source: Path | str, reason: str):
        self.source = str(source)
        self.reason = reason
        super().__init__(f"Failed to load reference data from {self.source}: {reason}")
