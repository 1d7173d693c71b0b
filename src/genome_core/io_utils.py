"""I/O utilities for transparent gzip handling.

Compression is detected from magic bytes, not the file name, so a
mislabeled ``.txt`` that is really gzip still opens.

Example:
    with smart_open(Path("genome.vcf.gz")) as f:
        for line in f:
            process(line)
"""

import gzip
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import TextIO

from .exceptions import GenomeIOError

GZIP_MAGIC = b"\x1f\x8b"


def is_gzipped(filepath: Path) -> bool:
    """Detect if a file is gzip-compressed.

    Checks magic bytes first, falls back to the extension if the file is
    too small to tell.

    Raises:
        GenomeIOError: If the file cannot be opened
    """
    try:
        with open(filepath, "rb") as f:
            magic = f.read(2)
    except OSError as e:
        raise GenomeIOError(filepath, e.strerror or str(e)) from e

    if len(magic) >= 2:
        return magic == GZIP_MAGIC
    return filepath.suffix.lower() == ".gz"


@contextmanager
def smart_open(filepath: Path, encoding: str = "utf-8") -> Iterator[TextIO]:
    """Open a genome or database file as text with automatic gzip detection.

    The handle is closed however the block exits, including when a
    generator reading from it is abandoned part way through.

    Raises:
        GenomeIOError: On open or read failures (including corrupt gzip data)
    """
    filepath = Path(filepath)
    gzipped = is_gzipped(filepath)

    try:
        if gzipped:
            f = gzip.open(filepath, "rt", encoding=encoding, newline="")
        else:
            f = open(filepath, encoding=encoding, newline="")
    except OSError as e:
        raise GenomeIOError(filepath, e.strerror or str(e)) from e

    try:
        yield f
    except (OSError, EOFError) as e:
        raise GenomeIOError(filepath, str(e) or type(e).__name__) from e
    finally:
        f.close()


def iter_lines(filepath: Path) -> Iterator[str]:
    """Iterate over lines with trailing newline characters stripped."""
    with smart_open(filepath) as f:
        for line in f:
            yield line.rstrip("\r\n")


def read_prefix(filepath: Path, max_chars: int) -> list[str]:
    """Read at most ``max_chars`` characters of decoded text as a list of lines.

    A trailing partial line is dropped unless it is the only content.
    """
    with smart_open(filepath) as f:
        text = f.read(max_chars)

    lines = text.splitlines()
    if len(text) >= max_chars and len(lines) > 1 and not text.endswith(("\n", "\r")):
        lines = lines[:-1]
    return lines
