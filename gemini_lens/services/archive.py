from __future__ import annotations

import io
import logging
import zipfile
from collections.abc import Iterable, Sequence
from contextlib import suppress
from pathlib import Path

from ..config.loader import DEFAULT_ARCHIVE_FOLDER, DEFAULT_ARCHIVE_NAME
from ..models.generated_image import GeneratedImage

"""Archive export for bulk results.

Every result becomes ``<folder>/<file_name>.png`` inside one deflated ZIP.
Duplicate names are resolved in processing order with a counter keyed by the
original file name: the first "a" stays "a", the next ones become "a_2",
"a_3", ... Renamed outputs are not checked again, so ``a, a_2, a`` maps the
third result onto "a_2" as well; in that case the later image replaces the
earlier entry.
"""

__all__ = [
    "ARCHIVE_NAME",
    "ARCHIVE_FOLDER",
    "ExportError",
    "dedupe_file_names",
    "build_archive",
    "write_archive",
]

ARCHIVE_NAME = DEFAULT_ARCHIVE_NAME
ARCHIVE_FOLDER = DEFAULT_ARCHIVE_FOLDER
ENTRY_EXTENSION = ".png"

logger = logging.getLogger(__name__)


class ExportError(Exception):
    """Raised when the archive cannot be built or written."""


def dedupe_file_names(names: Iterable[str]) -> list[str]:
    """Apply the per-name occurrence counter to ``names`` in order."""
    used: dict[str, int] = {}
    out: list[str] = []
    for name in names:
        if name in used:
            used[name] += 1
            out.append(f"{name}_{used[name]}")
        else:
            used[name] = 1
            out.append(name)
    return out


def _archive_entries(results: Sequence[GeneratedImage], folder: str) -> dict[str, bytes]:
    entries: dict[str, bytes] = {}
    for result, name in zip(results, dedupe_file_names(r.file_name for r in results), strict=True):
        entry = f"{folder}/{name}{ENTRY_EXTENSION}" if folder else f"{name}{ENTRY_EXTENSION}"
        if entry in entries:
            logger.warning("duplicate archive entry replaced: %s", entry)
        entries[entry] = result.payload.data
    return entries


def build_archive(results: Sequence[GeneratedImage], folder: str = ARCHIVE_FOLDER) -> bytes:
    """Package ``results`` into ZIP bytes.

    Raises:
        ExportError: No results, or the ZIP could not be assembled
    """
    if not results:
        raise ExportError("no generated images to export")

    buffer = io.BytesIO()
    try:
        with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as zipf:
            entries = _archive_entries(results, folder)
            for entry, data in entries.items():
                zipf.writestr(entry, data)
    except (zipfile.BadZipFile, zipfile.LargeZipFile, OSError, ValueError) as e:
        raise ExportError(f"failed to build archive: {e}") from e
    logger.debug("archive built: %d entries, %d bytes", len(entries), buffer.tell())
    return buffer.getvalue()


def write_archive(
    results: Sequence[GeneratedImage],
    path: Path,
    folder: str = ARCHIVE_FOLDER,
) -> Path:
    """Build the archive and write it to ``path``.

    The bytes are fully assembled before the file is opened, so a failure
    never leaves a partial archive on disk.
    """
    content = build_archive(results, folder=folder)
    tmp = path.with_name(path.name + ".part")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp.write_bytes(content)
        tmp.replace(path)
    except OSError as e:
        with suppress(OSError):
            tmp.unlink()
        raise ExportError(f"failed to write {path}: {e}") from e
    return path
