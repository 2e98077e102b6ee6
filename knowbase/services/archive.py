"""Reading markdown entries out of uploaded zip archives."""

import io
import logging
import zipfile
from pathlib import PurePosixPath
from typing import Iterator, NamedTuple, Optional

from knowbase.errors import DecodeError

logger = logging.getLogger(__name__)

MARKDOWN_SUFFIX = ".md"


class ArchiveEntry(NamedTuple):
    path: str
    data: bytes
    skip_reason: Optional[str] = None  # set when the entry must not be assembled


def enclosed_name(name: str) -> Optional[str]:
    """Return *name* as a safe relative path, or None if it could escape.

    Absolute names, names with ``..`` components and names containing NUL
    are rejected.
    """
    if "\0" in name:
        return None
    path = PurePosixPath(name.replace("\\", "/"))
    if path.is_absolute() or ".." in path.parts:
        return None
    cleaned = str(path)
    if cleaned in ("", "."):
        return None
    return cleaned


def iter_markdown_entries(data: bytes, max_entry_bytes: int) -> Iterator[ArchiveEntry]:
    """Yield the markdown files of the zip archive *data*, in archive order.

    Directories, non-markdown files and unsafe names are left out.  Entries
    larger than *max_entry_bytes* are yielded without data and with a
    ``skip_reason``.

    Raises:
        ValueError: if *data* is not a readable zip archive.
    """
    try:
        archive = zipfile.ZipFile(io.BytesIO(data))
    except zipfile.BadZipFile as exc:
        raise ValueError(f"Not a valid zip archive: {exc}") from exc

    with archive:
        for info in archive.infolist():
            if info.is_dir() or not info.filename.endswith(MARKDOWN_SUFFIX):
                continue
            name = enclosed_name(info.filename)
            if name is None:
                logger.warning("Skipping unsafe archive entry", extra={"entry": info.filename})
                continue
            if info.file_size > max_entry_bytes:
                yield ArchiveEntry(name, b"", f"larger than {max_entry_bytes} bytes")
                continue
            try:
                content = archive.read(info)
            except (zipfile.BadZipFile, RuntimeError, NotImplementedError) as exc:
                raise ValueError(f"Cannot read archive entry {info.filename}: {exc}") from exc
            yield ArchiveEntry(name, content)


def decode_markdown(entry: ArchiveEntry) -> str:
    """Decode the bytes of *entry* as UTF-8.

    Raises:
        DecodeError: if the bytes are not valid UTF-8.
    """
    try:
        return entry.data.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise DecodeError(entry.path, exc.reason) from exc
