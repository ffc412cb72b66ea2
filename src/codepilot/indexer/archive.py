"""Read an uploaded zip archive into a FileIndex of source-like files."""

from __future__ import annotations

import base64
import binascii
import io
import logging
import re
import struct
import time
import zipfile
import zlib

from codepilot import config
from codepilot.errors import DecodeError
from codepilot.storage.file_index import FileIndex

logger = logging.getLogger(__name__)

# Exact, case-sensitive suffix match
CODE_FILE_EXTENSIONS = (
    ".ts", ".tsx", ".js", ".jsx", ".py", ".go", ".java", ".cs",
    ".rb", ".php", ".html", ".css", ".scss", ".json", ".md",
)

_DATA_URI_RE = re.compile(r"^data:(?P<mime>[^;,]*)(?P<params>(?:;[^;,]*)*?);base64,(?P<payload>.*)$", re.DOTALL)


def is_code_file(path: str) -> bool:
    """Whether ``path`` ends with one of the kept extensions."""
    return path.endswith(CODE_FILE_EXTENSIONS)


def normalize_path(name: str) -> str:
    """Drop empty segments from an archive entry name (``a//b/`` -> ``a/b``)."""
    return "/".join(p for p in name.split("/") if p)


def decode_data_uri(uri: str) -> bytes:
    """Decode a ``data:<mime>;base64,<payload>`` string into raw bytes.

    Raises:
        DecodeError: If the string is not a base64 data URI.
    """
    match = _DATA_URI_RE.match(uri.strip())
    if not match:
        raise DecodeError("Expected a base64 data URI ('data:<mimetype>;base64,<data>').")
    try:
        return base64.b64decode(match.group("payload"), validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecodeError(f"Invalid base64 payload in data URI: {e}") from e


def read_archive(data: bytes, max_bytes: int | None = None) -> FileIndex:
    """Decompress ``data`` and keep every file whose name has a code extension.

    Entries are read in archive order. Directory entries and files with
    other extensions are skipped silently. Kept files are decoded as UTF-8
    (undecodable bytes are replaced) and stored under their archive path.
    If the archive lists the same path twice, the later entry's content wins.

    Args:
        data: Raw zip bytes.
        max_bytes: Cap on the total uncompressed size of kept files.
            None uses ``config.MAX_UPLOAD_BYTES``; 0 disables the cap.

    Returns:
        A new FileIndex. Nothing is returned on failure, so callers never
        see a partially-read archive.

    Raises:
        DecodeError: If the data is not a readable zip archive, or the
            kept files exceed ``max_bytes``, or a kept path is deeper than
            ``config.MAX_PATH_DEPTH`` segments.
    """
    if max_bytes is None:
        max_bytes = config.MAX_UPLOAD_BYTES

    t0 = time.perf_counter()
    entries: list[tuple[str, str]] = []
    skipped = 0
    total = 0
    try:
        with zipfile.ZipFile(io.BytesIO(data)) as zf:
            for info in zf.infolist():
                if info.is_dir() or not is_code_file(info.filename):
                    skipped += 1
                    continue
                path = normalize_path(info.filename)
                if not path:
                    skipped += 1
                    continue
                if path.count("/") >= config.MAX_PATH_DEPTH:
                    raise DecodeError(
                        f"Archive entry nests deeper than {config.MAX_PATH_DEPTH} path segments"
                    )
                total += info.file_size
                if max_bytes and total > max_bytes:
                    raise DecodeError(
                        f"Archive exceeds the {max_bytes} byte limit for source files"
                    )
                raw = zf.read(info)
                entries.append((path, raw.decode("utf-8", errors="replace")))
    except (
        zipfile.BadZipFile, zipfile.LargeZipFile, zlib.error, struct.error,
        EOFError, OSError, NotImplementedError,
    ) as e:
        raise DecodeError(f"Could not process the ZIP file: {e}") from e
    except (RuntimeError, ValueError) as e:
        # RuntimeError: encrypted entries. ValueError: negative seek from bad offsets.
        raise DecodeError(f"Could not process the ZIP file: {e}") from e

    index = FileIndex(entries)
    logger.info(
        "Read archive: %d files kept, %d entries skipped, %d chars (%.0fms)",
        len(index), skipped, index.total_chars, (time.perf_counter() - t0) * 1000,
    )
    return index
