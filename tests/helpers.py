"""Shared test helpers: in-memory zip archives and mock provider factories."""

import io
import json
import struct
import zipfile
from unittest.mock import MagicMock


def _make_zip(entries: list[tuple[str, str | bytes]]) -> bytes:
    """Build a zip archive in memory. Names ending in '/' become directory entries."""
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for name, content in entries:
            zf.writestr(name, content)
    return buf.getvalue()


def _corrupt_cd_offset(data: bytes, offset: int = 0x7FFFFFFF) -> bytes:
    """Overwrite the central-directory offset in the end-of-central-directory record."""
    buf = bytearray(data)
    eocd = buf.rfind(b"PK\x05\x06")
    struct.pack_into("<I", buf, eocd + 16, offset)
    return bytes(buf)


def _deep_path(depth: int, leaf: str = "x.ts") -> str:
    """A path with ``depth`` folder segments above ``leaf``."""
    return "/".join(["d"] * depth + [leaf])


def _make_mock_provider(reply: dict | str | None = None) -> MagicMock:
    """Create a mock GenerationProvider whose generate() returns ``reply``.

    Dicts are serialized to JSON, as Gemini returns in schema mode.
    """
    if reply is None:
        reply = {"explanation": "Does something useful."}
    provider = MagicMock()
    provider.generate = MagicMock(
        return_value=json.dumps(reply) if isinstance(reply, dict) else reply
    )
    return provider


def _make_failing_provider(exc: Exception | None = None) -> MagicMock:
    provider = MagicMock()
    provider.generate = MagicMock(side_effect=exc or RuntimeError("503 UNAVAILABLE"))
    return provider


def _make_text_response(text: str | None):
    """Create a mock Gemini generate_content response with text content."""
    response = MagicMock()
    response.text = text
    response.function_calls = None
    return response
