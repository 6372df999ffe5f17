"""Policy archive codec.

The policy endpoints only move policies as single-entry zip archives: the
import endpoint expects an entry named ``policyImport.xml`` and the export
endpoint returns one named ``exportedPolicies.xml``.
"""

from __future__ import annotations

import io
import zipfile
import zlib
from pathlib import Path
from typing import Optional, Union

from ..client.errors import CodecError, ValidationError

IMPORT_ENTRY = "policyImport.xml"
EXPORT_ENTRY = "exportedPolicies.xml"

# ISO-8859-1 maps byte values 0-255 one-to-one onto code points U+0000-U+00FF
BYTE_SAFE_ENCODING = "latin-1"

# Fixed metadata keeps archives identical for identical input
_FIXED_DATE_TIME = (1980, 1, 1, 0, 0, 0)
_FIXED_PERMISSIONS = 0o644 << 16

_UTF8_BOM = "\ufeff"


def compress(raw: bytes, entry_name: str) -> bytes:
    """Build an in-memory zip holding ``raw`` as its only entry."""
    info = zipfile.ZipInfo(entry_name, date_time=_FIXED_DATE_TIME)
    info.compress_type = zipfile.ZIP_DEFLATED
    info.create_system = 0
    info.external_attr = _FIXED_PERMISSIONS

    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as zf:
        zf.writestr(info, raw)
    return buffer.getvalue()


def extract_entry(archive: bytes, entry_name: str, node: Optional[str] = None) -> bytes:
    """Return the raw bytes of ``entry_name`` inside ``archive``.

    Raises:
        CodecError: The bytes are not a zip archive or the entry is missing.
            An export made by an account without export permission comes
            back as an error document instead of an archive and lands here.
    """
    try:
        with zipfile.ZipFile(io.BytesIO(archive)) as zf:
            return zf.read(entry_name)
    except KeyError as e:
        raise CodecError(
            "decompress",
            f"archive has no entry {entry_name!r}",
            node=node,
            cause=e,
        )
    except (zipfile.BadZipFile, zlib.error, EOFError, ValueError) as e:
        raise CodecError(
            "decompress",
            f"response is not a valid policy archive ({e}); "
            "check that the account has permission to export policies",
            node=node,
            cause=e,
        )


def decompress(
    archive: bytes,
    entry_name: str,
    encoding: str = "utf-8",
    node: Optional[str] = None,
) -> str:
    """Return the contents of ``entry_name`` as text.

    A leading byte-order mark is dropped so the text can be written back
    out without one.
    """
    data = extract_entry(archive, entry_name, node=node)
    try:
        text = data.decode(encoding)
    except UnicodeDecodeError as e:
        raise CodecError("decompress", f"entry {entry_name!r} is not {encoding} text", node=node, cause=e)
    if text.startswith(_UTF8_BOM):
        text = text[1:]
    return text


def embed_as_byte_safe_text(archive: bytes) -> str:
    """Re-encode raw bytes as text with exactly one character per byte."""
    return archive.decode(BYTE_SAFE_ENCODING)


def recover_bytes(text: str) -> bytes:
    """Inverse of ``embed_as_byte_safe_text``."""
    return text.encode(BYTE_SAFE_ENCODING)


def write_utf8_no_bom(text: str, path: Union[str, Path]) -> Path:
    """Write ``text`` as UTF-8 without a byte-order mark.

    The import endpoint rejects files that start with a BOM, so one is
    stripped here if the text carries it.

    Raises:
        ValidationError: The parent directory does not exist.
    """
    target = Path(path)
    if not target.parent.is_dir():
        raise ValidationError("write_policy", f"directory does not exist: {target.parent}")
    if text.startswith(_UTF8_BOM):
        text = text[1:]
    target.write_bytes(text.encode("utf-8"))
    return target
