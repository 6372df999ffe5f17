"""Wire codecs - policy archives and the multipart import body."""

from .archive import (
    IMPORT_ENTRY,
    EXPORT_ENTRY,
    compress,
    decompress,
    extract_entry,
    embed_as_byte_safe_text,
    recover_bytes,
    write_utf8_no_bom,
)
from .multipart import build_import_body, encode_body, new_boundary

__all__ = [
    "IMPORT_ENTRY",
    "EXPORT_ENTRY",
    "compress",
    "decompress",
    "extract_entry",
    "embed_as_byte_safe_text",
    "recover_bytes",
    "write_utf8_no_bom",
    "build_import_body",
    "encode_body",
    "new_boundary",
]
