"""Raw multipart/form-data body for the policy import endpoint.

The import endpoint wants two form fields::

    forceImport   "true" / "false"
    policy        the zip archive, filename policyImport.zip

The body is assembled as text with the archive embedded byte-for-byte
(see ``embed_as_byte_safe_text``) and encoded back to bytes with the same
single-byte codec right before sending.
"""

from __future__ import annotations

import uuid
from typing import Optional, Tuple

from .archive import BYTE_SAFE_ENCODING, embed_as_byte_safe_text

CRLF = "\r\n"
IMPORT_FILENAME = "policyImport.zip"


def new_boundary() -> str:
    """A fresh boundary token, unique per request."""
    return uuid.uuid4().hex


def build_import_body(
    archive: bytes,
    force_overwrite: bool,
    boundary: Optional[str] = None,
) -> Tuple[str, str]:
    """Assemble the import request body.

    Args:
        archive: Policy archive bytes (see ``compress``).
        force_overwrite: Overwrite existing policies with the same name.
        boundary: Boundary token; a fresh one is generated when omitted.

    Returns:
        Tuple of (body_text, content_type_header).
    """
    boundary = boundary or new_boundary()
    delimiter = f"--{boundary}"
    lines = [
        delimiter,
        'Content-Disposition: form-data; name="forceImport"',
        "",
        "true" if force_overwrite else "false",
        delimiter,
        f'Content-Disposition: form-data; name="policy"; filename="{IMPORT_FILENAME}"',
        "Content-Type: application/zip",
        "",
        embed_as_byte_safe_text(archive),
        f"{delimiter}--",
        "",
    ]
    body = CRLF.join(lines)
    content_type = f"multipart/form-data; boundary={boundary}"
    return body, content_type


def encode_body(body: str) -> bytes:
    """Encode a body built by ``build_import_body`` for the wire."""
    return body.encode(BYTE_SAFE_ENCODING)
