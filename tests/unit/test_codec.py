"""Tests for the policy archive codec and the multipart import body."""

import io
import zipfile
from email.parser import BytesParser

import pytest

from src.client.errors import CodecError, ValidationError
from src.codec.archive import (
    EXPORT_ENTRY,
    IMPORT_ENTRY,
    compress,
    decompress,
    embed_as_byte_safe_text,
    extract_entry,
    recover_bytes,
    write_utf8_no_bom,
)
from src.codec.multipart import build_import_body, encode_body, new_boundary

ALL_BYTES = bytes(range(256))


def _parse_multipart(body, content_type):
    raw = f"Content-Type: {content_type}\r\n\r\n".encode("ascii") + encode_body(body)
    return BytesParser().parsebytes(raw)


class TestArchive:
    def test_roundtrip_empty(self):
        assert extract_entry(compress(b"", IMPORT_ENTRY), IMPORT_ENTRY) == b""

    def test_roundtrip_all_byte_values(self):
        raw = ALL_BYTES * 8
        assert extract_entry(compress(raw, EXPORT_ENTRY), EXPORT_ENTRY) == raw

    def test_roundtrip_large_xml_text(self):
        xml = "<PolicyContent>" + "<Alert id=\"x\" enabled=\"true\"/>" * 500 + "</PolicyContent>"
        archive = compress(xml.encode("utf-8"), EXPORT_ENTRY)
        assert decompress(archive, EXPORT_ENTRY) == xml

    def test_single_named_entry(self):
        archive = compress(b"<x/>", IMPORT_ENTRY)
        with zipfile.ZipFile(io.BytesIO(archive)) as zf:
            assert zf.namelist() == [IMPORT_ENTRY]

    def test_deterministic(self):
        assert compress(b"<x/>", IMPORT_ENTRY) == compress(b"<x/>", IMPORT_ENTRY)

    def test_decompress_strips_bom(self):
        archive = compress("\ufeff<x/>".encode("utf-8"), EXPORT_ENTRY)
        assert decompress(archive, EXPORT_ENTRY) == "<x/>"

    def test_missing_entry(self):
        archive = compress(b"<x/>", IMPORT_ENTRY)
        with pytest.raises(CodecError) as exc:
            decompress(archive, EXPORT_ENTRY, node="n1")
        assert "exportedPolicies.xml" in str(exc.value)
        assert exc.value.node == "n1"

    def test_not_an_archive(self):
        # What an account without export permission gets back
        with pytest.raises(CodecError) as exc:
            decompress(b'{"message": "Forbidden"}', EXPORT_ENTRY)
        assert "permission" in str(exc.value)


class TestByteSafeText:
    def test_one_character_per_byte(self):
        text = embed_as_byte_safe_text(ALL_BYTES)
        assert len(text) == 256
        assert [ord(c) for c in text] == list(range(256))

    def test_recover_bytes(self):
        assert recover_bytes(embed_as_byte_safe_text(ALL_BYTES)) == ALL_BYTES


class TestWriteUtf8NoBom:
    def test_writes_utf8_without_bom(self, temp_data_dir):
        path = write_utf8_no_bom("<Policy name=\"Café\"/>", temp_data_dir / "p.xml")
        data = path.read_bytes()
        assert not data.startswith(b"\xef\xbb\xbf")
        assert data.decode("utf-8") == "<Policy name=\"Café\"/>"

    def test_strips_leading_bom(self, temp_data_dir):
        path = write_utf8_no_bom("\ufeff<x/>", temp_data_dir / "p.xml")
        assert path.read_bytes() == b"<x/>"

    def test_missing_directory(self, temp_data_dir):
        with pytest.raises(ValidationError):
            write_utf8_no_bom("<x/>", temp_data_dir / "missing" / "p.xml")


class TestImportBody:
    def test_boundary_matches_header(self):
        body, content_type = build_import_body(b"PK", True, boundary="abc123")

        assert content_type == "multipart/form-data; boundary=abc123"
        assert body.startswith("--abc123\r\n")
        assert body.endswith("\r\n--abc123--\r\n")
        assert body.count("--abc123") == 3

    def test_fresh_boundary_per_call(self):
        _, first = build_import_body(b"PK", False)
        _, second = build_import_body(b"PK", False)
        assert first != second
        assert new_boundary() != new_boundary()

    def test_parses_into_two_parts(self):
        archive = compress(b"<PolicyContent/>", IMPORT_ENTRY)
        body, content_type = build_import_body(archive, True)

        msg = _parse_multipart(body, content_type)
        parts = msg.get_payload()

        assert len(parts) == 2
        force, policy = parts
        assert force.get_param("name", header="content-disposition") == "forceImport"
        assert force.get_payload() == "true"
        assert policy.get_param("name", header="content-disposition") == "policy"
        assert policy.get_filename() == "policyImport.zip"
        assert policy.get_payload(decode=True) == archive

    def test_force_false(self):
        body, content_type = build_import_body(b"PK", False)
        force = _parse_multipart(body, content_type).get_payload()[0]
        assert force.get_payload() == "false"

    def test_archive_survives_body_encoding(self):
        archive = compress(ALL_BYTES * 4, IMPORT_ENTRY)
        body, content_type = build_import_body(archive, False)
        policy = _parse_multipart(body, content_type).get_payload()[1]
        assert extract_entry(policy.get_payload(decode=True), IMPORT_ENTRY) == ALL_BYTES * 4
