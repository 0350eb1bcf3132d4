"""Test OBEX byte-codec helpers."""

import pytest

from boogiesync.exceptions import ProtocolError
from boogiesync.protocol.utils import (
    bytes_to_length,
    decode_name,
    encode_name,
    length_to_bytes,
    parse_folder_listing,
)


class TestLengths:
    """Test 2-byte big-endian length conversions."""

    def test_length_to_bytes(self):
        assert length_to_bytes(0x1234) == b"\x12\x34"
        assert length_to_bytes(3) == b"\x00\x03"

    def test_bytes_to_length(self):
        assert bytes_to_length(b"\xff\xdc") == 0xFFDC
        assert bytes_to_length(b"\x00\x03\x99") == 3  # Extra bytes ignored

    def test_length_out_of_range(self):
        with pytest.raises(ValueError, match="out of range"):
            length_to_bytes(0x10000)
        with pytest.raises(ValueError, match="out of range"):
            length_to_bytes(-1)


class TestNames:
    """Test OBEX Unicode name encoding."""

    def test_encode_name_is_null_terminated_utf16be(self):
        assert encode_name("ab") == b"\x00a\x00b\x00\x00"

    def test_encode_empty_name(self):
        assert encode_name("") == b"\x00\x00"

    def test_decode_name_strips_terminator(self):
        assert decode_name(b"\x00S\x00A\x00V\x00E\x00D\x00\x00") == "SAVED"

    def test_decode_odd_length_name(self):
        with pytest.raises(ProtocolError, match="Odd-length"):
            decode_name(b"\x00S\x00")


class TestParseFolderListing:
    """Test x-obex/folder-listing parsing."""

    def test_parse_folders_and_files(self, folder_listing_xml):
        listing = parse_folder_listing(folder_listing_xml)

        assert [f.name for f in listing.folders] == ["SAVED", "BACKUP"]
        assert listing.folders[0].modified == "20150102T030405Z"
        assert len(listing.files) == 1
        assert listing.files[0].name == "SYNC0001.PDF"
        assert listing.files[0].size == 2048

    def test_parse_empty_listing(self):
        listing = parse_folder_listing(b'<folder-listing version="1.0"/>')
        assert listing.folders == ()
        assert listing.files == ()

    def test_parse_ignores_trailing_nulls(self):
        listing = parse_folder_listing(b'<folder-listing><file name="a"/></folder-listing>\x00')
        assert listing.files[0].name == "a"
        assert listing.files[0].size is None

    def test_parse_malformed_xml(self):
        with pytest.raises(ProtocolError, match="Malformed folder listing"):
            parse_folder_listing(b"<folder-listing><folder")
