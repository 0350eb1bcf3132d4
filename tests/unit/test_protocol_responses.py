"""Test OBEX response parsing."""

import pytest

from boogiesync.exceptions import InvalidResponseError
from boogiesync.protocol import HeaderId, Response, ResponseCode, describe_response_code

from .obex_packets import CONNECTION_ID, connect_response, header, response


class TestParseConnectResponse:
    """Test CONNECT responses, which carry version/flags/max-size fields."""

    def test_parse_connect_response(self):
        parsed = Response.parse(connect_response(), connect=True)

        assert parsed.code == ResponseCode.SUCCESS
        assert parsed.version == 0x10
        assert parsed.flags == 0x00
        assert parsed.maximum_size == 0x2000
        assert parsed.connection_id == CONNECTION_ID
        assert parsed.get_header(HeaderId.WHO) is not None

    def test_minimal_connect_response(self):
        data = b"\xa0\x00\x0c\x10\x00\xff\xdc\xcb\x00\x00\x00\x01"
        parsed = Response.parse(data, connect=True)

        assert parsed.length == 12
        assert parsed.maximum_size == 0xFFDC
        assert parsed.connection_id == CONNECTION_ID

    def test_connect_fields_truncated(self):
        with pytest.raises(InvalidResponseError, match="CONNECT response too short"):
            Response.parse(b"\xa0\x00\x05\x10\x00", connect=True)

    def test_bare_connect_failure(self):
        parsed = Response.parse(b"\xc3\x00\x03", connect=True)

        assert parsed.code == ResponseCode.FORBIDDEN
        assert parsed.version is None


class TestParseResponse:
    """Test non-CONNECT responses."""

    def test_parse_body_response(self):
        data = response(0x90, header(0x48, b"chunk"))
        parsed = Response.parse(data)

        assert parsed.code == ResponseCode.CONTINUE
        assert parsed.get_header(HeaderId.BODY).body == b"chunk"
        assert parsed.version is None

    def test_empty_body(self):
        parsed = Response.parse(response(0xA0, header(0x49, b"")))
        assert parsed.get_header(HeaderId.END_OF_BODY).body == b""

    def test_fixed_length_headers(self):
        data = response(0xA0, b"\xcb" + CONNECTION_ID, b"\xc3\x00\x00\x01\x00")
        parsed = Response.parse(data)

        assert parsed.connection_id == CONNECTION_ID
        assert parsed.get_header(HeaderId.LENGTH).body == b"\x00\x00\x01\x00"

    def test_last_header_wins(self):
        data = response(0xA0, header(0x48, b"first"), header(0x48, b"second"))
        assert Response.parse(data).get_header(HeaderId.BODY).body == b"second"

    def test_unknown_header_kept_by_raw_id(self):
        parsed = Response.parse(response(0xA0, header(0x44, b"\x01\x02")))
        assert parsed.get_header(0x44).body == b"\x01\x02"

    def test_trailing_bytes_ignored(self):
        data = response(0xA0) + b"\xff\xff"
        parsed = Response.parse(data)

        assert parsed.length == 3
        assert parsed.headers == {}

    def test_unknown_response_code(self):
        parsed = Response.parse(b"\x7f\x00\x03")
        assert parsed.code == 0x7F


class TestMalformedResponses:
    """Test that malformed input is rejected with InvalidResponseError."""

    def test_too_short(self):
        with pytest.raises(InvalidResponseError, match="too short"):
            Response.parse(b"\xa0\x00")

    def test_declared_length_too_small(self):
        with pytest.raises(InvalidResponseError, match="Invalid declared length"):
            Response.parse(b"\xa0\x00\x02")

    def test_truncated_packet(self):
        with pytest.raises(InvalidResponseError, match="truncated"):
            Response.parse(b"\xa0\x00\x10\x48")

    def test_header_prefix_truncated(self):
        with pytest.raises(InvalidResponseError, match="prefix truncated"):
            Response.parse(b"\xa0\x00\x05\x48\x00")

    def test_header_length_too_small(self):
        with pytest.raises(InvalidResponseError, match="invalid length"):
            Response.parse(b"\xa0\x00\x06\x48\x00\x01")

    def test_header_overruns_packet(self):
        with pytest.raises(InvalidResponseError, match="overruns"):
            Response.parse(b"\xa0\x00\x07\x48\x00\x09\x00")

    def test_fixed_header_overruns_packet(self):
        with pytest.raises(InvalidResponseError, match="overruns"):
            Response.parse(b"\xa0\x00\x06\xcb\x00\x00")


class TestDescribeResponseCode:
    def test_known_code(self):
        assert describe_response_code(0xC4) == "NOT_FOUND"

    def test_unknown_code(self):
        assert describe_response_code(0x7F) == "0x7f"
