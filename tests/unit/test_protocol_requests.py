"""Test OBEX request assembly and the FTP request builders."""

import pytest

from boogiesync.protocol import (
    FOLDER_LISTING_TYPE,
    OBEX_FTP_TARGET,
    Header,
    HeaderId,
    Request,
    RequestCode,
    RequestFlags,
    build_connect_request,
    build_delete_request,
    build_disconnect_request,
    build_get_file_request,
    build_list_folder_request,
    build_set_path_request,
)

CONNECTION_ID = b"\x00\x00\x00\x01"
CONNECTION_HEADER = b"\xcb" + CONNECTION_ID


class TestRequest:
    """Test generic request encoding."""

    def test_empty_request(self):
        request = Request(RequestCode.DISCONNECT)

        assert request.data == b"\x81\x00\x03"
        assert request.length == 3

    def test_encoding_tracks_mutations(self):
        request = Request(RequestCode.GET)
        before = request.data

        request.add_header(Header.create(HeaderId.NAME, name="a"))

        assert request.data != before
        assert request.length == 3 + 7

    def test_add_header_replaces_same_id(self):
        request = Request(RequestCode.GET)
        request.add_header(Header.create(HeaderId.NAME, name="a"))
        request.add_header(Header.create(HeaderId.NAME, name="b"))

        assert len(request.headers) == 1
        assert request.get_header(HeaderId.NAME).name == "b"

    def test_to_bytes_matches_data(self):
        request = build_connect_request()
        assert request.to_bytes() == request.data

    def test_oversized_request(self):
        request = Request(RequestCode.PUT)
        request.add_header(Header.create(HeaderId.BODY, body=b"\x00" * 0xFFF0))
        request.add_header(Header.create(HeaderId.DESCRIPTION, body=b"\x00" * 0x20))

        with pytest.raises(ValueError, match="too large"):
            _ = request.data


class TestBuildConnectRequest:
    """Test CONNECT encoding."""

    def test_connect_bytes(self):
        data = build_connect_request().data

        assert data[:3] == b"\x80\x00\x1a"
        # Version 1.0, no flags, max packet size 0xFFDC
        assert data[3:7] == b"\x10\x00\xff\xdc"
        assert data[7:10] == b"\x46\x00\x13"
        assert data[10:] == OBEX_FTP_TARGET
        assert len(data) == 26


class TestBuildDisconnectRequest:
    def test_disconnect_bytes(self):
        data = build_disconnect_request(CONNECTION_ID).data
        assert data == b"\x81\x00\x08" + CONNECTION_HEADER


class TestBuildListFolderRequest:
    """Test GET for folder listings."""

    def test_list_folder_bytes(self):
        data = build_list_folder_request(CONNECTION_ID).data

        assert data[:3] == b"\x83\x00\x24"
        assert data[3:8] == CONNECTION_HEADER
        assert data[8:11] == b"\x01\x00\x03"  # Empty NAME
        assert data[11:14] == b"\x42\x00\x19"
        assert data[14:] == FOLDER_LISTING_TYPE

    def test_header_order(self):
        request = build_list_folder_request(CONNECTION_ID)
        assert list(request.headers) == [HeaderId.CONNECTION, HeaderId.NAME, HeaderId.TYPE]


class TestBuildSetPathRequest:
    """Test SET_PATH variants."""

    def test_parent_folder(self):
        request = build_set_path_request(CONNECTION_ID, "..")

        assert request.flags == RequestFlags.BACKUP | RequestFlags.DONT_CREATE_FOLDER
        assert request.get_header(HeaderId.NAME) is None
        assert request.data == b"\x85\x00\x0a\x03\x00" + CONNECTION_HEADER

    def test_root_folder(self):
        request = build_set_path_request(CONNECTION_ID, "")

        assert request.flags == RequestFlags.DONT_CREATE_FOLDER
        assert request.data == b"\x85\x00\x0d\x02\x00" + CONNECTION_HEADER + b"\x01\x00\x03"

    def test_sub_folder(self):
        request = build_set_path_request(CONNECTION_ID, "x")

        assert request.get_header(HeaderId.NAME).name == "x"
        assert request.data == (
            b"\x85\x00\x11\x02\x00" + CONNECTION_HEADER + b"\x01\x00\x07\x00x\x00\x00"
        )


class TestBuildFileRequests:
    """Test GET and delete (PUT without body) for files."""

    def test_get_file(self):
        data = build_get_file_request(CONNECTION_ID, "x").data
        assert data == b"\x83\x00\x0f" + CONNECTION_HEADER + b"\x01\x00\x07\x00x\x00\x00"

    def test_get_file_has_no_type(self):
        request = build_get_file_request(CONNECTION_ID, "x")
        assert request.get_header(HeaderId.TYPE) is None

    def test_delete_is_put_without_body(self):
        request = build_delete_request(CONNECTION_ID, "x")

        assert request.code == RequestCode.PUT
        assert request.get_header(HeaderId.BODY) is None
        assert request.get_header(HeaderId.END_OF_BODY) is None
        assert request.data == b"\x82\x00\x0f" + CONNECTION_HEADER + b"\x01\x00\x07\x00x\x00\x00"
