"""Builders for OBEX packets as sent by a Sync."""

from __future__ import annotations

CONNECTION_ID = b"\x00\x00\x00\x01"

FOLDER_LISTING_XML = (
    b'<?xml version="1.0"?>\n'
    b'<!DOCTYPE folder-listing SYSTEM "obex-folder-listing.dtd">\n'
    b'<folder-listing version="1.0">\n'
    b'  <parent-folder/>\n'
    b'  <folder name="SAVED" modified="20150102T030405Z"/>\n'
    b'  <folder name="BACKUP" modified="20150203T040506Z"/>\n'
    b'  <file name="SYNC0001.PDF" modified="20150304T050607Z" size="2048"/>\n'
    b'</folder-listing>\n'
)


def header(header_id: int, body: bytes) -> bytes:
    """Length-prefixed header bytes."""
    length = 3 + len(body)
    return bytes([header_id]) + length.to_bytes(2, "big") + body


def response(code: int, *headers: bytes, fields: bytes = b"") -> bytes:
    """Response packet with the given fixed fields and headers."""
    body = fields + b"".join(headers)
    return bytes([code]) + (3 + len(body)).to_bytes(2, "big") + body


def connect_response(connection_id: bytes = CONNECTION_ID) -> bytes:
    """SUCCESS answer to CONNECT: version 1.0, no flags, max size 0x2000."""
    who = header(0x4A, bytes.fromhex("F9EC7BC4953C11D2984E525400DC9E09"))
    return response(
        0xA0,
        bytes([0xCB]) + connection_id,
        who,
        fields=b"\x10\x00\x20\x00",
    )
