"""Byte-level helpers shared by the OBEX codec."""

from __future__ import annotations

import xml.etree.ElementTree as ET

from ..exceptions import ProtocolError
from ..models.folder_listing import FileEntry, FolderEntry, FolderListing


def length_to_bytes(length: int) -> bytes:
    """Encode a length as 2 big-endian bytes.

    Raises:
        ValueError: If length does not fit in 16 bits
    """
    if not 0 <= length <= 0xFFFF:
        raise ValueError(f"Length out of range: {length} (must be 0-65535)")
    return length.to_bytes(2, byteorder="big")


def bytes_to_length(data: bytes) -> int:
    """Decode the first 2 bytes of data as a big-endian length."""
    return int.from_bytes(data[0:2], byteorder="big")


def encode_name(name: str) -> bytes:
    """Encode an OBEX Unicode name: null-terminated UTF-16BE."""
    return (name + "\0").encode("utf-16-be")


def decode_name(data: bytes) -> str:
    """Decode an OBEX Unicode name, dropping the null terminator."""
    if len(data) % 2:
        raise ProtocolError(f"Odd-length Unicode name: {len(data)} bytes")
    return data.decode("utf-16-be").rstrip("\0")


def parse_folder_listing(data: bytes) -> FolderListing:
    """Parse an x-obex/folder-listing XML document.

    Format:
        <folder-listing version="1.0">
          <parent-folder/>
          <folder name="..." modified="..."/>
          <file name="..." modified="..." size="..."/>
        </folder-listing>

    Raises:
        ProtocolError: If the document is not well-formed XML
    """
    try:
        root = ET.fromstring(bytes(data).rstrip(b"\0"))
    except ET.ParseError as e:
        raise ProtocolError(f"Malformed folder listing: {e}") from e

    folders = tuple(
        FolderEntry(name=element.get("name", ""), modified=element.get("modified"))
        for element in root.iter("folder")
    )

    files = []
    for element in root.iter("file"):
        size = element.get("size")
        files.append(
            FileEntry(
                name=element.get("name", ""),
                modified=element.get("modified"),
                size=int(size) if size and size.isdigit() else None,
            )
        )

    return FolderListing(folders=folders, files=tuple(files))
