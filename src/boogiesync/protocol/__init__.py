"""OBEX File Transfer protocol implementation."""

from .framing import PacketAssembler
from .headers import Header, HeaderId
from .requests import (
    BLUETOOTH_FTP_UUID,
    FOLDER_LISTING_TYPE,
    MAXIMUM_PACKET_SIZE,
    OBEX_FTP_TARGET,
    OBEX_VERSION,
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
from .responses import Response, ResponseCode, describe_response_code
from .utils import (
    bytes_to_length,
    decode_name,
    encode_name,
    length_to_bytes,
    parse_folder_listing,
)

__all__ = [
    "BLUETOOTH_FTP_UUID",
    "FOLDER_LISTING_TYPE",
    "MAXIMUM_PACKET_SIZE",
    "OBEX_FTP_TARGET",
    "OBEX_VERSION",
    "Header",
    "HeaderId",
    "PacketAssembler",
    "Request",
    "RequestCode",
    "RequestFlags",
    "Response",
    "ResponseCode",
    "build_connect_request",
    "build_delete_request",
    "build_disconnect_request",
    "build_get_file_request",
    "build_list_folder_request",
    "build_set_path_request",
    "bytes_to_length",
    "decode_name",
    "describe_response_code",
    "encode_name",
    "length_to_bytes",
    "parse_folder_listing",
]
