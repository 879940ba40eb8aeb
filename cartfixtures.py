"""Test-only CaRT packer.

The library never encodes containers; tests need real ones to decode, so this
mirrors the reference tooling: compress, ARC4-encrypt, frame.
"""
from __future__ import annotations

import json
import struct
import zlib
from typing import Any, Dict, Optional

from Cryptodome.Cipher import ARC4

from cartdecode.constants import DEFAULT_KEY, FOOTER_FORMAT, FOOTER_MAGIC, HEADER_FORMAT, HEADER_MAGIC, VERSION


TXT_FILE1 = b"This is a test text file.\r\n"  # 27 bytes
TXT_FILE1_HEADER = {"name": "txtFile1"}
TXT_FILE1_FOOTER = {
    "length": "27",
    "md5": "5707d69a86728d62548f483d8270543e",
    "sha1": "4d1b5e94651e1e484b61c18dc6fabb7f77db34b8",
    "sha256": "373002a85b3e92232828099a45892419689b90e3baf5b1c801d0126d43770f95",
}
CUSTOM_KEY = b"0123456789abcdef"


def arc4(key: bytes, data: bytes) -> bytes:
    return ARC4.new(key).encrypt(data)


def encrypt_metadata(meta: Optional[Dict[str, Any]], key: bytes) -> bytes:
    if meta is None:
        return b""
    return arc4(key, json.dumps(meta).encode("utf-8"))


def pack_raw(
    *,
    opt_header: bytes = b"",
    payload: bytes = b"",
    opt_footer: bytes = b"",
    header_key: bytes = DEFAULT_KEY,
    opt_header_len: Optional[int] = None,
    opt_footer_len: Optional[int] = None,
    header_magic: bytes = HEADER_MAGIC,
    footer_magic: bytes = FOOTER_MAGIC,
) -> bytes:
    """Frame already-encrypted sections; length fields may be overridden to forge layouts."""
    hlen = len(opt_header) if opt_header_len is None else opt_header_len
    flen = len(opt_footer) if opt_footer_len is None else opt_footer_len
    header = struct.pack(HEADER_FORMAT, header_magic, VERSION, 0, header_key, hlen)
    footer_pos = len(header) + len(opt_header) + len(payload)
    footer = struct.pack(FOOTER_FORMAT, footer_magic, 0, footer_pos, flen)
    return header + opt_header + payload + opt_footer + footer


def pack(
    data: bytes,
    key: bytes = DEFAULT_KEY,
    *,
    opt_header: Optional[Dict[str, Any]] = None,
    opt_footer: Optional[Dict[str, Any]] = None,
    level: int = 9,
) -> bytes:
    # Custom keys are not written to disk, like the reference tooling
    header_key = key if key == DEFAULT_KEY else b"\x00" * 16
    return pack_raw(
        opt_header=encrypt_metadata(opt_header, key),
        payload=arc4(key, zlib.compress(data, level)),
        opt_footer=encrypt_metadata(opt_footer, key),
        header_key=header_key,
    )


def txt_file1(key: bytes = DEFAULT_KEY) -> bytes:
    return pack(TXT_FILE1, key, opt_header=TXT_FILE1_HEADER, opt_footer=TXT_FILE1_FOOTER)
