from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import Tuple

from .constants import (
    FOOTER_FORMAT,
    FOOTER_MAGIC,
    FOOTER_SIZE,
    HEADER_FORMAT,
    HEADER_MAGIC,
    HEADER_SIZE,
    KEY_SIZE,
    STAGE_CONTAINER,
)
from .errors import BadMagicError, TooSmallError


_HEADER_STRUCT = struct.Struct(HEADER_FORMAT)
_FOOTER_STRUCT = struct.Struct(FOOTER_FORMAT)


@dataclass(frozen=True)
class CartHeader:
    magic: bytes
    version: int
    reserved: int
    embedded_key: bytes
    opt_header_len: int

    @property
    def has_embedded_key(self) -> bool:
        """True when the on-disk key field is not all zeros."""
        return self.embedded_key != b"\x00" * KEY_SIZE


@dataclass(frozen=True)
class CartFooter:
    magic: bytes
    reserved: Tuple[int, int]
    opt_footer_len: int


def read_header(raw: bytes) -> CartHeader:
    if len(raw) < HEADER_SIZE:
        raise TooSmallError(f"need {HEADER_SIZE} bytes for the header, got {len(raw)}", stage=STAGE_CONTAINER)
    magic, version, reserved, key, opt_header_len = _HEADER_STRUCT.unpack_from(raw, 0)
    if magic != HEADER_MAGIC:
        raise BadMagicError(f"bad header magic {magic!r}; not a CaRT container", stage=STAGE_CONTAINER)
    return CartHeader(
        magic=magic,
        version=version,
        reserved=reserved,
        embedded_key=key,
        opt_header_len=opt_header_len,
    )


def read_footer(raw: bytes) -> CartFooter:
    """Parse the mandatory footer from the last ``FOOTER_SIZE`` bytes of ``raw``."""
    if len(raw) < FOOTER_SIZE:
        raise TooSmallError(f"need {FOOTER_SIZE} bytes for the footer, got {len(raw)}", stage=STAGE_CONTAINER)
    magic, res0, res1, opt_footer_len = _FOOTER_STRUCT.unpack_from(raw, len(raw) - FOOTER_SIZE)
    if magic != FOOTER_MAGIC:
        raise BadMagicError(f"bad footer magic {magic!r}; not a CaRT container", stage=STAGE_CONTAINER)
    return CartFooter(magic=magic, reserved=(res0, res1), opt_footer_len=opt_footer_len)
