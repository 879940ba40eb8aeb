from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, BinaryIO, Dict, Optional

from .cipher import StreamCipher
from .constants import (
    DEFAULT_KEY,
    DEFAULT_MAX_OUTPUT_SIZE,
    FOOTER_SIZE,
    HEADER_SIZE,
    STAGE_CONTAINER,
    STAGE_OPT_FOOTER,
    STAGE_OPT_HEADER,
    STAGE_PAYLOAD,
)
from .errors import CartError, ConfigError, MalformedLayoutError, TooSmallError
from .inflate import DecompressionStream
from .metadata import decode_metadata
from .records import CartFooter, CartHeader, read_footer, read_header


log = logging.getLogger(__name__)


@dataclass
class ContainerMetadata:
    header: CartHeader
    footer: CartFooter
    # None means the block is absent, which is not the same as {}
    opt_header: Optional[Dict[str, Any]]
    opt_footer: Optional[Dict[str, Any]]
    payload_offset: int
    payload_len: int

    def merged(self) -> Dict[str, Any]:
        """Optional header and footer in one dict; footer values win."""
        out: Dict[str, Any] = {}
        out.update(self.opt_header or {})
        out.update(self.opt_footer or {})
        return out


@dataclass
class DecodedContainer(ContainerMetadata):
    encoded_payload: bytes = b""
    decoded_payload: bytes = b""


class ContainerParser:
    """Decodes in-memory CaRT containers.

    The parser holds only read-only settings; every call builds its own cipher
    and inflate state, so one instance may be shared between threads.
    """

    def __init__(self, key: Optional[bytes] = DEFAULT_KEY, *, max_output_size: Optional[int] = DEFAULT_MAX_OUTPUT_SIZE):
        self.key = DEFAULT_KEY if key is None else key
        if max_output_size is not None and max_output_size < 0:
            raise ConfigError(f"max_output_size must be >= 0 or None, got {max_output_size}")
        self.max_output_size = max_output_size

    def _layout(self, raw: bytes) -> ContainerMetadata:
        total = len(raw)
        if total < HEADER_SIZE + FOOTER_SIZE:
            raise TooSmallError(
                f"{total} bytes is not enough for the mandatory header and footer "
                f"({HEADER_SIZE + FOOTER_SIZE}); this is probably not a full CaRT file",
                stage=STAGE_CONTAINER,
            )
        header = read_header(raw)
        footer = read_footer(raw)
        log.debug(
            "header: version=%d opt_header_len=%d; footer: opt_footer_len=%d",
            header.version,
            header.opt_header_len,
            footer.opt_footer_len,
        )
        # Space between the two mandatory records
        body_len = total - HEADER_SIZE - FOOTER_SIZE
        if header.opt_header_len > body_len:
            raise MalformedLayoutError(
                f"optional header length {header.opt_header_len} overruns the container ({body_len} bytes available)",
                stage=STAGE_OPT_HEADER,
            )
        if footer.opt_footer_len > body_len:
            raise MalformedLayoutError(
                f"optional footer length {footer.opt_footer_len} overruns the container ({body_len} bytes available)",
                stage=STAGE_OPT_FOOTER,
            )
        payload_len = body_len - header.opt_header_len - footer.opt_footer_len
        if payload_len < 0:
            raise MalformedLayoutError(
                f"optional header ({header.opt_header_len}) and footer ({footer.opt_footer_len}) "
                f"lengths overlap; payload would be {payload_len} bytes",
                stage=STAGE_CONTAINER,
            )
        return ContainerMetadata(
            header=header,
            footer=footer,
            opt_header=None,
            opt_footer=None,
            payload_offset=HEADER_SIZE + header.opt_header_len,
            payload_len=payload_len,
        )

    def read_metadata(self, raw: bytes) -> ContainerMetadata:
        """Parse the records and optional blocks without touching the payload.

        The whole layout is checked before anything is decrypted, so structural
        damage is reported as such rather than as a garbled metadata block.

        Raises:
            TooSmallError: shorter than the mandatory header and footer.
            BadMagicError: header or footer tag is wrong.
            MalformedLayoutError: length fields overrun the buffer or each other.
            CartError: optional header/footer decryption or parsing failed.
        """
        raw = _as_bytes(raw)
        meta = self._layout(raw)
        if meta.header.opt_header_len > 0:
            end = HEADER_SIZE + meta.header.opt_header_len
            meta.opt_header = decode_metadata(raw[HEADER_SIZE:end], self.key, stage=STAGE_OPT_HEADER)
        if meta.footer.opt_footer_len > 0:
            end = len(raw) - FOOTER_SIZE
            start = end - meta.footer.opt_footer_len
            meta.opt_footer = decode_metadata(raw[start:end], self.key, stage=STAGE_OPT_FOOTER)
        return meta

    def decode(self, raw: bytes) -> DecodedContainer:
        """Fully decode ``raw``: metadata, then decrypt and inflate the payload.

        Either every field of the result is populated (optional blocks may be
        None when absent) or a single ``CartError`` is raised.
        """
        raw = _as_bytes(raw)
        meta = self.read_metadata(raw)
        start = meta.payload_offset
        encoded = raw[start : start + meta.payload_len]

        decrypted = StreamCipher(self.key, stage=STAGE_PAYLOAD).decrypt(encoded)
        with DecompressionStream(max_output_size=self.max_output_size, stage=STAGE_PAYLOAD) as stream:
            decoded = stream.inflate(decrypted)
            stream.finish()
        log.debug("payload: %d encoded -> %d decoded bytes", len(encoded), len(decoded))

        return DecodedContainer(
            header=meta.header,
            footer=meta.footer,
            opt_header=meta.opt_header,
            opt_footer=meta.opt_footer,
            payload_offset=meta.payload_offset,
            payload_len=meta.payload_len,
            encoded_payload=encoded,
            decoded_payload=decoded,
        )


def decode(raw: bytes, key: bytes = DEFAULT_KEY, *, max_output_size: Optional[int] = DEFAULT_MAX_OUTPUT_SIZE) -> DecodedContainer:
    return ContainerParser(key, max_output_size=max_output_size).decode(raw)


def decode_stream(
    fh: BinaryIO, key: bytes = DEFAULT_KEY, *, max_output_size: Optional[int] = DEFAULT_MAX_OUTPUT_SIZE
) -> DecodedContainer:
    return decode(fh.read(), key, max_output_size=max_output_size)


def read_metadata(raw: bytes, key: bytes = DEFAULT_KEY) -> ContainerMetadata:
    return ContainerParser(key).read_metadata(raw)


def is_cart(raw: bytes) -> bool:
    """Cheap structural check: size and both magic tags. Nothing is decrypted."""
    try:
        if len(raw) < HEADER_SIZE + FOOTER_SIZE:
            return False
        read_header(raw)
        read_footer(raw)
    except CartError:
        return False
    return True


def _as_bytes(raw) -> bytes:
    if isinstance(raw, bytes):
        return raw
    return bytes(raw)
