"""
cartdecode: reader for CaRT (Compressed and RC4 Transport) containers.

A CaRT container is a fixed header, an optional ARC4-encrypted JSON header, an
ARC4-encrypted zlib payload, an optional ARC4-encrypted JSON footer and a fixed
footer. This package decodes containers; it does not produce them.

Containers carted with the published default key are obfuscated, not
encrypted: anyone can decode them.
"""

__version__ = "0.1"

from .constants import DEFAULT_KEY
from .errors import CartError
from .reader import (
    ContainerMetadata,
    ContainerParser,
    DecodedContainer,
    decode,
    decode_stream,
    is_cart,
    read_metadata,
)

__all__ = [
    "DEFAULT_KEY",
    "CartError",
    "ContainerMetadata",
    "ContainerParser",
    "DecodedContainer",
    "decode",
    "decode_stream",
    "is_cart",
    "read_metadata",
]
