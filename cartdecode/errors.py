from __future__ import annotations

from typing import Optional


class CartError(Exception):
    """Base class for CaRT decoding errors.

    ``stage`` names the part of the container being processed when the error
    occurred (see ``constants.STAGE_*``), or None when it is not tied to one.
    """

    def __init__(self, message: str, *, stage: Optional[str] = None):
        super().__init__(message)
        self.stage = stage

    def __str__(self) -> str:
        msg = super().__str__()
        if self.stage:
            return f"{self.stage}: {msg}"
        return msg


# Layout
class TooSmallError(CartError):
    pass


class BadMagicError(CartError):
    pass


class MalformedLayoutError(CartError):
    pass


# Cipher
class CipherInitError(CartError):
    pass


class CipherError(CartError):
    pass


# Inflate
class InflateInitError(CartError):
    pass


class InflateError(CartError):
    pass


class TrailingDataError(InflateError):
    pass


class OutputLimitError(InflateError):
    pass


# Optional header/footer
class MetadataDecryptError(CartError):
    pass


class MetadataParseError(CartError):
    pass


# Configuration
class ConfigError(CartError):
    pass
