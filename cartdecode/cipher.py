"""ARC4 stream decryption backed by PyCryptodomex.

CaRT encrypts the optional header, the payload and the optional footer as three
unrelated ARC4 streams under one 16-byte key. Each ``StreamCipher`` owns its own
keystream; never reuse one across those regions.
"""

from __future__ import annotations

from typing import Optional

from Cryptodome.Cipher import ARC4

from .constants import KEY_SIZE
from .errors import CipherError, CipherInitError


class StreamCipher:
    def __init__(self, key: bytes, *, stage: Optional[str] = None):
        self.stage = stage
        if not isinstance(key, (bytes, bytearray, memoryview)):
            raise CipherInitError(f"key must be bytes-like, not {type(key).__name__}", stage=stage)
        key = bytes(key)
        if len(key) != KEY_SIZE:
            raise CipherInitError(f"key must be {KEY_SIZE} bytes, got {len(key)}", stage=stage)
        try:
            self._cipher = ARC4.new(key)
        except ValueError as exc:
            raise CipherInitError(f"cipher init failed: {exc}", stage=stage) from exc

    def decrypt(self, ciphertext: bytes) -> bytes:
        """Decrypt the next span of the keystream.

        Calls are cumulative: decrypting ``a`` then ``b`` equals decrypting
        ``a + b`` in one call.
        """
        try:
            out = self._cipher.decrypt(bytes(ciphertext))
        except (TypeError, ValueError) as exc:
            raise CipherError(f"decrypt failed: {exc}", stage=self.stage) from exc
        return bytes(out)
