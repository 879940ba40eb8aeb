from __future__ import annotations

import json
from typing import Any, Dict

from .cipher import StreamCipher
from .errors import CipherError, MetadataDecryptError, MetadataParseError


def decode_metadata(ciphertext: bytes, key: bytes, *, stage: str) -> Dict[str, Any]:
    """Decrypt and parse one optional header/footer block.

    Each call keys a fresh cipher; the block is a self-contained ARC4 stream
    holding a UTF-8 JSON object.
    """
    try:
        plain = StreamCipher(key, stage=stage).decrypt(ciphertext)
    except CipherError as exc:
        raise MetadataDecryptError(f"could not decrypt metadata: {exc.args[0]}", stage=stage) from exc
    try:
        text = plain.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise MetadataParseError(f"metadata is not valid UTF-8 text: {exc}", stage=stage) from exc
    try:
        value = json.loads(text)
    except (ValueError, RecursionError) as exc:
        raise MetadataParseError(f"metadata did not parse as valid JSON: {exc}", stage=stage) from exc
    if not isinstance(value, dict):
        raise MetadataParseError(f"metadata must be a JSON object, got {type(value).__name__}", stage=stage)
    return value
