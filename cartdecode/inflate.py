from __future__ import annotations

import logging
import zlib
from typing import Optional

from .constants import BLOCK_SIZE, DEFAULT_MAX_OUTPUT_SIZE
from .errors import InflateError, InflateInitError, OutputLimitError, TrailingDataError


log = logging.getLogger(__name__)


class DecompressionStream:
    """Single-use zlib inflate over one logical payload.

    Output is pulled in ``BLOCK_SIZE`` rounds so a hostile stream cannot make a
    single call allocate past the configured limit. Use as a context manager,
    or call ``close()``; releasing twice is a no-op.
    """

    def __init__(self, *, max_output_size: Optional[int] = DEFAULT_MAX_OUTPUT_SIZE, stage: Optional[str] = None):
        if max_output_size is not None and max_output_size < 0:
            raise ValueError("max_output_size must be >= 0 or None")
        self.stage = stage
        self.max_output_size = max_output_size
        self.total_in = 0
        self.total_out = 0
        self.released = False
        try:
            self._engine = zlib.decompressobj()
        except (zlib.error, MemoryError) as exc:
            raise InflateInitError(f"inflate init failed: {exc}", stage=stage) from exc

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    @property
    def eof(self) -> bool:
        return self._engine is not None and self._engine.eof

    def _check_open(self):
        if self.released or self._engine is None:
            raise InflateError("inflate stream already released", stage=self.stage)
        return self._engine

    def _trailing(self, count: int) -> TrailingDataError:
        return TrailingDataError(f"{count} byte(s) of trailing data after decompression completed", stage=self.stage)

    def inflate(self, chunk: bytes) -> bytes:
        engine = self._check_open()
        data = bytes(chunk)
        if not data:
            return b""
        if engine.eof:
            raise self._trailing(len(data))
        self.total_in += len(data)
        out = bytearray()
        while True:
            budget = BLOCK_SIZE
            if self.max_output_size is not None:
                # One byte past the limit is enough to detect the overrun
                budget = min(BLOCK_SIZE, self.max_output_size - self.total_out + 1)
            try:
                produced = engine.decompress(data, budget)
            except zlib.error as exc:
                raise InflateError(f"error while inflating: {exc}", stage=self.stage) from exc
            self.total_out += len(produced)
            if self.max_output_size is not None and self.total_out > self.max_output_size:
                raise OutputLimitError(
                    f"decompressed output exceeds limit of {self.max_output_size} bytes", stage=self.stage
                )
            out += produced
            if engine.eof:
                leftover = len(engine.unused_data) + len(engine.unconsumed_tail)
                if leftover:
                    raise self._trailing(leftover)
                break
            data = engine.unconsumed_tail
            # Input consumed; keep draining while rounds come back full
            if not data and len(produced) < budget:
                break
        log.debug("inflated %d -> %d bytes (eof=%s)", self.total_in, self.total_out, engine.eof)
        return bytes(out)

    def finish(self) -> None:
        """Declare the input complete and release the engine.

        An untouched stream is valid (empty payload); one that consumed input
        without reaching end-of-stream is truncated.
        """
        try:
            engine = self._check_open()
            if self.total_in and not engine.eof:
                raise InflateError("compressed stream ended before end-of-stream marker", stage=self.stage)
        finally:
            self.close()

    def close(self) -> None:
        if self.released:
            return
        self.released = True
        self._engine = None
