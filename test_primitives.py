from __future__ import annotations

import os
import unittest
import zlib

from Cryptodome.Cipher import ARC4

from cartdecode.cipher import StreamCipher
from cartdecode.constants import BLOCK_SIZE, DEFAULT_KEY, STAGE_PAYLOAD
from cartdecode.errors import (
    CipherInitError,
    InflateError,
    OutputLimitError,
    TrailingDataError,
)
from cartdecode.inflate import DecompressionStream


class StreamCipherTests(unittest.TestCase):
    def test_default_key_is_pi(self):
        self.assertEqual(DEFAULT_KEY, b"\x03\x01\x04\x01\x05\x09\x02\x06" * 2)

    def test_keystream_continues_across_calls(self):
        data = os.urandom(1000)
        ct = ARC4.new(DEFAULT_KEY).encrypt(data)
        c = StreamCipher(DEFAULT_KEY)
        pieces = c.decrypt(ct[:1]) + c.decrypt(ct[1:333]) + c.decrypt(ct[333:])
        self.assertEqual(pieces, data)

    def test_fresh_instances_are_independent(self):
        ct = ARC4.new(DEFAULT_KEY).encrypt(b"same bytes")
        self.assertEqual(StreamCipher(DEFAULT_KEY).decrypt(ct), b"same bytes")
        self.assertEqual(StreamCipher(DEFAULT_KEY).decrypt(ct), b"same bytes")

    def test_output_length_matches_input(self):
        c = StreamCipher(b"0123456789abcdef")
        self.assertEqual(len(c.decrypt(b"\x00" * 77)), 77)
        self.assertEqual(c.decrypt(b""), b"")

    def test_rejects_bad_key_length(self):
        for key in (b"", b"short", DEFAULT_KEY + b"x"):
            with self.assertRaises(CipherInitError):
                StreamCipher(key)

    def test_module_docstring(self):
        import cartdecode.cipher

        self.assertIn("ARC4", cartdecode.cipher.__doc__ or "")

    def test_rejects_non_bytes_key(self):
        with self.assertRaises(CipherInitError) as cm:
            StreamCipher(12345, stage=STAGE_PAYLOAD)  # type: ignore[arg-type]
        self.assertEqual(cm.exception.stage, STAGE_PAYLOAD)


class DecompressionStreamTests(unittest.TestCase):
    def test_single_call(self):
        data = b"hello world\n" * 50
        with DecompressionStream() as s:
            self.assertEqual(s.inflate(zlib.compress(data)), data)
            self.assertTrue(s.eof)
            s.finish()
        self.assertTrue(s.released)

    def test_chunked_input(self):
        data = os.urandom(3 * BLOCK_SIZE + 17)
        comp = zlib.compress(data)
        s = DecompressionStream()
        out = b""
        for i in range(0, len(comp), 1000):
            out += s.inflate(comp[i : i + 1000])
        s.finish()
        self.assertEqual(out, data)

    def test_highly_compressible_input_drains_fully(self):
        data = b"a" * (10 * BLOCK_SIZE + 3)
        s = DecompressionStream(max_output_size=None)
        self.assertEqual(s.inflate(zlib.compress(data, 9)), data)
        s.finish()

    def test_empty_input_is_empty_output(self):
        s = DecompressionStream()
        self.assertEqual(s.inflate(b""), b"")
        s.finish()

    def test_trailing_data_in_same_chunk(self):
        s = DecompressionStream(stage=STAGE_PAYLOAD)
        with self.assertRaises(TrailingDataError) as cm:
            s.inflate(zlib.compress(b"payload") + b"junk")
        self.assertEqual(cm.exception.stage, STAGE_PAYLOAD)

    def test_trailing_data_in_later_chunk(self):
        s = DecompressionStream()
        s.inflate(zlib.compress(b"payload"))
        with self.assertRaises(TrailingDataError):
            s.inflate(b"\x00")

    def test_garbage_is_inflate_error(self):
        s = DecompressionStream()
        with self.assertRaises(InflateError) as cm:
            s.inflate(b"this is not a zlib stream")
        self.assertNotIsInstance(cm.exception, TrailingDataError)

    def test_truncated_stream_fails_on_finish(self):
        comp = zlib.compress(os.urandom(5000))
        s = DecompressionStream()
        s.inflate(comp[: len(comp) // 2])
        with self.assertRaises(InflateError):
            s.finish()
        self.assertTrue(s.released)

    def test_output_limit(self):
        bomb = zlib.compress(b"\x00" * 1_000_000, 9)
        s = DecompressionStream(max_output_size=1000)
        with self.assertRaises(OutputLimitError):
            s.inflate(bomb)

    def test_output_exactly_at_limit(self):
        data = os.urandom(1000)
        s = DecompressionStream(max_output_size=1000)
        self.assertEqual(s.inflate(zlib.compress(data)), data)
        s.finish()

    def test_zero_limit_allows_only_empty_output(self):
        s = DecompressionStream(max_output_size=0)
        with self.assertRaises(OutputLimitError):
            s.inflate(zlib.compress(b"x"))
        s2 = DecompressionStream(max_output_size=0)
        self.assertEqual(s2.inflate(zlib.compress(b"")), b"")
        s2.finish()

    def test_negative_limit_rejected(self):
        with self.assertRaises(ValueError):
            DecompressionStream(max_output_size=-1)

    def test_release_is_idempotent(self):
        s = DecompressionStream()
        s.inflate(zlib.compress(b"done"))
        s.finish()
        s.close()
        s.close()
        self.assertTrue(s.released)

    def test_use_after_release(self):
        s = DecompressionStream()
        s.close()
        with self.assertRaises(InflateError):
            s.inflate(zlib.compress(b"late"))

    def test_context_manager_releases_on_error(self):
        s = DecompressionStream()
        with self.assertRaises(InflateError):
            with s:
                s.inflate(b"garbage garbage")
        self.assertTrue(s.released)


if __name__ == "__main__":
    unittest.main()
