from __future__ import annotations

import unittest

from cartdecode.constants import DEFAULT_KEY, STAGE_OPT_FOOTER, STAGE_OPT_HEADER
from cartdecode.errors import CipherInitError, MetadataParseError
from cartdecode.metadata import decode_metadata
from cartfixtures import CUSTOM_KEY, TXT_FILE1_FOOTER, arc4, encrypt_metadata


class DecodeMetadataTests(unittest.TestCase):
    def test_decodes_object(self):
        ct = encrypt_metadata(TXT_FILE1_FOOTER, DEFAULT_KEY)
        self.assertEqual(decode_metadata(ct, DEFAULT_KEY, stage=STAGE_OPT_FOOTER), TXT_FILE1_FOOTER)

    def test_each_call_uses_fresh_cipher(self):
        ct = encrypt_metadata({"name": "a"}, CUSTOM_KEY)
        for _ in range(3):
            self.assertEqual(decode_metadata(ct, CUSTOM_KEY, stage=STAGE_OPT_HEADER), {"name": "a"})

    def test_unicode_values(self):
        meta = {"name": "résumé.pdf", "note": "日本"}
        ct = arc4(DEFAULT_KEY, '{"name": "résumé.pdf", "note": "日本"}'.encode("utf-8"))
        self.assertEqual(decode_metadata(ct, DEFAULT_KEY, stage=STAGE_OPT_HEADER), meta)

    def test_wrong_key_is_parse_error(self):
        ct = encrypt_metadata({"name": "txtFile1"}, CUSTOM_KEY)
        with self.assertRaises(MetadataParseError) as cm:
            decode_metadata(ct, DEFAULT_KEY, stage=STAGE_OPT_HEADER)
        self.assertEqual(cm.exception.stage, STAGE_OPT_HEADER)

    def test_invalid_utf8(self):
        with self.assertRaises(MetadataParseError):
            decode_metadata(arc4(DEFAULT_KEY, b"\xff\xfe{}"), DEFAULT_KEY, stage=STAGE_OPT_HEADER)

    def test_non_object_values(self):
        for text in (b"[]", b'"name"', b"42", b"null"):
            with self.subTest(text=text):
                with self.assertRaises(MetadataParseError):
                    decode_metadata(arc4(DEFAULT_KEY, text), DEFAULT_KEY, stage=STAGE_OPT_FOOTER)

    def test_parse_error_chains_parser_diagnostic(self):
        with self.assertRaises(MetadataParseError) as cm:
            decode_metadata(arc4(DEFAULT_KEY, b"{not json}"), DEFAULT_KEY, stage=STAGE_OPT_FOOTER)
        self.assertIsInstance(cm.exception.__cause__, ValueError)

    def test_bad_key(self):
        with self.assertRaises(CipherInitError):
            decode_metadata(b"\x00", b"0123", stage=STAGE_OPT_HEADER)


if __name__ == "__main__":
    unittest.main()
