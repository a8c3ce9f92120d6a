#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
    File name: testSanitizationValidation.py
    Author: Alex Biddle

    Description:
        Tests for the encoding, parsing, and validation helpers used by the
        manifest decryption pipeline, with emphasis on which typed error
        each failure maps to.
"""

import unittest
from datetime import datetime, timezone

import appmanifest.handlers.sanitization_validation as VALIDATION
from appmanifest.handlers.error_handler import DecryptionError, EncodingError, ParseError, ApplicationCodes


class TestSanitizationValidation(unittest.TestCase):

    """
        Base64 decoding ignores whitespace and rejects invalid alphabets and lengths.
    """
    def test_decode_base64_to_bytes(self):

        self.assertEqual(b"manifest", VALIDATION.decode_base64_to_bytes("result", "bWFu\r\naWZl\nc3Q="))

        for bad in ("bWFu*WZlc3Q=", "bWFuaWZlc3Q", "-_-_"):
            with self.subTest(bad=bad):
                with self.assertRaises(DecryptionError) as cm:
                    VALIDATION.decode_base64_to_bytes("result", bad)

                self.assertEqual(cm.exception.application_code, ApplicationCodes.INVALID_BASE64)
                self.assertEqual(cm.exception.field, "result")

    """
        Base64 decoding rejects empty and non-string input.
    """
    def test_decode_base64_rejects_empty(self):

        for bad in ("", "   ", None):
            with self.subTest(bad=bad):
                with self.assertRaises(DecryptionError):
                    VALIDATION.decode_base64_to_bytes("result", bad)

    """
        encode_bytes_to_base64 produces padded standard Base64.
    """
    def test_encode_bytes_to_base64(self):

        self.assertEqual("bWFuaWZlc3Q=", VALIDATION.encode_bytes_to_base64(b"manifest"))

        with self.assertRaises(EncodingError):
            VALIDATION.encode_bytes_to_base64("text")  # type: ignore[arg-type]

    """
        Invalid UTF-8 maps to EncodingError.
    """
    def test_decode_bytes_to_utf8_text(self):

        self.assertEqual("é", VALIDATION.decode_bytes_to_utf8_text("é".encode("utf-8")))

        with self.assertRaises(EncodingError) as cm:
            VALIDATION.decode_bytes_to_utf8_text(b"\xc3\x28")

        self.assertEqual(cm.exception.application_code, ApplicationCodes.INVALID_UTF8)

    """
        Lone surrogates cannot be UTF-8 encoded.
    """
    def test_encode_utf8_text_to_bytes(self):

        self.assertEqual(b"abc", VALIDATION.encode_utf8_text_to_bytes("abc"))

        with self.assertRaises(EncodingError) as cm:
            VALIDATION.encode_utf8_text_to_bytes("\udfff", "hash")

        self.assertEqual(cm.exception.field, "hash")

    """
        JSON parsing accepts objects only.
    """
    def test_decode_json_text_to_dict(self):

        self.assertEqual({"a": 1}, VALIDATION.decode_json_text_to_dict('{"a": 1}'))

        for bad in ("{", "[]", "\"text\"", "null"):
            with self.subTest(bad=bad):
                with self.assertRaises(ParseError) as cm:
                    VALIDATION.decode_json_text_to_dict(bad)

                self.assertEqual(cm.exception.application_code, ApplicationCodes.MALFORMED_JSON)

    """
        The success flag accepts booleans and case-insensitive "true"/"false" only.
    """
    def test_parse_success_flag(self):

        self.assertIs(True, VALIDATION.parse_success_flag(True))
        self.assertIs(False, VALIDATION.parse_success_flag(False))
        self.assertIs(True, VALIDATION.parse_success_flag(" True "))
        self.assertIs(False, VALIDATION.parse_success_flag("FALSE"))

        for bad in (1, 0, None, "yes", ""):
            with self.subTest(bad=bad):
                with self.assertRaises(ParseError) as cm:
                    VALIDATION.parse_success_flag(bad)

                self.assertEqual(cm.exception.application_code, ApplicationCodes.INVALID_SUCCESS_FLAG)
                self.assertEqual(cm.exception.field, "sucess")

    """
        Timestamps parse into aware UTC datetimes with the default and custom formats.
    """
    def test_parse_timestamp(self):

        expected = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)

        self.assertEqual(expected, VALIDATION.parse_timestamp("2024-01-02T03:04:05Z"))
        self.assertEqual(expected, VALIDATION.parse_timestamp(" 2024-01-02 03:04:05 ", "%Y-%m-%d %H:%M:%S"))

    """
        An offset parsed with %z is converted to UTC rather than overwritten.
    """
    def test_parse_timestamp_with_offset(self):

        parsed = VALIDATION.parse_timestamp("2024-01-02T12:00:00+0900", "%Y-%m-%dT%H:%M:%S%z")

        self.assertEqual(datetime(2024, 1, 2, 3, 0, 0, tzinfo=timezone.utc), parsed)
        self.assertEqual(timezone.utc, parsed.tzinfo)

        parsed = VALIDATION.parse_timestamp("2024-01-01T22:30:00-0500", "%Y-%m-%dT%H:%M:%S%z")

        self.assertEqual(datetime(2024, 1, 2, 3, 30, 0, tzinfo=timezone.utc), parsed)

    """
        Malformed timestamps raise ParseError.
    """
    def test_parse_timestamp_rejects_invalid(self):

        for bad in ("2024-01-02 03:04:05", "2024-13-02T03:04:05Z", "", None):
            with self.subTest(bad=bad):
                with self.assertRaises(ParseError) as cm:
                    VALIDATION.parse_timestamp(bad)

                self.assertEqual(cm.exception.application_code, ApplicationCodes.INVALID_TIMESTAMP)

    """
        format_timestamp is the inverse of parse_timestamp.
    """
    def test_format_timestamp(self):

        value = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)

        self.assertEqual("2024-01-02T03:04:05Z", VALIDATION.format_timestamp(value))

    """
        validate_required_fields lists what is missing.
    """
    def test_validate_required_fields(self):

        VALIDATION.validate_required_fields({"a": 1, "b": 2}, {"a", "b"}, ApplicationCodes.MISSING_FIELDS, "payload")

        with self.assertRaises(ParseError) as cm:
            VALIDATION.validate_required_fields({"a": 1}, {"a", "b", "c"}, ApplicationCodes.MISSING_FIELDS, "payload")

        self.assertEqual(cm.exception.application_code, ApplicationCodes.MISSING_FIELDS)
        self.assertIn("b, c", cm.exception.detail)

        with self.assertRaises(ParseError):
            VALIDATION.validate_required_fields([], {"a"}, ApplicationCodes.MISSING_FIELDS, "payload")  # type: ignore[arg-type]

    """
        validate_string raises the requested error type.
    """
    def test_validate_string_error_type(self):

        with self.assertRaises(DecryptionError):
            VALIDATION.validate_string("  ", ApplicationCodes.INVALID_BASE64, "result", DecryptionError)


if __name__ == "__main__":
    unittest.main()
