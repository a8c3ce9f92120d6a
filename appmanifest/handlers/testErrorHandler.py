#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
    File name: testErrorHandler.py
    Author: Alex Biddle

    Description:
        Tests for the error taxonomy and the ErrorHandler that normalizes
        fetch failures and records them in the audit log.
"""

import json
import os
import tempfile
import unittest

from appmanifest.utilities.audit_log import AuditLog
from appmanifest.handlers.error_handler import (
    ApplicationCodes,
    ApplicationManagerError,
    ConfigurationError,
    DecryptionError,
    EncodingError,
    ErrorHandler,
    KeyDerivationError,
    ParseError,
    ProtocolError,
    TransportError,
)


class TestErrorHandler(unittest.TestCase):

    def setUp(self) -> None:
        fd, self.path = tempfile.mkstemp(suffix=".log")
        os.close(fd)
        self.handler = ErrorHandler(AuditLog(self.path))

    def tearDown(self) -> None:
        os.remove(self.path)

    def _records(self):
        with open(self.path, encoding="utf-8") as f:
            return [json.loads(line) for line in f if line.strip()]

    """
        Every typed error derives from ApplicationManagerError and keeps its metadata.
    """
    def test_taxonomy(self):

        for cls in (TransportError, ProtocolError, KeyDerivationError, DecryptionError, EncodingError, ParseError, ConfigurationError):
            with self.subTest(cls=cls.__name__):
                err = cls(ApplicationCodes.INTERNAL_ERROR, "detail", "field")

                self.assertIsInstance(err, ApplicationManagerError)
                self.assertEqual("field", err.field)
                self.assertEqual("internal_error: detail", str(err))

    """
        TransportError carries the HTTP status when there was one.
    """
    def test_transport_error_http_code(self):

        self.assertIsNone(TransportError(ApplicationCodes.CONNECTION_ERROR, "refused").http_code)
        self.assertEqual(503, TransportError(ApplicationCodes.HTTP_STATUS_ERROR, "unavailable", http_code=503).http_code)

    """
        Typed errors are normalized with their own code and logged.
    """
    def test_handle_typed_error(self):

        err = DecryptionError(ApplicationCodes.INVALID_PADDING, "Invalid PKCS#7 padding", "ciphertext")

        record = self.handler.handle_fetch_error(err, "app1", "request_application_summary")

        self.assertEqual({
            "error_type": "DecryptionError",
            "application_code": ApplicationCodes.INVALID_PADDING,
            "message": "Invalid PKCS#7 padding",
            "field": "ciphertext",
            "context": "request_application_summary"
        }, record)

        logged = self._records()
        self.assertEqual(1, len(logged))
        self.assertEqual("fetch_failure", logged[0]["event"])
        self.assertEqual("app1", logged[0]["application_id"])
        self.assertEqual(ApplicationCodes.INVALID_PADDING, logged[0]["application_code"])
        self.assertIn("timestamp", logged[0])

    """
        Unexpected exceptions are normalized to INTERNAL_ERROR, with the raw detail still logged.
    """
    def test_handle_unexpected_error(self):

        record = self.handler.handle_fetch_error(RuntimeError("boom"), "app1", "request_timestamp")

        self.assertEqual(ApplicationCodes.INTERNAL_ERROR, record["application_code"])
        self.assertEqual("RuntimeError", record["error_type"])
        self.assertEqual("boom", self._records()[0]["detail"])


if __name__ == "__main__":
    unittest.main()
