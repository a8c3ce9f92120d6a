#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
    File name: testAuditLog.py
    Author: Alex Biddle

    Description:
        Tests for the JSON-lines AuditLog.
"""

import io
import json
import os
import tempfile
import unittest
from contextlib import redirect_stderr
from unittest import mock

from appmanifest.utilities.audit_log import AuditLog


class TestAuditLog(unittest.TestCase):

    def setUp(self) -> None:
        self.tmpdir = tempfile.TemporaryDirectory()
        self.path = os.path.join(self.tmpdir.name, "audit.log")

    def tearDown(self) -> None:
        self.tmpdir.cleanup()

    """
        Each event is appended as one JSON object with an ISO8601Z timestamp.
    """
    def test_event_appends_json_lines(self):

        log = AuditLog(self.path)
        log.event(event="summary_cached", application_id="app1", version="1.0")
        log.event(event="packages_cached", count=3)

        with open(self.path, encoding="utf-8") as f:
            lines = [json.loads(line) for line in f]

        self.assertEqual(2, len(lines))
        self.assertEqual("summary_cached", lines[0]["event"])
        self.assertEqual("1.0", lines[0]["version"])
        self.assertEqual(3, lines[1]["count"])
        self.assertRegex(lines[0]["timestamp"], r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}Z$")

    """
        The environment variable is used when no path is given.
    """
    def test_path_from_environment(self):

        with mock.patch.dict(os.environ, {"APPMANIFEST_AUDIT_LOG": self.path}):
            log = AuditLog()

        self.assertEqual(self.path, log.path)
        self.assertTrue(log.enabled)

    """
        Without a path or environment variable the log is disabled and writes nothing.
    """
    def test_disabled_without_destination(self):

        with mock.patch.dict(os.environ, {}, clear=True):
            log = AuditLog()

        self.assertIsNone(log.path)
        self.assertFalse(log.enabled)

        stderr = io.StringIO()
        with redirect_stderr(stderr):
            log.event(event="fetch_failure", application_id="app1")

        self.assertEqual("", stderr.getvalue())
        self.assertEqual([], os.listdir(self.tmpdir.name))

    """
        A write failure is reported on stderr and never raised.
    """
    def test_write_failure_does_not_raise(self):

        log = AuditLog(self.tmpdir.name)  # a directory cannot be opened for append

        stderr = io.StringIO()
        with redirect_stderr(stderr):
            log.event(event="fetch_failure")

        self.assertIn("Audit log write error", stderr.getvalue())


if __name__ == "__main__":
    unittest.main()
