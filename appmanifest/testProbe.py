#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
    File name: testProbe.py
    Author: Alex Biddle

    Description:
        Tests for the appmanifest-probe command-line entry point.
"""

import io
import json
import os
import unittest
from contextlib import redirect_stderr, redirect_stdout
from datetime import datetime, timezone
from unittest import mock

from appmanifest import probe
from appmanifest.datagram.manifest_objects import ApplicationSummary, Package


class TestProbe(unittest.TestCase):

    def setUp(self) -> None:
        self.manager = mock.Mock()
        self.manager.get_application_summary.return_value = ApplicationSummary("app1", "App", "1.0", "session-1")
        self.manager.get_packages.return_value = [Package.from_dict({"name": "core", "version": "1"})]
        self.manager.get_timestamp.return_value = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)

    def _run(self, argv):
        stdout = io.StringIO()
        with redirect_stdout(stdout):
            code = probe.main(argv, manager=self.manager)
        return code, json.loads(stdout.getvalue())

    """
        The summary is printed without its session secret.
    """
    def test_summary(self):

        code, output = self._run(["summary", "app1"])

        self.assertEqual(0, code)
        self.assertEqual({"id": "app1", "name": "App", "version": "1.0"}, output)

    """
        Packages are printed as a list of objects.
    """
    def test_packages(self):

        code, output = self._run(["packages", "app1"])

        self.assertEqual(0, code)
        self.assertEqual([{"name": "core", "version": "1"}], output)

    """
        The timestamp is printed in ISO 8601 form.
    """
    def test_timestamp(self):

        code, output = self._run(["timestamp", "app1"])

        self.assertEqual(0, code)
        self.assertEqual("2024-01-02T03:04:05+00:00", output)

    """
        A missing value prints null and exits with status 1.
    """
    def test_missing_value(self):

        self.manager.get_packages.return_value = None

        code, output = self._run(["packages", "app1"])

        self.assertEqual(1, code)
        self.assertIsNone(output)

    """
        Command-line options override the environment.
    """
    def test_build_config(self):

        args = probe.build_parser().parse_args(["summary", "app1", "--server-url", "https://cli.example", "--debug", "--timeout", "5", "--audit-log", "/tmp/probe.log"])

        config = probe.build_config(args, {
            "APPMANIFEST_SERVER_URL": "https://env.example",
            "APPMANIFEST_PASSPHRASE": "shared-pass",
        })

        self.assertEqual("https://cli.example", config.base_url)
        self.assertEqual("shared-pass", config.passphrase)
        self.assertTrue(config.debug)
        self.assertEqual(5.0, config.timeout_seconds)
        self.assertEqual("/tmp/probe.log", config.audit_log_path)

    """
        An invalid configuration exits with status 2 before any request.
    """
    def test_configuration_error(self):

        stderr = io.StringIO()

        with mock.patch.dict(os.environ, {}, clear=True):
            with redirect_stderr(stderr):
                code = probe.main(["summary", "app1"])

        self.assertEqual(2, code)
        self.assertIn("Configuration error", stderr.getvalue())

    """
        Unknown commands are rejected by the argument parser.
    """
    def test_unknown_command(self):

        with redirect_stderr(io.StringIO()):
            with self.assertRaises(SystemExit) as cm:
                probe.main(["manifest", "app1"], manager=self.manager)

        self.assertEqual(2, cm.exception.code)


if __name__ == "__main__":
    unittest.main()
