#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
    File name: testServerConfig.py
    Author: Alex Biddle

    Description:
        Tests for ServerConfig validation, URL building, and loading from the
        environment.
"""

import unittest

from appmanifest.server_config import ServerConfig
from appmanifest.handlers.error_handler import ApplicationCodes, ConfigurationError


class TestServerConfig(unittest.TestCase):

    """
        Only the URL and passphrase are required.
    """
    def test_defaults(self):

        config = ServerConfig("https://manifest.example", "shared-pass")

        self.assertFalse(config.debug)
        self.assertEqual(10.0, config.timeout_seconds)
        self.assertEqual("POST", config.http_method)
        self.assertEqual("raw", config.key_encoding)
        self.assertEqual("%Y-%m-%dT%H:%M:%SZ", config.timestamp_format)
        self.assertIsNone(config.audit_log_path)

    """
        Endpoint paths join onto the base URL with exactly one separator.
    """
    def test_build_server_url(self):

        for base in ("https://manifest.example", "https://manifest.example/"):
            for path in ("api/application", "/api/application"):
                with self.subTest(base=base, path=path):
                    config = ServerConfig(base, "shared-pass")
                    self.assertEqual("https://manifest.example/api/application", config.build_server_url(path))

    """
        Invalid values are rejected at construction time.
    """
    def test_invalid_values(self):

        cases = {
            "base_url": dict(base_url="  "),
            "passphrase": dict(passphrase=""),
            "debug": dict(debug="yes"),
            "timeout_seconds": dict(timeout_seconds=0),
            "http_method": dict(http_method="PUT"),
            "key_encoding": dict(key_encoding="hex"),
            "timestamp_format": dict(timestamp_format=""),
        }

        for field_name, overrides in cases.items():
            with self.subTest(field=field_name):
                kwargs = dict(base_url="https://manifest.example", passphrase="shared-pass")
                kwargs.update(overrides)

                with self.assertRaises(ConfigurationError) as cm:
                    ServerConfig(**kwargs)

                self.assertEqual(ApplicationCodes.INVALID_CONFIG, cm.exception.application_code)
                self.assertEqual(field_name, cm.exception.field)

    """
        A boolean is not accepted as a timeout.
    """
    def test_boolean_timeout(self):

        with self.assertRaises(ConfigurationError):
            ServerConfig("https://manifest.example", "shared-pass", timeout_seconds=True)

    """
        The passphrase is hidden from repr; configs are hashable and compare by value.
    """
    def test_repr_and_hash(self):

        a = ServerConfig("https://manifest.example", "shared-pass")
        b = ServerConfig("https://manifest.example", "shared-pass")

        self.assertNotIn("shared-pass", repr(a))
        self.assertEqual(a, b)
        self.assertEqual(1, len({a, b}))
        self.assertNotEqual(a, ServerConfig("https://manifest.example", "shared-pass", debug=True))

    """
        from_env reads every APPMANIFEST_* variable.
    """
    def test_from_env(self):

        config = ServerConfig.from_env({
            "APPMANIFEST_SERVER_URL": "https://manifest.example",
            "APPMANIFEST_PASSPHRASE": "shared-pass",
            "APPMANIFEST_DEBUG": "True",
            "APPMANIFEST_TIMEOUT": "2.5",
            "APPMANIFEST_HTTP_METHOD": "get",
            "APPMANIFEST_KEY_ENCODING": "BASE64",
            "APPMANIFEST_AUDIT_LOG": "/tmp/appmanifest-audit.log",
        })

        self.assertEqual("https://manifest.example", config.base_url)
        self.assertEqual("shared-pass", config.passphrase)
        self.assertTrue(config.debug)
        self.assertEqual(2.5, config.timeout_seconds)
        self.assertEqual("GET", config.http_method)
        self.assertEqual("base64", config.key_encoding)
        self.assertEqual("/tmp/appmanifest-audit.log", config.audit_log_path)

    """
        Only the usual truthy spellings enable debug.
    """
    def test_from_env_debug_flag(self):

        base = {"APPMANIFEST_SERVER_URL": "https://manifest.example", "APPMANIFEST_PASSPHRASE": "shared-pass"}

        for value, expected in (("1", True), ("on", True), ("yes", True), ("0", False), ("no", False), ("", False)):
            with self.subTest(value=value):
                self.assertEqual(expected, ServerConfig.from_env(dict(base, APPMANIFEST_DEBUG=value)).debug)

    """
        Missing required variables and a malformed timeout raise ConfigurationError.
    """
    def test_from_env_errors(self):

        with self.assertRaises(ConfigurationError) as cm:
            ServerConfig.from_env({"APPMANIFEST_PASSPHRASE": "shared-pass"})
        self.assertEqual("base_url", cm.exception.field)

        with self.assertRaises(ConfigurationError) as cm:
            ServerConfig.from_env({"APPMANIFEST_SERVER_URL": "https://manifest.example"})
        self.assertEqual("passphrase", cm.exception.field)

        with self.assertRaises(ConfigurationError) as cm:
            ServerConfig.from_env({
                "APPMANIFEST_SERVER_URL": "https://manifest.example",
                "APPMANIFEST_PASSPHRASE": "shared-pass",
                "APPMANIFEST_TIMEOUT": "soon",
            })
        self.assertEqual("timeout_seconds", cm.exception.field)


if __name__ == "__main__":
    unittest.main()
