#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
    File name: testManifestHandler.py
    Author: Alex Biddle

    Description:
        Tests for the summary, packages, and timestamp round trips of the
        ManifestHandler against an in-memory transport that serves
        server-shaped sealed packets.
"""

import unittest
from datetime import datetime, timezone

from appmanifest.handlers.manifest_handler import ManifestHandler
from appmanifest.handlers.packet_handler import PacketHandler
from appmanifest.handlers.error_handler import (
    ApplicationCodes,
    ApplicationManagerError,
    ConfigurationError,
    DecryptionError,
    ParseError,
    ProtocolError,
    TransportError,
)
from appmanifest.encryption.key_derivation_manager import KeyDerivationManager
from appmanifest.datagram.manifest_objects import ApplicationSummary, Package
from appmanifest.server_config import ServerConfig


PASSPHRASE = "shared-pass"
NONCE = "N1-nonce-0000001"


"""
    Serves one queued response per request and records every call.
"""
class FakeTransport:

    def __init__(self, config: ServerConfig) -> None:
        self.config = config
        self.responses = {}
        self.calls = []

    def queue(self, path: str, response) -> None:
        self.responses[path] = response

    def build_url(self, path: str) -> str:
        return self.config.build_server_url(path)

    def request(self, url: str, params) -> dict:
        self.calls.append((url, dict(params)))
        path = url[len(self.config.base_url.rstrip("/")) + 1:]

        response = self.responses[path]
        if isinstance(response, Exception):
            raise response
        return response


class TestManifestHandler(unittest.TestCase):

    def setUp(self) -> None:
        self.config = ServerConfig("https://manifest.example", PASSPHRASE)
        self.transport = FakeTransport(self.config)
        self.sealer = PacketHandler()
        self.handler = ManifestHandler("app1", self.config, self.transport, lambda: "US")

        self.summary_payload = {"id": "app1", "name": "App", "version": "1.0", "secret": "session-1"}
        self.summary = ApplicationSummary.from_dict(self.summary_payload)

    """
        The summary request sends the application id and opens the response with the passphrase.
    """
    def test_request_application_summary(self):

        self.transport.queue("api/application", self.sealer.seal_packet(self.summary_payload, PASSPHRASE, NONCE))

        summary = self.handler.request_application_summary()

        self.assertEqual(self.summary, summary)
        self.assertEqual([("https://manifest.example/api/application", {"id": "app1"})], self.transport.calls)

    """
        "sucess": false is a ProtocolError, whether boolean or string.
    """
    def test_summary_server_failure(self):

        for flag in (False, "false"):
            with self.subTest(flag=flag):
                self.transport.queue("api/application", {"sucess": flag})

                with self.assertRaises(ProtocolError) as cm:
                    self.handler.request_application_summary()

                self.assertEqual(ApplicationCodes.SERVER_REPORTED_FAILURE, cm.exception.application_code)

    """
        A string "true" flag is accepted.
    """
    def test_summary_string_success_flag(self):

        packet = self.sealer.seal_packet(self.summary_payload, PASSPHRASE, NONCE)
        packet["sucess"] = "true"
        self.transport.queue("api/application", packet)

        self.assertEqual(self.summary, self.handler.request_application_summary())

    """
        A response sealed with another passphrase does not open.
    """
    def test_summary_wrong_passphrase(self):

        self.transport.queue("api/application", self.sealer.seal_packet(self.summary_payload, "other-pass", NONCE))

        with self.assertRaises(ApplicationManagerError):
            self.handler.request_application_summary()

    """
        A decrypted summary without a secret is rejected.
    """
    def test_summary_missing_field(self):

        payload = dict(self.summary_payload)
        del payload["secret"]
        self.transport.queue("api/application", self.sealer.seal_packet(payload, PASSPHRASE, NONCE))

        with self.assertRaises(ParseError) as cm:
            self.handler.request_application_summary()

        self.assertEqual(ApplicationCodes.INVALID_SUMMARY, cm.exception.application_code)

    """
        The base64 key dialect is honored when configured.
    """
    def test_summary_base64_key_encoding(self):

        config = ServerConfig("https://manifest.example", PASSPHRASE, key_encoding="base64")
        transport = FakeTransport(config)
        handler = ManifestHandler("app1", config, transport, lambda: "US")
        sealer = PacketHandler(KeyDerivationManager("base64"))

        transport.queue("api/application", sealer.seal_packet(self.summary_payload, PASSPHRASE, NONCE))

        self.assertEqual(self.summary, handler.request_application_summary())

    """
        The packages request sends name, application, and region and opens with the session secret.
    """
    def test_request_packages(self):

        entries = [{"name": "core", "version": "1.0"}, {"name": "assets", "version": "1.0"}]
        self.transport.queue("api/packages", self.sealer.seal_packet({"packages": entries}, "session-1", NONCE))

        packages = self.handler.request_packages(self.summary)

        self.assertEqual([Package.from_dict(e) for e in entries], packages)
        self.assertEqual(
            [("https://manifest.example/api/packages", {"name": "App", "application": "app1", "region": "US"})],
            self.transport.calls
        )

    """
        A region provider returning None sends an empty region.
    """
    def test_request_packages_without_region(self):

        handler = ManifestHandler("app1", self.config, self.transport, lambda: None)
        self.transport.queue("api/packages", self.sealer.seal_packet({"packages": []}, "session-1", NONCE))

        self.assertEqual([], handler.request_packages(self.summary))
        self.assertEqual("", self.transport.calls[0][1]["region"])

    """
        A failing region provider becomes a TransportError and no request is sent.
    """
    def test_request_packages_region_failure(self):

        def unavailable():
            raise LookupError("locale unavailable")

        for provider in (unavailable, lambda: 840):
            with self.subTest(provider=provider):
                handler = ManifestHandler("app1", self.config, self.transport, provider)

                with self.assertRaises(TransportError) as cm:
                    handler.request_packages(self.summary)

                self.assertEqual(ApplicationCodes.TRANSPORT_ERROR, cm.exception.application_code)
                self.assertEqual("region", cm.exception.field)

        self.assertEqual([], self.transport.calls)

    """
        The passphrase does not open a packages response.
    """
    def test_packages_require_session_secret(self):

        self.transport.queue("api/packages", self.sealer.seal_packet({"packages": []}, PASSPHRASE, NONCE))

        with self.assertRaises(ApplicationManagerError):
            self.handler.request_packages(self.summary)

    """
        A missing or non-array "packages" field, or any bad entry, fails the whole list.
    """
    def test_packages_invalid_payload(self):

        for payload in ({}, {"packages": {"name": "core"}}, {"packages": [{"name": "core"}, "assets"]}):
            with self.subTest(payload=payload):
                self.transport.queue("api/packages", self.sealer.seal_packet(payload, "session-1", NONCE))

                with self.assertRaises(ParseError) as cm:
                    self.handler.request_packages(self.summary)

                self.assertEqual(ApplicationCodes.INVALID_PACKAGE, cm.exception.application_code)

    """
        "sucess": false on the packages endpoint is a ProtocolError.
    """
    def test_packages_server_failure(self):

        self.transport.queue("api/packages", {"sucess": False})

        with self.assertRaises(ProtocolError):
            self.handler.request_packages(self.summary)

    """
        The timestamp response is parsed with the configured format.
    """
    def test_request_timestamp(self):

        self.transport.queue("api/timestamp", {"result": "2024-01-02T03:04:05Z"})

        self.assertEqual(datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc), self.handler.request_timestamp())
        self.assertEqual([("https://manifest.example/api/timestamp", {})], self.transport.calls)

    """
        A custom timestamp format is honored.
    """
    def test_request_timestamp_custom_format(self):

        config = ServerConfig("https://manifest.example", PASSPHRASE, timestamp_format="%d/%m/%Y %H:%M")
        transport = FakeTransport(config)
        transport.queue("api/timestamp", {"result": "02/01/2024 03:04"})

        handler = ManifestHandler("app1", config, transport, lambda: "US")

        self.assertEqual(datetime(2024, 1, 2, 3, 4, tzinfo=timezone.utc), handler.request_timestamp())

    """
        Malformed timestamp responses raise ParseError.
    """
    def test_request_timestamp_invalid(self):

        for packet, code in (({"result": "yesterday"}, ApplicationCodes.INVALID_TIMESTAMP), ({}, ApplicationCodes.MISSING_FIELDS), ({"result": 1704164645}, ApplicationCodes.INVALID_TIMESTAMP)):
            with self.subTest(packet=packet):
                self.transport.queue("api/timestamp", packet)

                with self.assertRaises(ParseError) as cm:
                    self.handler.request_timestamp()

                self.assertEqual(code, cm.exception.application_code)

    """
        Typed transport errors pass through; anything else becomes TRANSPORT_ERROR.
    """
    def test_transport_failures(self):

        raised = TransportError(ApplicationCodes.HTTP_STATUS_ERROR, "HTTP 500", "url", http_code=500)
        self.transport.queue("api/timestamp", raised)

        with self.assertRaises(TransportError) as cm:
            self.handler.request_timestamp()
        self.assertIs(raised, cm.exception)

        self.transport.queue("api/timestamp", RuntimeError("socket closed"))

        with self.assertRaises(TransportError) as cm:
            self.handler.request_timestamp()
        self.assertEqual(ApplicationCodes.TRANSPORT_ERROR, cm.exception.application_code)

    """
        A nonce that is not 16 bytes cannot be used as the IV.
    """
    def test_short_nonce(self):

        packet = self.sealer.seal_packet(self.summary_payload, PASSPHRASE, NONCE)
        packet["hash"] = "N1"
        self.transport.queue("api/application", packet)

        with self.assertRaises(DecryptionError) as cm:
            self.handler.request_application_summary()

        self.assertEqual(ApplicationCodes.INVALID_NONCE, cm.exception.application_code)

    """
        The application id must be a non-empty string.
    """
    def test_invalid_application_id(self):

        for bad in ("", None):
            with self.subTest(bad=bad):
                with self.assertRaises(ConfigurationError) as cm:
                    ManifestHandler(bad, self.config, self.transport, lambda: "US")

                self.assertEqual(ApplicationCodes.INVALID_CONFIG, cm.exception.application_code)
                self.assertEqual("application_id", cm.exception.field)


if __name__ == "__main__":
    unittest.main()
