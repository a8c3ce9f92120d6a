#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
    File name: testApplicationManager.py
    Author: Alex Biddle

    Description:
        Tests for the ApplicationManager cache and fallback behavior and for
        the ApplicationManagerRegistry. The server is replaced by an
        in-memory transport serving sealed packets in sequence.
"""

import json
import os
import tempfile
import threading
import time
import unittest
from datetime import datetime, timezone

from appmanifest.application_manager import ApplicationManager, ApplicationManagerRegistry
from appmanifest.handlers.packet_handler import PacketHandler
from appmanifest.handlers.error_handler import ApplicationCodes, ConfigurationError, TransportError
from appmanifest.datagram.manifest_objects import ApplicationSummary, Package
from appmanifest.server_config import ServerConfig
from appmanifest.utilities.audit_log import AuditLog


PASSPHRASE = "shared-pass"
SUMMARY_URI = "api/application"
PACKAGES_URI = "api/packages"
TIMESTAMP_URI = "api/timestamp"


"""
    In-memory transport. Responses queued for a path are served in order and
    the last one is repeated; a path with nothing queued fails to connect.
"""
class FakeTransport:

    def __init__(self, config: ServerConfig) -> None:
        self.config = config
        self.responses = {}
        self.calls = []

    def queue(self, path: str, *responses) -> None:
        self.responses.setdefault(path, []).extend(responses)

    def calls_to(self, path: str) -> int:
        return sum(1 for url, _ in self.calls if url.endswith(path))

    def build_url(self, path: str) -> str:
        return self.config.build_server_url(path)

    def request(self, url: str, params) -> dict:
        self.calls.append((url, dict(params)))
        path = url[len(self.config.base_url.rstrip("/")) + 1:]

        pending = self.responses.get(path)
        if not pending:
            raise TransportError(ApplicationCodes.CONNECTION_ERROR, f"Request to {url} failed", "url")

        response = pending.pop(0) if len(pending) > 1 else pending[0]
        if isinstance(response, Exception):
            raise response
        return response


def _summary_packet(version: str, secret: str) -> dict:
    payload = {"id": "app1", "name": "App", "version": version, "secret": secret}
    return PacketHandler().seal_packet(payload, PASSPHRASE)


def _packages_packet(secret: str, *names) -> dict:
    payload = {"packages": [{"name": name, "version": "1"} for name in names]}
    return PacketHandler().seal_packet(payload, secret)


class TestApplicationManager(unittest.TestCase):

    def setUp(self) -> None:
        self.tmpdir = tempfile.TemporaryDirectory()
        self.audit_path = os.path.join(self.tmpdir.name, "audit.log")
        self.config = ServerConfig("https://manifest.example", PASSPHRASE)
        self.transport = FakeTransport(self.config)
        self.manager = self._manager(self.config, self.transport)

    def tearDown(self) -> None:
        self.tmpdir.cleanup()

    def _manager(self, config: ServerConfig, transport: FakeTransport) -> ApplicationManager:
        return ApplicationManager("app1", config, transport=transport, region_provider=lambda: "US", audit_log=AuditLog(self.audit_path))

    def _events(self):
        if not os.path.exists(self.audit_path):
            return []
        with open(self.audit_path, encoding="utf-8") as f:
            return [json.loads(line) for line in f if line.strip()]

    """
        The first successful summary is cached and returned.
    """
    def test_first_summary_is_cached(self):

        self.transport.queue(SUMMARY_URI, _summary_packet("1.0", "session-1"))

        summary = self.manager.get_application_summary()

        self.assertEqual(ApplicationSummary("app1", "App", "1.0", "session-1"), summary)
        self.assertEqual(summary, self.manager.cache_snapshot().summary)
        self.assertIn("summary_cached", [e["event"] for e in self._events()])

    """
        Nothing fetched and nothing reachable: every accessor returns None without raising.
    """
    def test_never_fetched(self):

        self.assertIsNone(self.manager.get_application_summary())
        self.assertIsNone(self.manager.get_packages())
        self.assertIsNone(self.manager.get_timestamp())

        # Packages are never requested without a summary
        self.assertEqual(0, self.transport.calls_to(PACKAGES_URI))

    """
        A server-reported failure returns the cached summary and leaves the cache untouched.
    """
    def test_summary_failure_returns_cached(self):

        self.transport.queue(SUMMARY_URI, _summary_packet("1.0", "session-1"), {"sucess": False})

        first = self.manager.get_application_summary()
        before = self.manager.cache_snapshot()

        second = self.manager.get_application_summary()

        self.assertEqual(first, second)
        self.assertEqual(before, self.manager.cache_snapshot())

        failures = [e for e in self._events() if e["event"] == "fetch_failure"]
        self.assertEqual(1, len(failures))
        self.assertEqual(ApplicationCodes.SERVER_REPORTED_FAILURE, failures[0]["application_code"])
        self.assertEqual("request_application_summary", failures[0]["context"])

    """
        A summary with the same version does not replace the cached one, even with a new secret.
    """
    def test_same_version_keeps_cached_summary(self):

        self.transport.queue(SUMMARY_URI, _summary_packet("1.0", "session-1"), _summary_packet("1.0", "session-2"))

        self.manager.get_application_summary()
        summary = self.manager.get_application_summary()

        self.assertEqual("session-1", summary.secret)

    """
        A new version replaces the cached summary.
    """
    def test_new_version_replaces_summary(self):

        self.transport.queue(SUMMARY_URI, _summary_packet("1.0", "session-1"), _summary_packet("1.1", "session-2"))

        self.manager.get_application_summary()
        summary = self.manager.get_application_summary()

        self.assertEqual("1.1", summary.version)
        self.assertEqual("session-2", self.manager.cache_snapshot().summary.secret)

    """
        Packages are fetched once and reused while the summary version is unchanged.
    """
    def test_packages_reused_for_same_version(self):

        self.transport.queue(SUMMARY_URI, _summary_packet("1.0", "session-1"))
        self.transport.queue(PACKAGES_URI, _packages_packet("session-1", "core", "assets"))

        first = self.manager.get_packages()
        second = self.manager.get_packages()

        self.assertEqual([Package.from_dict({"name": "core", "version": "1"}), Package.from_dict({"name": "assets", "version": "1"})], first)
        self.assertEqual(first, second)
        self.assertEqual(2, self.transport.calls_to(SUMMARY_URI))
        self.assertEqual(1, self.transport.calls_to(PACKAGES_URI))
        self.assertIn("packages_reused", [e["event"] for e in self._events()])

    """
        The packages request carries the summary name and id plus the region.
    """
    def test_packages_request_parameters(self):

        self.transport.queue(SUMMARY_URI, _summary_packet("1.0", "session-1"))
        self.transport.queue(PACKAGES_URI, _packages_packet("session-1", "core"))

        self.manager.get_packages()

        url, params = self.transport.calls[-1]
        self.assertEqual("https://manifest.example/api/packages", url)
        self.assertEqual({"name": "App", "application": "app1", "region": "US"}, params)

    """
        An upgraded summary triggers a packages fetch opened with the new session secret.
    """
    def test_upgrade_refetches_packages(self):

        self.transport.queue(SUMMARY_URI, _summary_packet("1.0", "session-1"), _summary_packet("1.1", "session-2"))
        self.transport.queue(PACKAGES_URI, _packages_packet("session-1", "core"), _packages_packet("session-2", "core", "patch"))

        self.manager.get_packages()
        packages = self.manager.get_packages()

        self.assertEqual(["core", "patch"], [p.name for p in packages])
        self.assertEqual("1.1", self.manager.cache_snapshot().packages_summary.version)
        self.assertEqual(2, self.transport.calls_to(PACKAGES_URI))

    """
        Debug mode refetches packages on every call.
    """
    def test_debug_always_refetches(self):

        config = ServerConfig("https://manifest.example", PASSPHRASE, debug=True)
        transport = FakeTransport(config)
        manager = self._manager(config, transport)

        transport.queue(SUMMARY_URI, _summary_packet("1.0", "session-1"))
        transport.queue(PACKAGES_URI, _packages_packet("session-1", "core"))

        manager.get_packages()
        manager.get_packages()
        manager.get_packages()

        self.assertTrue(manager.debug)
        self.assertEqual(3, transport.calls_to(PACKAGES_URI))

    """
        A packages response with a bad entry leaves the previous list and its origin in place.
    """
    def test_bad_package_entry_keeps_previous_list(self):

        bad = PacketHandler().seal_packet({"packages": [{"name": "core"}, "broken"]}, "session-2")

        self.transport.queue(SUMMARY_URI, _summary_packet("1.0", "session-1"), _summary_packet("1.1", "session-2"))
        self.transport.queue(PACKAGES_URI, _packages_packet("session-1", "core", "assets"), bad)

        first = self.manager.get_packages()
        second = self.manager.get_packages()

        self.assertEqual(first, second)
        self.assertEqual("1.0", self.manager.cache_snapshot().packages_summary.version)

        failures = [e for e in self._events() if e["event"] == "fetch_failure"]
        self.assertEqual(ApplicationCodes.INVALID_PACKAGE, failures[-1]["application_code"])
        self.assertEqual("request_packages", failures[-1]["context"])

    """
        "sucess": false on the packages endpoint after an upgrade leaves the cached list and its origin identical.
    """
    def test_packages_server_failure_keeps_cache(self):

        self.transport.queue(SUMMARY_URI, _summary_packet("1.0", "session-1"), _summary_packet("1.1", "session-2"))
        self.transport.queue(PACKAGES_URI, _packages_packet("session-1", "core", "assets"), {"sucess": False})

        first = self.manager.get_packages()
        before = self.manager.cache_snapshot()

        second = self.manager.get_packages()
        after = self.manager.cache_snapshot()

        self.assertEqual(first, second)
        self.assertEqual(before.packages, after.packages)
        self.assertIs(before.packages_summary, after.packages_summary)
        self.assertEqual("1.0", after.packages_summary.version)

        # The upgraded summary itself is still accepted
        self.assertEqual("1.1", after.summary.version)

        failures = [e for e in self._events() if e["event"] == "fetch_failure"]
        self.assertEqual(ApplicationCodes.SERVER_REPORTED_FAILURE, failures[-1]["application_code"])
        self.assertEqual("request_packages", failures[-1]["context"])

    """
        A region provider that raises never reaches the caller; the cached list is returned instead.
    """
    def test_region_failure_falls_back(self):

        state = {"fail": False}

        def region():
            if state["fail"]:
                raise LookupError("locale unavailable")
            return "US"

        manager = ApplicationManager("app1", self.config, transport=self.transport, region_provider=region, audit_log=AuditLog(self.audit_path))

        self.transport.queue(SUMMARY_URI, _summary_packet("1.0", "session-1"), _summary_packet("1.1", "session-2"))
        self.transport.queue(PACKAGES_URI, _packages_packet("session-1", "core"))

        first = manager.get_packages()

        state["fail"] = True
        second = manager.get_packages()

        self.assertEqual(first, second)
        self.assertEqual(1, self.transport.calls_to(PACKAGES_URI))

        failures = [e for e in self._events() if e["event"] == "fetch_failure"]
        self.assertEqual(ApplicationCodes.TRANSPORT_ERROR, failures[-1]["application_code"])
        self.assertEqual("request_packages", failures[-1]["context"])

    """
        With nothing cached, a failing region provider yields None rather than an exception.
    """
    def test_region_failure_without_cache(self):

        def region():
            raise LookupError("locale unavailable")

        manager = ApplicationManager("app1", self.config, transport=self.transport, region_provider=region, audit_log=AuditLog(self.audit_path))
        self.transport.queue(SUMMARY_URI, _summary_packet("1.0", "session-1"))

        self.assertIsNone(manager.get_packages())
        self.assertEqual(0, self.transport.calls_to(PACKAGES_URI))

    """
        A packages transport failure returns the cached list.
    """
    def test_packages_transport_failure_returns_cached(self):

        self.transport.queue(SUMMARY_URI, _summary_packet("1.0", "session-1"), _summary_packet("1.1", "session-2"))
        self.transport.queue(PACKAGES_URI, _packages_packet("session-1", "core"), TransportError(ApplicationCodes.HTTP_STATUS_ERROR, "HTTP 502", "url", http_code=502))

        first = self.manager.get_packages()
        second = self.manager.get_packages()

        self.assertEqual(first, second)

    """
        With packages cached but no summary obtainable, get_packages returns None.
    """
    def test_packages_without_summary(self):

        origin = ApplicationSummary("app1", "App", "1.0", "session-1")
        self.manager._cache.replace_packages([Package.from_dict({"name": "core"})], origin)

        self.assertIsNone(self.manager.get_packages())
        self.assertEqual(0, self.transport.calls_to(PACKAGES_URI))

    """
        Mutating a returned package list does not affect later calls.
    """
    def test_returned_packages_are_copies(self):

        self.transport.queue(SUMMARY_URI, _summary_packet("1.0", "session-1"))
        self.transport.queue(PACKAGES_URI, _packages_packet("session-1", "core"))

        self.manager.get_packages().clear()

        self.assertEqual(1, len(self.manager.get_packages()))

    """
        The timestamp is refreshed on every call and the cached value is the fallback.
    """
    def test_timestamp_fallback(self):

        self.transport.queue(
            TIMESTAMP_URI,
            {"result": "2024-01-02T03:04:05Z"},
            {"result": "2024-01-02T03:05:00Z"},
            RuntimeError("socket closed"),
            {"result": "not a timestamp"},
        )

        first = self.manager.get_timestamp()
        second = self.manager.get_timestamp()
        third = self.manager.get_timestamp()
        fourth = self.manager.get_timestamp()

        self.assertEqual(datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc), first)
        self.assertEqual(datetime(2024, 1, 2, 3, 5, 0, tzinfo=timezone.utc), second)
        self.assertEqual(second, third)
        self.assertEqual(second, fourth)
        self.assertEqual(4, self.transport.calls_to(TIMESTAMP_URI))

        codes = [e["application_code"] for e in self._events() if e["event"] == "fetch_failure"]
        self.assertEqual([ApplicationCodes.TRANSPORT_ERROR, ApplicationCodes.INVALID_TIMESTAMP], codes)

    """
        is_upgrade compares against the cached summary.
    """
    def test_is_upgrade(self):

        same = ApplicationSummary("app1", "App", "1.0", "other")
        newer = ApplicationSummary("app1", "App", "1.1", "other")

        self.assertTrue(self.manager.is_upgrade(same))

        self.transport.queue(SUMMARY_URI, _summary_packet("1.0", "session-1"))
        self.manager.get_application_summary()

        self.assertFalse(self.manager.is_upgrade(same))
        self.assertTrue(self.manager.is_upgrade(newer))
        self.assertTrue(self.manager.is_upgrade(None))

    """
        Accessor calls from several threads never overlap.
    """
    def test_calls_are_serialized(self):

        state = {"active": 0, "max_active": 0}
        guard = threading.Lock()
        transport = self.transport
        inner_request = transport.request

        def slow_request(url, params):
            with guard:
                state["active"] += 1
                state["max_active"] = max(state["max_active"], state["active"])
            time.sleep(0.01)
            with guard:
                state["active"] -= 1
            return inner_request(url, params)

        transport.request = slow_request
        transport.queue(SUMMARY_URI, _summary_packet("1.0", "session-1"))
        transport.queue(PACKAGES_URI, _packages_packet("session-1", "core"))
        transport.queue(TIMESTAMP_URI, {"result": "2024-01-02T03:04:05Z"})

        accessors = [self.manager.get_application_summary, self.manager.get_packages, self.manager.get_timestamp] * 3
        errors = []

        def run(accessor):
            try:
                accessor()
            except Exception as e:  # pragma: no cover
                errors.append(e)

        threads = [threading.Thread(target=run, args=(accessor,)) for accessor in accessors]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertEqual([], errors)
        self.assertEqual(1, state["max_active"])
        self.assertEqual(1, transport.calls_to(PACKAGES_URI))

    """
        The manager requires a ServerConfig and a non-empty application id.
    """
    def test_constructor_validation(self):

        with self.assertRaises(TypeError):
            ApplicationManager("app1", {"base_url": "https://manifest.example"}, transport=self.transport)  # type: ignore[arg-type]

        with self.assertRaises(ConfigurationError):
            ApplicationManager("", self.config, transport=self.transport, audit_log=AuditLog(self.audit_path))


class TestApplicationManagerRegistry(unittest.TestCase):

    def setUp(self) -> None:
        self.tmpdir = tempfile.TemporaryDirectory()
        self.audit_log = AuditLog(os.path.join(self.tmpdir.name, "audit.log"))
        self.config = ServerConfig("https://manifest.example", PASSPHRASE)
        self.registry = ApplicationManagerRegistry()

    def tearDown(self) -> None:
        self.tmpdir.cleanup()

    def _create(self, application_id: str, config: ServerConfig) -> ApplicationManager:
        return self.registry.create_instance(application_id, config, transport=FakeTransport(config), audit_log=self.audit_log)

    """
        One manager exists per application id and configuration.
    """
    def test_identity(self):

        self.assertIsNone(self.registry.get_instance("app1", self.config))

        first = self._create("app1", self.config)

        self.assertIs(first, self._create("app1", self.config))
        self.assertIs(first, self.registry.get_instance("app1", ServerConfig("https://manifest.example", PASSPHRASE)))
        self.assertIsNot(first, self._create("app2", self.config))
        self.assertIsNot(first, self._create("app1", ServerConfig("https://manifest.example", PASSPHRASE, debug=True)))
        self.assertEqual(3, len(self.registry))

    """
        Concurrent creation yields a single shared manager.
    """
    def test_concurrent_creation(self):

        barrier = threading.Barrier(8)
        created = []
        lock = threading.Lock()

        def create():
            barrier.wait()
            manager = self._create("app1", self.config)
            with lock:
                created.append(manager)

        threads = [threading.Thread(target=create) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertEqual(8, len(created))
        self.assertEqual(1, len({id(manager) for manager in created}))
        self.assertEqual(1, len(self.registry))


if __name__ == "__main__":
    unittest.main()
