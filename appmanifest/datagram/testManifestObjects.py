#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
    File name: testManifestObjects.py
    Author: Alex Biddle

    Description:
        Tests for the ApplicationSummary and Package data objects.
"""

import dataclasses
import unittest

from appmanifest.datagram.manifest_objects import ApplicationSummary, Package
from appmanifest.handlers.error_handler import ApplicationCodes, ParseError


class TestApplicationSummary(unittest.TestCase):

    def setUp(self) -> None:
        self.payload = {"id": "app1", "name": "App", "version": "1.0", "secret": "session-1"}

    """
        A complete payload builds a summary; unknown fields are ignored.
    """
    def test_from_dict(self):

        summary = ApplicationSummary.from_dict(dict(self.payload, channel="beta"))

        self.assertEqual("app1", summary.id)
        self.assertEqual("App", summary.name)
        self.assertEqual("1.0", summary.version)
        self.assertEqual("session-1", summary.secret)

    """
        Missing fields raise INVALID_SUMMARY listing the missing names.
    """
    def test_missing_fields(self):

        payload = dict(self.payload)
        del payload["secret"]
        del payload["name"]

        with self.assertRaises(ParseError) as cm:
            ApplicationSummary.from_dict(payload)

        self.assertEqual(ApplicationCodes.INVALID_SUMMARY, cm.exception.application_code)
        self.assertIn("name, secret", cm.exception.detail)

    """
        Non-string field values are rejected rather than coerced.
    """
    def test_non_string_fields(self):

        for name, value in (("version", 1.0), ("secret", None), ("id", 7)):
            with self.subTest(name=name):
                with self.assertRaises(ParseError) as cm:
                    ApplicationSummary.from_dict(dict(self.payload, **{name: value}))

                self.assertEqual(ApplicationCodes.INVALID_SUMMARY, cm.exception.application_code)
                self.assertEqual(name, cm.exception.field)

    """
        A non-object payload is a ParseError.
    """
    def test_non_dict_payload(self):

        with self.assertRaises(ParseError):
            ApplicationSummary.from_dict(["app1", "App", "1.0", "session-1"])  # type: ignore[arg-type]

    """
        The secret never appears in repr or in the default dictionary form.
    """
    def test_secret_is_hidden(self):

        summary = ApplicationSummary.from_dict(self.payload)

        self.assertNotIn("session-1", repr(summary))
        self.assertEqual({"id": "app1", "name": "App", "version": "1.0"}, summary.to_dict())
        self.assertEqual("session-1", summary.to_dict(include_secret=True)["secret"])

    """
        Summaries are immutable and compare by value.
    """
    def test_immutable(self):

        summary = ApplicationSummary.from_dict(self.payload)

        with self.assertRaises(dataclasses.FrozenInstanceError):
            summary.version = "2.0"  # type: ignore[misc]

        self.assertEqual(summary, ApplicationSummary.from_dict(self.payload))


class TestPackage(unittest.TestCase):

    """
        Package fields are carried through and exposed read-only.
    """
    def test_from_dict(self):

        source = {"name": "core", "version": "1.2", "url": "https://cdn.example/core.zip"}
        package = Package.from_dict(source)

        self.assertEqual("core", package.name)
        self.assertEqual("1.2", package.version)
        self.assertEqual("https://cdn.example/core.zip", package.get("url"))
        self.assertIsNone(package.get("size"))
        self.assertEqual(source, package.to_dict())

        with self.assertRaises(TypeError):
            package.fields["name"] = "other"  # type: ignore[index]

    """
        Later changes to the source dictionary do not leak into the package.
    """
    def test_copies_source(self):

        source = {"name": "core"}
        package = Package.from_dict(source)
        source["name"] = "changed"

        self.assertEqual("core", package.name)

    """
        Nested objects and arrays are read-only and isolated from the source and from to_dict copies.
    """
    def test_nested_fields_are_read_only(self):

        source = {"name": "core", "files": [{"path": "bin/core", "sha256": "ab"}], "meta": {"tags": ["stable"]}}
        package = Package.from_dict(source)

        source["files"][0]["path"] = "changed"
        source["meta"]["tags"].append("beta")

        self.assertEqual("bin/core", package.get("files")[0]["path"])
        self.assertEqual(("stable",), package.get("meta")["tags"])

        with self.assertRaises(TypeError):
            package.get("files")[0]["path"] = "other"

        with self.assertRaises(AttributeError):
            package.get("meta")["tags"].append("beta")  # type: ignore[attr-defined]

        copy = package.to_dict()
        copy["files"][0]["path"] = "other"
        copy["meta"]["tags"].append("beta")

        self.assertEqual({"name": "core", "files": [{"path": "bin/core", "sha256": "ab"}], "meta": {"tags": ["stable"]}}, package.to_dict())

    """
        Packages compare by their fields.
    """
    def test_equality(self):

        self.assertEqual(Package.from_dict({"name": "a"}), Package.from_dict({"name": "a"}))
        self.assertNotEqual(Package.from_dict({"name": "a"}), Package.from_dict({"name": "b"}))

    """
        Entries that are not JSON objects raise INVALID_PACKAGE.
    """
    def test_rejects_non_object(self):

        for bad in ("core", 1, None, ["core"]):
            with self.subTest(bad=bad):
                with self.assertRaises(ParseError) as cm:
                    Package.from_dict(bad)

                self.assertEqual(ApplicationCodes.INVALID_PACKAGE, cm.exception.application_code)


if __name__ == "__main__":
    unittest.main()
