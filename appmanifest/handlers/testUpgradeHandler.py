#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
    File name: testUpgradeHandler.py
    Author: Alex Biddle

    Description:
        Tests for the upgrade decision between a baseline and a candidate
        ApplicationSummary.
"""

import unittest

from appmanifest.handlers.upgrade_handler import is_upgrade
from appmanifest.datagram.manifest_objects import ApplicationSummary


def _summary(version: str, secret: str = "s1") -> ApplicationSummary:
    return ApplicationSummary(id="app1", name="App", version=version, secret=secret)


class TestUpgradeHandler(unittest.TestCase):

    """
        Identical version strings are never an upgrade, whatever else differs.
    """
    def test_same_version_is_not_upgrade(self):

        self.assertFalse(is_upgrade(_summary("1.0"), _summary("1.0")))
        self.assertFalse(is_upgrade(_summary("1.0", "s1"), _summary("1.0", "s2")))

    """
        Any different version string is an upgrade, including a "lower" one.
    """
    def test_different_version_is_upgrade(self):

        self.assertTrue(is_upgrade(_summary("1.0"), _summary("1.1")))
        self.assertTrue(is_upgrade(_summary("2.0"), _summary("1.9")))

    """
        Versions compare as exact strings: no case folding or semantic ordering.
    """
    def test_exact_string_comparison(self):

        self.assertTrue(is_upgrade(_summary("1.0a"), _summary("1.0A")))
        self.assertTrue(is_upgrade(_summary("1.0"), _summary("1.0.0")))
        self.assertTrue(is_upgrade(_summary("1.0"), _summary(" 1.0")))

    """
        A missing baseline or candidate is always an upgrade.
    """
    def test_absent_side_is_upgrade(self):

        self.assertTrue(is_upgrade(None, _summary("1.0")))
        self.assertTrue(is_upgrade(_summary("1.0"), None))
        self.assertTrue(is_upgrade(None, None))

    """
        Debug mode forces an upgrade even for identical versions.
    """
    def test_debug_forces_upgrade(self):

        self.assertTrue(is_upgrade(_summary("1.0"), _summary("1.0"), debug=True))

    """
        The decision does not modify its inputs.
    """
    def test_is_pure(self):

        before = _summary("1.0")
        after = _summary("1.1")

        first = is_upgrade(before, after)
        second = is_upgrade(before, after)

        self.assertEqual(first, second)
        self.assertEqual("1.0", before.version)
        self.assertEqual("1.1", after.version)


if __name__ == "__main__":
    unittest.main()
