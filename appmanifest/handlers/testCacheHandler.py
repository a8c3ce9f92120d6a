#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
    File name: testCacheHandler.py
    Author: Alex Biddle

    Description:
        Tests for ManifestCacheHandler: single-slot replacement, package
        attribution to the originating summary, copy-on-read of the package
        list, snapshots, and re-entrant locking.
"""

import threading
import unittest
from datetime import datetime, timezone

from appmanifest.handlers.cache_handler import ManifestCacheHandler, ManifestCacheDataObject
from appmanifest.datagram.manifest_objects import ApplicationSummary, Package


class TestManifestCacheHandler(unittest.TestCase):

    def setUp(self) -> None:
        self.cache = ManifestCacheHandler()
        self.summary = ApplicationSummary(id="app1", name="App", version="1.0", secret="s1")
        self.packages = [Package.from_dict({"name": "a"}), Package.from_dict({"name": "b"})]

    """
        A new cache holds nothing.
    """
    def test_starts_empty(self):

        self.assertIsNone(self.cache.summary)
        self.assertIsNone(self.cache.packages)
        self.assertIsNone(self.cache.packages_summary)
        self.assertIsNone(self.cache.timestamp)
        self.assertEqual(ManifestCacheDataObject(), self.cache.snapshot())

    """
        Each slot keeps only the latest value.
    """
    def test_replace_summary_and_timestamp(self):

        newer = ApplicationSummary(id="app1", name="App", version="1.1", secret="s2")
        ts = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)

        self.cache.replace_summary(self.summary)
        self.cache.replace_summary(newer)
        self.cache.replace_timestamp(ts)

        self.assertIs(newer, self.cache.summary)
        self.assertEqual(ts, self.cache.timestamp)

    """
        Packages are stored together with the summary that produced them.
    """
    def test_replace_packages_records_origin(self):

        self.cache.replace_packages(self.packages, self.summary)

        self.assertEqual(self.packages, self.cache.packages)
        self.assertIs(self.summary, self.cache.packages_summary)

        # The summary slot is independent of the packages origin
        self.assertIsNone(self.cache.summary)

    """
        Mutating a returned list or the source list does not change the cache.
    """
    def test_packages_are_copied(self):

        self.cache.replace_packages(self.packages, self.summary)

        self.packages.append(Package.from_dict({"name": "c"}))
        returned = self.cache.packages
        returned.clear()

        self.assertEqual(2, len(self.cache.packages))

    """
        An empty package list is a valid cached value, distinct from None.
    """
    def test_empty_package_list(self):

        self.cache.replace_packages([], self.summary)

        self.assertEqual([], self.cache.packages)

    """
        Replacing packages requires an originating summary; the other slots are type-checked.
    """
    def test_type_checks(self):

        with self.assertRaises(TypeError):
            self.cache.replace_packages(self.packages, None)  # type: ignore[arg-type]

        with self.assertRaises(TypeError):
            self.cache.replace_summary(None)  # type: ignore[arg-type]

        with self.assertRaises(TypeError):
            self.cache.replace_timestamp("2024-01-02T03:04:05Z")  # type: ignore[arg-type]

    """
        Snapshots are immutable point-in-time copies.
    """
    def test_snapshot(self):

        self.cache.replace_summary(self.summary)
        self.cache.replace_packages(self.packages, self.summary)

        snap = self.cache.snapshot()
        self.cache.clear()

        self.assertIs(self.summary, snap.summary)
        self.assertEqual(tuple(self.packages), snap.packages)
        self.assertIsNone(self.cache.summary)
        self.assertIsNone(self.cache.packages)

    """
        The lock is re-entrant for the owning thread and exclusive across threads.
    """
    def test_lock_is_reentrant_and_exclusive(self):

        acquired_elsewhere = []

        def try_acquire():
            acquired_elsewhere.append(self.cache.lock.acquire(blocking=False))

        with self.cache.lock:
            # Nested acquisition through the accessors must not deadlock
            self.cache.replace_summary(self.summary)
            self.assertIs(self.summary, self.cache.summary)

            worker = threading.Thread(target=try_acquire)
            worker.start()
            worker.join()

        self.assertEqual([False], acquired_elsewhere)


if __name__ == "__main__":
    unittest.main()
