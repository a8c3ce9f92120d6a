#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
    File name: cache_handler.py
    Author: Alex Biddle

    Description:
        Holds the in-memory manifest state of one ApplicationManager: the
        last-known application summary, the package list together with the
        summary that produced it, and the last server timestamp. Each slot
        keeps exactly one value that is replaced in full, never merged.
        Access is serialized with an internal RLock that the manager also
        holds for the whole duration of each accessor call. Nothing is ever
        written to disk.
"""


import threading
import typing
from dataclasses import dataclass, field
from datetime import datetime
from appmanifest.datagram.manifest_objects import ApplicationSummary, Package

####################################################################################################
# Manifest Cache Data Object
####################################################################################################

"""
    Snapshot of the cached manifest state.

    summary           : Last accepted ApplicationSummary
    packages          : Last complete package list (tuple, server order)
    packages_summary  : Summary whose session secret and version produced `packages`
    timestamp         : Last successfully parsed server timestamp (UTC)
"""
@dataclass(frozen=True)
class ManifestCacheDataObject:

    summary: typing.Optional[ApplicationSummary] =           None
    packages: typing.Optional[typing.Tuple[Package, ...]] =  None
    packages_summary: typing.Optional[ApplicationSummary] =  None
    timestamp: typing.Optional[datetime] =                   None


####################################################################################################
# CACHE STORE
####################################################################################################

class ManifestCacheHandler:

    def __init__(self) -> None:

        # Re-entrant so the packages flow can run the summary flow under the same lock
        self.lock = threading.RLock()

        self._summary: typing.Optional[ApplicationSummary] = None
        self._packages: typing.Optional[typing.Tuple[Package, ...]] = None
        self._packages_summary: typing.Optional[ApplicationSummary] = None
        self._timestamp: typing.Optional[datetime] = None


    @property
    def summary(self) -> typing.Optional[ApplicationSummary]:
        with self.lock:
            return self._summary

    @property
    def packages(self) -> typing.Optional[typing.List[Package]]:
        with self.lock:
            return None if self._packages is None else list(self._packages)

    @property
    def packages_summary(self) -> typing.Optional[ApplicationSummary]:
        with self.lock:
            return self._packages_summary

    @property
    def timestamp(self) -> typing.Optional[datetime]:
        with self.lock:
            return self._timestamp



    """
        Replace the cached summary.

        @param summary (ApplicationSummary): New summary; None is rejected.
    """
    def replace_summary(self, summary: ApplicationSummary) -> None:
        if not isinstance(summary, ApplicationSummary):
            raise TypeError("replace_summary expects an ApplicationSummary")

        with self.lock:
            self._summary = summary



    """
        Replace the cached package list together with the summary that produced it.

        @param packages (Sequence[Package]): Complete, fully parsed list.
        @param origin (ApplicationSummary): Summary used to request the list.
        @ensures The list and its origin are swapped in one step under the lock.
    """
    def replace_packages(self, packages: typing.Sequence[Package], origin: ApplicationSummary) -> None:
        if not isinstance(origin, ApplicationSummary):
            raise TypeError("replace_packages requires the originating ApplicationSummary")

        frozen = tuple(packages)

        with self.lock:
            self._packages = frozen
            self._packages_summary = origin


    def replace_timestamp(self, timestamp: datetime) -> None:
        if not isinstance(timestamp, datetime):
            raise TypeError("replace_timestamp expects a datetime")

        with self.lock:
            self._timestamp = timestamp


    def snapshot(self) -> ManifestCacheDataObject:
        with self.lock:
            return ManifestCacheDataObject(summary=self._summary, packages=self._packages, packages_summary=self._packages_summary, timestamp=self._timestamp)


    def clear(self) -> None:
        with self.lock:
            self._summary = None
            self._packages = None
            self._packages_summary = None
            self._timestamp = None
