#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
    File name: application_manager.py
    Author: Alex Biddle

    Description:
        Entry point of the manifest client. The ApplicationManager owns the
        manifest cache of one application and exposes the three accessors
        (summary, packages, timestamp). Each accessor runs under the cache
        lock, performs the fetch through the ManifestHandler, applies the
        upgrade decision, and on any typed failure records the error through
        the ErrorHandler and returns the best-known cached value. No fetch
        error is ever raised to the caller.

        ApplicationManagerRegistry replaces a global singleton: it creates at
        most one manager per (application id, configuration) pair.
"""


import threading
import typing
from datetime import datetime

from appmanifest.utilities.audit_log import AuditLog
from appmanifest.handlers.error_handler import ApplicationManagerError, ErrorHandler
from appmanifest.handlers.cache_handler import ManifestCacheHandler, ManifestCacheDataObject
from appmanifest.handlers.manifest_handler import ManifestHandler
from appmanifest.handlers.transport_handler import HTTPTransport, default_region
from appmanifest.handlers.upgrade_handler import is_upgrade
from appmanifest.datagram.manifest_objects import ApplicationSummary, Package
from appmanifest.server_config import ServerConfig


#####################################################################################################################################################################

class ApplicationManager:

    """
        Create a manager bound to one application and configuration.

        @param application_id (str): Identifier sent with the summary request.
        @param config (ServerConfig): Validated client configuration.
        @param transport: build_url(path)/request(url, params) collaborator; HTTPTransport when omitted.
        @param region_provider (Callable[[], str]): Region code for the packages request; process locale when omitted.
        @param audit_log (AuditLog): Failure and cache events; config.audit_log_path when omitted.
        @ensures The cache starts empty; no request is made until an accessor is called.
    """
    def __init__(self, application_id: str, config: ServerConfig, transport=None, region_provider: typing.Optional[typing.Callable[[], str]] = None, audit_log: typing.Optional[AuditLog] = None) -> None:

        if not isinstance(config, ServerConfig):
            raise TypeError("ApplicationManager requires a ServerConfig instance")

        self.application_id = application_id
        self.config = config

        self.audit_log = audit_log if audit_log is not None else AuditLog(config.audit_log_path)
        self._error_handler = ErrorHandler(self.audit_log)
        self._cache = ManifestCacheHandler()

        self._transport = transport if transport is not None else HTTPTransport(config)
        self._fetcher = ManifestHandler(application_id, config, self._transport, region_provider or default_region)


    @property
    def debug(self) -> bool:
        return self.config.debug



    """
        Return the current ApplicationSummary, fetching it from the server.

        Blocking: performs network and cryptographic work; call it off any latency-sensitive thread.

        @return ApplicationSummary | None: The fetched summary when it is an upgrade, otherwise the
                cached one; None only if nothing has ever been fetched successfully.
    """
    def get_application_summary(self) -> typing.Optional[ApplicationSummary]:
        with self._cache.lock:
            return self._refresh_summary()



    """
        Return the package list for the current summary.

        Always re-runs the summary fetch first. Cached packages are returned without a request when
        the summary is not an upgrade over the summary that produced them.

        @return list[Package] | None: Current packages, the cached list on failure, or None when the
                summary could not be obtained or nothing has been fetched.
    """
    def get_packages(self) -> typing.Optional[typing.List[Package]]:
        with self._cache.lock:

            summary = self._refresh_summary()
            cached = self._cache.packages

            if cached is not None:
                if summary is None:
                    return None

                if not is_upgrade(self._cache.packages_summary, summary, self.debug):
                    self.audit_log.event(event="packages_reused", application_id=self.application_id, version=summary.version, count=len(cached))
                    return cached

            # No summary means no session secret to open a packages response with
            if summary is None:
                return cached

            try:
                packages = self._fetcher.request_packages(summary)
            except ApplicationManagerError as e:
                self._error_handler.handle_fetch_error(e, self.application_id, "request_packages")
                return self._cache.packages

            self._cache.replace_packages(packages, summary)
            self.audit_log.event(event="packages_cached", application_id=self.application_id, version=summary.version, count=len(packages))

            return self._cache.packages



    """
        Return the server timestamp.

        @return datetime | None: The freshly parsed UTC timestamp, else the last cached one (or None).
    """
    def get_timestamp(self) -> typing.Optional[datetime]:
        with self._cache.lock:
            try:
                timestamp = self._fetcher.request_timestamp()
            except ApplicationManagerError as e:
                self._error_handler.handle_fetch_error(e, self.application_id, "request_timestamp")
                return self._cache.timestamp

            self._cache.replace_timestamp(timestamp)
            self.audit_log.event(event="timestamp_cached", application_id=self.application_id, timestamp=timestamp.isoformat())

            return self._cache.timestamp



    """
        Decide whether a summary supersedes the cached one.

        @param candidate (ApplicationSummary | None): Summary to compare.
        @return bool: True in debug mode, when either side is absent, or when the versions differ.
        @ensures Reads state only.
    """
    def is_upgrade(self, candidate: typing.Optional[ApplicationSummary]) -> bool:
        return is_upgrade(self._cache.summary, candidate, self.debug)


    def cache_snapshot(self) -> ManifestCacheDataObject:
        return self._cache.snapshot()



    # Caller must hold the cache lock
    def _refresh_summary(self) -> typing.Optional[ApplicationSummary]:
        try:
            candidate = self._fetcher.request_application_summary()
        except ApplicationManagerError as e:
            self._error_handler.handle_fetch_error(e, self.application_id, "request_application_summary")
            return self._cache.summary

        # Only a newer summary replaces the cached one
        if self.is_upgrade(candidate):
            self._cache.replace_summary(candidate)
            self.audit_log.event(event="summary_cached", application_id=self.application_id, version=candidate.version)

        return self._cache.summary



#####################################################################################################################################################################

"""
    Keyed factory for ApplicationManager instances.

    create_instance() builds at most one manager per (application id, config) pair under a lock;
    get_instance() is a lock-free lookup of an existing manager.
"""
class ApplicationManagerRegistry:

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._managers: typing.Dict[typing.Tuple[str, ServerConfig], ApplicationManager] = {}


    def create_instance(self, application_id: str, config: ServerConfig, **kwargs: typing.Any) -> ApplicationManager:
        key = (application_id, config)

        manager = self._managers.get(key)
        if manager is not None:
            return manager

        with self._lock:
            manager = self._managers.get(key)
            if manager is None:
                manager = ApplicationManager(application_id, config, **kwargs)
                self._managers[key] = manager

        return manager


    def get_instance(self, application_id: str, config: ServerConfig) -> typing.Optional[ApplicationManager]:
        return self._managers.get((application_id, config))


    def __len__(self) -> int:
        return len(self._managers)
