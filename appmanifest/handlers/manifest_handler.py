#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
    File name: manifest_handler.py
    Author: Alex Biddle

    Description:
        Performs the three manifest round trips against the server: the
        application summary, the package list, and the server timestamp.
        Each method builds the request parameters, delegates to the transport
        collaborator, checks the "sucess" flag, derives the one-time key,
        decrypts, and parses the typed result. Methods are stateless with
        respect to the cache and raise typed ApplicationManagerError
        subclasses; the ApplicationManager decides what to cache and when to
        fall back.
"""


import typing
from datetime import datetime
from appmanifest.handlers.error_handler import ApplicationManagerError, ApplicationCodes, ConfigurationError, ParseError, ProtocolError, TransportError
from appmanifest.handlers.packet_handler import PacketHandler
from appmanifest.encryption.key_derivation_manager import KeyDerivationManager
from appmanifest.datagram.manifest_objects import ApplicationSummary, Package
from appmanifest.server_config import ServerConfig
import appmanifest.constants as CONSTANTS
import appmanifest.handlers.sanitization_validation as VALIDATION



class ManifestHandler:

    """
        Initialize a ManifestHandler for one application.

        @param application_id (str): Identifier sent with the summary request.
        @param config (ServerConfig): Shared passphrase, key encoding, timestamp format.
        @param transport: Object exposing build_url(path) and request(url, params).
        @param region_provider (Callable[[], str]): Returns the client region code.
        @param packet_handler (PacketHandler): Optional; built from config.key_encoding when omitted.
    """
    def __init__(self, application_id: str, config: ServerConfig, transport, region_provider: typing.Callable[[], str], packet_handler: typing.Optional[PacketHandler] = None) -> None:

        VALIDATION.validate_string(application_id, ApplicationCodes.INVALID_CONFIG, "application_id", ConfigurationError)

        self.application_id = application_id
        self._config = config
        self._transport = transport
        self._region_provider = region_provider
        self._packet_handler = packet_handler if packet_handler is not None else PacketHandler(KeyDerivationManager(config.key_encoding))



    """
        Fetch and decrypt the application summary.

        @return ApplicationSummary: Freshly decrypted summary.
        @ensures ProtocolError when the server reports failure; other typed errors on transport,
                 key, decryption, or parse failures.
    """
    def request_application_summary(self) -> ApplicationSummary:

        params = {CONSTANTS._PARAM_SUMMARY_ID: self.application_id}
        packet = self._send(CONSTANTS._APPLICATION_URI, params)

        if not self._packet_handler.is_success(packet, "summary"):
            raise ProtocolError(ApplicationCodes.SERVER_REPORTED_FAILURE, "Server reported failure for the summary request", CONSTANTS._RESPONSE_SUCCESS_FIELD)

        manifest = self._packet_handler.open_packet(packet, self._config.passphrase, "summary")
        return ApplicationSummary.from_dict(manifest)



    """
        Fetch and decrypt the package list published for a summary.

        @param summary (ApplicationSummary): Supplies id, name, and the session secret.
        @return list[Package]: Every entry in server order; never a partial list.
    """
    def request_packages(self, summary: ApplicationSummary) -> typing.List[Package]:

        params = {
            CONSTANTS._PARAM_PACKAGES_NAME: summary.name,
            CONSTANTS._PARAM_PACKAGES_APPLICATION: summary.id,
            CONSTANTS._PARAM_PACKAGES_REGION: self._region()
        }
        packet = self._send(CONSTANTS._PACKAGES_URI, params)

        if not self._packet_handler.is_success(packet, "packages"):
            raise ProtocolError(ApplicationCodes.SERVER_REPORTED_FAILURE, "Server reported failure for the packages request", CONSTANTS._RESPONSE_SUCCESS_FIELD)

        manifest = self._packet_handler.open_packet(packet, summary.secret, "packages")

        entries = manifest.get(CONSTANTS._PACKAGES_FIELD)
        if not isinstance(entries, list):
            raise ParseError(ApplicationCodes.INVALID_PACKAGE, "Packages manifest must contain a 'packages' array", CONSTANTS._PACKAGES_FIELD)

        # All entries must parse before any of them is handed back
        packages: typing.List[Package] = []
        for entry in entries:
            packages.append(Package.from_dict(entry))

        return packages



    """
        Fetch the unencrypted server timestamp.

        @return datetime: UTC timestamp parsed with config.timestamp_format.
    """
    def request_timestamp(self) -> datetime:

        packet = self._send(CONSTANTS._TIMESTAMP_URI, {})
        text = self._packet_handler.get_timestamp_result(packet)
        return VALIDATION.parse_timestamp(text, self._config.timestamp_format)



    def _region(self) -> str:
        try:
            region = self._region_provider()
        except Exception as exc:
            raise TransportError(ApplicationCodes.TRANSPORT_ERROR, f"Region lookup failed: {exc}", CONSTANTS._PARAM_PACKAGES_REGION) from exc

        if region is None:
            return ""

        if not isinstance(region, str):
            raise TransportError(ApplicationCodes.TRANSPORT_ERROR, "Region provider must return a string", CONSTANTS._PARAM_PACKAGES_REGION)

        return region


    def _send(self, path: str, params: typing.Dict[str, str]) -> dict:
        try:
            url = self._transport.build_url(path)
            return self._transport.request(url, params)

        except ApplicationManagerError:
            raise
        except Exception as exc:
            raise TransportError(ApplicationCodes.TRANSPORT_ERROR, f"Transport failure for {path}: {exc}", path) from exc
