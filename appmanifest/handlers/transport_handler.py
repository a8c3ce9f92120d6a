#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
    File name: transport_handler.py
    Author: Alex Biddle

    Description:
        Default transport collaborator for the manifest client. Builds
        endpoint URLs from the ServerConfig, performs one blocking HTTP
        request per call over a shared requests.Session, and returns the
        parsed JSON object. Any network failure, non-2xx status, or non-JSON
        body is raised as TransportError. Retries, backoff, and TLS settings
        belong to the requests.Session the caller supplies.

        Also provides the default region lookup used by the packages request.
"""


import locale
import typing
import requests
from appmanifest.handlers.error_handler import ApplicationCodes, TransportError
from appmanifest.server_config import ServerConfig
import appmanifest.constants as CONSTANTS


"""
    Return the ISO country code of the process locale ("en_US" -> "US"), or "" when unknown.
"""
def default_region() -> str:
    try:
        language_code = locale.getlocale()[0]
    except ValueError:
        return ""

    if not language_code:
        return ""

    # Strip any ".UTF-8" or "@modifier" suffix before splitting off the territory
    language_code = language_code.split(".")[0].split("@")[0]
    parts = language_code.replace("-", "_").split("_")
    return parts[1].upper() if len(parts) > 1 else ""



class HTTPTransport:

    """
        Initialize an HTTPTransport bound to one server configuration.

        @param config (ServerConfig): Base URL, method, and timeout.
        @param session (requests.Session): Optional pre-configured session (adapters, retries, TLS).
    """
    def __init__(self, config: ServerConfig, session: typing.Optional[requests.Session] = None) -> None:

        self._config = config
        self._session = session if session is not None else requests.Session()
        self._session.headers.setdefault("User-Agent", CONSTANTS._USER_AGENT)


    def build_url(self, path: str) -> str:
        return self._config.build_server_url(path)



    """
        Perform one request and return the decoded JSON object.

        @param url (str): Absolute endpoint URL.
        @param params (dict[str, str]): Form (POST) or query (GET) parameters.
        @return dict: Parsed response body.
        @ensures Raises TransportError for connection failures, HTTP errors, and non-object bodies.
    """
    def request(self, url: str, params: typing.Mapping[str, str]) -> dict:

        try:
            if self._config.http_method == "GET":
                response = self._session.get(url, params=dict(params), timeout=self._config.timeout_seconds)
            else:
                response = self._session.post(url, data=dict(params), timeout=self._config.timeout_seconds)

        except requests.RequestException as exc:
            raise TransportError(ApplicationCodes.CONNECTION_ERROR, f"Request to {url} failed: {exc}", "url") from exc

        if not 200 <= response.status_code < 300:
            raise TransportError(ApplicationCodes.HTTP_STATUS_ERROR, f"Request to {url} returned HTTP {response.status_code}", "url", http_code=response.status_code)

        try:
            body = response.json()
        except ValueError as exc:
            raise TransportError(ApplicationCodes.MALFORMED_RESPONSE, f"Response from {url} is not JSON", "body", http_code=response.status_code) from exc

        if not isinstance(body, dict):
            raise TransportError(ApplicationCodes.MALFORMED_RESPONSE, f"Response from {url} is not a JSON object", "body", http_code=response.status_code)

        return body


    def close(self) -> None:
        self._session.close()
