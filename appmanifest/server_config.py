#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
    File name: server_config.py
    Author: Alex Biddle

    Description:
        Process-wide configuration for the manifest client: the server base
        URL, the shared passphrase keying the summary request, the debug flag
        that forces every summary to count as an upgrade, and transport,
        key-encoding, timestamp, and audit-log settings. Values are validated
        once at construction; the object is immutable and hashable so it can
        key the manager registry.
"""


import os
import typing
from dataclasses import dataclass, field
from appmanifest.handlers.error_handler import ApplicationCodes, ConfigurationError
import appmanifest.constants as CONSTANTS



@dataclass(frozen=True)
class ServerConfig:

    base_url: str
    passphrase: str =           field(repr=False)
    debug: bool =               False
    timeout_seconds: float =    CONSTANTS._DEFAULT_TIMEOUT_SECONDS
    http_method: str =          "POST"
    key_encoding: str =         CONSTANTS._KEY_ENCODING_RAW
    timestamp_format: str =     CONSTANTS._TIMESTAMP_FORMAT
    audit_log_path: typing.Optional[str] = None


    """
        Validate every configured value.

        @ensures Raises ConfigurationError for an empty URL or passphrase, a non-positive
                 timeout, or an unsupported HTTP method or key encoding.
    """
    def __post_init__(self) -> None:

        if not isinstance(self.base_url, str) or not self.base_url.strip():
            raise ConfigurationError(ApplicationCodes.INVALID_CONFIG, "base_url must be a non-empty string", "base_url")

        if not isinstance(self.passphrase, str) or not self.passphrase:
            raise ConfigurationError(ApplicationCodes.INVALID_CONFIG, "passphrase must be a non-empty string", "passphrase")

        if not isinstance(self.debug, bool):
            raise ConfigurationError(ApplicationCodes.INVALID_CONFIG, "debug must be a boolean", "debug")

        if isinstance(self.timeout_seconds, bool) or not isinstance(self.timeout_seconds, (int, float)) or self.timeout_seconds <= 0:
            raise ConfigurationError(ApplicationCodes.INVALID_CONFIG, "timeout_seconds must be a positive number", "timeout_seconds")

        if self.http_method not in CONSTANTS._ALLOWED_HTTP_METHODS:
            raise ConfigurationError(ApplicationCodes.INVALID_CONFIG, f"http_method must be one of {sorted(CONSTANTS._ALLOWED_HTTP_METHODS)}", "http_method")

        if self.key_encoding not in CONSTANTS._ALLOWED_KEY_ENCODINGS:
            raise ConfigurationError(ApplicationCodes.INVALID_CONFIG, f"key_encoding must be one of {sorted(CONSTANTS._ALLOWED_KEY_ENCODINGS)}", "key_encoding")

        if not isinstance(self.timestamp_format, str) or not self.timestamp_format:
            raise ConfigurationError(ApplicationCodes.INVALID_CONFIG, "timestamp_format must be a non-empty string", "timestamp_format")



    """
        Join a relative endpoint path onto the server base URL.

        @param path (str): e.g. "api/application"
        @return str: Absolute endpoint URL.
    """
    def build_server_url(self, path: str) -> str:
        return self.base_url.rstrip("/") + "/" + path.lstrip("/")



    """
        Build a ServerConfig from APPMANIFEST_* environment variables.

        @param environ (Mapping): Defaults to os.environ.
        @return ServerConfig
        @ensures Raises ConfigurationError when required variables are missing or malformed.
    """
    @classmethod
    def from_env(cls, environ: typing.Optional[typing.Mapping[str, str]] = None) -> "ServerConfig":

        env = os.environ if environ is None else environ

        timeout_text = env.get(CONSTANTS._ENV_TIMEOUT, str(CONSTANTS._DEFAULT_TIMEOUT_SECONDS))
        try:
            timeout = float(timeout_text)
        except ValueError:
            raise ConfigurationError(ApplicationCodes.INVALID_CONFIG, f"{CONSTANTS._ENV_TIMEOUT} must be a number", "timeout_seconds")

        return cls(
            base_url=env.get(CONSTANTS._ENV_SERVER_URL, ""),
            passphrase=env.get(CONSTANTS._ENV_PASSPHRASE, ""),
            debug=env.get(CONSTANTS._ENV_DEBUG, "").strip().lower() in ("1", "true", "yes", "on"),
            timeout_seconds=timeout,
            http_method=env.get(CONSTANTS._ENV_HTTP_METHOD, "POST").upper(),
            key_encoding=env.get(CONSTANTS._ENV_KEY_ENCODING, CONSTANTS._KEY_ENCODING_RAW).lower(),
            audit_log_path=env.get(CONSTANTS._ENV_AUDIT_LOG) or None
        )
