#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
    File name: key_derivation_manager.py
    Author: Alex Biddle

    Description:
        Derives the one-time AES-256 key used to open a manifest response.
        The key is HMAC-SHA256(key = secret, message = server nonce), truncated
        to its first 32 bytes. All methods enforce strict type and length
        validation and raise KeyDerivationError so the fetch flows can fall
        back to cached values consistently.
"""


import base64
import hashlib
import hmac
import typing
from appmanifest.handlers.error_handler import ApplicationManagerError, ApplicationCodes, EncodingError, KeyDerivationError
import appmanifest.constants as CONSTANTS
import appmanifest.handlers.sanitization_validation as VALIDATION



class KeyDerivationManager:

    """
        Initialize a KeyDerivationManager configured for HMAC-SHA256.

        @param key_encoding (str): "raw" uses the digest bytes directly; "base64" uses the
                                   ASCII bytes of the Base64-encoded digest, as older servers do.
        @require key_encoding in CONSTANTS._ALLOWED_KEY_ENCODINGS
        @ensures The manager is ready to derive deterministic 32-byte keys.
    """
    def __init__(self, key_encoding: str = CONSTANTS._KEY_ENCODING_RAW) -> None:

        try:
            self._key_length: int = CONSTANTS._DERIVED_KEY_LEN_BYTES
            self._algorithm: str = "HMAC-SHA256"

            # Validate key encoding
            VALIDATION.validate_in_set(key_encoding, CONSTANTS._ALLOWED_KEY_ENCODINGS, ApplicationCodes.INVALID_CONFIG, "key_encoding", KeyDerivationError)
            self._key_encoding: str = key_encoding

        except ApplicationManagerError:
            raise
        except Exception:
            raise KeyDerivationError(ApplicationCodes.INTERNAL_ERROR, "Failed initializing KeyDerivationManager", "key_derivation_manager")


    @property
    def key_encoding(self) -> str:
        return self._key_encoding



    """
        Compute HMAC-SHA256 over a message.

        @param key (bytes): MAC key.
        @param message (bytes): Data to authenticate.
        @return bytes: 32-byte digest.
    """
    def compute_hmac(self, key: bytes, message: bytes) -> bytes:

        try:
            # Validate input types
            if not isinstance(key, (bytes, bytearray)):
                raise KeyDerivationError(ApplicationCodes.INVALID_TYPE, "HMAC key must be bytes", "secret")

            if not isinstance(message, (bytes, bytearray)):
                raise KeyDerivationError(ApplicationCodes.INVALID_TYPE, "HMAC message must be bytes", "nonce")

            return hmac.new(bytes(key), bytes(message), hashlib.sha256).digest()

        except ApplicationManagerError:
            raise
        except Exception:
            raise KeyDerivationError(ApplicationCodes.KEY_DERIVATION_ERROR, "HMAC computation failure", "hmac")



    """
        Derive the AES-256 key for one response.

        @param nonce (str | bytes): The response "hash" value.
        @param secret (str | bytes): Shared secret (summary) or session secret (packages).
        @require nonce and secret are non-empty; str values must be UTF-8 encodable
        @return bytes: Exactly 32 key bytes.
        @ensures The same (nonce, secret) pair always yields the same key.
    """
    def derive_key(self, nonce: typing.Union[str, bytes], secret: typing.Union[str, bytes]) -> bytes:

        try:
            nonce_bytes = self._to_bytes(nonce, "nonce", ApplicationCodes.INVALID_NONCE)
            secret_bytes = self._to_bytes(secret, "secret", ApplicationCodes.INVALID_SECRET)

            digest = self.compute_hmac(secret_bytes, nonce_bytes)

            if self._key_encoding == CONSTANTS._KEY_ENCODING_BASE64:
                digest = base64.b64encode(digest)

            # Truncate to the key size even when the digest already matches it
            key = digest[:self._key_length]

            # Validate derived key length
            if len(key) != self._key_length:
                raise KeyDerivationError(ApplicationCodes.INVALID_LENGTH, "Derived key must be 32 bytes", "derived_key")

            return key

        except ApplicationManagerError:
            raise
        except Exception:
            raise KeyDerivationError(ApplicationCodes.KEY_DERIVATION_ERROR, "Key derivation failure", "derived_key")



    def _to_bytes(self, value: typing.Union[str, bytes], field_name: str, application_code: str) -> bytes:

        if isinstance(value, (bytes, bytearray)):
            raw = bytes(value)
        elif isinstance(value, str):
            try:
                raw = VALIDATION.encode_utf8_text_to_bytes(value, field_name)
            except EncodingError as exc:
                raise KeyDerivationError(application_code, exc.detail, field_name) from exc
        else:
            raise KeyDerivationError(ApplicationCodes.INVALID_TYPE, f"{field_name} must be str or bytes", field_name)

        if not raw:
            raise KeyDerivationError(application_code, f"{field_name} must not be empty", field_name)

        return raw
