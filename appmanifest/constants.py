#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
    File name: constants.py
    Author: Alex Biddle

    Description:
        Centralized protocol constants for the application manifest client.
        Defines the server endpoint paths, the exact wire field names used by
        the manifest server (including its historical "sucess" spelling), key
        and cipher sizes, timestamp formats, and regex patterns shared across
        validation modules (packet handler, sanitization, and fetch flows).
"""

import re
from typing import Set


# Relative endpoint paths joined onto the configured server URL
_APPLICATION_URI = "api/application"
_TIMESTAMP_URI = "api/timestamp"
_PACKAGES_URI = "api/packages"


################################################################################################
# Response packet fields
################################################################################################

# The server spells this key with a single "c"; it must be preserved exactly
_RESPONSE_SUCCESS_FIELD = "sucess"
_RESPONSE_HASH_FIELD = "hash"
_RESPONSE_RESULT_FIELD = "result"

# Fields required for an encrypted response (summary and packages endpoints)
_ENCRYPTED_RESPONSE_REQUIRED_FIELDS: Set[str] = {
    "sucess",
    "hash",
    "result"
}

# Fields required for the timestamp response
_TIMESTAMP_RESPONSE_REQUIRED_FIELDS: Set[str] = {
    "result"
}

# String forms of the success flag accepted alongside JSON booleans
_TRUE_STRINGS: Set[str] = {"true"}
_FALSE_STRINGS: Set[str] = {"false"}


################################################################################################
# Request parameters
################################################################################################

_PARAM_SUMMARY_ID = "id"
_PARAM_PACKAGES_APPLICATION = "application"
_PARAM_PACKAGES_NAME = "name"
_PARAM_PACKAGES_REGION = "region"


################################################################################################
# Decrypted payload schemas
################################################################################################

# Fields required in a decrypted application summary
_SUMMARY_REQUIRED_FIELDS: Set[str] = {
    "id",
    "name",
    "version",
    "secret"
}

# Key holding the package array in a decrypted packages payload
_PACKAGES_FIELD = "packages"


################################################################################################
# Cryptographic sizes
################################################################################################

# Derived AES-256 key length in bytes (HMAC output is truncated to this)
_DERIVED_KEY_LEN_BYTES = 32

# AES-CBC initialization vector length (the server nonce must encode to this)
_AES_CBC_IV_LEN_BYTES = 16

# AES block size in bits, used for PKCS#7 padding
_AES_BLOCK_SIZE_BITS = 128

# Allowed ways of turning the HMAC digest into key bytes
_KEY_ENCODING_RAW = "raw"
_KEY_ENCODING_BASE64 = "base64"
_ALLOWED_KEY_ENCODINGS: Set[str] = {"raw", "base64"}

# Maximum accepted Base64 ciphertext length (characters)
_MAX_CIPHERTEXT_B64_LEN = 4 * 1024 * 1024


################################################################################################
# Formats and patterns
################################################################################################

# Default fixed UTC format of the server timestamp
_TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

# ISO8601 UTC timestamp regex
_ISO8601Z = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}Z$")

# Standard Base64 alphabet with optional padding
_BASE64_RX = re.compile(r"^[A-Za-z0-9+/]+={0,2}$")


################################################################################################
# Transport defaults
################################################################################################

_DEFAULT_TIMEOUT_SECONDS = 10.0
_ALLOWED_HTTP_METHODS: Set[str] = {"GET", "POST"}
_USER_AGENT = "appmanifest/1.0"


################################################################################################
# Environment variables read by ServerConfig.from_env()
################################################################################################

_ENV_SERVER_URL = "APPMANIFEST_SERVER_URL"
_ENV_PASSPHRASE = "APPMANIFEST_PASSPHRASE"
_ENV_DEBUG = "APPMANIFEST_DEBUG"
_ENV_TIMEOUT = "APPMANIFEST_TIMEOUT"
_ENV_HTTP_METHOD = "APPMANIFEST_HTTP_METHOD"
_ENV_KEY_ENCODING = "APPMANIFEST_KEY_ENCODING"
_ENV_AUDIT_LOG = "APPMANIFEST_AUDIT_LOG"
