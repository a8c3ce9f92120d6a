#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
    File name: sanitization_validation.py
    Author: Alex Biddle

    Description:
        Provides the encoding, decoding, parsing, and type-conversion
        utilities used by the manifest decryption pipeline, as well as
        reusable field-level validation helpers for server response packets
        and decrypted manifest payloads. Includes Base64 conversions, UTF-8
        helpers, JSON serialization methods, success-flag coercion, and strict
        UTC timestamp parsing.

        Every helper raises the typed error for its pipeline stage
        (DecryptionError, EncodingError, ParseError) so that fetch flows can
        fall back to cached values consistently.
"""

import base64
import binascii
import typing
import json
from datetime import datetime, timezone

from appmanifest.handlers.error_handler import ApplicationManagerError, ApplicationCodes, DecryptionError, EncodingError, ParseError
import appmanifest.constants as CONSTANTS


####################################################################################################
#                                   Base64 Encoding / Decoding
####################################################################################################

"""
    Convert a standard Base64 string into raw bytes.

    @param field_name (str): Logical field name for context in error messages.
    @param b64_text (Any): Base64-encoded string to decode; line breaks are ignored.
    @require b64_text is a non-empty string
    @return bytes: Decoded byte sequence.
    @ensures Invalid Base64 input raises DecryptionError.
"""
def decode_base64_to_bytes(field_name: str, b64_text: typing.Any) -> bytes:
    try:
        # Validate input type
        validate_string(b64_text, ApplicationCodes.INVALID_BASE64, field_name, DecryptionError)

        # MIME-style encoders wrap lines; strip all whitespace before decoding
        cleaned = "".join(b64_text.split())

        validate_max_length(cleaned, CONSTANTS._MAX_CIPHERTEXT_B64_LEN, ApplicationCodes.INVALID_LENGTH, field_name, DecryptionError)
        validate_b64(cleaned, ApplicationCodes.INVALID_BASE64, field_name)

        # Strict decode (rejects characters outside the alphabet)
        return base64.b64decode(cleaned, validate=True)

    except ApplicationManagerError:
        raise
    except (binascii.Error, ValueError):
        raise DecryptionError(ApplicationCodes.INVALID_BASE64, f"Invalid Base64 for {field_name}", field_name)
    except Exception:
        raise DecryptionError(ApplicationCodes.DECRYPTION_ERROR, f"Unexpected error decoding {field_name}", field_name)



"""
    Convert raw bytes into a standard Base64 string.

    @param raw (bytes): Bytes to encode.
    @require raw is bytes or bytearray
    @return str: Base64-encoded ASCII string with padding.
"""
def encode_bytes_to_base64(raw: bytes) -> str:
    try:
        # Validate input type
        if not isinstance(raw, (bytes, bytearray)):
            raise EncodingError(ApplicationCodes.INVALID_TYPE, "Base64 encode expects bytes", "raw")

        return base64.b64encode(bytes(raw)).decode("ascii")

    except ApplicationManagerError:
        raise
    except Exception:
        raise EncodingError(ApplicationCodes.INTERNAL_ERROR, "Unexpected error during Base64 encoding", "raw")



####################################################################################################
#                                   UTF-8 / JSON Conversions
####################################################################################################

"""
    Convert raw bytes into a UTF-8 decoded string.

    @param raw_bytes (bytes): UTF-8 encoded bytes.
    @require raw_bytes is bytes or bytearray
    @return str: UTF-8 decoded text.
    @ensures Raises EncodingError on invalid UTF-8 sequences.
"""
def decode_bytes_to_utf8_text(raw_bytes: bytes) -> str:
    try:
        # Validate input type
        if not isinstance(raw_bytes, (bytes, bytearray)):
            raise EncodingError(ApplicationCodes.INVALID_TYPE, "Input must be bytes for UTF-8 decode", "raw_bytes")

        # Decode to text
        return bytes(raw_bytes).decode("utf-8")

    except ApplicationManagerError:
        raise
    except Exception:
        raise EncodingError(ApplicationCodes.INVALID_UTF8, "Invalid UTF-8 byte sequence", "raw_bytes")



"""
    Convert text into UTF-8 bytes.

    @param text (str): Input string.
    @param field_name (str): Logical field name for error context.
    @require text is a string
    @return bytes: UTF-8 encoded byte sequence.
    @ensures Raises EncodingError when the text cannot be encoded (e.g. lone surrogates).
"""
def encode_utf8_text_to_bytes(text: str, field_name: str = "text") -> bytes:
    try:
        # Validate input type
        if not isinstance(text, str):
            raise EncodingError(ApplicationCodes.INVALID_TYPE, f"{field_name} must be a string", field_name)

        # Encode to bytes
        return text.encode("utf-8")

    except ApplicationManagerError:
        raise
    except Exception:
        raise EncodingError(ApplicationCodes.INVALID_UTF8, f"{field_name} cannot be encoded as UTF-8", field_name)



"""
    Encode a dictionary into compact UTF-8 JSON bytes.

    @param data (dict): JSON-serializable dictionary.
    @require data is a dict
    @return bytes: UTF-8 encoded JSON payload.
"""
def encode_dict_to_json_bytes(data: typing.Dict[str, typing.Any]) -> bytes:
    try:
        # Validate input type
        if not isinstance(data, dict):
            raise ParseError(ApplicationCodes.INVALID_TYPE, "Input must be dict", "data")

        # Serialize to JSON and encode to bytes
        return json.dumps(data, separators=(",", ":"), ensure_ascii=False).encode("utf-8")

    except ApplicationManagerError:
        raise
    except Exception:
        raise ParseError(ApplicationCodes.MALFORMED_JSON, "Failed to serialize JSON payload", "data")



"""
    Parse JSON text into a Python dictionary.

    @param text (str): JSON document.
    @param field_name (str): Logical field name for error context.
    @require text is a string
    @return dict: Parsed JSON object.
    @ensures Raises ParseError on malformed or non-object JSON values.
"""
def decode_json_text_to_dict(text: str, field_name: str = "payload") -> dict:
    try:
        # Validate input type
        if not isinstance(text, str):
            raise ParseError(ApplicationCodes.INVALID_TYPE, "JSON input must be text", field_name)

        obj = json.loads(text)

        # Validate output type
        if not isinstance(obj, dict):
            raise ParseError(ApplicationCodes.MALFORMED_JSON, "Expected JSON object", field_name)

        return obj

    except ApplicationManagerError:
        raise
    except Exception:
        raise ParseError(ApplicationCodes.MALFORMED_JSON, "Malformed JSON payload", field_name)



####################################################################################################
#                                   Generalized Type Parsers
####################################################################################################

"""
    Coerce the server's success flag into a boolean.

    @param value (Any): JSON boolean or the strings "true"/"false" in any case.
    @param field_name (str): Logical field name for error context.
    @return bool: The parsed flag.
    @ensures Raises ParseError for any other value.
"""
def parse_success_flag(value: typing.Any, field_name: str = CONSTANTS._RESPONSE_SUCCESS_FIELD) -> bool:

    if isinstance(value, bool):
        return value

    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in CONSTANTS._TRUE_STRINGS:
            return True
        if lowered in CONSTANTS._FALSE_STRINGS:
            return False

    raise ParseError(ApplicationCodes.INVALID_SUCCESS_FLAG, f"{field_name} must be a boolean", field_name)



"""
    Parse a timestamp with a fixed format into a UTC-aware datetime object.

    @param value (str): Timestamp text as sent by the server.
    @param fmt (str): strptime format; defaults to ISO8601Z.
    @require value is a string
    @return datetime: Parsed UTC datetime.
    @ensures Raises ParseError on invalid timestamp formatting.
"""
def parse_timestamp(value: str, fmt: str = CONSTANTS._TIMESTAMP_FORMAT) -> datetime:
    try:
        # Validate type first
        validate_string(value, ApplicationCodes.INVALID_TIMESTAMP, "timestamp")

        # Strip whitespace
        cleaned = value.strip()

        if fmt == CONSTANTS._TIMESTAMP_FORMAT:
            validate_iso8601(cleaned, ApplicationCodes.INVALID_TIMESTAMP, "timestamp")

        parsed = datetime.strptime(cleaned, fmt)

        # Formats with %z carry their own offset; naive results are UTC
        if parsed.tzinfo is not None:
            return parsed.astimezone(timezone.utc)

        return parsed.replace(tzinfo=timezone.utc)

    except ApplicationManagerError:
        raise
    except Exception:
        raise ParseError(ApplicationCodes.INVALID_TIMESTAMP, f"Timestamp does not match format {fmt}", "timestamp")



"""
    Format a UTC datetime with the fixed server format.

    @param value (datetime): Aware or naive (assumed UTC) datetime.
    @param fmt (str): strftime format; defaults to ISO8601Z.
    @return str: Formatted timestamp.
"""
def format_timestamp(value: datetime, fmt: str = CONSTANTS._TIMESTAMP_FORMAT) -> str:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.strftime(fmt)



####################################################################################################
#                               GENERIC VALIDATORS (REUSABLE)
####################################################################################################

"""
    Function: Validate that a value is a non-empty string.

    @param: typing.Any - value to be validated
    @param: ApplicationCodes - application-level error code to raise if validation fails
    @param: str - field_name identifying the failing field
    @param: type - error class raised on failure (ParseError unless stated)
    @ensures: raises error_type if value is not a valid non-empty string
"""
def validate_string(value: typing.Any, application_code, field_name: str, error_type=ParseError) -> None:
    if not isinstance(value, str) or not value.strip():
        raise error_type(application_code, f"{field_name} must be a non-empty string.", field_name)



"""
    Function: Validate that a string does not exceed a maximum length.

    @param: str - value to be validated
    @param: int - max_len specifying the maximum allowed characters
    @param: ApplicationCodes - application-level error code to raise if validation fails
    @param: str - field_name identifying the failing field
    @ensures: raises error_type if value length exceeds max_len
"""
def validate_max_length(value: str, max_len: int, application_code, field_name: str, error_type=ParseError) -> None:
    if len(value) > max_len:
        raise error_type(application_code, f"{field_name} exceeds maximum length ({max_len}).", field_name)



"""
    Function: Validate that a value belongs to an allowed set.

    @param: str - value to be validated
    @param: set - allowed_set containing permitted values
    @param: ApplicationCodes - application-level error code to raise if validation fails
    @param: str - field_name identifying the failing field
    @ensures: raises error_type if value is not in allowed_set
"""
def validate_in_set(value: str, allowed_set: set, application_code, field_name: str, error_type=ParseError) -> None:
    if value not in allowed_set:
        raise error_type(application_code, f"Invalid {field_name}: '{value}'.", field_name)



"""
    Function: Validate that a string is standard Base64.

    @param: str - value to be validated (whitespace already removed)
    @param: ApplicationCodes - application-level error code to raise on failure
    @param: str - field_name identifying the failing field
    @ensures: raises DecryptionError if value is not valid Base64
"""
def validate_b64(value: str, application_code, field_name: str) -> None:
    if not isinstance(value, str) or not CONSTANTS._BASE64_RX.match(value) or len(value) % 4 != 0:
        raise DecryptionError(application_code, f"{field_name} must be Base64.", field_name)



"""
    Function: Validate that a value is a strict ISO8601Z timestamp.

    @param: str - value containing timestamp
    @param: ApplicationCodes - application-level error code to raise on failure
    @param: str - field_name identifying the failing field
    @ensures: raises ParseError if timestamp does not match ISO8601Z pattern
"""
def validate_iso8601(value: str, application_code, field_name: str) -> None:
    if not isinstance(value, str) or not CONSTANTS._ISO8601Z.fullmatch(value):
        raise ParseError(application_code, f"{value} must be ISO8601Z timestamp.", field_name)



"""
    Ensure all required fields are present in the payload.

    @param payload (dict): Decoded JSON payload.
    @param required_fields (set[str]): Required field names.
    @param error_code (ApplicationCodes): Error code to raise.
    @param field_context (str): Name of the payload being validated.

    @ensures All required fields exist or raises ParseError.
"""
def validate_required_fields(payload: dict, required_fields: set, error_code: str, field_context: str) -> None:

    # Validate parameters
    if not isinstance(payload, dict):
        raise ParseError(ApplicationCodes.INVALID_TYPE, "Payload must be a JSON object.", field_context)

    missing = required_fields - set(payload.keys())
    if missing:
        raise ParseError(error_code, f"Missing required fields: {', '.join(sorted(missing))}", field_context)
