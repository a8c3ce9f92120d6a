#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
    File name: error_handler.py
    Author: Alex Biddle

    Description:
        Centralized error handling for the application manifest client.
        Defines the typed error taxonomy raised by the transport, key
        derivation, decryption, decoding, and parsing stages, and the
        ErrorHandler that records failures in the audit log and normalizes
        them into error records at the ApplicationManager boundary, where the
        fall-back-to-cache policy is applied.
"""


from dataclasses import dataclass
from typing import Optional
from appmanifest.utilities.audit_log import AuditLog


"""
    Container Class for application error code strings.
"""
@dataclass
class ApplicationCodes:

    TRANSPORT_ERROR          = "transport_error"
    CONNECTION_ERROR         = "connection_error"
    HTTP_STATUS_ERROR        = "http_status_error"
    MALFORMED_RESPONSE       = "malformed_response"
    SERVER_REPORTED_FAILURE  = "server_reported_failure"
    MALFORMED_JSON           = "malformed_json"
    MISSING_FIELDS           = "missing_fields"
    INVALID_TYPE             = "invalid_type"
    INVALID_LENGTH           = "invalid_length"
    INVALID_SUCCESS_FLAG     = "invalid_success_flag"
    INVALID_BASE64           = "invalid_base64"
    INVALID_NONCE            = "invalid_nonce"
    INVALID_SECRET           = "invalid_secret"
    INVALID_AES_KEY          = "invalid_aes_key"
    INVALID_CIPHERTEXT       = "invalid_ciphertext"
    INVALID_PADDING          = "invalid_padding"
    INVALID_UTF8             = "invalid_utf8"
    INVALID_TIMESTAMP        = "invalid_timestamp"
    INVALID_SUMMARY          = "invalid_summary"
    INVALID_PACKAGE          = "invalid_package"
    INVALID_CONFIG           = "invalid_config"
    KEY_DERIVATION_ERROR     = "key_derivation_error"
    DECRYPTION_ERROR         = "decryption_error"
    ENCRYPTION_ERROR         = "encryption_error"
    INTERNAL_ERROR           = "internal_error"






class ApplicationManagerError(Exception):

    """
        Initialize an ApplicationManagerError containing application code, detail message, and field context.

        @param application_code (str): Identifier from ApplicationCodes signaling the failure type.
        @param detail (str): Descriptive message recorded in the audit log.
        @param field (str): Logical field related to the error (optional).
        @require isinstance(application_code, str)
        @require isinstance(detail, str)
        @ensures Error metadata is accessible to the centralized ErrorHandler.
    """
    def __init__(self, application_code: str, detail: str, field: str = "") -> None:
        self.application_code = application_code
        self.detail = detail
        self.field = field
        super().__init__(f"{application_code}: {detail}")



class TransportError(ApplicationManagerError):

    """
        Network or HTTP failure reported by the transport collaborator.

        @param http_code (int): HTTP status when the server answered with a non-success status.
    """
    def __init__(self, application_code: str, detail: str, field: str = "", http_code: Optional[int] = None) -> None:
        super().__init__(application_code, detail, field)
        self.http_code = http_code


# Server answered but reported "sucess": false
class ProtocolError(ApplicationManagerError):
    pass


class KeyDerivationError(ApplicationManagerError):
    pass


# Bad Base64, wrong key/IV size, bad ciphertext length or padding
class DecryptionError(ApplicationManagerError):
    pass


# Decrypted bytes are not valid UTF-8
class EncodingError(ApplicationManagerError):
    pass


# Malformed JSON, missing fields, or unexpected value types
class ParseError(ApplicationManagerError):
    pass


# Invalid ServerConfig values, raised at construction time only
class ConfigurationError(ApplicationManagerError):
    pass






class ErrorHandler:

    """
        Initialize the ErrorHandler and attach an AuditLog for diagnostic event recording.

        @param audit_log (AuditLog): Destination for error records; a default AuditLog is created when omitted.
        @ensures ErrorHandler is ready to normalize and log errors.
    """
    def __init__(self, audit_log: Optional[AuditLog] = None) -> None:

        self.audit_log = audit_log if audit_log is not None else AuditLog()


    """
        Record a failed fetch and return a normalized error record.

        @param e (Exception): Exception raised while fetching or decoding a manifest.
        @param application_id (str): Application identifier the manager is bound to.
        @param context (str): Logical context string identifying the failing operation.
        @require isinstance(e, Exception)
        @return dict: {"application_code", "error_type", "message", "field", "context"}
        @ensures The failure is written to the audit log; nothing is raised.
    """
    def handle_fetch_error(self, e: Exception, application_id: str = "", context: str = "") -> dict:

        # Typed errors carry their own code and field
        if isinstance(e, ApplicationManagerError):
            application_code = e.application_code
            message = e.detail
            field = e.field
        else:
            # Anything else is normalized to INTERNAL_ERROR
            application_code = ApplicationCodes.INTERNAL_ERROR
            message = "An unexpected error occurred while fetching the manifest."
            field = ""

        record = self.create_error_record(type(e).__name__, application_code, message, field, context)

        # Always log the raw exception detail for operators
        self.audit_log.event(event="fetch_failure", application_id=application_id, detail=str(e), **record)

        return record



    """
        Build a standardized error record.

        @param error_type (str): Exception class name.
        @param application_code (str): One of ApplicationCodes.*.
        @param message (str): Human-readable error message.
        @param field (str): Logical field associated with the error (optional).
        @param context (str): Operation that failed.
        @return dict: Error record suitable for JSON serialization.
    """
    def create_error_record(self, error_type: str, application_code: str, message: str, field: str = "", context: str = "") -> dict:
        return {
            "error_type": error_type,
            "application_code": application_code,
            "message": message,
            "field": field,
            "context": context
        }
