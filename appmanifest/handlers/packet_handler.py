#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
    File name: packet_handler.py
    Author: Alex Biddle

    Description:
        Provides response-packet validation and the authenticated decryption
        pipeline for manifest responses. Checks the "sucess" flag and the
        hash/result fields of encrypted responses, derives the one-time key
        from the response nonce, Base64-decodes and AES-CBC decrypts the
        result, decodes UTF-8, and parses the JSON manifest. Also builds
        server-shaped sealed packets from a payload, the exact inverse of
        opening one.
"""


import secrets
import typing
from appmanifest.handlers.error_handler import ApplicationManagerError, ApplicationCodes, DecryptionError, ParseError
from appmanifest.encryption.AES_manager import AESManager
from appmanifest.encryption.key_derivation_manager import KeyDerivationManager
import appmanifest.constants as CONSTANTS
import appmanifest.handlers.sanitization_validation as VALIDATION


####################################################################################################
#                                         Packet Format Handlers
####################################################################################################

"""
    Validates server response packets and opens (or seals) their encrypted
    result. Each packet is a dictionary as returned by the transport.
"""
class PacketHandler:

    def __init__(self, key_manager: typing.Optional[KeyDerivationManager] = None) -> None:
        self._key_manager: KeyDerivationManager = key_manager if key_manager is not None else KeyDerivationManager()


    ################################################################################################
    #                                     GENERIC VALIDATION WRAPPERS
    ################################################################################################

    def _validate_packet_object(self, packet: typing.Any, context: str) -> None:
        if not isinstance(packet, dict):
            raise ParseError(ApplicationCodes.MALFORMED_RESPONSE, f"Invalid {context} response (expected JSON object).", "packet")

    def _validate_hash(self, value: str):
        VALIDATION.validate_string(value, ApplicationCodes.INVALID_NONCE, CONSTANTS._RESPONSE_HASH_FIELD)

    def _validate_result(self, value: str):
        VALIDATION.validate_string(value, ApplicationCodes.INVALID_CIPHERTEXT, CONSTANTS._RESPONSE_RESULT_FIELD)


    ################################################################################################
    #                                 SERVER RESPONSE PACKET VALIDATION
    ################################################################################################

    """
        Read the success flag of a summary or packages response.

        @param packet (dict): Response JSON object.
        @param context (str): Name of the endpoint for error messages.
        @return bool: The value of "sucess".
        @ensures Raises ParseError when the flag is missing or not a boolean.
    """
    def is_success(self, packet: dict, context: str = "manifest") -> bool:
        self._validate_packet_object(packet, context)

        if CONSTANTS._RESPONSE_SUCCESS_FIELD not in packet:
            raise ParseError(ApplicationCodes.MISSING_FIELDS, f"Missing required field '{CONSTANTS._RESPONSE_SUCCESS_FIELD}' in {context} response.", CONSTANTS._RESPONSE_SUCCESS_FIELD)

        return VALIDATION.parse_success_flag(packet[CONSTANTS._RESPONSE_SUCCESS_FIELD])



    """
        Validate the fields of an encrypted response that reported success.

        @param packet (dict): Response JSON object.
        @param context (str): Name of the endpoint for error messages.
        @ensures "hash" and "result" are non-empty strings or raises ParseError.
    """
    def validate_encrypted_response_fields(self, packet: dict, context: str = "manifest") -> None:
        self._validate_packet_object(packet, context)

        # Ensure all required fields exist
        for field in CONSTANTS._ENCRYPTED_RESPONSE_REQUIRED_FIELDS:
            if field not in packet:
                raise ParseError(ApplicationCodes.MISSING_FIELDS, f"Missing required field '{field}' in {context} response.", field)

        self._validate_hash(packet[CONSTANTS._RESPONSE_HASH_FIELD])
        self._validate_result(packet[CONSTANTS._RESPONSE_RESULT_FIELD])



    """
        Validate the timestamp response and return its raw result text.

        @param packet (dict): {"result": "<date>"}
        @return str: The unparsed timestamp text.
    """
    def get_timestamp_result(self, packet: dict) -> str:
        self._validate_packet_object(packet, "timestamp")
        VALIDATION.validate_required_fields(packet, CONSTANTS._TIMESTAMP_RESPONSE_REQUIRED_FIELDS, ApplicationCodes.MISSING_FIELDS, "timestamp")
        VALIDATION.validate_string(packet[CONSTANTS._RESPONSE_RESULT_FIELD], ApplicationCodes.INVALID_TIMESTAMP, CONSTANTS._RESPONSE_RESULT_FIELD)
        return packet[CONSTANTS._RESPONSE_RESULT_FIELD]


    ################################################################################################
    #                                     DECRYPTION PIPELINE
    ################################################################################################

    """
        Decrypt a Base64 ciphertext block and parse it as a JSON object.

        @param result_b64 (str): Base64 ciphertext from the "result" field.
        @param nonce (bytes): IV bytes (the UTF-8 encoded "hash").
        @param key (bytes): 32-byte derived key.
        @return dict: Parsed manifest.
        @ensures DecryptionError, EncodingError, or ParseError on failure; no partial output.
    """
    def decrypt_result(self, result_b64: str, nonce: bytes, key: bytes) -> dict:

        ciphertext = VALIDATION.decode_base64_to_bytes(CONSTANTS._RESPONSE_RESULT_FIELD, result_b64)

        aes = AESManager()
        aes.set_key(key)
        plaintext = aes.decrypt(nonce, ciphertext)

        text = VALIDATION.decode_bytes_to_utf8_text(plaintext)
        return VALIDATION.decode_json_text_to_dict(text, "manifest")



    """
        Open an encrypted response packet with the given secret.

        @param packet (dict): {"sucess": true, "hash": str, "result": str}
        @param secret (str | bytes): Shared secret or session secret.
        @param context (str): Name of the endpoint for error messages.
        @return dict: Decrypted manifest.
    """
    def open_packet(self, packet: dict, secret: typing.Union[str, bytes], context: str = "manifest") -> dict:

        self.validate_encrypted_response_fields(packet, context)

        nonce_text = packet[CONSTANTS._RESPONSE_HASH_FIELD]
        key = self._key_manager.derive_key(nonce_text, secret)

        try:
            iv = VALIDATION.encode_utf8_text_to_bytes(nonce_text, CONSTANTS._RESPONSE_HASH_FIELD)
        except ApplicationManagerError as exc:
            raise DecryptionError(ApplicationCodes.INVALID_NONCE, exc.detail, CONSTANTS._RESPONSE_HASH_FIELD) from exc

        return self.decrypt_result(packet[CONSTANTS._RESPONSE_RESULT_FIELD], iv, key)



    """
        Build a server-shaped encrypted response packet for a payload.

        @param payload (dict): Manifest to encrypt.
        @param secret (str | bytes): Secret the receiver will derive the key from.
        @param nonce (str): 16-byte (UTF-8) nonce; a random hex nonce is generated when omitted.
        @return dict: {"sucess": True, "hash": nonce, "result": Base64 ciphertext}
    """
    def seal_packet(self, payload: dict, secret: typing.Union[str, bytes], nonce: typing.Optional[str] = None) -> dict:

        if nonce is None:
            nonce = secrets.token_hex(CONSTANTS._AES_CBC_IV_LEN_BYTES // 2)

        key = self._key_manager.derive_key(nonce, secret)
        iv = VALIDATION.encode_utf8_text_to_bytes(nonce, CONSTANTS._RESPONSE_HASH_FIELD)

        aes = AESManager()
        aes.set_key(key)
        ciphertext = aes.encrypt(iv, VALIDATION.encode_dict_to_json_bytes(payload))

        return {
            CONSTANTS._RESPONSE_SUCCESS_FIELD: True,
            CONSTANTS._RESPONSE_HASH_FIELD: nonce,
            CONSTANTS._RESPONSE_RESULT_FIELD: VALIDATION.encode_bytes_to_base64(ciphertext)
        }
