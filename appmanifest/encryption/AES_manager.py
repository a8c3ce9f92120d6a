#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
    File name: AES_manager.py
    Author: Alex Biddle

    Description:
        Implements AES-256-CBC with PKCS#7 padding for manifest payloads.
        Decryption is one-shot: the full ciphertext is processed in a single
        call and the padding is verified before any plaintext is returned.
        Provides an IV generation utility and the matching encrypt method
        used to seal payloads, and raises DecryptionError on any misuse,
        length error, or padding failure.
"""


import typing
import os
from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from appmanifest.handlers.error_handler import ApplicationManagerError, ApplicationCodes, DecryptionError
import appmanifest.constants as CONSTANTS



class AESManager:

    """
        Initialize an AESManager with no key bound.

        @ensures encrypt/decrypt fail until set_key() has been called.
    """
    def __init__(self) -> None:

        # AES key starts unset
        self._key: typing.Optional[bytes] = None



    """
        Assign the AES-256 key for this instance.

        @param key (bytes): Must be exactly 32 bytes.

        @require isinstance(key, (bytes, bytearray)) and len(key) == 32

        @ensures Subsequent encrypt/decrypt calls use this key.
    """
    def set_key(self, key: bytes) -> None:

        # Validate type
        if not isinstance(key, (bytes, bytearray)):
            raise DecryptionError(ApplicationCodes.INVALID_AES_KEY, "AES key must be raw bytes", "aes_key")

        # Key must be 32 bytes
        if len(key) != CONSTANTS._DERIVED_KEY_LEN_BYTES:
            raise DecryptionError(ApplicationCodes.INVALID_AES_KEY, "AES-256 key must be exactly 32 bytes", "aes_key")

        # Freeze copy
        self._key = bytes(key)



    """
        Generate a fresh 16-byte IV using a CSPRNG.

        @return bytes: A newly generated 16-byte CBC IV.
    """
    @staticmethod
    def generate_iv() -> bytes:
        return os.urandom(CONSTANTS._AES_CBC_IV_LEN_BYTES)



    """
        Pad and encrypt plaintext using AES-256-CBC.

        @param iv (bytes): 16-byte initialization vector.
        @param plaintext (bytes): Plaintext bytes (may be empty; padding always adds a block).

        @return bytes: Ciphertext, a positive multiple of 16 bytes.
    """
    def encrypt(self, iv: bytes, plaintext: bytes) -> bytes:

        try:
            self._require_key()
            self._validate_iv(iv)

            # Validate plaintext
            if not isinstance(plaintext, (bytes, bytearray)):
                raise DecryptionError(ApplicationCodes.INVALID_TYPE, "Plaintext must be bytes", "plaintext")

            padder = padding.PKCS7(CONSTANTS._AES_BLOCK_SIZE_BITS).padder()
            padded = padder.update(bytes(plaintext)) + padder.finalize()

            encryptor = Cipher(algorithms.AES(self._key), modes.CBC(bytes(iv))).encryptor()
            return encryptor.update(padded) + encryptor.finalize()

        except ApplicationManagerError:
            raise
        except Exception:
            raise DecryptionError(ApplicationCodes.ENCRYPTION_ERROR, "AES-CBC encryption failed", "plaintext")



    """
        Decrypt and unpad AES-256-CBC ciphertext.

        @param iv (bytes): 16-byte initialization vector used during encryption.
        @param ciphertext (bytes): Ciphertext, a positive multiple of 16 bytes.

        @require isinstance(iv, (bytes, bytearray)) and len(iv) == 16
        @require len(ciphertext) > 0 and len(ciphertext) % 16 == 0

        @return bytes: The decrypted plaintext bytes with padding removed.

        @ensures Raises DecryptionError on length or padding errors; never returns partial plaintext.
    """
    def decrypt(self, iv: bytes, ciphertext: bytes) -> bytes:

        try:
            self._require_key()
            self._validate_iv(iv)

            # Validate ciphertext
            if not isinstance(ciphertext, (bytes, bytearray)):
                raise DecryptionError(ApplicationCodes.INVALID_CIPHERTEXT, "Ciphertext must be bytes", "ciphertext")

            block_bytes = CONSTANTS._AES_BLOCK_SIZE_BITS // 8
            if len(ciphertext) == 0 or len(ciphertext) % block_bytes != 0:
                raise DecryptionError(ApplicationCodes.INVALID_CIPHERTEXT, "Ciphertext length must be a positive multiple of 16 bytes", "ciphertext")

            decryptor = Cipher(algorithms.AES(self._key), modes.CBC(bytes(iv))).decryptor()
            padded = decryptor.update(bytes(ciphertext)) + decryptor.finalize()

        except ApplicationManagerError:
            raise
        except Exception:
            raise DecryptionError(ApplicationCodes.DECRYPTION_ERROR, "AES-CBC decryption failed", "ciphertext")

        try:
            unpadder = padding.PKCS7(CONSTANTS._AES_BLOCK_SIZE_BITS).unpadder()
            return unpadder.update(padded) + unpadder.finalize()

        except Exception:
            raise DecryptionError(ApplicationCodes.INVALID_PADDING, "Invalid PKCS#7 padding", "ciphertext")



    def _require_key(self) -> None:
        if self._key is None:
            raise DecryptionError(ApplicationCodes.INVALID_AES_KEY, "AES key has not been set", "aes_key")

    def _validate_iv(self, iv: bytes) -> None:
        if not isinstance(iv, (bytes, bytearray)):
            raise DecryptionError(ApplicationCodes.INVALID_NONCE, "IV must be bytes", "nonce")

        if len(iv) != CONSTANTS._AES_CBC_IV_LEN_BYTES:
            raise DecryptionError(ApplicationCodes.INVALID_NONCE, "IV must be 16 bytes", "nonce")
