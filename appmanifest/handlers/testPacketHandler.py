#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
    File name: testPacketHandler.py
    Author: Alex Biddle

    Description:
        Test suite for PacketHandler: success-flag handling, encrypted
        response field validation, and the full decryption pipeline
        (key derivation, Base64, AES-CBC/PKCS#7, UTF-8, JSON), including
        interoperability with an independently built ciphertext.
"""

import base64
import hashlib
import hmac
import unittest

from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from appmanifest.handlers.packet_handler import PacketHandler
from appmanifest.encryption.AES_manager import AESManager
from appmanifest.encryption.key_derivation_manager import KeyDerivationManager
from appmanifest.handlers.error_handler import ApplicationManagerError, DecryptionError, EncodingError, KeyDerivationError, ParseError, ApplicationCodes


class TestPacketHandler(unittest.TestCase):

    PASSPHRASE = "configured-passphrase"
    NONCE = "N1-nonce-0000001"
    SUMMARY = {"id": "app1", "name": "App", "version": "1.0", "secret": "s1"}

    def setUp(self) -> None:
        self.handler = PacketHandler()


    def _seal_raw(self, plaintext: bytes, nonce: str, secret: str) -> dict:
        # Independent server-side construction
        key = hmac.new(secret.encode("utf-8"), nonce.encode("utf-8"), hashlib.sha256).digest()[:32]
        pad = 16 - len(plaintext) % 16
        encryptor = Cipher(algorithms.AES(key), modes.CBC(nonce.encode("utf-8"))).encryptor()
        ciphertext = encryptor.update(plaintext + bytes([pad]) * pad) + encryptor.finalize()
        return {"sucess": True, "hash": nonce, "result": base64.b64encode(ciphertext).decode("ascii")}

    """
        open_packet decrypts a server-built summary response.
    """
    def test_open_packet_interoperates_with_server_encryption(self):

        packet = self._seal_raw(b'{"id":"app1","name":"App","version":"1.0","secret":"s1"}', self.NONCE, self.PASSPHRASE)

        self.assertEqual(self.SUMMARY, self.handler.open_packet(packet, self.PASSPHRASE, "summary"))

    """
        seal_packet followed by open_packet reproduces the payload exactly.
    """
    def test_seal_open_round_trip(self):

        payload = {"packages": [{"name": "tool", "version": "2.1", "note": "ünïcödé"}]}

        packet = self.handler.seal_packet(payload, "s1", self.NONCE)

        self.assertEqual({"sucess", "hash", "result"}, set(packet))
        self.assertIs(True, packet["sucess"])
        self.assertEqual(self.NONCE, packet["hash"])
        self.assertEqual(payload, self.handler.open_packet(packet, "s1"))

    """
        seal_packet generates a 16-character nonce when none is given.
    """
    def test_seal_packet_generates_nonce(self):

        packet1 = self.handler.seal_packet(self.SUMMARY, self.PASSPHRASE)
        packet2 = self.handler.seal_packet(self.SUMMARY, self.PASSPHRASE)

        self.assertEqual(16, len(packet1["hash"].encode("utf-8")))
        self.assertNotEqual(packet1["hash"], packet2["hash"])
        self.assertEqual(self.SUMMARY, self.handler.open_packet(packet1, self.PASSPHRASE))

    """
        Base64 with MIME line breaks is accepted.
    """
    def test_open_packet_accepts_wrapped_base64(self):

        packet = self.handler.seal_packet(self.SUMMARY, self.PASSPHRASE, self.NONCE)
        result = packet["result"]
        packet["result"] = "\n".join(result[i:i + 76] for i in range(0, len(result), 76)) + "\n"

        self.assertEqual(self.SUMMARY, self.handler.open_packet(packet, self.PASSPHRASE))

    """
        Opening with the wrong secret never yields a manifest.
    """
    def test_open_packet_with_wrong_secret_fails(self):

        packet = self.handler.seal_packet(self.SUMMARY, self.PASSPHRASE, self.NONCE)

        with self.assertRaises((DecryptionError, EncodingError, ParseError)):
            self.handler.open_packet(packet, "some-other-secret")

    """
        Handlers using different key dialects cannot read each other's packets.
    """
    def test_base64_key_dialect(self):

        legacy = PacketHandler(KeyDerivationManager("base64"))
        packet = legacy.seal_packet(self.SUMMARY, self.PASSPHRASE, self.NONCE)

        self.assertEqual(self.SUMMARY, legacy.open_packet(packet, self.PASSPHRASE))

        with self.assertRaises(ApplicationManagerError):
            self.handler.open_packet(packet, self.PASSPHRASE)

    """
        A nonce that is not 16 bytes cannot serve as the CBC IV.
    """
    def test_open_packet_rejects_short_nonce(self):

        packet = self.handler.seal_packet(self.SUMMARY, self.PASSPHRASE, self.NONCE)
        packet["hash"] = "N1"

        with self.assertRaises(DecryptionError) as cm:
            self.handler.open_packet(packet, self.PASSPHRASE)

        self.assertEqual(cm.exception.application_code, ApplicationCodes.INVALID_NONCE)

    """
        Invalid Base64 in "result" raises DecryptionError.
    """
    def test_open_packet_rejects_invalid_base64(self):

        packet = {"sucess": True, "hash": self.NONCE, "result": "***not-base64***"}

        with self.assertRaises(DecryptionError) as cm:
            self.handler.open_packet(packet, self.PASSPHRASE)

        self.assertEqual(cm.exception.application_code, ApplicationCodes.INVALID_BASE64)

    """
        Plaintext that is not UTF-8 raises EncodingError.
    """
    def test_decrypt_result_rejects_invalid_utf8(self):

        key = KeyDerivationManager().derive_key(self.NONCE, self.PASSPHRASE)
        aes = AESManager()
        aes.set_key(key)
        ciphertext = aes.encrypt(self.NONCE.encode("utf-8"), b"\xff\xfe\xfd")

        with self.assertRaises(EncodingError) as cm:
            self.handler.decrypt_result(base64.b64encode(ciphertext).decode("ascii"), self.NONCE.encode("utf-8"), key)

        self.assertEqual(cm.exception.application_code, ApplicationCodes.INVALID_UTF8)

    """
        Plaintext that is not a JSON object raises ParseError.
    """
    def test_open_packet_rejects_non_object_json(self):

        for plaintext in (b"not json at all", b"[1, 2, 3]"):
            with self.subTest(plaintext=plaintext):
                packet = self._seal_raw(plaintext, self.NONCE, self.PASSPHRASE)

                with self.assertRaises(ParseError) as cm:
                    self.handler.open_packet(packet, self.PASSPHRASE)

                self.assertEqual(cm.exception.application_code, ApplicationCodes.MALFORMED_JSON)

    """
        An empty secret fails during key derivation.
    """
    def test_open_packet_rejects_empty_secret(self):

        packet = self.handler.seal_packet(self.SUMMARY, self.PASSPHRASE, self.NONCE)

        with self.assertRaises(KeyDerivationError):
            self.handler.open_packet(packet, "")

    """
        is_success reads the misspelled "sucess" key, accepting booleans and "true"/"false" strings.
    """
    def test_is_success(self):

        self.assertTrue(self.handler.is_success({"sucess": True}))
        self.assertFalse(self.handler.is_success({"sucess": False}))
        self.assertTrue(self.handler.is_success({"sucess": "TRUE"}))
        self.assertFalse(self.handler.is_success({"sucess": "false"}))

    """
        is_success rejects a missing flag, the correctly spelled key, non-boolean values, and non-objects.
    """
    def test_is_success_rejects_malformed_packets(self):

        with self.assertRaises(ParseError) as cm:
            self.handler.is_success({"success": True})
        self.assertEqual(cm.exception.application_code, ApplicationCodes.MISSING_FIELDS)

        with self.assertRaises(ParseError) as cm:
            self.handler.is_success({"sucess": 1})
        self.assertEqual(cm.exception.application_code, ApplicationCodes.INVALID_SUCCESS_FLAG)

        with self.assertRaises(ParseError) as cm:
            self.handler.is_success(["sucess"])  # type: ignore[arg-type]
        self.assertEqual(cm.exception.application_code, ApplicationCodes.MALFORMED_RESPONSE)

    """
        Encrypted responses require non-empty "hash" and "result" strings.
    """
    def test_validate_encrypted_response_fields(self):

        with self.assertRaises(ParseError) as cm:
            self.handler.validate_encrypted_response_fields({"sucess": True, "result": "AAAA"})
        self.assertEqual(cm.exception.field, "hash")

        with self.assertRaises(ParseError) as cm:
            self.handler.validate_encrypted_response_fields({"sucess": True, "hash": self.NONCE, "result": ""})
        self.assertEqual(cm.exception.application_code, ApplicationCodes.INVALID_CIPHERTEXT)

    """
        get_timestamp_result returns the raw "result" text.
    """
    def test_get_timestamp_result(self):

        self.assertEqual("2024-01-02T03:04:05Z", self.handler.get_timestamp_result({"result": "2024-01-02T03:04:05Z"}))

        with self.assertRaises(ParseError):
            self.handler.get_timestamp_result({})


if __name__ == "__main__":
    unittest.main()
