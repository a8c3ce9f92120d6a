#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
    File name: testAESManager.py
    Author: Alex Biddle

    Description:
        Test suite for the AES-256-CBC AESManager. Verifies IV generation,
        key handling, encryption/decryption correctness and determinism,
        and every DecryptionError branch (key, IV, ciphertext length, and
        PKCS#7 padding).
"""

import os
import unittest

from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from appmanifest.encryption.AES_manager import AESManager
from appmanifest.handlers.error_handler import DecryptionError, ApplicationCodes


class TestAESManager(unittest.TestCase):

    PLAINTEXT = b'{"id":"app1","name":"App","version":"1.0","secret":"s1"}'
    IV = b"N1-nonce-0000001"

    """
        Prepare a fresh AESManager instance with a valid 32-byte AES key.
    """
    def setUp(self) -> None:

        self.key = os.urandom(32)

        self.manager = AESManager()
        self.manager.set_key(self.key)

    """
        generate_iv() must return 16-byte random values.
    """
    def test_generate_iv_properties(self):

        iv1 = AESManager.generate_iv()
        iv2 = AESManager.generate_iv()

        self.assertIsInstance(iv1, bytes)
        self.assertEqual(16, len(iv1))
        self.assertNotEqual(iv1, iv2)

    """
        AESManager() starts with no key; decrypt must fail.
    """
    def test_decrypt_without_setting_key_fails(self):

        mgr = AESManager()

        with self.assertRaises(DecryptionError) as cm:
            mgr.decrypt(self.IV, b"\x00" * 16)

        self.assertEqual(cm.exception.application_code, ApplicationCodes.INVALID_AES_KEY)

    """
        set_key() must reject invalid types and lengths.
    """
    def test_set_key_rejects_invalid_keys(self):

        with self.assertRaises(DecryptionError) as cm:
            self.manager.set_key("not-bytes")  # type: ignore

        self.assertEqual(cm.exception.application_code, ApplicationCodes.INVALID_AES_KEY)
        self.assertEqual(cm.exception.field, "aes_key")

        for bad_len in (0, 16, 24, 31, 33):
            with self.subTest(bad_len=bad_len):
                with self.assertRaises(DecryptionError) as cm:
                    self.manager.set_key(os.urandom(bad_len))

                self.assertEqual(cm.exception.application_code, ApplicationCodes.INVALID_AES_KEY)

    """
        Encrypting and then decrypting returns the original plaintext.
    """
    def test_encrypt_decrypt_round_trip(self):

        ciphertext = self.manager.encrypt(self.IV, self.PLAINTEXT)

        self.assertEqual(0, len(ciphertext) % 16)
        self.assertGreater(len(ciphertext), len(self.PLAINTEXT))
        self.assertEqual(self.PLAINTEXT, self.manager.decrypt(self.IV, ciphertext))

    """
        CBC with a fixed key and IV is deterministic.
    """
    def test_encrypt_is_deterministic(self):

        self.assertEqual(self.manager.encrypt(self.IV, self.PLAINTEXT), self.manager.encrypt(self.IV, self.PLAINTEXT))

    """
        An empty plaintext encrypts to one full padding block.
    """
    def test_empty_plaintext_round_trip(self):

        ciphertext = self.manager.encrypt(self.IV, b"")

        self.assertEqual(16, len(ciphertext))
        self.assertEqual(b"", self.manager.decrypt(self.IV, ciphertext))

    """
        decrypt() agrees with an independent AES-CBC + PKCS#7 encryption.
    """
    def test_decrypt_interoperates_with_reference_cipher(self):

        pad = 16 - len(self.PLAINTEXT) % 16
        padded = self.PLAINTEXT + bytes([pad]) * pad

        encryptor = Cipher(algorithms.AES(self.key), modes.CBC(self.IV)).encryptor()
        ciphertext = encryptor.update(padded) + encryptor.finalize()

        self.assertEqual(self.PLAINTEXT, self.manager.decrypt(self.IV, ciphertext))

    """
        decrypt() must reject IVs that are not 16 bytes.
    """
    def test_decrypt_rejects_invalid_iv(self):

        ciphertext = self.manager.encrypt(self.IV, self.PLAINTEXT)

        for bad_iv in (b"N1", b"x" * 15, b"x" * 17, "N1-nonce-0000001"):
            with self.subTest(bad_iv=bad_iv):
                with self.assertRaises(DecryptionError) as cm:
                    self.manager.decrypt(bad_iv, ciphertext)  # type: ignore[arg-type]

                self.assertEqual(cm.exception.application_code, ApplicationCodes.INVALID_NONCE)
                self.assertEqual(cm.exception.field, "nonce")

    """
        decrypt() must reject empty ciphertext and lengths that are not block multiples.
    """
    def test_decrypt_rejects_invalid_ciphertext_length(self):

        for bad_ct in (b"", b"\x01" * 15, b"\x01" * 17):
            with self.subTest(length=len(bad_ct)):
                with self.assertRaises(DecryptionError) as cm:
                    self.manager.decrypt(self.IV, bad_ct)

                self.assertEqual(cm.exception.application_code, ApplicationCodes.INVALID_CIPHERTEXT)
                self.assertEqual(cm.exception.field, "ciphertext")

    """
        decrypt() must reject plaintext whose final byte is not valid PKCS#7 padding.
    """
    def test_decrypt_rejects_invalid_padding(self):

        # Raw CBC block (no padding) whose plaintext ends in 0x00
        encryptor = Cipher(algorithms.AES(self.key), modes.CBC(self.IV)).encryptor()
        ciphertext = encryptor.update(b"\x00" * 16) + encryptor.finalize()

        with self.assertRaises(DecryptionError) as cm:
            self.manager.decrypt(self.IV, ciphertext)

        self.assertEqual(cm.exception.application_code, ApplicationCodes.INVALID_PADDING)


if __name__ == "__main__":
    unittest.main()
