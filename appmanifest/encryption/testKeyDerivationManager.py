#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
    File name:    testKeyDerivationManager.py
    Author:       Alex Biddle

    Description:

        Test suite for KeyDerivationManager. Covers determinism, the exact
        HMAC-SHA256-then-truncate construction (checked against the standard
        library hmac module), the Base64 key dialect, and the
        KeyDerivationError codes for invalid inputs.
"""

import base64
import hashlib
import hmac
import unittest

from appmanifest.encryption.key_derivation_manager import KeyDerivationManager
from appmanifest.handlers.error_handler import KeyDerivationError, ApplicationCodes



class TestKeyDerivationManager(unittest.TestCase):

    NONCE = "N1-nonce-0000001"
    SECRET = "shared-passphrase"


    """
        Create fresh KeyDerivationManager for each test.
    """
    def setUp(self):
        self.manager = KeyDerivationManager()



    """
        derive_key is deterministic and returns exactly 32 bytes.
    """
    def test_derive_key_properties(self):

        key1 = self.manager.derive_key(self.NONCE, self.SECRET)
        key2 = self.manager.derive_key(self.NONCE, self.SECRET)

        self.assertIsInstance(key1, bytes)
        self.assertEqual(32, len(key1))
        self.assertEqual(key1, key2)



    """
        derive_key equals HMAC-SHA256(key=secret, msg=nonce) truncated to 32 bytes.
    """
    def test_derive_key_matches_reference_hmac(self):

        expected = hmac.new(self.SECRET.encode("utf-8"), self.NONCE.encode("utf-8"), hashlib.sha256).digest()[:32]

        self.assertEqual(expected, self.manager.derive_key(self.NONCE, self.SECRET))



    """
        Known-answer check against RFC 4231 test case 2 (key "Jefe").
    """
    def test_derive_key_known_answer(self):

        expected = bytes.fromhex("5bdcc146bf60754e6a042426089575c75a003f089d2739839dec58b964ec3843")

        self.assertEqual(expected, self.manager.derive_key("what do ya want for nothing?", "Jefe"))



    """
        Swapping the roles of nonce and secret yields a different key.
    """
    def test_derive_key_argument_roles_matter(self):

        self.assertNotEqual(self.manager.derive_key(self.NONCE, self.SECRET), self.manager.derive_key(self.SECRET, self.NONCE))



    """
        Different nonces produce different keys for the same secret.
    """
    def test_derive_key_changes_with_nonce(self):

        key1 = self.manager.derive_key("nonce-aaaaaaaaaa", self.SECRET)
        key2 = self.manager.derive_key("nonce-bbbbbbbbbb", self.SECRET)

        self.assertNotEqual(key1, key2)



    """
        str inputs are UTF-8 encoded, so they match the equivalent bytes inputs.
    """
    def test_derive_key_accepts_str_and_bytes(self):

        secret = "clé-secrète"

        self.assertEqual(self.manager.derive_key(self.NONCE, secret), self.manager.derive_key(self.NONCE.encode("utf-8"), secret.encode("utf-8")))



    """
        The base64 dialect keys AES with the first 32 characters of the Base64 digest.
    """
    def test_derive_key_base64_encoding(self):

        manager = KeyDerivationManager("base64")
        digest = hmac.new(self.SECRET.encode("utf-8"), self.NONCE.encode("utf-8"), hashlib.sha256).digest()

        key = manager.derive_key(self.NONCE, self.SECRET)

        self.assertEqual(base64.b64encode(digest)[:32], key)
        self.assertEqual(32, len(key))
        self.assertEqual("base64", manager.key_encoding)



    """
        Unknown key encodings are rejected at construction.
    """
    def test_rejects_unknown_key_encoding(self):

        with self.assertRaises(KeyDerivationError) as cm:
            KeyDerivationManager("hex")

        self.assertEqual(cm.exception.application_code, ApplicationCodes.INVALID_CONFIG)
        self.assertEqual(cm.exception.field, "key_encoding")



    """
        Empty secrets and nonces are rejected with field-specific codes.
    """
    def test_rejects_empty_inputs(self):

        with self.assertRaises(KeyDerivationError) as cm:
            self.manager.derive_key(self.NONCE, "")

        self.assertEqual(cm.exception.application_code, ApplicationCodes.INVALID_SECRET)
        self.assertEqual(cm.exception.field, "secret")

        with self.assertRaises(KeyDerivationError) as cm:
            self.manager.derive_key(b"", self.SECRET)

        self.assertEqual(cm.exception.application_code, ApplicationCodes.INVALID_NONCE)
        self.assertEqual(cm.exception.field, "nonce")



    """
        Non-text, non-bytes inputs are rejected with INVALID_TYPE.
    """
    def test_rejects_invalid_types(self):

        for bad in (None, 42, ["a"]):
            with self.subTest(bad=bad):
                with self.assertRaises(KeyDerivationError) as cm:
                    self.manager.derive_key(self.NONCE, bad)  # type: ignore[arg-type]

                self.assertEqual(cm.exception.application_code, ApplicationCodes.INVALID_TYPE)



    """
        Text that cannot be encoded as UTF-8 surfaces as KeyDerivationError.
    """
    def test_rejects_unencodable_text(self):

        with self.assertRaises(KeyDerivationError) as cm:
            self.manager.derive_key("\ud800-lone-surrogate", self.SECRET)

        self.assertEqual(cm.exception.application_code, ApplicationCodes.INVALID_NONCE)
        self.assertEqual(cm.exception.field, "nonce")



    """
        compute_hmac validates its argument types.
    """
    def test_compute_hmac_rejects_text(self):

        with self.assertRaises(KeyDerivationError) as cm:
            self.manager.compute_hmac("key", b"message")  # type: ignore[arg-type]

        self.assertEqual(cm.exception.application_code, ApplicationCodes.INVALID_TYPE)


if __name__ == "__main__":
    unittest.main()
