# SPDX-FileCopyrightText: Christian Amsüss and the aiocoap contributors
#
# SPDX-License-Identifier: MIT

"""Tests for the key wrapping algorithms in xc20pjwe.keywrap"""

import os
import unittest

from .common import jwe_modules, _skip_unless_jwe

if not jwe_modules:
    from xc20pjwe.algorithms import generate_keypair
    from xc20pjwe.error import DecryptionFailed, InvalidEnvelope
    from xc20pjwe.keywrap import (
        AnonymousKeyWrapper,
        AuthenticatedKeyWrapper,
        AuthOptions,
        Recipient,
    )
    from xc20pjwe.util import b64decode, b64encode


def _with_header(recipient, **changes):
    header = dict(recipient.header)
    for k, v in changes.items():
        if v is None:
            header.pop(k, None)
        else:
            header[k] = v
    return Recipient(recipient.encrypted_key, header)


@_skip_unless_jwe
class TestAuthOptions(unittest.TestCase):
    def test_defaults(self):
        options = AuthOptions(kid="bob-key", skid="alice-key")
        self.assertEqual(options.party_u_info, "alice-key")
        self.assertEqual(options.party_v_info, "bob-key")

    def test_explicit_wins(self):
        options = AuthOptions(kid="bob-key", skid="alice-key", apu="Alice", apv="Bob")
        self.assertEqual(options.party_u_info, "Alice")
        self.assertEqual(options.party_v_info, "Bob")

    def test_nothing_given(self):
        options = AuthOptions()
        self.assertIsNone(options.party_u_info)
        self.assertIsNone(options.party_v_info)

    def test_type_checks(self):
        self.assertRaises(ValueError, AuthOptions, kid=b"bob-key")
        self.assertRaises(ValueError, AuthOptions, apu=1)


@_skip_unless_jwe
class TestAnonymous(unittest.TestCase):
    def setUp(self):
        self.wrapper = AnonymousKeyWrapper()
        self.bob = generate_keypair()
        self.cek = os.urandom(32)

    def test_roundtrip(self):
        recipient = self.wrapper.wrap(self.bob.public_key, self.cek, kid="bob-key")
        self.assertEqual(recipient.alg, "ECDH-ES+XC20PKW")
        self.assertEqual(recipient.header["kid"], "bob-key")
        self.assertEqual(recipient.header["epk"]["kty"], "OKP")
        self.assertEqual(recipient.header["epk"]["crv"], "X25519")
        self.assertEqual(len(b64decode(recipient.header["iv"])), 24)
        self.assertEqual(len(b64decode(recipient.header["tag"])), 16)
        self.assertEqual(len(recipient.encrypted_key), 32)
        self.assertEqual(self.wrapper.unwrap(self.bob.secret_key, recipient), self.cek)

    def test_no_kid(self):
        recipient = self.wrapper.wrap(self.bob.public_key, self.cek)
        self.assertNotIn("kid", recipient.header)

    def test_fresh_ephemeral_key(self):
        first = self.wrapper.wrap(self.bob.public_key, self.cek)
        second = self.wrapper.wrap(self.bob.public_key, self.cek)
        self.assertNotEqual(first.header["epk"], second.header["epk"])

    def test_wrong_key(self):
        recipient = self.wrapper.wrap(self.bob.public_key, self.cek)
        eve = generate_keypair()
        self.assertRaises(
            DecryptionFailed, self.wrapper.unwrap, eve.secret_key, recipient
        )

    def test_structural_errors(self):
        recipient = self.wrapper.wrap(self.bob.public_key, self.cek)
        for changes in (
            {"epk": None},
            {"iv": None},
            {"tag": None},
            {"iv": ""},
            {"epk": "not an object"},
            {"iv": "not base64!"},
            {"tag": "AA=A"},
        ):
            with self.subTest(changes=changes):
                self.assertRaises(
                    InvalidEnvelope,
                    self.wrapper.unwrap,
                    self.bob.secret_key,
                    _with_header(recipient, **changes),
                )

    def test_cryptographic_errors(self):
        recipient = self.wrapper.wrap(self.bob.public_key, self.cek)
        other_epk = generate_keypair().public_key
        for changes in (
            {"epk": dict(recipient.header["epk"], crv="P-256")},
            {"epk": dict(recipient.header["epk"], x=b64encode(other_epk))},
            {"epk": dict(recipient.header["epk"], x=b64encode(bytes(31)))},
            {"epk": dict(recipient.header["epk"], x=b64encode(bytes(32)))},
            {"tag": b64encode(bytes(16))},
            {"iv": b64encode(bytes(24))},
            {"tag": b64encode(bytes(15))},
        ):
            with self.subTest(changes=changes):
                self.assertRaises(
                    DecryptionFailed,
                    self.wrapper.unwrap,
                    self.bob.secret_key,
                    _with_header(recipient, **changes),
                )

    def test_tampered_encrypted_key(self):
        recipient = self.wrapper.wrap(self.bob.public_key, self.cek)
        key = recipient.encrypted_key
        tampered = Recipient(bytes([key[0] ^ 1]) + key[1:], recipient.header)
        self.assertRaises(
            DecryptionFailed, self.wrapper.unwrap, self.bob.secret_key, tampered
        )


@_skip_unless_jwe
class TestAuthenticated(unittest.TestCase):
    def setUp(self):
        self.wrapper = AuthenticatedKeyWrapper()
        self.alice = generate_keypair()
        self.bob = generate_keypair()
        self.cek = os.urandom(32)

    def wrap(self, **options):
        return self.wrapper.wrap(
            self.bob.public_key, self.alice.secret_key, self.cek, AuthOptions(**options)
        )

    def unwrap(self, recipient, sender_public_key=None):
        if sender_public_key is None:
            sender_public_key = self.alice.public_key
        return self.wrapper.unwrap(self.bob.secret_key, sender_public_key, recipient)

    def test_roundtrip(self):
        recipient = self.wrap(kid="bob-key", skid="alice-key")
        self.assertEqual(recipient.alg, "ECDH-1PU+XC20PKW")
        self.assertEqual(recipient.header["kid"], "bob-key")
        self.assertEqual(b64decode(recipient.header["apu"]), b"alice-key")
        self.assertEqual(b64decode(recipient.header["apv"]), b"bob-key")
        self.assertEqual(self.unwrap(recipient), self.cek)

    def test_explicit_party_info(self):
        recipient = self.wrap(kid="bob-key", skid="alice-key", apu="Alice", apv="Bob")
        self.assertEqual(b64decode(recipient.header["apu"]), b"Alice")
        self.assertEqual(b64decode(recipient.header["apv"]), b"Bob")
        self.assertEqual(self.unwrap(recipient), self.cek)

    def test_no_party_info(self):
        recipient = self.wrap()
        self.assertNotIn("apu", recipient.header)
        self.assertNotIn("apv", recipient.header)
        self.assertNotIn("kid", recipient.header)
        self.assertEqual(self.unwrap(recipient), self.cek)

    def test_party_info_from_header_only(self):
        """Unwrapping does not consult kid or skid, only apu and apv"""
        recipient = self.wrap(kid="bob-key", skid="alice-key")
        renamed = _with_header(recipient, kid="someone-else", skid="another")
        self.assertEqual(self.unwrap(renamed), self.cek)

    def test_party_info_is_bound(self):
        recipient = self.wrap(kid="bob-key", skid="alice-key")
        for changes in (
            {"apu": b64encode(b"mallory-key")},
            {"apv": b64encode(b"carol-key")},
            {"apu": None},
            {"apv": None},
        ):
            with self.subTest(changes=changes):
                self.assertRaises(
                    DecryptionFailed, self.unwrap, _with_header(recipient, **changes)
                )

    def test_wrong_sender(self):
        recipient = self.wrap(kid="bob-key")
        mallory = generate_keypair()
        self.assertRaises(DecryptionFailed, self.unwrap, recipient, mallory.public_key)

    def test_anonymous_unwrap_fails(self):
        recipient = self.wrap()
        self.assertRaises(
            DecryptionFailed,
            AnonymousKeyWrapper().unwrap,
            self.bob.secret_key,
            recipient,
        )

    def test_malformed_party_info(self):
        recipient = self.wrap(kid="bob-key")
        self.assertRaises(
            InvalidEnvelope, self.unwrap, _with_header(recipient, apv="***")
        )

    def test_structural_before_curve(self):
        """A malformed header is reported as such even if its key is on the
        wrong curve"""
        recipient = self.wrap(kid="bob-key")
        broken = _with_header(
            recipient,
            epk=dict(recipient.header["epk"], crv="X448"),
            apu="***",
        )
        self.assertRaises(InvalidEnvelope, self.unwrap, broken)


@_skip_unless_jwe
class TestRecipient(unittest.TestCase):
    def test_from_dict(self):
        recipient = Recipient.from_dict(
            {"encrypted_key": "AAEC", "header": {"alg": "ECDH-ES+XC20PKW"}}
        )
        self.assertEqual(recipient.encrypted_key, b"\x00\x01\x02")
        self.assertEqual(recipient.alg, "ECDH-ES+XC20PKW")
        self.assertEqual(
            recipient.to_dict(),
            {"encrypted_key": "AAEC", "header": {"alg": "ECDH-ES+XC20PKW"}},
        )

    def test_from_dict_malformed(self):
        for data in (
            [],
            {"encrypted_key": "AAEC"},
            {"header": {}},
            {"encrypted_key": "AAEC", "header": []},
            {"encrypted_key": "A+/=", "header": {}},
            {"encrypted_key": 5, "header": {}},
        ):
            with self.subTest(data=data):
                self.assertRaises(InvalidEnvelope, Recipient.from_dict, data)
