# SPDX-FileCopyrightText: Christian Amsüss and the aiocoap contributors
#
# SPDX-License-Identifier: MIT

"""This module contains the cryptographic building blocks of the envelopes.

It only deals with the primitives: the XC20P content cipher, the ConcatKDF
used to derive key encryption keys, and X25519 key agreement. Composing them
into key wrapping is what :mod:`xc20pjwe.keywrap` is for, and composing those
into envelopes is done in :mod:`xc20pjwe.jwe`."""

from collections import namedtuple
import abc
import logging
import secrets
import struct
from typing import Optional, Union

import nacl.bindings
import nacl.exceptions

from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import x25519
from cryptography.hazmat.primitives.kdf.concatkdf import ConcatKDFHash

from .defaults import log_secret
from .error import DecryptionFailed

# Logger through which log events from cryptographic operations (both inside
# the primitives and around key derivation) are traced.
_alglog = logging.getLogger("xc20pjwe.cryptography")

#: Curve name used in ``epk`` descriptors and resolved keys
CURVE = "X25519"

#: Length of X25519 public keys, secret keys and shared secrets
X25519_BYTES = 32


class SymmetricEncryptionAlgorithm(metaclass=abc.ABCMeta):
    """A symmetric algorithm

    The algorithm's API is the AEAD API with addtional authenticated data:
    encryption returns the ciphertext with the tag appended."""

    value: str
    key_bytes: int
    tag_bytes: int
    iv_bytes: int

    @abc.abstractmethod
    def encrypt(cls, plaintext, aad, key, iv):
        """Return ciphertext + tag for given input data"""

    @abc.abstractmethod
    def decrypt(cls, ciphertext_and_tag, aad, key, iv):
        """Reverse encryption. Must raise DecryptionFailed on any error
        stemming from untrusted data."""


class AeadAlgorithm(SymmetricEncryptionAlgorithm, metaclass=abc.ABCMeta):
    """A symmetric algorithm that provides authentication, including
    authentication of additional data."""


class XC20P(AeadAlgorithm):
    """XChaCha20-Poly1305 implemented through libsodium's IETF construction
    (as bound by PyNaCl)"""

    value = "XC20P"
    key_bytes = 32  # 256-bit key
    tag_bytes = 16  # 128-bit tag
    iv_bytes = 24  # 192-bit extended nonce

    @classmethod
    def encrypt(cls, plaintext, aad, key, iv):
        return nacl.bindings.crypto_aead_xchacha20poly1305_ietf_encrypt(
            bytes(plaintext), bytes(aad), bytes(iv), bytes(key)
        )

    @classmethod
    def decrypt(cls, ciphertext_and_tag, aad, key, iv):
        try:
            return nacl.bindings.crypto_aead_xchacha20poly1305_ietf_decrypt(
                bytes(ciphertext_and_tag), bytes(aad), bytes(iv), bytes(key)
            )
        except nacl.exceptions.CryptoError:
            # Length errors of key or nonce end up here too (PyNaCl's
            # ValueError and TypeError are CryptoErrors)
            raise DecryptionFailed() from None


algorithms = {
    "XC20P": XC20P,
}


class SealedBox(namedtuple("_SealedBox", ("ciphertext", "tag", "iv"))):
    """Output of :meth:`ContentCipher.seal`, with the tag detached from the
    ciphertext"""

    __slots__ = ()


class ContentCipher:
    """Seals and opens data under one key with a random nonce per seal

    The same class protects envelope content under the content encryption key
    and content encryption keys under key encryption keys; the latter use no
    associated data."""

    def __init__(self, key: bytes, algorithm=XC20P):
        if len(key) != algorithm.key_bytes:
            raise ValueError(
                "%s requires a %d byte key" % (algorithm.value, algorithm.key_bytes)
            )
        self.algorithm = algorithm
        self._key = bytes(key)

    def seal(self, plaintext: bytes, aad: bytes = b"") -> SealedBox:
        iv = secrets.token_bytes(self.algorithm.iv_bytes)
        _alglog.debug("Sealing with %s:", self.algorithm.value)
        _alglog.debug("* aad = %s", bytes(aad).hex())
        _alglog.debug("* iv = %s", iv.hex())
        _alglog.debug("* key = %s", log_secret(self._key.hex()))
        sealed = self.algorithm.encrypt(plaintext, aad, self._key, iv)
        split = len(sealed) - self.algorithm.tag_bytes
        return SealedBox(ciphertext=sealed[:split], tag=sealed[split:], iv=iv)

    def open(self, box: SealedBox, aad: bytes = b"") -> bytes:
        """Perform one authenticated decryption of the box

        Raises DecryptionFailed without any detail if the tag or the nonce
        have the wrong length or authentication fails."""
        if len(box.tag) != self.algorithm.tag_bytes:
            raise DecryptionFailed()
        return self.algorithm.decrypt(
            bytes(box.ciphertext) + bytes(box.tag), aad, self._key, box.iv
        )


def _length_prefixed(data: bytes) -> bytes:
    return struct.pack(">I", len(data)) + data


def concat_kdf(
    shared_secret: bytes,
    key_bits: int,
    algorithm_id: Union[str, bytes],
    party_u_info: Optional[bytes] = None,
    party_v_info: Optional[bytes] = None,
) -> bytes:
    """The single-step ConcatKDF of NIST SP 800-56A with SHA-256, with the
    OtherInfo layout of RFC7518 Section 4.6.2

    Absent party information is encoded as a zero-length field."""
    if not isinstance(key_bits, int) or key_bits <= 0 or key_bits % 8:
        raise ValueError("Key length must be a positive multiple of 8 bits")
    if isinstance(algorithm_id, str):
        algorithm_id = algorithm_id.encode("utf8")
    party_u_info = party_u_info or b""
    party_v_info = party_v_info or b""

    otherinfo = (
        _length_prefixed(algorithm_id)
        + _length_prefixed(party_u_info)
        + _length_prefixed(party_v_info)
        + struct.pack(">I", key_bits)
    )

    _alglog.debug("Deriving through ConcatKDF:")
    _alglog.debug("* shared secret = %s", log_secret(shared_secret.hex()))
    _alglog.debug("* otherinfo = %s", otherinfo.hex())

    ckdf = ConcatKDFHash(
        algorithm=hashes.SHA256(),
        length=key_bits // 8,
        otherinfo=otherinfo,
    )
    ret = ckdf.derive(shared_secret)
    _alglog.debug("Derivation produced %s", log_secret(ret.hex()))
    return ret


class KeyPair(namedtuple("_KeyPair", ("public_key", "secret_key"))):
    """Raw X25519 key pair"""

    __slots__ = ()

    def __repr__(self):
        return "<%s public_key=%s>" % (type(self).__name__, self.public_key.hex())


def _public_bytes(private_key: x25519.X25519PrivateKey) -> bytes:
    return private_key.public_key().public_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PublicFormat.Raw,
    )


def generate_keypair() -> KeyPair:
    private_key = x25519.X25519PrivateKey.generate()
    return KeyPair(
        public_key=_public_bytes(private_key),
        secret_key=private_key.private_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PrivateFormat.Raw,
            encryption_algorithm=serialization.NoEncryption(),
        ),
    )


def keypair_from_secret(secret_key: bytes) -> KeyPair:
    """Complete a raw secret key into a key pair"""
    private_key = x25519.X25519PrivateKey.from_private_bytes(bytes(secret_key))
    return KeyPair(public_key=_public_bytes(private_key), secret_key=bytes(secret_key))


def shared_key(secret_key: bytes, public_key: bytes) -> bytes:
    """X25519 between a raw secret and a raw public key

    Raises ValueError for keys of the wrong length, and for public keys of
    small order (which would produce an all-zero shared secret)."""
    private = x25519.X25519PrivateKey.from_private_bytes(bytes(secret_key))
    public = x25519.X25519PublicKey.from_public_bytes(bytes(public_key))
    return private.exchange(public)
