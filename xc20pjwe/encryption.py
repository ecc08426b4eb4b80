# SPDX-FileCopyrightText: Christian Amsüss and the aiocoap contributors
#
# SPDX-License-Identifier: MIT

"""Encrypters and decrypters for XC20P content encryption

For every key management mode there is a pair:

* ``dir``: :class:`DirectEncrypter` / :class:`DirectDecrypter` share the
  content key itself between sender and the single recipient.
* ``ECDH-ES+XC20PKW``: :class:`X25519Encrypter` / :class:`X25519Decrypter`.
* ``ECDH-1PU+XC20PKW``: :class:`X25519AuthEncrypter` /
  :class:`X25519AuthDecrypter`.
"""

from typing import Optional

from .algorithms import XC20P, X25519_BYTES
from .interfaces import Encrypter, Decrypter
from .keywrap import AnonymousKeyWrapper, AuthenticatedKeyWrapper, AuthOptions

_anonymous = AnonymousKeyWrapper()
_authenticated = AuthenticatedKeyWrapper()


def _check_length(name, value, length):
    if not isinstance(value, (bytes, bytearray)) or len(value) != length:
        raise ValueError("%s must be %d bytes long" % (name, length))
    return bytes(value)


class DirectEncrypter(Encrypter):
    alg = "dir"
    enc = XC20P.value

    def __init__(self, key: bytes):
        self.content_key = _check_length("Key", key, XC20P.key_bytes)

    def __repr__(self):
        return "<%s>" % type(self).__name__

    def wrap_cek(self, cek):
        # The key is known to the recipient already, nothing to send
        return None


class DirectDecrypter(Decrypter):
    alg = "dir"
    enc = XC20P.value

    def __init__(self, key: bytes):
        self._key = _check_length("Key", key, XC20P.key_bytes)

    def __repr__(self):
        return "<%s>" % type(self).__name__

    def unwrap_cek(self, recipient):
        return self._key


class X25519Encrypter(Encrypter):
    """Anonymous encryption to a recipient's X25519 public key"""

    alg = AnonymousKeyWrapper.alg
    enc = XC20P.value

    def __init__(self, public_key: bytes, kid: Optional[str] = None):
        self.public_key = _check_length("Public key", public_key, X25519_BYTES)
        if kid is not None and not isinstance(kid, str):
            raise ValueError("kid must be a string")
        self.kid = kid

    def __repr__(self):
        return "<%s kid=%r>" % (type(self).__name__, self.kid)

    def wrap_cek(self, cek):
        return _anonymous.wrap(self.public_key, cek, self.kid)


class X25519Decrypter(Decrypter):
    alg = AnonymousKeyWrapper.alg
    enc = XC20P.value

    def __init__(self, secret_key: bytes):
        self._secret_key = _check_length("Secret key", secret_key, X25519_BYTES)

    def __repr__(self):
        return "<%s>" % type(self).__name__

    def unwrap_cek(self, recipient):
        return _anonymous.unwrap(self._secret_key, recipient)


class X25519AuthEncrypter(Encrypter):
    """Sender-authenticated encryption to a recipient's X25519 public key

    See :class:`~xc20pjwe.keywrap.AuthOptions` for the meaning of the keyword
    arguments."""

    alg = AuthenticatedKeyWrapper.alg
    enc = XC20P.value

    def __init__(
        self,
        recipient_public_key: bytes,
        sender_secret_key: bytes,
        *,
        kid: Optional[str] = None,
        skid: Optional[str] = None,
        apu: Optional[str] = None,
        apv: Optional[str] = None,
    ):
        self.public_key = _check_length(
            "Recipient public key", recipient_public_key, X25519_BYTES
        )
        self._sender_secret_key = _check_length(
            "Sender secret key", sender_secret_key, X25519_BYTES
        )
        self.options = AuthOptions(kid=kid, skid=skid, apu=apu, apv=apv)

    def __repr__(self):
        return "<%s kid=%r skid=%r>" % (
            type(self).__name__,
            self.options.kid,
            self.options.skid,
        )

    @property
    def skid(self):
        return self.options.skid

    def wrap_cek(self, cek):
        return _authenticated.wrap(
            self.public_key, self._sender_secret_key, cek, self.options
        )


class X25519AuthDecrypter(Decrypter):
    """Decrypter that only accepts envelopes wrapped by the holder of the
    secret key belonging to ``sender_public_key``"""

    alg = AuthenticatedKeyWrapper.alg
    enc = XC20P.value

    def __init__(self, recipient_secret_key: bytes, sender_public_key: bytes):
        self._secret_key = _check_length(
            "Recipient secret key", recipient_secret_key, X25519_BYTES
        )
        self.sender_public_key = _check_length(
            "Sender public key", sender_public_key, X25519_BYTES
        )

    def __repr__(self):
        return "<%s>" % type(self).__name__

    def unwrap_cek(self, recipient):
        return _authenticated.unwrap(
            self._secret_key, self.sender_public_key, recipient
        )
