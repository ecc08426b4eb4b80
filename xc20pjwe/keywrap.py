# SPDX-FileCopyrightText: Christian Amsüss and the aiocoap contributors
#
# SPDX-License-Identifier: MIT

"""Wrapping of content encryption keys for individual recipients

Two key agreement modes are implemented, both wrapping the CEK with XC20P
under a key encryption key (KEK) derived through ConcatKDF:

* :class:`AnonymousKeyWrapper` (``ECDH-ES+XC20PKW``) agrees on a secret
  between a fresh ephemeral key and the recipient's static key.

* :class:`AuthenticatedKeyWrapper` (``ECDH-1PU+XC20PKW``) additionally mixes
  in the secret between the sender's and the recipient's static keys, so that
  only a recipient who knows the sender's public key can unwrap, and a
  successful unwrap proves the wrap was made by the sender's key.

Unwrapping distinguishes exactly two outcomes besides success: a recipient
entry that is structurally unusable raises
:class:`~xc20pjwe.error.InvalidEnvelope` before any cryptography happens, and
anything else raises :class:`~xc20pjwe.error.DecryptionFailed`. In particular,
an ephemeral key on a different curve is reported like a failed tag check.
"""

import abc
from collections.abc import Mapping
from dataclasses import dataclass, fields
import logging
from typing import Optional, Tuple

from .algorithms import (
    CURVE,
    XC20P,
    ContentCipher,
    SealedBox,
    concat_kdf,
    generate_keypair,
    shared_key,
)
from .error import DecryptionFailed, InvalidEnvelope
from .util import b64decode, b64encode, encode_text

_alglog = logging.getLogger("xc20pjwe.cryptography")

#: Names a key wrapper may place in a recipient header; they can not also
#: appear in the protected header, which would shadow them
RECIPIENT_HEADER_FIELDS = frozenset({"iv", "tag", "epk", "apu", "apv", "kid"})


class Recipient:
    """One entry of an envelope's recipient list: the wrapped CEK and the
    unprotected per-recipient header describing how it was wrapped

    The header is kept in its wire form (a dict of JSON values, binary fields
    base64url encoded)."""

    def __init__(self, encrypted_key: bytes, header: dict):
        self.encrypted_key = encrypted_key
        self.header = header

    def __repr__(self):
        return "<%s alg=%r kid=%r>" % (
            type(self).__name__,
            self.header.get("alg"),
            self.header.get("kid"),
        )

    def __eq__(self, other):
        if not isinstance(other, Recipient):
            return NotImplemented
        return (self.encrypted_key, self.header) == (other.encrypted_key, other.header)

    @property
    def alg(self):
        return self.header.get("alg")

    def to_dict(self):
        return {
            "encrypted_key": b64encode(self.encrypted_key),
            "header": dict(self.header),
        }

    @classmethod
    def from_dict(cls, data):
        """Build a recipient from its wire form, checking only what is needed
        to hold it; the header details are checked by the key wrapper that
        processes it."""
        if not isinstance(data, Mapping):
            raise InvalidEnvelope("Recipient is not an object")
        header = data.get("header")
        if not isinstance(header, Mapping):
            raise InvalidEnvelope("Recipient header is not an object")
        encrypted_key = data.get("encrypted_key")
        try:
            encrypted_key = b64decode(encrypted_key)
        except ValueError as e:
            raise InvalidEnvelope("encrypted_key: %s" % e) from e
        return cls(encrypted_key, dict(header))


def validate_header(header: dict) -> None:
    """Check that a recipient header has what any key wrap needs

    This is purely structural, and must pass before cryptographic work is
    done."""
    if not (header.get("epk") and header.get("iv") and header.get("tag")):
        raise InvalidEnvelope("Recipient header lacks epk, iv or tag")
    if not isinstance(header["epk"], dict):
        raise InvalidEnvelope("epk is not an object")


def _decode_field(header: dict, name: str) -> bytes:
    try:
        return b64decode(header[name])
    except ValueError as e:
        raise InvalidEnvelope("%s: %s" % (name, e)) from e


def _party_info(explicit: Optional[str], fallback: Optional[str]) -> Optional[str]:
    if explicit is not None:
        return explicit
    return fallback


@dataclass(frozen=True)
class AuthOptions:
    """Options of an authenticated key wrap

    ``kid`` identifies the recipient's key and is sent in the recipient
    header; ``skid`` identifies the sender's key and is sent in the protected
    header. ``apu`` and ``apv`` are the PartyUInfo and PartyVInfo fed into the
    KDF; when not given, they default to ``skid`` and ``kid``, respectively.
    """

    kid: Optional[str] = None
    skid: Optional[str] = None
    apu: Optional[str] = None
    apv: Optional[str] = None

    def __post_init__(self):
        for field in fields(self):
            value = getattr(self, field.name)
            if value is not None and not isinstance(value, str):
                raise ValueError(
                    "%s must be a string, got %s" % (field.name, type(value).__name__)
                )

    @property
    def party_u_info(self) -> Optional[str]:
        return _party_info(self.apu, self.skid)

    @property
    def party_v_info(self) -> Optional[str]:
        return _party_info(self.apv, self.kid)


class KeyWrapper(metaclass=abc.ABCMeta):
    """Common parts of the ECDH based key wrapping algorithms"""

    alg: str
    key_bits = 256
    content_algorithm = XC20P

    def _derive_kek(self, shared_secret, party_u_info=None, party_v_info=None):
        return concat_kdf(
            shared_secret, self.key_bits, self.alg, party_u_info, party_v_info
        )

    def _seal_cek(self, kek: bytes, cek: bytes, epk_public: bytes) -> Tuple[bytes, dict]:
        box = ContentCipher(kek, self.content_algorithm).seal(cek)
        header = {
            "alg": self.alg,
            "iv": b64encode(box.iv),
            "tag": b64encode(box.tag),
            "epk": {"kty": "OKP", "crv": CURVE, "x": b64encode(epk_public)},
        }
        return box.ciphertext, header

    def _check_structure(self, recipient: Recipient) -> None:
        header = recipient.header
        validate_header(header)
        # Decoded here so that undecodable values fail as structural errors
        _decode_field(header, "iv")
        _decode_field(header, "tag")

    def _ephemeral_public(self, recipient: Recipient) -> bytes:
        """Extract the ephemeral public key of a structurally checked header

        An ephemeral key that is not a usable X25519 key raises
        DecryptionFailed."""
        epk = recipient.header["epk"]
        if epk.get("crv") != CURVE:
            raise DecryptionFailed()
        try:
            public = b64decode(epk.get("x"))
        except ValueError:
            raise DecryptionFailed() from None
        return public

    def _agree(self, secret_key: bytes, public_key: bytes) -> bytes:
        """Key agreement on the unwrapping side, where any failure is
        uniform"""
        try:
            return shared_key(secret_key, public_key)
        except ValueError:
            raise DecryptionFailed() from None

    def _open_cek(self, kek: bytes, recipient: Recipient) -> bytes:
        header = recipient.header
        box = SealedBox(
            ciphertext=recipient.encrypted_key,
            tag=_decode_field(header, "tag"),
            iv=_decode_field(header, "iv"),
        )
        cek = ContentCipher(kek, self.content_algorithm).open(box)
        if len(cek) != self.content_algorithm.key_bytes:
            raise DecryptionFailed()
        return cek


class AnonymousKeyWrapper(KeyWrapper):
    """ECDH-ES+XC20PKW: ephemeral-static X25519"""

    alg = "ECDH-ES+XC20PKW"

    def wrap(self, recipient_public_key: bytes, cek: bytes, kid: Optional[str] = None) -> Recipient:
        epk = generate_keypair()
        shared_secret = shared_key(epk.secret_key, recipient_public_key)
        kek = self._derive_kek(shared_secret)
        del shared_secret

        _alglog.debug("Wrapping CEK with %s for kid %r", self.alg, kid)
        encrypted_key, header = self._seal_cek(kek, cek, epk.public_key)
        if kid is not None:
            header["kid"] = kid
        return Recipient(encrypted_key, header)

    def unwrap(self, recipient_secret_key: bytes, recipient: Recipient) -> bytes:
        self._check_structure(recipient)
        epk_public = self._ephemeral_public(recipient)
        shared_secret = self._agree(recipient_secret_key, epk_public)
        kek = self._derive_kek(shared_secret)
        del shared_secret
        return self._open_cek(kek, recipient)


class AuthenticatedKeyWrapper(KeyWrapper):
    """ECDH-1PU+XC20PKW: ephemeral-static plus static-static X25519

    The shared secret is ``zE || zS``, the ephemeral-static output first."""

    alg = "ECDH-1PU+XC20PKW"

    def wrap(
        self,
        recipient_public_key: bytes,
        sender_secret_key: bytes,
        cek: bytes,
        options: AuthOptions = AuthOptions(),
    ) -> Recipient:
        apu = options.party_u_info
        apv = options.party_v_info

        epk = generate_keypair()
        z_e = shared_key(epk.secret_key, recipient_public_key)
        z_s = shared_key(sender_secret_key, recipient_public_key)
        kek = self._derive_kek(
            z_e + z_s,
            apu.encode("utf8") if apu is not None else None,
            apv.encode("utf8") if apv is not None else None,
        )
        del z_e, z_s

        _alglog.debug(
            "Wrapping CEK with %s for kid %r from skid %r",
            self.alg,
            options.kid,
            options.skid,
        )
        encrypted_key, header = self._seal_cek(kek, cek, epk.public_key)
        if options.kid is not None:
            header["kid"] = options.kid
        if apu is not None:
            header["apu"] = encode_text(apu)
        if apv is not None:
            header["apv"] = encode_text(apv)
        return Recipient(encrypted_key, header)

    def unwrap(
        self,
        recipient_secret_key: bytes,
        sender_public_key: bytes,
        recipient: Recipient,
    ) -> bytes:
        self._check_structure(recipient)
        # Only what was sent is used; kid and skid are not consulted again
        header = recipient.header
        party_u_info = _decode_field(header, "apu") if header.get("apu") else None
        party_v_info = _decode_field(header, "apv") if header.get("apv") else None
        epk_public = self._ephemeral_public(recipient)

        z_e = self._agree(recipient_secret_key, epk_public)
        z_s = self._agree(recipient_secret_key, sender_public_key)
        kek = self._derive_kek(z_e + z_s, party_u_info, party_v_info)
        del z_e, z_s
        return self._open_cek(kek, recipient)
