# SPDX-FileCopyrightText: Christian Amsüss and the aiocoap contributors
#
# SPDX-License-Identifier: MIT

"""This module describes how recipients' key agreement keys are found from
their identifiers, and how encrypters are built from them.

A resolver is anything implementing :class:`KeyResolver`. The library ships
:class:`DocumentResolver`, which holds DID-document-like structures, typically
loaded from a JSON file::

    {
        "did:example:alice": {
            "verificationMethod": [{
                "id": "did:example:alice#key-1",
                "type": "X25519KeyAgreementKey2019",
                "publicKeyBase58": "..."
            }],
            "keyAgreement": ["did:example:alice#key-1"]
        },
        "did:example:bob": {
            "didResolutionMetadata": {"error": "notFound"},
            "didDocument": null
        }
    }

Entries can be documents themselves or resolution results (with
``didResolutionMetadata`` and ``didDocument``). Key agreement entries can be
embedded or refer to ``verificationMethod`` or ``publicKey`` entries by their
id. Keys of types this library can not use are ignored.
"""

import abc
from collections import namedtuple
import json
import logging
from typing import Optional, Sequence

from .algorithms import CURVE, X25519_BYTES
from .encryption import X25519AuthEncrypter, X25519Encrypter
from .error import KeyLookupError, ResolverLoadError
from .util import b64decode

log = logging.getLogger("xc20pjwe.resolver")


class AgreementKey(namedtuple("_AgreementKey", ("id", "curve", "public_key"))):
    """A key agreement public key found for an identifier"""

    __slots__ = ()


class KeyResolver(metaclass=abc.ABCMeta):
    @abc.abstractmethod
    def resolve(self, identifier: str) -> Sequence[AgreementKey]:
        """Return the key agreement keys of an identifier

        Implementations raise :class:`~xc20pjwe.error.KeyLookupError` when the
        identifier can not be resolved. Returning keys on other curves is
        allowed; they are filtered out by the users."""


def _key_from_base58(method):
    import base58

    try:
        raw = base58.b58decode(method["publicKeyBase58"])
    except (ValueError, TypeError):
        return None
    return raw


def _key_from_jwk(method):
    jwk = method["publicKeyJwk"]
    if not isinstance(jwk, dict) or jwk.get("kty") != "OKP" or jwk.get("crv") != CURVE:
        return None
    try:
        return b64decode(jwk.get("x"))
    except ValueError:
        return None


# (type, property holding the key): key decoder
_method_types = {
    ("X25519KeyAgreementKey2019", "publicKeyBase58"): _key_from_base58,
    ("JsonWebKey2020", "publicKeyJwk"): _key_from_jwk,
}


def _parse_method(method) -> Optional[AgreementKey]:
    if not isinstance(method, dict):
        return None
    for (type_, field), decoder in _method_types.items():
        if method.get("type") == type_ and method.get(field):
            raw = decoder(method)
            if raw is None or len(raw) != X25519_BYTES:
                log.info("Ignoring malformed key %r", method.get("id"))
                return None
            key_id = method.get("id")
            if not isinstance(key_id, str):
                key_id = None
            return AgreementKey(key_id, CURVE, raw)
    return None


def agreement_keys(document: dict) -> list:
    """Extract the usable key agreement keys of a document, in document
    order"""
    key_agreement = document.get("keyAgreement") or []
    known = list(document.get("publicKey") or []) + list(
        document.get("verificationMethod") or []
    )

    keys = []
    for entry in key_agreement:
        if isinstance(entry, str):
            method = next(
                (pk for pk in known if isinstance(pk, dict) and pk.get("id") == entry),
                None,
            )
        else:
            method = entry
        key = _parse_method(method)
        if key is not None:
            keys.append(key)
    return keys


class DocumentResolver(dict, KeyResolver):
    """A map from identifiers to documents (or resolution results)"""

    def load_from_dict(self, d):
        """Populate the map from a dictionary, which would typically have been
        loaded from a JSON file.

        Running this multiple times will overwrite individual entries in the
        map; entries set to None are removed."""
        if not isinstance(d, dict):
            raise ResolverLoadError("Documents need to be given in an object")
        for k, v in d.items():
            if v is None:
                self.pop(k, None)
            elif not isinstance(v, dict):
                raise ResolverLoadError("Document for %s is not an object" % k)
            else:
                self[k] = v

    @classmethod
    def from_file(cls, filename):
        try:
            with open(filename) as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise ResolverLoadError("Can not load documents from %s: %s" % (filename, e))
        resolver = cls()
        resolver.load_from_dict(data)
        return resolver

    def resolve(self, identifier):
        entry = self.get(identifier)
        if entry is None:
            raise KeyLookupError(
                "Could not find x25519 key for %s: notFound" % identifier
            )
        if "didDocument" in entry or "didResolutionMetadata" in entry:
            metadata = entry.get("didResolutionMetadata") or {}
            if metadata.get("error"):
                raise KeyLookupError(
                    "Could not find x25519 key for %s: %s, %s"
                    % (identifier, metadata["error"], metadata.get("message"))
                )
            document = entry.get("didDocument")
        else:
            document = entry
        if not isinstance(document, dict) or not document.get("keyAgreement"):
            raise KeyLookupError("Could not find x25519 key for %s" % identifier)
        return agreement_keys(document)


def resolve_x25519_encrypters(
    identifiers,
    resolver: KeyResolver,
    *,
    sender_secret_key: Optional[bytes] = None,
    skid: Optional[str] = None,
) -> list:
    """Build an encrypter for every X25519 key agreement key of every
    identifier

    The result is ordered by identifier, then by the order the resolver
    returned the keys in. Each key's id becomes the recipient's ``kid``. If
    ``sender_secret_key`` is given, the encrypters authenticate the sender
    (and announce ``skid``), otherwise they are anonymous.

    Raises :class:`~xc20pjwe.error.KeyLookupError` if any identifier can not
    be resolved or has no usable key."""
    identifiers = list(identifiers)
    lookups = [resolver.resolve(identifier) for identifier in identifiers]

    encrypters = []
    for identifier, keys in zip(identifiers, lookups):
        usable = [k for k in keys if k.curve == CURVE]
        if not usable:
            raise KeyLookupError("Could not find x25519 key for %s" % identifier)
        for key in usable:
            if sender_secret_key is None:
                encrypters.append(X25519Encrypter(key.public_key, key.id))
            else:
                encrypters.append(
                    X25519AuthEncrypter(
                        key.public_key, sender_secret_key, kid=key.id, skid=skid
                    )
                )
    return encrypters
