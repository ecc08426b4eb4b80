# SPDX-FileCopyrightText: Christian Amsüss and the aiocoap contributors
#
# SPDX-License-Identifier: MIT

"""Creating and opening JWE envelopes

An envelope carries one ciphertext, sealed once under a random content
encryption key (CEK), and one recipient entry per encrypter that makes the
CEK available to that recipient. The protected header is authenticated as
associated data of the content seal, and so is the optional caller-supplied
AAD.

>>> from xc20pjwe.algorithms import generate_keypair
>>> from xc20pjwe.encryption import X25519Encrypter, X25519Decrypter
>>> alice = generate_keypair()
>>> envelope = create_jwe(b"Hello Alice", [X25519Encrypter(alice.public_key)])
>>> decrypt_jwe(envelope.to_json(), X25519Decrypter(alice.secret_key))
b'Hello Alice'

Envelopes for more than one recipient use the ``recipients`` array of the
general JSON serialization; envelopes for exactly one key wrapped recipient
use the flattened serialization, and direct encryption has no recipient
entries at all.
"""

import json
import logging
import secrets
from collections.abc import Mapping
from typing import Optional

from .algorithms import ContentCipher, SealedBox, algorithms
from .error import (
    DecryptionFailed,
    IncompatibleEncrypters,
    InvalidEnvelope,
    UnsupportedAlgorithm,
)
from .keywrap import RECIPIENT_HEADER_FIELDS, Recipient
from .util import b64decode, b64encode, decode_header, encode_header

log = logging.getLogger("xc20pjwe.jwe")

#: Separator between the encoded protected header and the encoded AAD in the
#: associated data of the content seal
AAD_SEPARATOR = b"."


def associated_data(protected: str, aad: Optional[bytes]) -> bytes:
    """The associated data the content is sealed with"""
    result = protected.encode("ascii")
    if aad is not None:
        result += AAD_SEPARATOR + b64encode(aad).encode("ascii")
    return result


def _check_disjoint(protected: dict, recipient: Recipient) -> None:
    shared = sorted(set(protected).intersection(recipient.header))
    if shared:
        raise InvalidEnvelope(
            "Fields in both protected and recipient header: %s" % ", ".join(shared)
        )


class Envelope:
    """A JWE in its decoded form

    ``protected`` is kept exactly as encoded, as its encoded form is what is
    authenticated. ``recipients`` is a list of
    :class:`~xc20pjwe.keywrap.Recipient`; ``flattened`` indicates that a
    single recipient is serialized at the top level."""

    def __init__(
        self,
        protected: str,
        iv: bytes,
        ciphertext: bytes,
        tag: bytes,
        aad: Optional[bytes] = None,
        recipients=(),
        flattened: bool = False,
    ):
        self.protected = protected
        self.iv = iv
        self.ciphertext = ciphertext
        self.tag = tag
        self.aad = aad
        self.recipients = list(recipients)
        self.flattened = flattened

    def __repr__(self):
        return "<%s with %d recipient(s)%s>" % (
            type(self).__name__,
            len(self.recipients),
            ", flattened" if self.flattened else "",
        )

    @property
    def protected_header(self) -> dict:
        try:
            return decode_header(self.protected)
        except ValueError as e:
            raise InvalidEnvelope("protected: %s" % e) from e

    def associated_data(self) -> bytes:
        return associated_data(self.protected, self.aad)

    def to_dict(self) -> dict:
        result = {
            "protected": self.protected,
            "iv": b64encode(self.iv),
            "ciphertext": b64encode(self.ciphertext),
            "tag": b64encode(self.tag),
        }
        if self.aad is not None:
            result["aad"] = b64encode(self.aad)
        if self.flattened and len(self.recipients) == 1:
            result.update(self.recipients[0].to_dict())
        elif self.recipients:
            result["recipients"] = [r.to_dict() for r in self.recipients]
        return result

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_json(cls, text):
        try:
            data = json.loads(text)
        except ValueError as e:
            raise InvalidEnvelope("Not JSON: %s" % e) from e
        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data):
        """Build an envelope from its JSON object form

        Everything that can be checked without keys is checked here, and
        reported as :class:`~xc20pjwe.error.InvalidEnvelope`."""
        if not isinstance(data, Mapping):
            raise InvalidEnvelope("Envelope is not an object")

        protected = data.get("protected")
        if not isinstance(protected, str) or not protected:
            raise InvalidEnvelope("Missing protected header")
        try:
            header = decode_header(protected)
        except ValueError as e:
            raise InvalidEnvelope("protected: %s" % e) from e

        decoded = {}
        for name in ("iv", "ciphertext", "tag"):
            value = data.get(name)
            # An empty plaintext gives an empty ciphertext, but iv and tag
            # always have content
            if not isinstance(value, str) or (not value and name != "ciphertext"):
                raise InvalidEnvelope("Missing %s" % name)
            try:
                decoded[name] = b64decode(value)
            except ValueError as e:
                raise InvalidEnvelope("%s: %s" % (name, e)) from e

        aad = None
        if "aad" in data:
            try:
                aad = b64decode(data["aad"])
            except ValueError as e:
                raise InvalidEnvelope("aad: %s" % e) from e

        flattened = "header" in data or "encrypted_key" in data
        if flattened and "recipients" in data:
            raise InvalidEnvelope("Both flattened and general recipients present")
        if flattened:
            recipients = [Recipient.from_dict(data)]
        elif "recipients" in data:
            listed = data["recipients"]
            if not isinstance(listed, list) or not listed:
                raise InvalidEnvelope("Recipients must be a non-empty list")
            recipients = [Recipient.from_dict(r) for r in listed]
        else:
            recipients = []

        if not recipients and header.get("alg") != "dir":
            raise InvalidEnvelope("No recipients in a key wrapped envelope")
        for recipient in recipients:
            _check_disjoint(header, recipient)

        return cls(
            protected,
            aad=aad,
            recipients=recipients,
            flattened=flattened,
            **decoded,
        )


def _compose_protected_header(caller_fields, enc, direct, skid):
    """Build the protected header from layers, later layers winning, without
    touching the caller's mapping"""
    layers = [dict(caller_fields or {}), {"enc": enc}]
    if direct:
        layers.append({"alg": "dir"})
    if skid is not None:
        layers.append({"skid": skid})

    header = {}
    for layer in layers:
        header.update(layer)
    if not direct:
        # The key wrapping algorithms live in the recipient headers
        header.pop("alg", None)
    return header


def create_jwe(
    cleartext: bytes,
    encrypters,
    protected_header: Optional[Mapping] = None,
    aad: Optional[bytes] = None,
    *,
    executor=None,
) -> Envelope:
    """Encrypt ``cleartext`` for every encrypter

    ``protected_header`` contributes additional fields to the protected
    header; ``aad`` is authenticated along with it and transported in the
    clear. If a :class:`concurrent.futures.Executor` is passed, the key wraps
    for the individual recipients run in it.

    Raises :class:`~xc20pjwe.error.IncompatibleEncrypters` if the encrypters
    can not share an envelope; this happens before any key is generated. A
    ``protected_header`` field that key wrapping places in recipient headers
    (such as ``iv`` or ``apv``) raises ValueError."""
    encrypters = list(encrypters)
    if not encrypters:
        raise IncompatibleEncrypters("No encrypters passed")
    enc = encrypters[0].enc
    if not all(e.enc == enc for e in encrypters):
        raise IncompatibleEncrypters("Incompatible encrypters passed")
    direct = [e for e in encrypters if e.alg == "dir"]
    if direct and len(encrypters) > 1:
        raise IncompatibleEncrypters('Can only do "dir" encryption to one key')
    skids = {e.skid for e in encrypters if e.skid is not None}
    if len(skids) > 1:
        raise IncompatibleEncrypters("Encrypters announce different sender keys")
    try:
        algorithm = algorithms[enc]
    except KeyError:
        raise IncompatibleEncrypters("Unsupported content encryption %r" % (enc,))
    if not direct:
        clashing = sorted(
            RECIPIENT_HEADER_FIELDS.intersection(protected_header or {})
        )
        if clashing:
            raise ValueError(
                "Protected header fields would shadow recipient headers: %s"
                % ", ".join(clashing)
            )

    header = _compose_protected_header(
        protected_header, enc, bool(direct), next(iter(skids), None)
    )
    protected = encode_header(header)

    if direct:
        cek = direct[0].content_key
    else:
        cek = secrets.token_bytes(algorithm.key_bytes)

    box = ContentCipher(cek, algorithm).seal(
        cleartext, associated_data(protected, aad)
    )

    if direct:
        recipients = []
    elif executor is None:
        recipients = [e.wrap_cek(cek) for e in encrypters]
    else:
        recipients = list(executor.map(lambda e: e.wrap_cek(cek), encrypters))
    del cek

    log.debug(
        "Created envelope for %d recipient(s) with header fields %s",
        len(encrypters),
        sorted(header),
    )

    return Envelope(
        protected,
        iv=box.iv,
        ciphertext=box.ciphertext,
        tag=box.tag,
        aad=aad,
        recipients=recipients,
        flattened=len(recipients) == 1,
    )


def decrypt_jwe(envelope, decrypter, *, max_attempts: Optional[int] = None) -> bytes:
    """Decrypt an envelope (given as :class:`Envelope`, JSON object or JSON
    text) with one recipient's decrypter

    Recipient entries are tried in order; ``max_attempts`` limits how many of
    the entries whose algorithm matches the decrypter are tried.

    Raises :class:`~xc20pjwe.error.InvalidEnvelope` on structural errors and
    :class:`~xc20pjwe.error.DecryptionFailed` on any cryptographic failure,
    without telling apart whether no entry was meant for the decrypter or the
    envelope was tampered with."""
    if isinstance(envelope, (str, bytes)):
        envelope = Envelope.from_json(envelope)
    elif not isinstance(envelope, Envelope):
        envelope = Envelope.from_dict(envelope)

    if max_attempts is not None and max_attempts < 1:
        raise ValueError("max_attempts must be positive")

    protected = envelope.protected_header
    if protected.get("enc") != decrypter.enc:
        raise UnsupportedAlgorithm(
            "Decrypter does not support: %r" % (protected.get("enc"),)
        )
    algorithm = algorithms[decrypter.enc]

    box = SealedBox(envelope.ciphertext, envelope.tag, envelope.iv)
    aad = envelope.associated_data()

    if protected.get("alg") == "dir":
        if decrypter.alg != "dir":
            raise DecryptionFailed()
        return ContentCipher(decrypter.unwrap_cek(None), algorithm).open(box, aad)

    if not envelope.recipients:
        raise InvalidEnvelope("No recipients in a key wrapped envelope")

    attempts = 0
    for index, recipient in enumerate(envelope.recipients):
        _check_disjoint(protected, recipient)
        joint_header = {**recipient.header, **protected}
        if joint_header.get("alg") != decrypter.alg:
            continue
        if max_attempts is not None and attempts >= max_attempts:
            log.debug("Giving up after %d attempts", attempts)
            break
        attempts += 1

        try:
            cek = decrypter.unwrap_cek(
                Recipient(recipient.encrypted_key, joint_header)
            )
            return ContentCipher(cek, algorithm).open(box, aad)
        except DecryptionFailed:
            log.debug("Recipient entry %d did not yield the plaintext", index)

    raise DecryptionFailed()
