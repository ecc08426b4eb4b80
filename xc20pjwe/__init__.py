# SPDX-FileCopyrightText: Christian Amsüss and the aiocoap contributors
#
# SPDX-License-Identifier: MIT

"""
The xc20pjwe package creates and opens multi-recipient JWE envelopes whose
content is encrypted with XChaCha20-Poly1305 (``XC20P``), and whose content
key is made available to each recipient through X25519 key agreement
(``ECDH-ES+XC20PKW``, ``ECDH-1PU+XC20PKW``) or shared directly (``dir``).

Module contents
---------------

The envelope operations live in :mod:`.jwe` (:func:`~.jwe.create_jwe` and
:func:`~.jwe.decrypt_jwe`), and the encrypters and decrypters that go into
them in :mod:`.encryption`. Looking up recipients' keys is done in
:mod:`.resolver`, and key files are handled by :mod:`.keys`.

This root module only re-exports the error classes of :mod:`.error`, so that
it can be imported without the cryptographic dependencies installed; use
:mod:`.defaults` to find out what is missing.
"""

from .error import (
    Error,
    InvalidEnvelope,
    DecryptionFailed,
    IncompatibleEncrypters,
    UnsupportedAlgorithm,
    KeyLookupError,
    ResolverLoadError,
    KeyFileError,
)

__all__ = [
    "Error",
    "InvalidEnvelope",
    "DecryptionFailed",
    "IncompatibleEncrypters",
    "UnsupportedAlgorithm",
    "KeyLookupError",
    "ResolverLoadError",
    "KeyFileError",
]
