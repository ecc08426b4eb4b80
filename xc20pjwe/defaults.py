# SPDX-FileCopyrightText: Christian Amsüss and the aiocoap contributors
#
# SPDX-License-Identifier: MIT

"""This module contains helpers that inspect available modules and the
environment to decide how the library behaves by default.

The ``_missing_modules`` functions are helpers for inspecting what is
installed; they return lists of missing distributions rather than raising
ImportErrors, so that tools can give a usable hint ("install xc20pjwe[resolver]")
and test suites can skip what can not run.
"""

import os

#: Value that ``XC20PJWE_REVEAL_KEYS`` needs to be set to for
#: :func:`log_secret` to reveal anything
REVEAL_KEYS_VALUE = "show secrets in logs"


def jwe_missing_modules():
    """Return a list of modules that are missing in order to create or decrypt
    envelopes, or an empty list if everything is in place"""
    missing = []
    try:
        import cryptography  # noqa: F401
    except ImportError:
        missing.append("cryptography")
    else:
        try:
            from cryptography.hazmat.primitives.kdf.concatkdf import (  # noqa: F401
                ConcatKDFHash,
            )
        except ImportError:
            missing.append("a version of cryptography that provides ConcatKDFHash")
    try:
        import nacl.bindings  # noqa: F401
    except ImportError:
        missing.append("pynacl")
    else:
        if not hasattr(nacl.bindings, "crypto_aead_xchacha20poly1305_ietf_encrypt"):
            missing.append("a version of pynacl that supports XChaCha20-Poly1305")
    return missing


def resolver_missing_modules():
    """Return a list of modules that are missing in order to read key
    agreement keys from documents"""
    missing = []
    try:
        import base58  # noqa: F401
    except ImportError:
        missing.append("base58")
    return missing


def log_secret(secret):
    """Wrapper around secret values that go into log output.

    Unless the environment variable ``XC20PJWE_REVEAL_KEYS`` is set to
    :data:`REVEAL_KEYS_VALUE`, this returns a placeholder instead of the
    value. Revealing keys is only meant for debugging test vectors."""
    if os.environ.get("XC20PJWE_REVEAL_KEYS") == REVEAL_KEYS_VALUE:
        return secret
    return "[redacted]"
