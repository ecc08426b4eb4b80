# SPDX-FileCopyrightText: Christian Amsüss and the aiocoap contributors
#
# SPDX-License-Identifier: MIT

"""
Common errors for the xc20pjwe library

The errors fall into three groups:

* Structural errors (:class:`InvalidEnvelope`) are raised before any
  cryptographic operation is attempted. Their messages may carry detail, as
  they only describe the shape of data an attacker already knows.

* Cryptographic errors (:class:`DecryptionFailed`) are raised for every
  failure that involves secret material. They never carry detail and are never
  chained to the underlying library exception, so that a wrong key, a wrong
  sender and a tampered ciphertext are indistinguishable.

* Usage errors (:class:`IncompatibleEncrypters`,
  :class:`UnsupportedAlgorithm`, :class:`KeyLookupError` and the loading
  errors) are raised before any secret is generated or used.
"""


class Error(Exception):
    """
    Base exception for all exceptions raised by xc20pjwe
    """


class InvalidEnvelope(Error, ValueError):
    """Raised when an envelope or a recipient header is structurally
    malformed"""

    def __init__(self, detail=None):
        if detail is None:
            super().__init__("Invalid JWE")
        else:
            super().__init__("Invalid JWE: %s" % detail)
        self.detail = detail


class DecryptionFailed(Error):
    """Raised when unwrapping a content key or opening a ciphertext fails

    The message is always the same; do not add detail to instances."""

    def __init__(self):
        super().__init__("Failed to decrypt")


class IncompatibleEncrypters(Error, ValueError):
    """Raised when a set of encrypters can not produce one envelope together"""


class UnsupportedAlgorithm(Error, ValueError):
    """Raised when a decrypter is asked to process an envelope whose content
    encryption algorithm it does not implement"""


class KeyLookupError(Error, LookupError):
    """Raised by resolvers when no usable key agreement key can be found for
    an identifier"""


class ResolverLoadError(Error, ValueError):
    """Raised by functions that create a resolver from simple data
    structures"""


class KeyFileError(Error, ValueError):
    """Raised when a secret key file can not be loaded"""
