# SPDX-FileCopyrightText: Christian Amsüss and the aiocoap contributors
#
# SPDX-License-Identifier: MIT

"""This module provides interface base classes for the capabilities that go
into creating and opening envelopes. It describes `abstract base classes`_ for
encrypters (one per recipient, holding what is needed to wrap a content key
for that recipient) and decrypters (holding what one recipient needs to
unwrap it).

.. _`abstract base classes`: https://docs.python.org/3/library/abc"""

from __future__ import annotations

import abc
from typing import Optional

from .keywrap import Recipient


class Encrypter(metaclass=abc.ABCMeta):
    """Capability to make an envelope readable to one recipient

    All encrypters that go into one envelope need to agree on :attr:`enc`."""

    #: Key management algorithm, as it appears in the recipient header (or in
    #: the protected header for direct encryption)
    alg: str
    #: Content encryption algorithm
    enc: str

    @property
    def skid(self) -> Optional[str]:
        """Identifier of the sender's key that goes into the protected header,
        if the encrypter authenticates the sender"""
        return None

    @abc.abstractmethod
    def wrap_cek(self, cek: bytes) -> Optional[Recipient]:
        """Produce the recipient entry that makes ``cek`` available to the
        recipient, or None if the recipient needs no entry.

        This must be safe to call concurrently with other encrypters' calls."""


class Decrypter(metaclass=abc.ABCMeta):
    """Capability of one recipient to open envelopes"""

    alg: str
    enc: str

    @abc.abstractmethod
    def unwrap_cek(self, recipient: Optional[Recipient]) -> bytes:
        """Recover the content encryption key from a recipient entry whose
        header has already been merged with the protected header

        Must raise :class:`~xc20pjwe.error.InvalidEnvelope` for structurally
        unusable entries and :class:`~xc20pjwe.error.DecryptionFailed` for
        anything else that keeps it from returning the key."""
