# SPDX-FileCopyrightText: Christian Amsüss and the aiocoap contributors
#
# SPDX-License-Identifier: MIT

"""Tools not directly related with key agreement that are needed to provide
the API

These are the thin encoding helpers around the envelope wire shape: the
unpadded base64url alphabet JOSE uses for all binary fields, and the encoding
of protected headers. They are only part of the stable API to the extent they
are used by other APIs.
"""

import base64
import binascii
import json
import re

_B64URL = re.compile(r"[A-Za-z0-9_-]*")


def b64encode(data: bytes) -> str:
    """Encode bytes in the URL-safe base64 alphabet without padding

    >>> b64encode(bytes.fromhex("000102fbff"))
    'AAEC-_8'
    """
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def b64decode(text: str) -> bytes:
    """Decode unpadded (or padded) URL-safe base64

    Raises ValueError on anything that is not base64url, including the
    standard alphabet's ``+`` and ``/``."""
    if not isinstance(text, str):
        raise ValueError("Expected a string, got %s" % type(text).__name__)
    stripped = text.rstrip("=")
    if _B64URL.fullmatch(stripped) is None:
        raise ValueError("Invalid characters in base64url field")
    raw = stripped.encode("ascii")
    try:
        return base64.urlsafe_b64decode(raw + b"=" * (-len(raw) % 4))
    except binascii.Error as e:
        raise ValueError("Invalid base64url data: %s" % e) from e


def encode_text(text: str) -> str:
    """base64url of a string's UTF-8 encoding, as used for apu and apv"""
    return b64encode(text.encode("utf8"))


def encode_header(header: dict) -> str:
    """Serialize a protected header the way it goes into an envelope"""
    return b64encode(json.dumps(header, separators=(",", ":")).encode("utf8"))


def decode_header(encoded: str) -> dict:
    """Reverse :func:`encode_header`

    Raises ValueError if the data is not a base64url encoded JSON object."""
    raw = b64decode(encoded)
    try:
        header = json.loads(raw.decode("utf8"))
    except UnicodeDecodeError as e:
        raise ValueError("Header is not UTF-8") from e
    except RecursionError:
        raise ValueError("Header is not a JSON object") from None
    # json.JSONDecodeError is a ValueError already
    if not isinstance(header, dict):
        raise ValueError("Header is not a JSON object")
    return header
