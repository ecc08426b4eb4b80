# SPDX-FileCopyrightText: Christian Amsüss and the aiocoap contributors
#
# SPDX-License-Identifier: MIT

"""Secret X25519 keys stored in files

Keys are stored as JSON Web Keys (``{"kty": "OKP", "crv": "X25519", "x": ...,
"d": ...}``) in files that only their owner can read. Public keys are exchanged
as the same structure without ``d``."""

import json
import os
from pathlib import Path
from typing import Optional, Tuple

from .algorithms import (
    CURVE,
    X25519_BYTES,
    KeyPair,
    generate_keypair,
    keypair_from_secret,
)
from .error import KeyFileError
from .util import b64decode, b64encode


def _decode_jwk_member(jwk: dict, name: str) -> bytes:
    try:
        value = b64decode(jwk[name])
    except KeyError:
        raise KeyFileError("Key lacks member %r" % name)
    except ValueError as e:
        raise KeyFileError("Key member %r is not base64url: %s" % (name, e))
    if len(value) != X25519_BYTES:
        raise KeyFileError("Key member %r has the wrong length" % name)
    return value


def public_key_from_jwk(jwk) -> bytes:
    """Extract the raw public key from a JWK of an X25519 key"""
    if not isinstance(jwk, dict) or jwk.get("kty") != "OKP" or jwk.get("crv") != CURVE:
        raise KeyFileError("Key is not an OKP key on %s" % CURVE)
    return _decode_jwk_member(jwk, "x")


def load_public_jwk(filename: Path) -> Tuple[bytes, Optional[str]]:
    """Load a public key from a JWK file

    Returns the raw public key and the key's ``kid`` (or None)."""
    try:
        with open(filename) as f:
            jwk = json.load(f)
    except (OSError, ValueError) as e:
        raise KeyFileError("Can not read key from %s: %s" % (filename, e))
    public_key = public_key_from_jwk(jwk)
    kid = jwk.get("kid")
    if kid is not None and not isinstance(kid, str):
        raise KeyFileError("Key identifier is not a string")
    return public_key, kid


class SecretKeyFile:
    """A secret key along with its public key, as stored in a key file"""

    def __init__(self, keypair: KeyPair):
        self.keypair = keypair

    def __repr__(self):
        return "<%s public_key=%s>" % (type(self).__name__, self.keypair.public_key.hex())

    @property
    def public_key(self) -> bytes:
        return self.keypair.public_key

    @property
    def secret_key(self) -> bytes:
        return self.keypair.secret_key

    @classmethod
    def from_jwk(cls, jwk) -> "SecretKeyFile":
        public = public_key_from_jwk(jwk)
        secret = _decode_jwk_member(jwk, "d")
        keypair = keypair_from_secret(secret)
        if keypair.public_key != public:
            raise KeyFileError("Public part does not match secret part of the key")
        return cls(keypair)

    @classmethod
    def load(cls, filename: Path) -> "SecretKeyFile":
        """Load a key from a file, asserting that the file is not group/world
        readable"""
        filename = Path(filename)
        try:
            mode = filename.stat().st_mode
        except OSError as e:
            raise KeyFileError("Can not access %s: %s" % (filename, e))
        if mode & 0o077 != 0:
            raise KeyFileError(
                "Refusing to load private key that is group or world accessible"
            )
        try:
            with filename.open() as f:
                jwk = json.load(f)
        except (OSError, ValueError) as e:
            raise KeyFileError("Can not read key from %s: %s" % (filename, e))
        return cls.from_jwk(jwk)

    @classmethod
    def generate(cls, filename: Optional[Path] = None) -> "SecretKeyFile":
        """Generate a key, and store it in a new file if a name is given

        Raises FileExistsError rather than overwriting an existing file."""
        s = cls(generate_keypair())

        if filename is not None:
            flags = os.O_WRONLY | os.O_CREAT | os.O_EXCL
            if hasattr(os, "O_BINARY"):
                flags |= os.O_BINARY
            descriptor = os.open(filename, flags, mode=0o600)
            try:
                with open(descriptor, "w") as keyfile:
                    json.dump(s.secret_jwk(), keyfile)
            except Exception:
                Path(filename).unlink()
                raise

        return s

    def public_jwk(self, kid: Optional[str] = None) -> dict:
        jwk = {"kty": "OKP", "crv": CURVE, "x": b64encode(self.public_key)}
        if kid is not None:
            jwk["kid"] = kid
        return jwk

    def secret_jwk(self) -> dict:
        jwk = self.public_jwk()
        jwk["d"] = b64encode(self.secret_key)
        return jwk
