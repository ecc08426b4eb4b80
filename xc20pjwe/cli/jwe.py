# SPDX-FileCopyrightText: Christian Amsüss and the aiocoap contributors
#
# SPDX-License-Identifier: MIT

"""xc20pjwe is a command line tool for encrypting data to X25519 keys and
decrypting the resulting JWE envelopes

The ``encrypt`` subcommand reads the plaintext from standard input and writes
the envelope in its JSON serialization to standard output; ``decrypt`` does
the reverse. Public keys are given as JWK files as printed by
``xc20pjwe-keygen``."""

import argparse
import logging
import sys
from pathlib import Path

import xc20pjwe.defaults
from xc20pjwe.util.cli import (
    add_global_arguments,
    configure_logging,
    verbosity_from_arguments,
)

log = logging.getLogger("xc20pjwe.tool")


def _positive(text):
    value = int(text)
    if value < 1:
        raise argparse.ArgumentTypeError("must be at least 1")
    return value


def build_parser():
    p = argparse.ArgumentParser(description=__doc__)
    add_global_arguments(p)

    subparsers = p.add_subparsers(required=True, dest="subcommand")

    encrypt = subparsers.add_parser(
        "encrypt", help="Encrypt standard input to one or more public keys"
    )
    encrypt.add_argument(
        "--to",
        help="JWK file of a recipient's public key (can be given multiple times)",
        action="append",
        type=Path,
        required=True,
        metavar="PUBKEY_JWK_FILE",
    )
    encrypt.add_argument(
        "--sender-key",
        help="Secret key file of the sender; authenticates the envelope with"
        " ECDH-1PU instead of encrypting anonymously",
        type=Path,
        metavar="KEYFILE",
    )
    encrypt.add_argument(
        "--skid", help="Identifier of the sender key, placed in the protected header"
    )
    encrypt.add_argument(
        "--aad", help="Additional authenticated data (sent in the clear)"
    )

    decrypt = subparsers.add_parser(
        "decrypt", help="Decrypt an envelope read from standard input"
    )
    decrypt.add_argument(
        "--key",
        help="Secret key file of the recipient",
        type=Path,
        required=True,
        metavar="KEYFILE",
    )
    decrypt.add_argument(
        "--sender",
        help="JWK file of the sender's public key; required for envelopes"
        " encrypted with a sender key",
        type=Path,
        metavar="PUBKEY_JWK_FILE",
    )
    decrypt.add_argument(
        "--max-attempts",
        help="Give up after trying this many recipient entries",
        type=_positive,
    )

    return p


def encrypt(args, p):
    from xc20pjwe.encryption import X25519AuthEncrypter, X25519Encrypter
    from xc20pjwe.jwe import create_jwe
    from xc20pjwe.keys import SecretKeyFile, load_public_jwk

    if args.skid is not None and args.sender_key is None:
        p.error("--skid can only be used along with --sender-key")

    recipients = [load_public_jwk(filename) for filename in args.to]
    if args.sender_key is None:
        encrypters = [X25519Encrypter(key, kid) for (key, kid) in recipients]
    else:
        sender = SecretKeyFile.load(args.sender_key)
        encrypters = [
            X25519AuthEncrypter(key, sender.secret_key, kid=kid, skid=args.skid)
            for (key, kid) in recipients
        ]

    aad = args.aad.encode("utf8") if args.aad is not None else None
    envelope = create_jwe(sys.stdin.buffer.read(), encrypters, aad=aad)
    log.info("Encrypted for %d recipient(s)", len(encrypters))
    print(envelope.to_json())


def decrypt(args, p):
    from xc20pjwe.encryption import X25519AuthDecrypter, X25519Decrypter
    from xc20pjwe.jwe import decrypt_jwe
    from xc20pjwe.keys import SecretKeyFile, load_public_jwk

    key = SecretKeyFile.load(args.key)
    if args.sender is None:
        decrypter = X25519Decrypter(key.secret_key)
    else:
        (sender_public, _) = load_public_jwk(args.sender)
        decrypter = X25519AuthDecrypter(key.secret_key, sender_public)

    plaintext = decrypt_jwe(
        sys.stdin.read(), decrypter, max_attempts=args.max_attempts
    )
    sys.stdout.buffer.write(plaintext)
    sys.stdout.flush()


def main(args=None):
    p = build_parser()

    args = p.parse_args(args)
    configure_logging(verbosity_from_arguments(args), args.color)

    missmods = xc20pjwe.defaults.jwe_missing_modules()
    if missmods:
        p.error(
            f"Dependencies missing, consider reinstalling xc20pjwe. Missing modules: {', '.join(missmods)}"
        )

    from xc20pjwe.error import Error

    try:
        if args.subcommand == "encrypt":
            encrypt(args, p)
        elif args.subcommand == "decrypt":
            decrypt(args, p)
        else:
            raise RuntimeError(f"Unimplemented subcommand {args.subcommand=}")
    except Error as e:
        log.debug("Operation failed", exc_info=True)
        sys.exit(str(e))


if __name__ == "__main__":
    main()
