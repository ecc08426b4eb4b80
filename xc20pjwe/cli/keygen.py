# SPDX-FileCopyrightText: Christian Amsüss and the aiocoap contributors
#
# SPDX-License-Identifier: MIT

"""A tool for creating X25519 key pairs for use with xc20pjwe

Note that this tool operates on secrets stored in unencrypted files, protected
by restrictively set file system permissions. While this is common practice
with many tools in the UNIX world, it might be surprising to users coming from
multi-factor environments."""

import argparse
import json
import logging
from pathlib import Path

import xc20pjwe.defaults
from xc20pjwe.util.cli import (
    add_global_arguments,
    configure_logging,
    verbosity_from_arguments,
)

log = logging.getLogger("xc20pjwe.keygen")


def build_parser():
    p = argparse.ArgumentParser(description=__doc__)
    add_global_arguments(p)

    subparsers = p.add_subparsers(required=True, dest="subcommand")
    generate = subparsers.add_parser(
        "generate",
        help="This generates an"
        " X25519 key, stores it in a key file that is only readable by the"
        " user, and prints the corresponding public key as a JWK that can be"
        " passed to senders.",
    )
    generate.add_argument("keyfile", help="File to store the secret key in", type=Path)
    generate.add_argument("--kid", help="Key identifier placed in the JWK")

    public = subparsers.add_parser(
        "public",
        help="Print the public key of an existing key file as a JWK",
    )
    public.add_argument("keyfile", help="File the secret key is stored in", type=Path)
    public.add_argument("--kid", help="Key identifier placed in the JWK")

    return p


def main(args=None):
    p = build_parser()

    args = p.parse_args(args)
    configure_logging(verbosity_from_arguments(args), args.color)

    missmods = xc20pjwe.defaults.jwe_missing_modules()
    if missmods:
        p.error(
            f"Dependencies missing, consider reinstalling xc20pjwe. Missing modules: {', '.join(missmods)}"
        )

    from xc20pjwe.error import KeyFileError
    from xc20pjwe.keys import SecretKeyFile

    if args.subcommand == "generate":
        try:
            key = SecretKeyFile.generate(args.keyfile)
        except FileExistsError:
            raise p.error("Output file already exists")
        log.info("Stored new secret key in %s", args.keyfile)
    elif args.subcommand == "public":
        try:
            key = SecretKeyFile.load(args.keyfile)
        except KeyFileError as e:
            raise p.error(str(e))
    else:
        raise RuntimeError(f"Unimplemented subcommand {args.subcommand=}")

    print(json.dumps(key.public_jwk(args.kid)))


if __name__ == "__main__":
    main()
