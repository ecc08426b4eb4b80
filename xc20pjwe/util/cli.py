# SPDX-FileCopyrightText: Christian Amsüss and the aiocoap contributors
#
# SPDX-License-Identifier: MIT

"""Helpers shared by the command line tools

Note that these are not particular to envelopes, but are used by all of the
xc20pjwe tools and thus shared here."""

import argparse
import logging

import xc20pjwe.meta


class ActionNoYes(argparse.Action):
    """Simple action that automatically manages --{,no-}something style options"""

    # adapted from Omnifarious's code on
    # https://stackoverflow.com/questions/9234258/in-python-argparse-is-it-possible-to-have-paired-no-something-something-arg#9236426
    def __init__(self, option_strings, dest, default=True, required=False, help=None):
        assert len(option_strings) == 1, "ActionNoYes takes only one option name"
        assert option_strings[0].startswith("--"), (
            "ActionNoYes options must start with --"
        )
        super().__init__(
            ["--" + option_strings[0][2:], "--no-" + option_strings[0][2:]],
            dest,
            nargs=0,
            const=None,
            default=default,
            required=required,
            help=help,
        )

    def __call__(self, parser, namespace, values, option_string=None):
        if option_string.startswith("--no-"):
            setattr(namespace, self.dest, False)
        else:
            setattr(namespace, self.dest, True)


def add_global_arguments(p):
    """Add the --version, -v, -q and --color options to an argparse parser"""
    p.add_argument(
        "--version", action="version", version="%(prog)s " + xc20pjwe.meta.version
    )
    p.add_argument(
        "-v",
        "--verbose",
        help="Increase the debug output",
        action="count",
    )
    p.add_argument(
        "-q",
        "--quiet",
        help="Decrease the debug output",
        action="count",
    )
    p.add_argument(
        "--color",
        help="Color log output (default on if all required modules are installed)",
        default=None,
        action=ActionNoYes,
    )


def configure_logging(verbosity, color=None):
    """Set up logging for a tool run with ``-v`` given ``verbosity`` times
    (negative for ``-q``)"""
    if color is not False:
        try:
            import colorlog
        except ImportError:
            color = False
        else:
            colorlog.basicConfig()
    if not color:
        logging.basicConfig()

    if verbosity <= -2:
        logging.getLogger("xc20pjwe").setLevel(logging.CRITICAL + 1)
    elif verbosity == -1:
        logging.getLogger("xc20pjwe").setLevel(logging.ERROR)
    elif verbosity == 0:
        logging.getLogger("xc20pjwe").setLevel(logging.WARNING)
    elif verbosity == 1:
        logging.getLogger("xc20pjwe").setLevel(logging.INFO)
    else:
        logging.getLogger("xc20pjwe").setLevel(logging.DEBUG)


def verbosity_from_arguments(args):
    return (args.verbose or 0) - (args.quiet or 0)
