#!/usr/bin/env python3

# SPDX-FileCopyrightText: Christian Amsüss and the aiocoap contributors
#
# SPDX-License-Identifier: MIT

from setuptools import setup, find_packages, Command

name = "xc20pjwe"
version = "0.2.0"
description = "Multi-recipient JWE envelopes with XChaCha20-Poly1305 and X25519"

with open("xc20pjwe/meta.py") as metafile:
    if 'version = "%s"' % version not in metafile.read():
        raise RuntimeError("Version in setup.py and xc20pjwe/meta.py differ")


class Cite(Command):
    description = """Print how to cite xc20pjwe in a publication"""

    user_options = [("bibtex", None, "Output citation data as bibtex")]
    boolean_options = ["bibtex"]

    def initialize_options(self):
        self.bibtex = False

    def finalize_options(self):
        pass

    def run(self):
        if self.bibtex:
            print(self.bibtex_text)
        else:
            print(self.plain_text)

    plain_text = """xc20pjwe contributors. xc20pjwe: XChaCha20-Poly1305 JWE envelopes for Python. Version %s.""" % version

    bibtex_text = """@Misc{,
        author = {xc20pjwe contributors},
        title = {{xc20pjwe}: XChaCha20-Poly1305 JWE envelopes for Python},
        note = {Version %s},
        }""" % version


setup(
    name=name,
    version=version,
    description=description,
    license="MIT",
    python_requires=">=3.8",
    packages=find_packages(include=["xc20pjwe", "xc20pjwe.*"]),
    install_requires=[
        "cryptography >= 41.0",
        "pynacl >= 1.5",
    ],
    extras_require={
        "resolver": ["base58 >= 2.1"],
        "prettyprint": ["colorlog"],
        "all": ["base58 >= 2.1", "colorlog"],
        "tests": ["base58 >= 2.1", "pytest"],
    },
    entry_points={
        "console_scripts": [
            "xc20pjwe = xc20pjwe.cli.jwe:main",
            "xc20pjwe-keygen = xc20pjwe.cli.keygen:main",
        ],
    },
    cmdclass={
        "cite": Cite,
    },
)
