# SPDX-FileCopyrightText: Christian Amsüss and the aiocoap contributors
#
# SPDX-License-Identifier: MIT

"""Container module for command line utilities bundled with xc20pjwe.

These modules are not considered to be a part of the xc20pjwe API, and are
thus subject to change even when the project reaches a stable version number.

* ``xc20pjwe-keygen`` (:mod:`xc20pjwe.cli.keygen`) manages secret key files.
* ``xc20pjwe`` (:mod:`xc20pjwe.cli.jwe`) encrypts and decrypts envelopes.
"""
