# SPDX-FileCopyrightText: Christian Amsüss and the aiocoap contributors
#
# SPDX-License-Identifier: MIT

"""Non-fixture utilities shared between tests"""

import sys
import unittest
from pathlib import Path

import xc20pjwe.defaults

if "coverage" in sys.modules:
    PYTHON_PREFIX = [sys.executable, "-m", "coverage", "run"]
else:
    PYTHON_PREFIX = [sys.executable]

#: Directory the xc20pjwe package is in, for running tools from a checkout
SOURCE_ROOT = Path(xc20pjwe.__file__).parent.parent

jwe_modules = xc20pjwe.defaults.jwe_missing_modules()
_skip_unless_jwe = unittest.skipIf(
    jwe_modules, "Modules missing for running JWE tests: %s" % (jwe_modules,)
)

resolver_modules = xc20pjwe.defaults.resolver_missing_modules()
_skip_unless_resolver = unittest.skipIf(
    jwe_modules or resolver_modules,
    "Modules missing for running resolver tests: %s"
    % (jwe_modules + resolver_modules,),
)
