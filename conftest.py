# Ensure tests import modules from this repository root first, so that
# `import music_edge.*` resolves to the working tree even without an install.
import os
import sys

SERVICE_ROOT = os.path.dirname(__file__)

if SERVICE_ROOT not in sys.path:
    sys.path.insert(0, SERVICE_ROOT)
