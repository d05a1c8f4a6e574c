"""Allow ``python -m ami_export``."""

import sys

from .cli import main

sys.exit(main())
