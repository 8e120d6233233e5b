"""Allow ``python -m codeatlas``."""

import sys

from codeatlas.cli import main

sys.exit(main())
