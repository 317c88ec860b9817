"""Allow ``python -m nodeform``."""

import sys

from nodeform.cli import main

sys.exit(main())
