"""Allow ``python -m motbot``."""

import sys

from motbot.cli import main

sys.exit(main())
