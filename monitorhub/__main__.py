"""Allow running as ``python -m monitorhub``."""

import sys

from monitorhub.cli import main

if __name__ == "__main__":
    sys.exit(main())
