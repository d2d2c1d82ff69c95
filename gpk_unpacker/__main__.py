"""Allow running as `python -m gpk_unpacker`."""

import sys

from gpk_unpacker.cli import main

if __name__ == "__main__":
    sys.exit(main())
