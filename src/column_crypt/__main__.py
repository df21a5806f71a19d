"""Entry point for ``python -m column_crypt``."""

import sys

from column_crypt.cli import main

if __name__ == "__main__":
    sys.exit(main())
