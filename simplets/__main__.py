"""Entry point for ``python -m simplets``"""

import sys

from simplets.cli import main

if __name__ == "__main__":
    sys.exit(main())
