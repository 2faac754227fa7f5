"""Allow ``python -m azure_text_processor``."""

import sys

from .cli import main

if __name__ == "__main__":
    sys.exit(main())
