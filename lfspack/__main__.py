r"""
Run ``python -m lfspack``; same as ``lfspack`` command
"""

# Standard library
import sys

# Local imports
from .cli import main


# Run it
if __name__ == "__main__":
    sys.exit(main())
