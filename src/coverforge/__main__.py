"""coverforge CLI entry point.

This module enables running coverforge as:
    python -m coverforge <command>
"""

from coverforge.cli import main

if __name__ == "__main__":
    main()
