"""Allow running as ``python -m marvex``."""

from .cli import main

main()
