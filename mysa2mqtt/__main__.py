"""Run the bridge with ``python -m mysa2mqtt``."""

from .main import main

main()
