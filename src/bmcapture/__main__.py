"""Allow ``python -m bmcapture``."""

from bmcapture.cli import main

main()
