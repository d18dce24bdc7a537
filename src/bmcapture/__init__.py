"""bmcapture: capture the page you are viewing into a bookmark manager."""

__version__ = "0.1.0"
