"""toolrep - collect tool metadata from multiple sources and track reputation scores."""

__version__ = "0.1.0"
