"""Package pricing and quote-versioning engine."""

__version__ = "0.1.0"
