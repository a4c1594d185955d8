"""Blood drive donation lifecycle service."""

__version__ = "1.0.0"
