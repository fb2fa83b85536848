"""Face recognition attendance service."""

__version__ = "1.0.0"
