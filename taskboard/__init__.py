"""Task lifecycle and assignment engine for organization portals."""

__version__ = "1.0.0"
