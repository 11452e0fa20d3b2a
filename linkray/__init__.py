"""LinkRay: AI-assisted website trust assessment."""

__version__ = "0.1.0"
