"""javagadgets: Java inspections with quick fixes."""

__version__ = "0.1.0"
