"""ContosoCrafts university catalog backed by a JSON file."""

__version__ = "0.1.0"
