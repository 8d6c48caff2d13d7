"""Version information for status_table."""

__version__ = "0.8.0"
