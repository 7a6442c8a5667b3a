"""VERSE: version engine for multi-module repositories."""

__version__ = "0.4.0"
