"""Client-side form for collecting missing client information."""

__version__ = "0.1.0"
