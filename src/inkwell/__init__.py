"""Inkwell blog platform API."""

__version__ = "0.1.0"
