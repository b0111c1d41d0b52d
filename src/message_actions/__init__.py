"""Detect planning actions in wedding vendor messages."""

__version__ = "0.1.0"
