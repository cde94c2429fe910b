"""Octchat: signature-gated real-time message relay."""

__version__ = "1.0.0"
