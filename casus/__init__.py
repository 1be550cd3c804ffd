"""Casus — role-playing-game chat relay with a French persona and local dice commands."""

__version__ = "1.0.0"
