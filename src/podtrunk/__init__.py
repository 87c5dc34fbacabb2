"""Publishes validated podspecs to the index repository via pull requests."""

__version__ = "0.1.0"
