"""Periodic health reports for a blockchain indexing pipeline."""

__version__ = "0.1.0"
