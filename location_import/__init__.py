"""Bulk import of directory locations from CSV / Excel files."""

__version__ = "0.1.0"
