"""Shelfmark - barcode inventory service for a personal book catalog."""

__version__ = "0.1.0"
