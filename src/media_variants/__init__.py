"""Media variant generation and reconciliation for CMS image assets."""

__version__ = "0.1.0"
