"""Plugmart - transactional manager for file-based plugin marketplaces."""

__version__ = "0.1.0"
