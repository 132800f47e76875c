"""Storefront SEO indexer."""

__version__ = "1.0.0"
