"""Utilities package - Flat structure (no nested directories)"""

# URL utilities
from .url_utils import (
    extract_host,
    extract_product_ref,
    extract_tenant_slug,
    platform_sitemap_url,
    product_url,
    products_listing_url,
    tenant_base_url,
    tenant_page_urls,
    tenant_sitemap_url,
)

# Date utilities
from .date_utils import date_days_ago, seconds_until_midnight, today_str

__all__ = [
    "extract_host",
    "extract_product_ref",
    "extract_tenant_slug",
    "platform_sitemap_url",
    "product_url",
    "products_listing_url",
    "tenant_base_url",
    "tenant_page_urls",
    "tenant_sitemap_url",
    "date_days_ago",
    "seconds_until_midnight",
    "today_str",
]
