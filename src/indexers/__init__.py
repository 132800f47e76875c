"""Indexing engines - export only."""

from .google_auth import ServiceAccountTokenProvider
from .google_indexing import GoogleIndexingEngine
from .http_client import SharedHttpClient, get_shared_http_client, shutdown_shared_http_client
from .index_now import IndexNowEngine
from .sitemap_ping import SitemapPingEngine

__all__ = [
    "GoogleIndexingEngine",
    "IndexNowEngine",
    "SitemapPingEngine",
    "ServiceAccountTokenProvider",
    "SharedHttpClient",
    "get_shared_http_client",
    "shutdown_shared_http_client",
]
