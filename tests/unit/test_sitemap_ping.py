"""SitemapPingEngine 유닛 테스트"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from src.engine.exceptions import IndexingTransportError
from src.indexers.sitemap_ping import SitemapPingEngine


PING_URL = "https://www.google.com/ping"


@pytest.fixture
def http_client():
    client = MagicMock()
    client.get_status = AsyncMock(return_value=200)
    return client


@pytest.fixture
def engine(ledger, http_client):
    return SitemapPingEngine(
        ledger,
        http_client,
        ping_url=PING_URL,
        platform_domain="fibidy.com",
        platform_sitemap_path="/server-sitemap-index.xml",
    )


@pytest.mark.asyncio
async def test_ping_success(engine, http_client, ledger):
    result = await engine.ping_sitemap("https://acme.fibidy.com/sitemap.xml")

    assert result.success is True
    assert result.status_code == 200
    http_client.get_status.assert_awaited_once_with(
        PING_URL,
        params={"sitemap": "https://acme.fibidy.com/sitemap.xml"},
        timeout_s=engine.timeout_s,
    )
    assert (await ledger.today_stats()).google_ping.succeeded == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("status_code", [204, 404, 500])
async def test_only_200_is_success(status_code, engine, http_client, ledger):
    http_client.get_status.return_value = status_code

    result = await engine.ping_sitemap("https://acme.fibidy.com/sitemap.xml")

    assert result.success is False
    assert result.status_code == status_code
    assert (await ledger.today_stats()).google_ping.failed == 1


@pytest.mark.asyncio
async def test_transport_error_is_failed_result(engine, http_client, ledger):
    http_client.get_status.side_effect = IndexingTransportError("ConnectError: unreachable")

    result = await engine.ping_sitemap("https://acme.fibidy.com/sitemap.xml")

    assert result.success is False
    assert result.status_code is None
    assert "unreachable" in result.error
    assert (await ledger.today_stats()).google_ping.failed == 1


@pytest.mark.asyncio
async def test_tenant_and_platform_sitemap_urls(engine, http_client):
    tenant = await engine.ping_tenant_sitemap("acme")
    platform = await engine.ping_platform_sitemap()

    assert tenant.sitemap_url == "https://acme.fibidy.com/sitemap.xml"
    assert platform.sitemap_url == "https://fibidy.com/server-sitemap-index.xml"


@pytest.mark.asyncio
async def test_ping_many_sequential(engine, http_client):
    http_client.get_status.side_effect = [200, 500]
    urls = ["https://a.fibidy.com/sitemap.xml", "https://b.fibidy.com/sitemap.xml"]

    results = await engine.ping_many(urls, delay_s=0)

    assert [r.sitemap_url for r in results] == urls
    assert [r.success for r in results] == [True, False]
    sent = [c.kwargs["params"]["sitemap"] for c in http_client.get_status.await_args_list]
    assert sent == urls
