"""IndexNowEngine 유닛 테스트"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from src.engine.exceptions import IndexingTransportError
from src.engine.result import ErrorKind
from src.indexers.index_now import IndexNowEngine


API_KEY = "a1b2c3d4e5f6a7b8"
ENDPOINTS = [
    "https://api.indexnow.org/indexnow",
    "https://www.bing.com/indexnow",
    "https://yandex.com/indexnow",
]
URLS = ["https://acme.fibidy.com", "https://acme.fibidy.com/products"]


def _http_client(statuses):
    """엔드포인트별 응답 (int = 상태 코드, Exception = 전송 실패)"""
    client = MagicMock()

    async def _post(url, payload, *, timeout_s, headers=None):
        outcome = statuses[url]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome, None

    client.post_json = AsyncMock(side_effect=_post)
    return client


def _engine(ledger, http_client, **kwargs):
    kwargs.setdefault("api_key", API_KEY)
    kwargs.setdefault("endpoints", ENDPOINTS)
    return IndexNowEngine(ledger, http_client, **kwargs)


@pytest.mark.asyncio
async def test_one_endpoint_accepting_is_success(ledger):
    http_client = _http_client({ENDPOINTS[0]: 500, ENDPOINTS[1]: 202, ENDPOINTS[2]: 500})
    engine = _engine(ledger, http_client)

    submission = await engine.submit_urls(URLS)

    assert submission.success is True
    assert submission.submitted_urls == 2
    assert [r.endpoint for r in submission.results] == ENDPOINTS
    assert [r.success for r in submission.results] == [False, True, False]

    stats = await ledger.today_stats()
    assert stats.index_now.submitted == 2
    assert stats.index_now.succeeded == 2


@pytest.mark.asyncio
async def test_all_endpoints_failing(ledger):
    http_client = _http_client({
        ENDPOINTS[0]: 403,
        ENDPOINTS[1]: IndexingTransportError("ConnectTimeout: timed out"),
        ENDPOINTS[2]: 422,
    })
    engine = _engine(ledger, http_client)

    submission = await engine.submit_urls(URLS)

    assert submission.success is False
    assert submission.results[1].status_code is None
    assert "ConnectTimeout" in submission.results[1].error
    assert (await ledger.today_stats()).index_now.failed == 2


@pytest.mark.asyncio
async def test_payload_shape(ledger):
    http_client = _http_client({e: 200 for e in ENDPOINTS})
    engine = _engine(ledger, http_client)

    await engine.submit_urls(URLS)

    payload = http_client.post_json.await_args_list[0].args[1]
    assert payload == {
        "host": "acme.fibidy.com",
        "key": API_KEY,
        "keyLocation": f"https://acme.fibidy.com/{API_KEY}.txt",
        "urlList": URLS,
    }


@pytest.mark.asyncio
@pytest.mark.parametrize("api_key", ["", "short"])
async def test_disabled_without_valid_key(api_key, ledger):
    http_client = _http_client({})
    engine = _engine(ledger, http_client, api_key=api_key)

    submission = await engine.submit_urls(URLS)

    assert engine.is_enabled is False
    assert submission.success is False
    assert submission.error_kind == ErrorKind.DISABLED
    http_client.post_json.assert_not_awaited()


@pytest.mark.asyncio
async def test_empty_list_is_noop_success(ledger):
    http_client = _http_client({})
    engine = _engine(ledger, http_client)

    submission = await engine.submit_urls([])

    assert submission.success is True
    assert submission.submitted_urls == 0
    http_client.post_json.assert_not_awaited()


@pytest.mark.asyncio
async def test_truncates_to_max_urls(ledger):
    http_client = _http_client({e: 202 for e in ENDPOINTS})
    engine = _engine(ledger, http_client, max_urls=2)

    submission = await engine.submit_urls(URLS + ["https://acme.fibidy.com/p/extra"])

    assert submission.submitted_urls == 2
    assert http_client.post_json.await_args.args[1]["urlList"] == URLS


@pytest.mark.asyncio
async def test_invalid_first_url(ledger):
    http_client = _http_client({})
    engine = _engine(ledger, http_client)

    submission = await engine.submit_urls(["acme.fibidy.com/no-scheme"])

    assert submission.success is False
    assert submission.error_kind == ErrorKind.INVALID_URL
    http_client.post_json.assert_not_awaited()


def test_key_preview_masks_key(ledger):
    engine = _engine(ledger, _http_client({}))

    assert engine.key_preview() == "a1b2...a7b8"


@pytest.mark.parametrize(
    "endpoint,name",
    [
        ("https://www.bing.com/indexnow", "Bing"),
        ("https://yandex.com/indexnow", "Yandex"),
        ("https://api.indexnow.org/indexnow", "IndexNow"),
        ("https://search.example/indexnow", "https://search.example/indexnow"),
    ],
)
def test_endpoint_name(endpoint, name):
    assert IndexNowEngine.endpoint_name(endpoint) == name
