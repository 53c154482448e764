"""Tests for the subgraph pairs client."""

from __future__ import annotations

import pytest
import requests

from tokenlist_curator.config.settings import SubgraphConfig
from tokenlist_curator.errors import TransportError
from tokenlist_curator.ingestion.subgraph import SubgraphClient
from tokenlist_curator.monitoring.metrics import METRICS

URL = "https://subgraph.example/uniswap"

PAIR = {
    "id": "0xpair",
    "reserveUSD": "2500000.5",
    "token0": {"id": "0xc02aaa39b223fe8d0a0e5c4f27ead9083c756cc2", "symbol": "WETH", "name": "Wrapped Ether", "decimals": "18"},
    "token1": {"id": "0x" + "1" * 40, "symbol": "TKX", "name": "Token X", "decimals": "6"},
}


class FakeResponse:
    def __init__(self, payload, status_code: int = 200) -> None:
        self._payload = payload
        self.status_code = status_code

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"status {self.status_code}", response=self)

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


class FakeSession:
    def __init__(self, responses) -> None:
        self._responses = list(responses)
        self.calls: list[dict] = []

    def post(self, url, json=None, headers=None, timeout=None):
        self.calls.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def _client(session: FakeSession, **overrides) -> SubgraphClient:
    config = SubgraphConfig(
        http_timeout=3,
        max_attempts=3,
        backoff_min_seconds=0,
        backoff_max_seconds=0,
        **overrides,
    )
    return SubgraphClient(config=config, session=session)


def test_fetch_trading_pairs_parses_payload() -> None:
    METRICS.reset()
    session = FakeSession([FakeResponse({"data": {"pairs": [PAIR, "garbage", {"id": "0xbad", "reserveUSD": "x"}]}})])
    pairs = _client(session).fetch_trading_pairs(URL, "query pairs { pairs { id } }")

    assert [pair.id for pair in pairs] == ["0xpair"]
    assert pairs[0].reserve_usd == pytest.approx(2500000.5)
    assert METRICS.get("pairs.malformed") == 2
    assert METRICS.get("pairs.fetched") == 1
    call = session.calls[0]
    assert call["url"] == URL
    assert call["json"] == {"operationName": "pairs", "variables": {}, "query": "query pairs { pairs { id } }"}
    assert call["timeout"] == 3
    assert call["headers"]["User-Agent"] == "tokenlist-curator/1.0"
    METRICS.reset()


def test_fetch_uses_cache_for_repeated_queries() -> None:
    session = FakeSession([FakeResponse({"data": {"pairs": [PAIR]}})])
    client = _client(session)

    client.fetch_trading_pairs(URL, "q")
    client.fetch_trading_pairs(URL, "q")

    assert len(session.calls) == 1


def test_empty_pairs_array_returns_empty_list() -> None:
    session = FakeSession([FakeResponse({"data": {"pairs": []}})])
    assert _client(session).fetch_trading_pairs(URL, "q") == []


@pytest.mark.parametrize("payload", [{}, {"data": None}, {"data": {}}, {"data": {"pairs": None}}])
def test_missing_pairs_raise_transport_error(payload) -> None:
    session = FakeSession([FakeResponse(payload)])
    with pytest.raises(TransportError):
        _client(session).fetch_trading_pairs(URL, "q")
    assert len(session.calls) == 1


@pytest.mark.parametrize("status", [400, 404])
def test_client_errors_are_not_retried(status: int) -> None:
    session = FakeSession([FakeResponse({}, status_code=status)] * 3)
    with pytest.raises(TransportError):
        _client(session).fetch_trading_pairs(URL, "q")
    assert len(session.calls) == 1


def test_rate_limit_is_retried() -> None:
    session = FakeSession([FakeResponse({}, status_code=429), FakeResponse({"data": {"pairs": [PAIR]}})])
    pairs = _client(session).fetch_trading_pairs(URL, "q")

    assert len(pairs) == 1
    assert len(session.calls) == 2


def test_transient_failures_are_retried() -> None:
    session = FakeSession(
        [
            requests.ConnectionError("reset"),
            FakeResponse({}, status_code=502),
            FakeResponse({"data": {"pairs": [PAIR]}}),
        ]
    )
    pairs = _client(session).fetch_trading_pairs(URL, "q")

    assert len(pairs) == 1
    assert len(session.calls) == 3


def test_exhausted_retries_raise_transport_error() -> None:
    session = FakeSession([requests.Timeout("slow")] * 3)
    with pytest.raises(TransportError):
        _client(session).fetch_trading_pairs(URL, "q")
    assert len(session.calls) == 3


@pytest.mark.parametrize(
    "payload",
    [
        {"errors": [{"message": "indexing_error"}]},
        ["not", "an", "object"],
        {"data": {"pairs": {"id": "0xpair"}}},
        ValueError("bad json"),
    ],
)
def test_unusable_responses_raise_transport_error(payload) -> None:
    session = FakeSession([FakeResponse(payload)])
    with pytest.raises(TransportError):
        _client(session).fetch_trading_pairs(URL, "q")
