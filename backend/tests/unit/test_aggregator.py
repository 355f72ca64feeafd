"""Tests for depositor aggregation and account snapshot reads against a stubbed upstream."""

import asyncio
import json
import sys
from pathlib import Path

import httpx
import pytest

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from vaultwatch.aggregator import aggregate_depositors, fetch_account_snapshot
from vaultwatch.services.hyperliquid import (
    HyperliquidClient,
    HyperliquidNetworkError,
    HyperliquidUpstreamError,
    InvalidRequestError,
)

VAULT = "0x250ca707028959f86c92e410235856622d27306f"


def run_with_upstream(handler, coro_factory):
    """Run `coro_factory(client)` against a MockTransport-backed client."""
    requests: list[httpx.Request] = []

    def recording_handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return handler(request)

    async def run():
        async with HyperliquidClient(transport=httpx.MockTransport(recording_handler)) as client:
            return await coro_factory(client)

    return asyncio.run(run()), requests


@pytest.mark.parametrize("address", [None, "", "   "])
def test_missing_address_fails_without_upstream_call(address) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("upstream must not be called")

    with pytest.raises(InvalidRequestError) as exc_info:
        run_with_upstream(handler, lambda client: aggregate_depositors(client, address))

    assert str(exc_info.value) == "Missing vault address"
    assert exc_info.value.status_code == 400


def test_sends_vault_details_query_without_cache() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"followers": []})

    _, requests = run_with_upstream(handler, lambda client: aggregate_depositors(client, VAULT))

    assert len(requests) == 1
    request = requests[0]
    assert request.method == "POST"
    assert request.url.path == "/info"
    assert json.loads(request.content) == {"type": "vaultDetails", "vaultAddress": VAULT}
    assert request.headers["cache-control"] == "no-store"


def test_upstream_status_is_carried() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, text="unavailable")

    with pytest.raises(HyperliquidUpstreamError) as exc_info:
        run_with_upstream(handler, lambda client: aggregate_depositors(client, VAULT))

    assert exc_info.value.status_code == 503
    assert str(exc_info.value) == "Hyperliquid API error: 503"


def test_transport_failure_is_network_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(HyperliquidNetworkError) as exc_info:
        run_with_upstream(handler, lambda client: aggregate_depositors(client, VAULT))

    assert exc_info.value.status_code is None


@pytest.mark.parametrize("body", [b"null", b"", b"  "])
def test_empty_body_is_empty_vault(body) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=body)

    result, _ = run_with_upstream(handler, lambda client: aggregate_depositors(client, VAULT))

    assert result.followers == ()
    assert result.to_response() == {"followers": []}


def test_invalid_json_is_network_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"<html>")

    with pytest.raises(HyperliquidNetworkError):
        run_with_upstream(handler, lambda client: aggregate_depositors(client, VAULT))


def test_undecodable_body_is_network_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b'{"x": "\xff\xfe"}')

    with pytest.raises(HyperliquidNetworkError):
        run_with_upstream(handler, lambda client: fetch_account_snapshot(client, VAULT))


def test_aggregates_followers() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={
                "vaultAddress": VAULT,
                "name": "DeepSeek V3.1",
                "leader": "0xc20ac4dc4188660cbf555448af52694ca62b0734",
                "followers": [
                    {"vaultEquity": "500", "pnl": "50", "allTimePnl": "90", "daysFollowing": 30.2},
                    {"user": "0xf1", "vaultEquity": "1100", "pnl": "100", "allTimePnl": "100", "daysFollowing": "5.9"},
                    {"user": "0xf2", "vaultEquity": "40", "pnl": "60", "allTimePnl": "60", "daysFollowing": -3.7},
                ],
            },
        )

    result, _ = run_with_upstream(handler, lambda client: aggregate_depositors(client, VAULT))
    body = result.to_response()

    assert body["vault"] == VAULT
    assert body["name"] == "DeepSeek V3.1"
    assert body["leader"] == "0xc20ac4dc4188660cbf555448af52694ca62b0734"
    assert [f["user"] for f in body["followers"]] == ["Leader", "0xf1", "0xf2"]
    assert [f["daysFollowing"] for f in body["followers"]] == [30, 5, 0]
    assert body["followers"][1]["roiPct"] == pytest.approx(10.0)
    assert body["followers"][2]["roiPct"] == 0.0


def test_account_snapshot_queries_clearinghouse_state() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert json.loads(request.content) == {"type": "clearinghouseState", "user": VAULT}
        return httpx.Response(
            200,
            json={
                "marginSummary": {"accountValue": "1100"},
                "withdrawable": "900",
                "assetPositions": [{"position": {"coin": "BTC", "unrealizedPnl": "100"}}],
            },
        )

    snapshot, _ = run_with_upstream(handler, lambda client: fetch_account_snapshot(client, VAULT))

    assert snapshot.equity == 1100.0
    assert snapshot.withdrawable == 900.0
    assert snapshot.total_pnl == 100.0


def test_account_snapshot_missing_address() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("upstream must not be called")

    with pytest.raises(InvalidRequestError):
        run_with_upstream(handler, lambda client: fetch_account_snapshot(client, None))
