from datetime import datetime

import pytest
import pytz

from fakes import StubQuoteClient, price
from ticker_watch.domain.errors import (
    ClientError,
    RateLimitedError,
    ServerError,
    TransportError,
    ValidationError,
)
from ticker_watch.domain.quote import Quote, SymbolMatch
from ticker_watch.services.quote_service import QuoteService


def test_fetch_retries_server_errors_with_fixed_backoff(quote_service, stub_client, clock):
    stub_client.quotes["AAPL"] = [ServerError("down", 503), ServerError("down", 503), price(187.4)]

    quote = quote_service.fetch_quote_with_retry("AAPL")

    assert quote.current_price == 187.4
    assert stub_client.quote_calls == ["AAPL"] * 3
    assert clock.sleeps == [2, 4]


def test_fetch_gives_up_after_three_attempts(quote_service, stub_client, clock):
    stub_client.quotes["AAPL"] = [TransportError("connection reset")]

    with pytest.raises(TransportError):
        quote_service.fetch_quote_with_retry("AAPL")

    assert len(stub_client.quote_calls) == 3
    assert clock.sleeps == [2, 4]


@pytest.mark.parametrize("error", [ClientError("not found", 404), RateLimitedError("slow", 429)])
def test_fetch_aborts_immediately_on_4xx(quote_service, stub_client, clock, error):
    stub_client.quotes["AAPL"] = [error, price(1.0)]

    with pytest.raises(type(error)):
        quote_service.fetch_quote_with_retry("AAPL")

    assert len(stub_client.quote_calls) == 1
    assert clock.sleeps == []


@pytest.mark.parametrize("payload", [{'c': "187.4"}, {'c': float("nan")}, {'c': None}, {}, [1, 2], {'c': True}])
def test_invalid_price_is_retried_then_fails(quote_service, stub_client, payload):
    stub_client.quotes["AAPL"] = [payload]

    with pytest.raises(ValidationError):
        quote_service.fetch_quote_with_retry("AAPL")

    assert len(stub_client.quote_calls) == 3


def test_invalid_price_then_valid_price_recovers(quote_service, stub_client):
    stub_client.quotes["AAPL"] = [{'c': float("inf")}, price(10)]

    assert quote_service.fetch_quote_with_retry("AAPL").current_price == 10


def test_get_quote_is_single_attempt_and_propagates(quote_service, stub_client, clock):
    stub_client.quotes["AAPL"] = [ServerError("down", 500), price(1.0)]

    with pytest.raises(ServerError):
        quote_service.get_quote("AAPL")

    assert stub_client.quote_calls == ["AAPL"]
    assert clock.sleeps == []


def test_get_quote_maps_full_payload(quote_service, stub_client):
    stub_client.quotes["MSFT"] = [{'c': 410.5, 'd': -1.5, 'dp': -0.36, 'h': 415, 'l': 405, 'o': 412, 'pc': 412, 't': 1700000000}]

    quote = quote_service.get_quote("MSFT")

    assert isinstance(quote, Quote)
    assert quote.symbol == "MSFT"
    assert quote.change == -1.5
    assert quote.previous_close == 412
    assert quote.timestamp == datetime(2023, 11, 14, 22, 13, 20, tzinfo=pytz.utc)


@pytest.mark.parametrize("epoch", [1700000000000, 1e20])
def test_out_of_range_timestamp_keeps_price(quote_service, stub_client, epoch):
    stub_client.quotes["MSFT"] = [{'c': 10.0, 't': epoch}]

    quote = quote_service.get_quote("MSFT")

    assert quote.current_price == 10.0
    assert quote.timestamp is None


def test_search_maps_and_caps_results(quote_service, stub_client):
    items = [{'symbol': f"SYM{i}", 'description': f"Company {i}"} for i in range(12)]
    items[0] = {'symbol': "AAPL", 'description': "APPLE INC"}
    items[1] = {'symbol': "AAPL.MX", 'type': "Common Stock"}
    items[2] = {'symbol': "APC.DE"}
    stub_client.search_results = [{'count': 12, 'result': items}]

    results = quote_service.search("apple")

    assert len(results) == 8
    assert results[0] == SymbolMatch(symbol="AAPL", description="APPLE INC")
    assert results[1].description == "Common Stock"
    assert results[2].description == "Stock APC.DE"
    assert stub_client.quote_calls == []


def test_search_falls_back_to_symbol_on_malformed_payload(quote_service, stub_client):
    stub_client.search_results = [{'error': "no result array"}]
    stub_client.quotes["AAPL"] = [price(187.4)]

    results = quote_service.search("AAPL")

    assert [r.model_dump() for r in results] == [{'symbol': "AAPL", 'description': "Stock AAPL"}]
    assert stub_client.quote_calls == ["AAPL"]


def test_search_returns_empty_when_fallback_also_fails(quote_service, stub_client):
    stub_client.search_results = [{'error': "no result array"}]
    stub_client.quotes["AAPL"] = [ServerError("down", 500)]

    assert quote_service.search("AAPL") == []


def test_search_transport_error_uses_uppercased_symbol(quote_service, stub_client):
    stub_client.search_results = [ServerError("down", 503)]
    stub_client.quotes["TSLA"] = [price(250)]

    results = quote_service.search(" tsla ")

    assert results == [SymbolMatch(symbol="TSLA", description="Stock TSLA")]


def test_search_with_no_matches_falls_back(quote_service, stub_client):
    stub_client.search_results = [{'count': 0, 'result': []}]

    assert quote_service.search("ZZZZ") == []
    assert stub_client.quote_calls == ["ZZZZ"]


def test_blank_search_makes_no_request(quote_service, stub_client):
    assert quote_service.search("   ") == []
    assert stub_client.search_calls == []
    assert stub_client.quote_calls == []


def test_unexpected_search_error_falls_back_to_symbol(quote_service, stub_client):
    stub_client.search_results = [RuntimeError("boom")]
    stub_client.quotes["AAPL"] = [price(187.4)]

    assert quote_service.search("aapl") == [SymbolMatch(symbol="AAPL", description="Stock AAPL")]


def test_unexpected_errors_in_both_searches_return_empty(quote_service, stub_client):
    stub_client.search_results = [RuntimeError("boom")]
    stub_client.quotes["AAPL"] = [RuntimeError("boom again")]

    assert quote_service.search("AAPL") == []


def test_zero_search_limit_is_respected(stub_client, clock):
    service = QuoteService(client=stub_client, search_limit=0, sleep=clock.sleep, tz=pytz.utc)
    stub_client.search_results = [{'count': 1, 'result': [{'symbol': "AAPL"}]}]

    assert service.search_limit == 0
    assert service.search("apple") == []
