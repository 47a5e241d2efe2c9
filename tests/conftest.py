"""Shared fixtures: temporary storage and fake market data."""

import pytest

from marketgazer.errors import StockDataError
from marketgazer.storage.kv_store import KeyValueStore


@pytest.fixture
def store(tmp_path):
    """Key/value store backed by a throwaway SQLite file."""
    kv = KeyValueStore(f"sqlite:///{tmp_path / 'test.db'}")
    yield kv
    kv.close()


def make_bars(closes, start_day=1):
    """Daily bars with the given closes."""
    return [
        {
            'date': f"2024-01-{start_day + i:02d}",
            'open': close - 1,
            'high': close + 1,
            'low': close - 2,
            'close': close,
            'volume': 1000,
        }
        for i, close in enumerate(closes)
    ]


class FakeMarketClient:
    """Stands in for MarketDataClient with canned responses."""

    def __init__(self, closes=None, failing=()):
        self.closes = closes or {}
        self.failing = set(failing)
        self.calls = []

    def get_stock_data(self, symbol, timeframe='daily'):
        self.calls.append((symbol, timeframe))
        if symbol in self.failing or symbol not in self.closes:
            raise StockDataError(
                f"Could not find stock data for symbol: {symbol}. Please check if the symbol is correct.",
                status_code=404
            )
        return {
            'details': {
                'name': f"{symbol} Corp",
                'description': f"Description for {symbol}.",
                'exchange': 'NasdaqGS',
                'marketCap': 1_000_000,
                'peRatio': 20.5,
                'dividendYield': 0.01,
                'analystRecommendation': 'buy',
            },
            'historical': make_bars(self.closes[symbol]),
        }

    def get_trending_stocks(self):
        return [{'symbol': 'AAPL', 'name': 'Apple Inc.', 'price': 190.0, 'change': 1.5, 'changePercent': 0.8}]

    def get_news(self, query=None):
        return [{'uuid': '1', 'title': f"News about {query or 'market news'}", 'publisher': 'Wire',
                 'link': 'https://example.com/a', 'providerPublishTime': '2024-01-02', 'thumbnail': None}]

    def get_comparison_data(self, symbols):
        return [{'symbol': s, 'name': f"{s} Corp", 'price': 10.0, 'marketCap': 1, 'peRatio': 2,
                 'dividendYield': 0.0, 'analystRecommendation': 'hold'} for s in symbols]


@pytest.fixture
def fake_market():
    return FakeMarketClient(closes={'AAPL': [100.0, 110.0], 'MSFT': [200.0, 190.0], 'ONE': [50.0]})
