"""Data aggregator combining live prices with stored watchlist and portfolio records."""

import concurrent.futures
from typing import Dict, List, Any, Optional
from loguru import logger

from marketgazer.config import config
from marketgazer.storage.portfolio import PortfolioItem
from .market_data import MarketDataClient


class DataAggregator:
    """Aggregates price snapshots for the watchlist and portfolio pages."""

    def __init__(self, market_client: Optional[MarketDataClient] = None):
        """Initialize the data aggregator."""
        self.market_client = market_client or MarketDataClient()

    def get_price_snapshot(self, symbol: str) -> Dict[str, Any]:
        """Get the latest price and day change for a symbol.

        The current price is the last daily close and the previous price
        the close before it.

        Args:
            symbol: Stock ticker symbol

        Returns:
            Dictionary with name, price, change and changePercent
        """
        data = self.market_client.get_stock_data(symbol, 'daily')
        last_two = data['historical'][-2:]

        price = last_two[-1]['close'] if last_two else 0
        prev_price = last_two[0]['close'] if len(last_two) > 1 else price
        change = price - prev_price
        change_pct = (change / prev_price) * 100 if prev_price != 0 else 0

        return {
            'symbol': symbol.upper(),
            'name': data['details']['name'],
            'price': price,
            'change': change,
            'changePercent': change_pct,
        }

    def _snapshots(self, symbols: List[str]) -> Dict[str, Dict[str, Any]]:
        """Fetch snapshots concurrently, skipping symbols that fail."""
        def fetch(symbol):
            try:
                return self.get_price_snapshot(symbol)
            except Exception as e:
                logger.warning(f"Skipping {symbol}: {e}")
                return None

        with concurrent.futures.ThreadPoolExecutor(max_workers=config.market.max_workers) as executor:
            results = list(executor.map(fetch, symbols))

        return {s: r for s, r in zip(symbols, results) if r is not None}

    def get_watchlist_snapshots(self, symbols: List[str]) -> List[Dict[str, Any]]:
        """Get price snapshots for every watchlist symbol that can be priced."""
        if not symbols:
            return []
        snapshots = self._snapshots(symbols)
        return [snapshots[s] for s in symbols if s in snapshots]

    def get_portfolio_summary(self, items: List[PortfolioItem]) -> Dict[str, Any]:
        """Value every position at the latest close.

        Args:
            items: Stored portfolio positions

        Returns:
            Dictionary with per-position rows and portfolio totals
        """
        snapshots = self._snapshots([item.symbol for item in items]) if items else {}

        positions = []
        total_value = 0.0
        total_cost = 0.0
        for item in items:
            snapshot = snapshots.get(item.symbol)
            if snapshot is None:
                continue

            market_value = item.quantity * snapshot['price']
            cost_basis = item.quantity * item.purchase_price
            gain = market_value - cost_basis
            positions.append({
                **item.to_dict(),
                'name': snapshot['name'],
                'currentPrice': snapshot['price'],
                'change': snapshot['change'],
                'changePercent': snapshot['changePercent'],
                'marketValue': market_value,
                'costBasis': cost_basis,
                'gain': gain,
                'gainPercent': (gain / cost_basis) * 100 if cost_basis else 0,
            })
            total_value += market_value
            total_cost += cost_basis

        total_gain = total_value - total_cost
        return {
            'positions': positions,
            'totals': {
                'marketValue': total_value,
                'costBasis': total_cost,
                'gain': total_gain,
                'gainPercent': (total_gain / total_cost) * 100 if total_cost else 0,
            },
            'positions_count': len(positions),
        }
