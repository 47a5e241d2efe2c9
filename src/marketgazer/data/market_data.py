"""Market data client for fetching quotes, history, trending symbols and news from Yahoo Finance."""

import concurrent.futures
from datetime import datetime
from typing import Dict, List, Optional, Any

import pandas as pd
import requests
import yfinance as yf
from loguru import logger

from marketgazer.config import config
from marketgazer.errors import StockDataError, ComparisonError
from marketgazer.validation import Timeframe

TRENDING_URL = "https://query1.finance.yahoo.com/v1/finance/trending/{region}"

# Period offsets used to compute the start of the chart window
TIMEFRAME_OFFSETS = {
    Timeframe.DAILY: pd.DateOffset(months=3),
    Timeframe.WEEKLY: pd.DateOffset(years=1),
    Timeframe.MONTHLY: pd.DateOffset(years=5),
}

TIMEFRAME_INTERVALS = {
    Timeframe.DAILY: "1d",
    Timeframe.WEEKLY: "1wk",
    Timeframe.MONTHLY: "1mo",
}

NOT_AVAILABLE = "N/A"


def build_session() -> requests.Session:
    """Create an HTTP session that identifies as a desktop browser."""
    session = requests.Session()
    session.headers.update({"User-Agent": config.market.user_agent})
    return session


def get_start_date(timeframe, now: Optional[datetime] = None) -> datetime:
    """Get the first day of the history window for a timeframe.

    Args:
        timeframe: 'daily' (3 months), 'weekly' (1 year) or 'monthly' (5 years)
        now: Reference time, defaults to the current time

    Returns:
        Start datetime of the window
    """
    now = now or datetime.now()
    offset = TIMEFRAME_OFFSETS[Timeframe.parse(timeframe)]
    return (pd.Timestamp(now) - offset).to_pydatetime()


def get_interval(timeframe) -> str:
    """Get the provider bar interval for a timeframe."""
    return TIMEFRAME_INTERVALS[Timeframe.parse(timeframe)]


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and not pd.isna(value)


def _history_to_bars(df: Optional[pd.DataFrame]) -> List[Dict[str, Any]]:
    """Convert a provider history DataFrame into JSON-ready bars."""
    if df is None or df.empty:
        return []

    df = df.dropna(subset=["Close"])
    bars = []
    for index, row in df.iterrows():
        bars.append({
            'date': pd.Timestamp(index).strftime('%Y-%m-%d'),
            'open': float(row['Open']),
            'high': float(row['High']),
            'low': float(row['Low']),
            'close': float(row['Close']),
            'volume': int(row['Volume']) if 'Volume' in row and _is_number(row['Volume']) else None,
        })
    return bars


class MarketDataClient:
    """Client for fetching market data from Yahoo Finance."""

    def __init__(self, session: Optional[requests.Session] = None):
        """Initialize the client.

        Args:
            session: Optional requests session for the raw Yahoo endpoints
        """
        self.session = session or build_session()
        self.timeout = config.market.http_timeout

    def get_info(self, symbol: str) -> Dict[str, Any]:
        """Get the quote summary dictionary for a symbol."""
        return yf.Ticker(symbol).info or {}

    def get_history(self, symbol: str, timeframe) -> pd.DataFrame:
        """Get historical bars for a symbol over the timeframe window."""
        return yf.Ticker(symbol).history(
            start=get_start_date(timeframe).strftime('%Y-%m-%d'),
            interval=get_interval(timeframe),
            auto_adjust=False
        )

    def get_stock_data(self, symbol: str, timeframe="daily") -> Dict[str, Any]:
        """Get details and historical bars for a symbol.

        The summary and the history are requested concurrently.

        Args:
            symbol: Stock ticker symbol (e.g., 'AAPL')
            timeframe: 'daily', 'weekly' or 'monthly'

        Returns:
            Dictionary with 'details' and 'historical' keys

        Raises:
            StockDataError: If the symbol is unknown or the provider fails
        """
        symbol = symbol.upper()
        try:
            with concurrent.futures.ThreadPoolExecutor(max_workers=2) as executor:
                info_future = executor.submit(self.get_info, symbol)
                history_future = executor.submit(self.get_history, symbol, timeframe)
                info = info_future.result()
                historical = _history_to_bars(history_future.result())

            if not info or not historical:
                raise StockDataError(f"No data found for symbol: {symbol}. It may be delisted or invalid.")

        except Exception as e:
            logger.error(f"Failed to fetch stock data for {symbol}: {e}")
            message = str(e)
            if isinstance(e, StockDataError) or '404' in message or 'No data' in message:
                raise StockDataError(
                    f"Could not find stock data for symbol: {symbol}. Please check if the symbol is correct.",
                    status_code=404
                ) from e
            raise StockDataError("An external service error occurred while fetching stock data.") from e

        details = {
            'name': info.get('longName') or f"{symbol} Company",
            'description': info.get('longBusinessSummary') or f"Description for {symbol}.",
            'exchange': info.get('fullExchangeName') or info.get('exchange') or NOT_AVAILABLE,
            'marketCap': info.get('marketCap'),
            'peRatio': info.get('trailingPE'),
            'dividendYield': info.get('dividendYield'),
            'analystRecommendation': info.get('recommendationKey'),
        }

        logger.debug(f"Got {len(historical)} {get_interval(timeframe)} bars for {symbol}")
        return {'details': details, 'historical': historical}

    def get_trending_symbols(self, region: str) -> List[str]:
        """Get the raw trending symbol list for a region."""
        response = self.session.get(
            TRENDING_URL.format(region=region),
            params={'count': config.market.trending_fetch_count},
            timeout=self.timeout
        )
        response.raise_for_status()
        results = response.json().get('finance', {}).get('result') or []
        if not results:
            return []
        return [q['symbol'] for q in results[0].get('quotes', []) if q.get('symbol')]

    def get_trending_stocks(self) -> List[Dict[str, Any]]:
        """Get the top trending equities.

        Regions are tried in order; the first region yielding enough
        priced equities wins. A failing region is skipped.

        Returns:
            Up to five trending stock dictionaries, or an empty list
        """
        wanted = config.market.trending_result_count

        for region in config.market.trending_regions:
            try:
                symbols = self.get_trending_symbols(region)
                if not symbols:
                    continue

                with concurrent.futures.ThreadPoolExecutor(max_workers=config.market.max_workers) as executor:
                    infos = list(executor.map(self._safe_info, symbols))

                seen = set()
                trending = []
                for info in infos:
                    symbol = info.get('symbol')
                    if (info.get('quoteType') == 'EQUITY'
                            and _is_number(info.get('regularMarketPrice'))
                            and _is_number(info.get('regularMarketChange'))
                            and symbol not in seen):
                        seen.add(symbol)
                        trending.append({
                            'symbol': symbol,
                            'name': info.get('longName') or info.get('shortName') or symbol,
                            'price': info['regularMarketPrice'],
                            'change': info['regularMarketChange'],
                            'changePercent': info.get('regularMarketChangePercent'),
                        })

                if len(trending) >= wanted:
                    return trending[:wanted]

            except Exception as e:
                logger.warning(f"Could not fetch trending stocks for region {region}: {e}")

        logger.error("Failed to fetch trending stocks from any region.")
        return []

    def _safe_info(self, symbol: str) -> Dict[str, Any]:
        try:
            info = self.get_info(symbol)
        except Exception as e:
            logger.warning(f"Skipping {symbol}: {e}")
            return {}
        info.setdefault('symbol', symbol)
        return info

    def get_news(self, query: str = None) -> List[Dict[str, Any]]:
        """Search market news.

        Args:
            query: Free text query, defaults to general market news

        Returns:
            List of news item dictionaries, empty on failure
        """
        query = query or config.market.default_news_query
        try:
            search = yf.Search(query, news_count=config.market.news_count)
            items = search.news or []
        except Exception as e:
            logger.error(f"Failed to fetch news for query \"{query}\": {e}")
            return []

        news = []
        for item in items:
            published = item.get('providerPublishTime')
            resolutions = (item.get('thumbnail') or {}).get('resolutions') or []
            thumbnail = next((t.get('url') for t in resolutions if t.get('tag') == 'm'), None)
            news.append({
                'uuid': item.get('uuid'),
                'title': item.get('title'),
                'publisher': item.get('publisher'),
                'link': item.get('link'),
                'providerPublishTime': (
                    datetime.fromtimestamp(published).strftime('%Y-%m-%d') if _is_number(published) else None
                ),
                'thumbnail': thumbnail,
            })
        return news

    def get_comparison_row(self, symbol: str) -> Dict[str, Any]:
        """Get one comparison table row, or a placeholder if data is missing."""
        symbol = symbol.upper()
        try:
            info = self.get_info(symbol)
        except Exception as e:
            logger.warning(f"Comparison data unavailable for {symbol}: {e}")
            info = {}

        price = info.get('regularMarketPrice', info.get('currentPrice'))
        if not info or price is None:
            return {
                'symbol': symbol,
                'name': f"{symbol} (Data not found)",
                'price': NOT_AVAILABLE,
                'marketCap': NOT_AVAILABLE,
                'peRatio': NOT_AVAILABLE,
                'dividendYield': NOT_AVAILABLE,
                'analystRecommendation': NOT_AVAILABLE,
            }

        return {
            'symbol': info.get('symbol') or symbol,
            'name': info.get('longName') or info.get('shortName'),
            'price': price,
            'marketCap': info.get('marketCap'),
            'peRatio': info.get('trailingPE'),
            'dividendYield': info.get('dividendYield'),
            'analystRecommendation': info.get('recommendationKey'),
        }

    def get_comparison_data(self, symbols: List[str]) -> List[Dict[str, Any]]:
        """Get comparison rows for several symbols, fetched concurrently.

        Raises:
            ComparisonError: If the batch itself cannot be run
        """
        try:
            with concurrent.futures.ThreadPoolExecutor(max_workers=config.market.max_workers) as executor:
                return list(executor.map(self.get_comparison_row, symbols))
        except Exception as e:
            logger.error(f"Failed to fetch comparison data: {e}")
            raise ComparisonError("Failed to fetch comparison data. Please check the stock symbols.") from e
