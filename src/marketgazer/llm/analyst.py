"""Stock analyst that orchestrates data gathering and the prompt flows."""

import concurrent.futures
from typing import Optional, Dict, Any
from loguru import logger

from marketgazer.config import config
from marketgazer.errors import PredictionError, StockDataError
from marketgazer.data.market_data import MarketDataClient
from marketgazer.data.article_extractor import ArticleExtractor, CONTENT_UNAVAILABLE, MIN_ARTICLE_LENGTH
from marketgazer.validation import Timeframe, validate_symbol, parse_symbol_list
from .llm_client import LLMClient
from .prompts import (
    build_predict_stock_trends_prompt,
    build_strategy_pipeline_prompt,
    build_summarize_news_prompt,
    format_historical_csv,
)
from .schemas import (
    PredictStockTrendsInput,
    PredictStockTrendsOutput,
    StrategyPipelineInput,
    StrategyPipelineOutput,
    SummarizeNewsInput,
    SummarizeNewsOutput,
    TickerHistory,
)

NOT_ENOUGH_CONTENT = SummarizeNewsOutput(
    summary="Could not retrieve enough article content to summarize.",
    impact="N/A"
)


class StockAnalyst:
    """Runs the prompt flows against the generative model."""

    def __init__(
        self,
        llm_client: Optional[LLMClient] = None,
        market_client: Optional[MarketDataClient] = None,
        article_extractor: Optional[ArticleExtractor] = None
    ):
        """Initialize the stock analyst."""
        self.llm_client = llm_client or LLMClient()
        self.market_client = market_client or MarketDataClient()
        self.article_extractor = article_extractor or ArticleExtractor()

    def _require(self, result, what: str):
        if result is None:
            logger.error(f"{what} failed: {self.llm_client.last_error}")
            raise PredictionError(f"The AI service could not produce a {what}. Please try again later.")
        return result

    def predict_stock_trends(self, data: PredictStockTrendsInput) -> PredictStockTrendsOutput:
        """Request a trend prediction for one symbol.

        Raises:
            PredictionError: If the model returns nothing usable
        """
        prompt = build_predict_stock_trends_prompt(data)
        result = self.llm_client.generate_json(prompt, PredictStockTrendsOutput)
        return self._require(result, "trend prediction")

    def run_strategy_pipeline(self, data: StrategyPipelineInput) -> StrategyPipelineOutput:
        """Request the multi-ticker strategy analysis.

        Raises:
            PredictionError: If the model returns nothing usable
        """
        prompt = build_strategy_pipeline_prompt(data)
        result = self.llm_client.generate_json(prompt, StrategyPipelineOutput)
        return self._require(result, "strategy analysis")

    def summarize_news(self, article: str) -> SummarizeNewsOutput:
        """Summarize article text and assess its market impact."""
        prompt = build_summarize_news_prompt(SummarizeNewsInput(article=article))
        result = self.llm_client.generate_json(prompt, SummarizeNewsOutput)
        return self._require(result, "news summary")

    def summarize_news_article(self, url: str) -> SummarizeNewsOutput:
        """Fetch an article and summarize it.

        Pages without enough readable text are answered without calling
        the model.
        """
        text = self.article_extractor.get_article_content(url)
        if not text or len(text.strip()) < MIN_ARTICLE_LENGTH or text == CONTENT_UNAVAILABLE:
            logger.warning(f"Not enough article content at {url}")
            return NOT_ENOUGH_CONTENT
        return self.summarize_news(text)

    def analyze_stock(self, symbol: str, timeframe="daily") -> Dict[str, Any]:
        """Fetch stock data and an AI trend prediction for it.

        Args:
            symbol: Stock ticker symbol as typed by the user
            timeframe: 'daily', 'weekly' or 'monthly'

        Returns:
            Dictionary with details, historical bars, prediction and analysis
        """
        symbol = validate_symbol(symbol)
        timeframe = Timeframe.parse(timeframe).value

        logger.info(f"Step 1: Fetching {timeframe} data for {symbol}...")
        data = self.market_client.get_stock_data(symbol, timeframe)
        historical = data['historical']
        if not historical:
            raise StockDataError(
                "No historical data found. The stock symbol may be delisted or invalid for the selected timeframe.",
                status_code=404
            )

        logger.info(f"Step 2: Requesting trend prediction for {symbol}...")
        prediction = self.predict_stock_trends(PredictStockTrendsInput(
            stockSymbol=symbol,
            historicalData=format_historical_csv(historical),
            timeframe=timeframe
        ))

        return {
            'symbol': symbol,
            'timeframe': timeframe,
            'details': data['details'],
            'historical': historical,
            'prediction': {
                'predicted_series': prediction.predicted_series.model_dump(),
                'indicator_recommendations': [i.model_dump() for i in prediction.indicator_recommendations],
                'profit_probability': prediction.profit_probability,
            },
            'analysis': prediction.analysis,
        }

    def _fetch_ticker_history(self, symbol: str, timeframe: str) -> Optional[TickerHistory]:
        try:
            data = self.market_client.get_stock_data(symbol, timeframe)
        except StockDataError as e:
            logger.warning(f"Skipping {symbol} in strategy analysis: {e.message}")
            return None
        return TickerHistory(ticker=symbol, historicalData=format_historical_csv(data['historical']))

    def analyze_portfolio_strategy(
        self,
        symbols,
        timeframe="daily",
        **params
    ) -> StrategyPipelineOutput:
        """Fetch history for several symbols and run the strategy prompt.

        Symbols are fetched concurrently; those whose data cannot be
        fetched are skipped.

        Args:
            symbols: Comma-separated string or list of at most four symbols

        Raises:
            InvalidInputError: If the symbol list is malformed or too long
            StockDataError: If no symbol has usable data
        """
        symbols = parse_symbol_list(symbols)
        timeframe = Timeframe.parse(timeframe).value

        logger.info(f"Step 1: Fetching {timeframe} data for {', '.join(symbols)}...")
        with concurrent.futures.ThreadPoolExecutor(max_workers=config.market.max_workers) as executor:
            results = executor.map(lambda s: self._fetch_ticker_history(s, timeframe), symbols)
            tickers = [t for t in results if t is not None]

        if not tickers:
            raise StockDataError("None of the requested symbols returned price data.", status_code=404)

        logger.info(f"Step 2: Requesting strategy analysis for {len(tickers)} symbols...")
        return self.run_strategy_pipeline(StrategyPipelineInput(tickers=tickers, timeframe=timeframe, **params))

    def test_connection(self) -> bool:
        """Test the model connection."""
        logger.info("Testing connections...")
        if self.llm_client.test_connection():
            logger.info("✅ Gemini connection OK")
            return True
        logger.error("❌ Gemini connection failed")
        return False
