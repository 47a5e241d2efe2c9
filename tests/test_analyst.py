"""Tests for the prompt flows."""

import threading
from unittest.mock import MagicMock

import pytest

from marketgazer.data.article_extractor import CONTENT_UNAVAILABLE
from marketgazer.errors import InvalidInputError, PredictionError, StockDataError
from marketgazer.llm.analyst import StockAnalyst
from marketgazer.llm.schemas import (
    PredictStockTrendsOutput,
    StrategyPipelineOutput,
    SummarizeNewsOutput,
)

PREDICTION = PredictStockTrendsOutput.model_validate({
    'analysis': 'Uptrend. Buy near 108, stop at 100.',
    'predicted_series': {'dates': ['2024-01-03', '2024-01-04'], 'prices': [111.0, 112.5]},
    'indicator_recommendations': [{'name': 'RSI', 'description': 'Momentum oscillator.'}],
    'profit_probability': 0.55,
})


@pytest.fixture
def llm():
    client = MagicMock()
    client.last_error = None
    return client


@pytest.fixture
def extractor():
    return MagicMock()


@pytest.fixture
def analyst(llm, fake_market, extractor):
    return StockAnalyst(llm_client=llm, market_client=fake_market, article_extractor=extractor)


class TestAnalyzeStock:

    def test_combines_data_and_prediction(self, analyst, llm, fake_market):
        llm.generate_json.return_value = PREDICTION

        result = analyst.analyze_stock('aapl', 'weekly')

        assert result['symbol'] == 'AAPL'
        assert result['timeframe'] == 'weekly'
        assert result['details']['name'] == 'AAPL Corp'
        assert len(result['historical']) == 2
        assert result['analysis'] == PREDICTION.analysis
        assert result['prediction']['profit_probability'] == 0.55
        assert result['prediction']['predicted_series']['prices'] == [111.0, 112.5]
        assert result['prediction']['indicator_recommendations'][0]['name'] == 'RSI'
        assert fake_market.calls == [('AAPL', 'weekly')]

        prompt, schema = llm.generate_json.call_args.args
        assert schema is PredictStockTrendsOutput
        assert "date,open,high,low,close\n2024-01-01,99.0,101.0,98.0,100.0" in prompt

    def test_invalid_symbol_skips_network(self, analyst, llm, fake_market):
        with pytest.raises(InvalidInputError):
            analyst.analyze_stock('TOOLONG')
        assert fake_market.calls == []
        llm.generate_json.assert_not_called()

    def test_unknown_symbol_propagates(self, analyst, llm):
        with pytest.raises(StockDataError) as exc:
            analyst.analyze_stock('ZZZ')
        assert exc.value.status_code == 404
        llm.generate_json.assert_not_called()

    def test_model_failure_raises(self, analyst, llm):
        llm.generate_json.return_value = None
        llm.last_error = "503"

        with pytest.raises(PredictionError) as exc:
            analyst.analyze_stock('AAPL')
        assert "trend prediction" in exc.value.message


class TestSummaries:

    def test_short_article_not_sent_to_model(self, analyst, llm, extractor):
        extractor.get_article_content.return_value = "Too short."

        result = analyst.summarize_news_article("https://example.com/a")

        assert result.summary == "Could not retrieve enough article content to summarize."
        assert result.impact == "N/A"
        llm.generate_json.assert_not_called()

    def test_unavailable_article_not_sent_to_model(self, analyst, llm, extractor):
        extractor.get_article_content.return_value = CONTENT_UNAVAILABLE

        assert analyst.summarize_news_article("https://example.com/a").impact == "N/A"
        llm.generate_json.assert_not_called()

    def test_article_summarized(self, analyst, llm, extractor):
        extractor.get_article_content.return_value = "Company results. " * 20
        llm.generate_json.return_value = SummarizeNewsOutput(summary="Results.", impact="Neutral.")

        result = analyst.summarize_news_article("https://example.com/a")

        assert result.impact == "Neutral."
        prompt, schema = llm.generate_json.call_args.args
        assert "Company results." in prompt
        assert schema is SummarizeNewsOutput


class TestStrategyPipeline:

    def test_skips_symbols_without_data(self, analyst, llm):
        llm.generate_json.return_value = StrategyPipelineOutput(summary="ok", recommendations=[])

        result = analyst.analyze_portfolio_strategy(['AAPL', 'ZZZ', 'MSFT'], 'daily', account_size=5000)

        assert result.summary == "ok"
        prompt = llm.generate_json.call_args.args[0]
        assert "=== AAPL ===" in prompt
        assert "=== MSFT ===" in prompt
        assert "ZZZ" not in prompt
        assert "$5000.00 account" in prompt

    def test_no_usable_symbols(self, analyst, llm):
        with pytest.raises(StockDataError):
            analyst.analyze_portfolio_strategy(['ZZZ'])
        llm.generate_json.assert_not_called()

    def test_symbol_list_limited(self, analyst, llm, fake_market):
        with pytest.raises(InvalidInputError, match="up to 4 symbols"):
            analyst.analyze_portfolio_strategy(['AAPL', 'MSFT', 'ONE', 'A', 'B'])
        assert fake_market.calls == []
        llm.generate_json.assert_not_called()

    def test_symbols_fetched_concurrently(self, llm, fake_market):
        # Both fetches must be in flight at once to pass the barrier
        barrier = threading.Barrier(2, timeout=5)
        fetch = fake_market.get_stock_data

        def waiting_fetch(symbol, timeframe='daily'):
            barrier.wait()
            return fetch(symbol, timeframe)

        fake_market.get_stock_data = waiting_fetch
        llm.generate_json.return_value = StrategyPipelineOutput(summary="ok", recommendations=[])
        analyst = StockAnalyst(llm_client=llm, market_client=fake_market, article_extractor=MagicMock())

        analyst.analyze_portfolio_strategy(['AAPL', 'MSFT'])

        prompt = llm.generate_json.call_args.args[0]
        assert prompt.index("=== AAPL ===") < prompt.index("=== MSFT ===")
