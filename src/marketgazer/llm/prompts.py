"""Prompt templates sent to the generative model."""

from typing import Dict, Any, List

from .schemas import PredictStockTrendsInput, StrategyPipelineInput, SummarizeNewsInput

PREDICTED_SERIES_LENGTH = 30

PREDICT_STOCK_TRENDS_PROMPT = """
You are an advanced AI-powered financial analyst and strategist specializing in stock market time series analysis. You are an expert at explaining complex topics to beginners. Your task is to:
- Ingest historical stock market data, including OHLC (Open, High, Low, Close) prices and trading volume.
- Perform advanced time series forecasting using models like ARIMA, LSTM, and Prophet to predict price movements.
- Identify stocks with a predicted success rate of at least 40-60% profit probability over the forecasted period.
- Develop clear, actionable trading strategies (e.g., momentum-based, mean-reversion, breakout, swing trading) with specific entry and exit points.
- Provide risk management recommendations (stop-loss, take-profit, position sizing) to minimize losses.

Analyze the provided historical stock data for {stockSymbol} over a {timeframe} timeframe and generate a trend prediction.

Historical Data:
{historicalData}

Based on this data, provide:
1.  A concise analysis summary written for an absolute beginner. Explain any trading strategies or financial terms you use in simple, easy-to-understand language. This summary MUST include a recommended trading strategy, specific entry/exit points, and risk management advice (stop-loss, take-profit).
2.  A predicted price series for the next {periods} periods.
3.  A list of 5-7 technical indicators that would be most beneficial for a user to analyze for this specific stock. For each indicator, provide its name and a concise description of what it measures and why it's useful, assuming the reader is a novice.
4.  An estimated profit probability for the stock over the forecast horizon.

Respond with a JSON object in this exact format:
{{
    "analysis": "Beginner-friendly analysis with strategy, entry/exit points and risk management",
    "predicted_series": {{
        "dates": ["YYYY-MM-DD", ...],
        "prices": [<number>, ...]
    }},
    "indicator_recommendations": [
        {{"name": "Indicator name", "description": "What it measures and why it helps"}}
    ],
    "profit_probability": <0.0 to 1.0>
}}
"""

STRATEGY_PIPELINE_PROMPT = """
You are a disciplined, safety-minded AI financial engineer and strategist.

Run the following pipeline for every ticker below on the {timeframe} timeframe:
1. Data ingestion: validate the OHLC history, note gaps and outliers.
2. Forecasting: build an ensemble of {models} forecasts for the next {horizon} periods.
3. Calibration: report a calibrated probability that a long position is profitable over the horizon.
4. Backtesting: summarize how the chosen strategy would have performed on the supplied history.
5. Strategy: choose momentum, mean-reversion, breakout or swing trading and give entry, stop-loss and take-profit prices.
6. Position sizing: size each position so that hitting the stop-loss loses at most {risk_per_trade_pct}% of a ${account_size:.2f} account.

Never recommend a position without a stop-loss. Prefer no trade over a low-confidence trade.

{ticker_blocks}

Respond with a JSON object in this exact format:
{{
    "summary": "Short overview across all tickers",
    "recommendations": [
        {{
            "ticker": "TICKER",
            "predicted_series": {{"dates": ["YYYY-MM-DD", ...], "prices": [<number>, ...]}},
            "profit_probability": <0.0 to 1.0>,
            "strategy": "momentum" | "mean-reversion" | "breakout" | "swing",
            "entry_price": <number or null>,
            "stop_loss": <number or null>,
            "take_profit": <number or null>,
            "position_size": <number of shares or null>,
            "backtest_summary": "How the strategy fared on the history",
            "rationale": "Why"
        }}
    ],
    "risk_notes": "Portfolio level risk comments"
}}
"""

TICKER_BLOCK_TEMPLATE = """=== {ticker} ===
Historical Data:
{historicalData}
"""

SUMMARIZE_NEWS_PROMPT = """You are a financial news analyst. Your task is to provide a clear and concise summary of the provided article and analyze its potential impact on the financial markets.

Article Content:
{article}

Based on the article, provide:
1.  A brief, neutral summary of the key information presented.
2.  An analysis of the potential market impact. Consider whether this news is likely to be positive, negative, or neutral for the company or sector involved.

Respond with a JSON object in this exact format:
{{
    "summary": "Concise summary of the key points",
    "impact": "Likely market impact"
}}
"""

CSV_HEADER = "date,open,high,low,close"


def format_historical_csv(bars: List[Dict[str, Any]]) -> str:
    """Render OHLC bars as CSV for the prompt.

    Args:
        bars: Bars with date, open, high, low and close keys

    Returns:
        CSV text with a header row
    """
    rows = [f"{b['date']},{b['open']},{b['high']},{b['low']},{b['close']}" for b in bars]
    return '\n'.join([CSV_HEADER] + rows)


def build_predict_stock_trends_prompt(data: PredictStockTrendsInput) -> str:
    """Build the trend prediction prompt."""
    return PREDICT_STOCK_TRENDS_PROMPT.format(
        stockSymbol=data.stockSymbol,
        timeframe=data.timeframe,
        historicalData=data.historicalData,
        periods=PREDICTED_SERIES_LENGTH
    )


def build_strategy_pipeline_prompt(data: StrategyPipelineInput) -> str:
    """Build the multi-ticker strategy prompt."""
    ticker_blocks = '\n'.join(
        TICKER_BLOCK_TEMPLATE.format(ticker=t.ticker.upper(), historicalData=t.historicalData)
        for t in data.tickers
    )
    return STRATEGY_PIPELINE_PROMPT.format(
        timeframe=data.timeframe,
        models=', '.join(data.models),
        horizon=data.forecast_horizon,
        risk_per_trade_pct=data.risk_per_trade_pct,
        account_size=data.account_size,
        ticker_blocks=ticker_blocks
    )


def build_summarize_news_prompt(data: SummarizeNewsInput) -> str:
    """Build the news summary prompt."""
    return SUMMARIZE_NEWS_PROMPT.format(article=data.article)
