"""Input and output schemas of the prompt flows."""

from typing import List, Optional
from pydantic import BaseModel, Field


class PredictStockTrendsInput(BaseModel):
    """Inputs of the trend prediction prompt."""
    stockSymbol: str = Field(description="The stock symbol to analyze.")
    historicalData: str = Field(description="Historical stock data in CSV format.")
    timeframe: str = Field(description="The timeframe for the analysis (e.g., daily, weekly).")


class PredictedSeries(BaseModel):
    """Forecast price path returned by the model."""
    dates: List[str] = Field(description="Array of dates for the prediction.")
    prices: List[float] = Field(description="Array of predicted prices.")


class IndicatorRecommendation(BaseModel):
    """A technical indicator the model suggests studying."""
    name: str
    description: str


class PredictStockTrendsOutput(BaseModel):
    """Structured trend narrative."""
    analysis: str
    predicted_series: PredictedSeries
    indicator_recommendations: List[IndicatorRecommendation]
    profit_probability: float


class TickerHistory(BaseModel):
    """One ticker and its CSV price history."""
    ticker: str
    historicalData: str


class StrategyPipelineInput(BaseModel):
    """Inputs of the multi-ticker strategy prompt."""
    tickers: List[TickerHistory]
    timeframe: str = "daily"
    forecast_horizon: int = 30
    account_size: float = 10000.0
    risk_per_trade_pct: float = 1.0
    models: List[str] = ["ARIMA", "LSTM", "Prophet"]


class TickerRecommendation(BaseModel):
    """Per-ticker answer of the strategy prompt."""
    ticker: str
    predicted_series: PredictedSeries
    profit_probability: float
    strategy: str
    entry_price: Optional[float] = None
    stop_loss: Optional[float] = None
    take_profit: Optional[float] = None
    position_size: Optional[float] = None
    backtest_summary: str = ""
    rationale: str = ""


class StrategyPipelineOutput(BaseModel):
    """Structured answer of the strategy prompt."""
    summary: str
    recommendations: List[TickerRecommendation]
    risk_notes: str = ""


class SummarizeNewsInput(BaseModel):
    """Inputs of the news summary prompt."""
    article: str = Field(description="The full text content of the news article to be summarized.")


class SummarizeNewsOutput(BaseModel):
    """Summary and market impact of an article."""
    summary: str
    impact: str
