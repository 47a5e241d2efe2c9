"""Web API for the MarketGazer dashboard."""

import math
import uuid
from typing import Optional

from flask import Flask, jsonify, request, g
from flask_cors import CORS
from werkzeug.middleware.proxy_fix import ProxyFix
from pydantic import ValidationError
from loguru import logger

from marketgazer.config import config
from marketgazer.errors import MarketGazerError, InvalidInputError, NotFoundError
from marketgazer.validation import Timeframe, validate_symbol, parse_comparison_symbols, parse_symbol_list
from marketgazer.data.market_data import MarketDataClient
from marketgazer.data.data_aggregator import DataAggregator
from marketgazer.llm.analyst import StockAnalyst
from marketgazer.storage.kv_store import KeyValueStore
from marketgazer.storage.watchlist import WatchlistRepository
from marketgazer.storage.portfolio import PortfolioRepository, PortfolioItem
from marketgazer.storage.strategies import StrategyRepository, Strategy


def _json_body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise InvalidInputError("Request body must be a JSON object.")
    return data


def _number(data: dict, field: str) -> float:
    try:
        value = float(data[field])
    except (KeyError, TypeError, ValueError):
        raise InvalidInputError(f"'{field}' must be a number.")
    if not math.isfinite(value):
        raise InvalidInputError(f"'{field}' must be a finite number.")
    return value


def _text(data: dict, field: str) -> str:
    value = str(data.get(field) or '').strip()
    if not value:
        raise InvalidInputError(f"'{field}' is required.")
    return value


def create_app(
    market_client: Optional[MarketDataClient] = None,
    analyst: Optional[StockAnalyst] = None,
    store: Optional[KeyValueStore] = None,
    aggregator: Optional[DataAggregator] = None
) -> Flask:
    """Build the Flask application.

    Args:
        market_client: Finance data client
        analyst: Prompt flow runner
        store: Key/value store backing watchlist, portfolio and strategies
        aggregator: Price snapshot aggregator

    Returns:
        Configured Flask app
    """
    app = Flask(__name__)

    # Trust X-Forwarded-* headers when deployed behind a proxy
    app.wsgi_app = ProxyFix(app.wsgi_app, x_proto=1, x_host=1)

    CORS(app, supports_credentials=True, origins=config.web.cors_origins)

    market_client = market_client or MarketDataClient()
    analyst = analyst or StockAnalyst(market_client=market_client)
    store = store or KeyValueStore()
    aggregator = aggregator or DataAggregator(market_client)

    cookie_name = config.web.client_cookie

    @app.before_request
    def identify_client():
        """Scope stored collections to the calling client."""
        client_id = request.cookies.get(cookie_name, '')
        g.new_client = not (client_id.isalnum() and len(client_id) <= 64)
        g.client_id = uuid.uuid4().hex if g.new_client else client_id

    @app.after_request
    def remember_client(response):
        if g.get('new_client'):
            response.set_cookie(cookie_name, g.client_id, max_age=60 * 60 * 24 * 365, httponly=True, samesite='Lax')
        return response

    @app.errorhandler(MarketGazerError)
    def handle_app_error(error: MarketGazerError):
        return jsonify({'error': error.message}), error.status_code

    @app.errorhandler(ValidationError)
    def handle_validation_error(error: ValidationError):
        return jsonify({'error': 'Invalid request.', 'details': error.errors(include_url=False, include_context=False, include_input=False)}), 400

    def watchlist() -> WatchlistRepository:
        return WatchlistRepository(store, g.client_id)

    def portfolio() -> PortfolioRepository:
        return PortfolioRepository(store, g.client_id)

    def strategies() -> StrategyRepository:
        return StrategyRepository(store, g.client_id)

    # Health check
    @app.route('/health')
    def health_check():
        """Health check endpoint."""
        return jsonify({'status': 'healthy', 'service': 'marketgazer'}), 200

    @app.route('/api/config')
    def get_config():
        """Get public dashboard configuration."""
        return jsonify({
            'timeframes': [t.value for t in Timeframe],
            'max_symbol_length': config.market.max_symbol_length,
            'max_compare_symbols': config.market.max_compare_symbols,
            'model': config.gemini.model,
        })

    @app.route('/api/stock')
    def get_stock():
        """Get details and historical bars for a symbol."""
        symbol = validate_symbol(request.args.get('symbol'))
        timeframe = Timeframe.parse(request.args.get('timeframe'))
        return jsonify(market_client.get_stock_data(symbol, timeframe.value))

    @app.route('/api/analyze', methods=['POST'])
    def run_analysis():
        """Get stock data plus an AI trend prediction."""
        data = _json_body()
        result = analyst.analyze_stock(data.get('symbol'), data.get('timeframe', 'daily'))
        return jsonify(result)

    @app.route('/api/strategy-pipeline', methods=['POST'])
    def run_strategy_pipeline():
        """Run the multi-ticker strategy prompt."""
        data = _json_body()
        symbols = parse_symbol_list(data.get('symbols') or [])

        params = {k: data[k] for k in ('forecast_horizon', 'account_size', 'risk_per_trade_pct', 'models') if k in data}
        result = analyst.analyze_portfolio_strategy(symbols, data.get('timeframe', 'daily'), **params)
        return jsonify(result.model_dump())

    @app.route('/api/trending')
    def get_trending():
        """Get trending stocks."""
        return jsonify({'trending': market_client.get_trending_stocks()})

    @app.route('/api/news')
    def get_news():
        """Search market news."""
        query = request.args.get('query') or None
        return jsonify({'news': market_client.get_news(query)})

    @app.route('/api/news/summarize', methods=['POST'])
    def summarize_news():
        """Summarize a news article by URL."""
        url = _text(_json_body(), 'url')
        if not url.startswith(('http://', 'https://')):
            raise InvalidInputError("'url' must be an http(s) URL.")
        return jsonify(analyst.summarize_news_article(url).model_dump())

    @app.route('/api/compare')
    def compare():
        """Compare key metrics of up to four symbols."""
        symbols = parse_comparison_symbols(request.args.get('symbols', ''))
        return jsonify({'comparison': market_client.get_comparison_data(symbols)})

    @app.route('/api/watchlist', methods=['GET'])
    def get_watchlist():
        """Get the watchlist with current prices."""
        symbols = watchlist().items
        return jsonify({
            'symbols': symbols,
            'watchlist': aggregator.get_watchlist_snapshots(symbols),
        })

    @app.route('/api/watchlist', methods=['POST'])
    def add_to_watchlist():
        """Add a symbol to the watchlist."""
        symbol = validate_symbol(_json_body().get('symbol'))
        repo = watchlist()
        added = repo.add(symbol)
        return jsonify({'symbol': symbol, 'added': added, 'symbols': repo.items}), 201 if added else 200

    @app.route('/api/watchlist/<symbol>', methods=['DELETE'])
    def remove_from_watchlist(symbol):
        """Remove a symbol from the watchlist."""
        repo = watchlist()
        removed = repo.remove(symbol)
        return jsonify({'symbol': symbol.upper(), 'removed': removed, 'symbols': repo.items})

    @app.route('/api/portfolio', methods=['GET'])
    def get_portfolio():
        """Get portfolio positions valued at the latest close."""
        return jsonify(aggregator.get_portfolio_summary(portfolio().items))

    @app.route('/api/portfolio', methods=['POST'])
    def add_to_portfolio():
        """Add shares to the portfolio."""
        data = _json_body()
        item = PortfolioItem(
            symbol=validate_symbol(data.get('symbol')),
            quantity=_number(data, 'quantity'),
            purchase_price=_number(data, 'purchasePrice')
        )
        stored = portfolio().add(item)
        return jsonify({
            'message': f"{item.quantity:g} shares of {item.symbol} added to your portfolio.",
            'position': stored.to_dict(),
        }), 201

    @app.route('/api/portfolio/<symbol>', methods=['PUT'])
    def update_portfolio_item(symbol):
        """Overwrite a position's quantity and average price."""
        data = _json_body()
        updated = portfolio().update(symbol, _number(data, 'quantity'), _number(data, 'purchasePrice'))
        return jsonify({
            'message': f"Your holdings for {updated.symbol} have been updated.",
            'position': updated.to_dict(),
        })

    @app.route('/api/portfolio/<symbol>', methods=['DELETE'])
    def remove_from_portfolio(symbol):
        """Remove a position."""
        if not portfolio().remove(symbol):
            raise NotFoundError(f"{symbol.upper()} is not in your portfolio.")
        return jsonify({'message': f"{symbol.upper()} has been removed from your portfolio."})

    @app.route('/api/strategies', methods=['GET'])
    def get_strategies():
        """List saved strategies."""
        return jsonify({'strategies': [s.to_dict() for s in strategies().items]})

    @app.route('/api/strategies', methods=['POST'])
    def add_strategy():
        """Save a new strategy."""
        data = _json_body()
        strategy = strategies().add(_text(data, 'title'), _text(data, 'description'))
        return jsonify({'strategy': strategy.to_dict()}), 201

    @app.route('/api/strategies/<strategy_id>', methods=['PUT'])
    def update_strategy(strategy_id):
        """Update a strategy's title and description."""
        data = _json_body()
        strategy = Strategy(id=strategy_id, title=_text(data, 'title'), description=_text(data, 'description'))
        return jsonify({'strategy': strategies().update(strategy).to_dict()})

    @app.route('/api/strategies/<strategy_id>', methods=['DELETE'])
    def remove_strategy(strategy_id):
        """Delete a strategy."""
        if not strategies().remove(strategy_id):
            raise NotFoundError(f"Strategy {strategy_id} not found.")
        return jsonify({'message': "The strategy has been deleted."})

    logger.info("Dashboard app created")
    return app

