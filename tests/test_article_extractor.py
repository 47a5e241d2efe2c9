"""Tests for article body extraction."""

from unittest.mock import MagicMock

import requests

from marketgazer.config import config
from marketgazer.data.article_extractor import (
    ArticleExtractor,
    CONTENT_UNAVAILABLE,
    extract_article_text,
)

LONG_SENTENCE = "Shares of the company climbed after quarterly revenue beat analyst expectations by a wide margin."


def test_article_container_wins():
    html = f"""
    <html><body>
      <p>{LONG_SENTENCE} This paragraph is outside the article.</p>
      <article>
        <p>Inside the article.</p>
        <figure>Chart caption</figure>
        <div class="ad">Buy now</div>
      </article>
    </body></html>
    """
    text = extract_article_text(html)

    assert "Inside the article." in text
    assert "Chart caption" not in text
    assert "Buy now" not in text
    assert "outside the article" not in text


def test_selector_order():
    html = """
    <div class="article-body">Second choice</div>
    <div class="caas-body">First choice <div class="related-content">Related</div></div>
    """
    text = extract_article_text(html)

    assert "First choice" in text
    assert "Related" not in text


def test_paragraph_fallback_keeps_long_paragraphs():
    html = f"""
    <html><body>
      <p>Short ad text.</p>
      <p>{LONG_SENTENCE}</p>
      <p>{LONG_SENTENCE.replace('climbed', 'rose')}</p>
    </body></html>
    """
    text = extract_article_text(html)

    assert "Short ad text." not in text
    assert text.count("\n") == 1
    assert "rose" in text


def test_too_little_text_returns_fallback():
    html = f"<html><body><p>{LONG_SENTENCE}</p></body></html>"
    assert len(LONG_SENTENCE) < 100
    assert extract_article_text(html) == CONTENT_UNAVAILABLE


def test_http_error_returns_fallback():
    session = MagicMock()
    session.get.return_value.ok = False
    session.get.return_value.reason = "Not Found"

    extractor = ArticleExtractor(session=session)

    assert extractor.get_article_content("https://example.com/missing") == CONTENT_UNAVAILABLE


def test_network_error_returns_fallback():
    session = MagicMock()
    session.get.side_effect = requests.ConnectionError("refused")

    extractor = ArticleExtractor(session=session)

    assert extractor.get_article_content("https://example.com/a") == CONTENT_UNAVAILABLE


def test_fetches_and_extracts():
    session = MagicMock()
    session.get.return_value.ok = True
    session.get.return_value.text = "<article>Body text</article>"

    extractor = ArticleExtractor(session=session)

    assert extractor.get_article_content("https://example.com/a") == "Body text"
    assert session.get.call_args.kwargs['timeout'] == extractor.timeout


def test_own_session_sends_browser_user_agent():
    assert ArticleExtractor().session.headers["User-Agent"] == config.market.user_agent
