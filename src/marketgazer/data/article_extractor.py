"""Fetch news article pages and pull out their body text."""

from typing import Optional

import requests
from bs4 import BeautifulSoup
from loguru import logger

from marketgazer.config import config
from .market_data import build_session

# Common containers for article bodies, tried in order
ARTICLE_SELECTORS = [
    'article',
    '.caas-body',
    '.article-body',
    '#story-body',
    '.story-content',
    'div[data-component="Component-Caas-Content"]',
]

# Elements stripped from an article body before extracting text
NOISE_SELECTOR = 'figure, .ad, .related-content, .player-unavailable'

MIN_PARAGRAPH_LENGTH = 80
MIN_ARTICLE_LENGTH = 100

CONTENT_UNAVAILABLE = "Could not retrieve the article content to summarize."


def extract_article_text(html: str) -> str:
    """Extract the readable body of an article from raw HTML.

    Args:
        html: Page markup

    Returns:
        Article text, or CONTENT_UNAVAILABLE if nothing usable was found
    """
    soup = BeautifulSoup(html, 'html.parser')

    body = None
    for selector in ARTICLE_SELECTORS:
        body = soup.select_one(selector)
        if body is not None:
            break

    if body is not None:
        for element in body.select(NOISE_SELECTOR):
            element.decompose()
        return body.get_text()

    # No known container, gather long paragraphs instead
    container = soup.body or soup
    text = ''
    for p in container.find_all('p'):
        content = p.get_text()
        if len(content) > MIN_PARAGRAPH_LENGTH:
            text += content + '\n'

    if len(text.strip()) > MIN_ARTICLE_LENGTH:
        return text.strip()

    return CONTENT_UNAVAILABLE


class ArticleExtractor:
    """Downloads article pages for summarization."""

    def __init__(self, session: Optional[requests.Session] = None):
        self.session = session or build_session()
        self.timeout = config.market.http_timeout

    def get_article_content(self, url: str) -> str:
        """Fetch an article and return its body text.

        Network and HTTP failures are logged and yield CONTENT_UNAVAILABLE.
        """
        try:
            response = self.session.get(url, timeout=self.timeout)
            if not response.ok:
                raise requests.HTTPError(f"Failed to fetch article: {response.reason}")
            return extract_article_text(response.text)

        except requests.RequestException as e:
            logger.error(f"Error fetching article content from {url}: {e}")
            return CONTENT_UNAVAILABLE
