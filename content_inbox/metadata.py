"""
Page metadata fetcher.

Fetches a webpage and extracts title, description, author, publish date,
site name and an article excerpt using ordered fallback selectors.

Nothing in this module raises on a bad page: an unreachable host, an error
status or unparseable markup all degrade to None fields.
"""

import logging
import re
from typing import Optional

import requests
from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

FETCH_TIMEOUT_SECONDS = 5
USER_AGENT = 'Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36'

METADATA_FIELDS = ('page_title', 'description', 'author', 'publish_date', 'site_name', 'excerpt')

# (css selector, attribute); attribute None means element text
TITLE_SELECTORS = [
    ('title', None),
    ('meta[property="og:title"]', 'content'),
    ('meta[name="twitter:title"]', 'content'),
]
DESCRIPTION_SELECTORS = [
    ('meta[name="description"]', 'content'),
    ('meta[property="og:description"]', 'content'),
    ('meta[name="twitter:description"]', 'content'),
]
AUTHOR_SELECTORS = [
    ('meta[name="author"]', 'content'),
    ('meta[property="article:author"]', 'content'),
    ('meta[name="twitter:creator"]', 'content'),
    ('a[rel="author"]', None),
]
PUBLISH_DATE_SELECTORS = [
    ('meta[property="article:published_time"]', 'content'),
    ('meta[name="date"]', 'content'),
    ('meta[itemprop="datePublished"]', 'content'),
    ('time[datetime]', 'datetime'),
]
SITE_NAME_SELECTORS = [
    ('meta[property="og:site_name"]', 'content'),
    ('meta[name="application-name"]', 'content'),
]

# Excerpt extraction
CONTENT_CONTAINER_SELECTORS = [
    'article',
    '[role="article"]',
    '.post-content',
    '.article-content',
    '.entry-content',
    '.article-body',
    '.content',
    'main',
]
MIN_PARAGRAPH_LENGTH = 50
MAX_CONTAINER_PARAGRAPHS = 5
MAX_FALLBACK_PARAGRAPHS = 3
MAX_EXCERPT_WORDS = 500
MAX_EXCERPT_CHARS = 2000


def empty_metadata() -> dict:
    return {field: None for field in METADATA_FIELDS}


def fetch_page(url: str) -> tuple:
    """Fetch webpage content. Returns (html, error)."""
    try:
        headers = {
            'User-Agent': USER_AGENT,
            'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8',
            'Accept-Language': 'en-US,en;q=0.5',
        }

        response = requests.get(url, headers=headers, timeout=FETCH_TIMEOUT_SECONDS, allow_redirects=True)
        response.raise_for_status()

        return response.text, None

    except requests.exceptions.Timeout:
        return None, 'Request timed out'
    except requests.exceptions.HTTPError as e:
        return None, f'HTTP error: {e.response.status_code}'
    except requests.exceptions.RequestException as e:
        return None, f'Request failed: {str(e)}'


def _select_value(soup: BeautifulSoup, selector: str, attribute: Optional[str]) -> Optional[str]:
    element = soup.select_one(selector)
    if element is None:
        return None
    if attribute is None:
        value = element.get_text(' ', strip=True)
    else:
        value = element.get(attribute)
    if not value:
        return None
    value = ' '.join(str(value).split())
    return value or None


def first_value(soup: BeautifulSoup, selectors: list) -> Optional[str]:
    """Return the first non-empty trimmed value from an ordered selector list."""
    if soup is None:
        return None
    for selector, attribute in selectors:
        value = _select_value(soup, selector, attribute)
        if value:
            return value
    return None


def extract_metadata(soup: BeautifulSoup) -> dict:
    """Extract metadata fields (all but the excerpt) from parsed HTML."""
    metadata = empty_metadata()
    del metadata['excerpt']

    if not soup:
        return metadata

    metadata['page_title'] = first_value(soup, TITLE_SELECTORS)
    metadata['description'] = first_value(soup, DESCRIPTION_SELECTORS)
    metadata['publish_date'] = first_value(soup, PUBLISH_DATE_SELECTORS)
    metadata['site_name'] = first_value(soup, SITE_NAME_SELECTORS)

    author = first_value(soup, AUTHOR_SELECTORS)
    if author:
        author = re.sub(r'^by\s+', '', author, flags=re.I).strip() or None
    metadata['author'] = author

    return metadata


def _qualifying_paragraphs(container) -> list:
    paragraphs = []
    for p in container.find_all('p'):
        text = ' '.join(p.get_text(' ', strip=True).split())
        if len(text) > MIN_PARAGRAPH_LENGTH:
            paragraphs.append(text)
    return paragraphs


def _bound_excerpt(paragraphs: list) -> str:
    words = ' '.join(paragraphs).split()
    text = ' '.join(words[:MAX_EXCERPT_WORDS])
    if len(text) > MAX_EXCERPT_CHARS:
        text = text[:MAX_EXCERPT_CHARS] + '...'
    return text


def extract_excerpt(soup: BeautifulSoup) -> Optional[str]:
    """
    Extract a short article excerpt.

    Tries the content containers in priority order and uses the first one
    holding paragraphs longer than 50 characters (first 5 kept). Falls back to
    the first 3 such paragraphs anywhere in the body.
    """
    if not soup:
        return None

    for selector in CONTENT_CONTAINER_SELECTORS:
        container = soup.select_one(selector)
        if container is None:
            continue
        paragraphs = _qualifying_paragraphs(container)
        if paragraphs:
            return _bound_excerpt(paragraphs[:MAX_CONTAINER_PARAGRAPHS])

    body = soup.body or soup
    paragraphs = _qualifying_paragraphs(body)
    if paragraphs:
        return _bound_excerpt(paragraphs[:MAX_FALLBACK_PARAGRAPHS])

    return None


def fetch_metadata(url: str) -> dict:
    """Fetch a page and extract all metadata fields; never raises."""
    html, fetch_error = fetch_page(url)
    if fetch_error:
        logger.warning('Metadata fetch failed for %s: %s', url, fetch_error)
        return empty_metadata()

    try:
        soup = BeautifulSoup(html, 'html.parser')
        metadata = extract_metadata(soup)
        metadata['excerpt'] = extract_excerpt(soup)
    except Exception as e:
        logger.warning('Metadata parse failed for %s: %s', url, e)
        return empty_metadata()

    return metadata
