"""
Deterministic link classification.

Maps a URL to a category, a tag list and a human-readable source label
using ordered (patterns, result) tables. First match wins for categories and
titles; tag rules are additive. Nothing here touches the network, so
classification still works when fetching or AI enrichment fails.
"""

from urllib.parse import urlparse

from .models import CATEGORY_OTHER, UNLABELED_TAG

# URL patterns, checked against the lower-cased URL
LINKEDIN_PATTERNS = ['linkedin.com', 'lnkd.in']
SOCIAL_PATTERNS = ['twitter.com', 'x.com', 'facebook.com', 'tiktok.com', 'instagram.com']
VIDEO_PATTERNS = ['youtube.com', 'youtu.be']
PODCAST_PATTERNS = ['spotify.com', 'podcasts.apple.com', 'podcast']
NEWS_PATTERNS = ['nytimes.com', 'wsj.com', 'bbc.com', 'cnn.com', 'bloomberg.com', 'reuters.com']
MICROBLOG_PATTERNS = ['twitter.com', 'x.com']

CATEGORY_RULES = [
    (LINKEDIN_PATTERNS, 'LinkedIn Posts'),
    (SOCIAL_PATTERNS, 'Social'),
    (VIDEO_PATTERNS, 'Videos'),
    (PODCAST_PATTERNS, 'Podcasts'),
    (NEWS_PATTERNS, 'News Articles'),
]

TAG_RULES = [
    (VIDEO_PATTERNS, 'youtube'),
    (['spotify.com', 'podcasts.apple.com'], 'podcast'),
    (MICROBLOG_PATTERNS, 'twitter'),
    (LINKEDIN_PATTERNS, 'linkedin'),
]

# Used when neither the AI nor the page supplies a title
FALLBACK_TITLE_RULES = [
    (LINKEDIN_PATTERNS, 'LinkedIn Post'),
    (MICROBLOG_PATTERNS, 'Twitter/X Post'),
    (VIDEO_PATTERNS, 'YouTube Video'),
    (['spotify.com', 'podcasts.apple.com'], 'Podcast Episode'),
    (NEWS_PATTERNS, 'News Article'),
]
DEFAULT_TITLE = 'Saved Link'

SOURCE_LABELS = {
    'linkedin.com': 'LinkedIn',
    'lnkd.in': 'LinkedIn',
    'twitter.com': 'X',
    'x.com': 'X',
    'mobile.twitter.com': 'X',
    'facebook.com': 'Facebook',
    'm.facebook.com': 'Facebook',
    'instagram.com': 'Instagram',
    'tiktok.com': 'TikTok',
    'youtube.com': 'YouTube',
    'm.youtube.com': 'YouTube',
    'youtu.be': 'YouTube',
    'open.spotify.com': 'Spotify',
    'spotify.com': 'Spotify',
    'podcasts.apple.com': 'Apple Podcasts',
    'nytimes.com': 'The New York Times',
    'wsj.com': 'The Wall Street Journal',
    'bbc.com': 'BBC',
    'bbc.co.uk': 'BBC',
    'cnn.com': 'CNN',
    'bloomberg.com': 'Bloomberg',
    'reuters.com': 'Reuters',
    'github.com': 'GitHub',
    'medium.com': 'Medium',
}
UNKNOWN_SOURCE = 'Unknown'


def _first_match(url_lower: str, rules, default):
    for patterns, result in rules:
        for pattern in patterns:
            if pattern in url_lower:
                return result
    return default


def categorize_link(url: str) -> str:
    """Return the category for a URL, defaulting to 'Other'."""
    return _first_match((url or '').lower(), CATEGORY_RULES, CATEGORY_OTHER)


def generate_tags(url: str) -> list:
    """Return every tag whose rule matches, or ['unlabeled']."""
    url_lower = (url or '').lower()
    tags = []
    for patterns, tag in TAG_RULES:
        if any(pattern in url_lower for pattern in patterns) and tag not in tags:
            tags.append(tag)
    return tags or [UNLABELED_TAG]


def resolve_source(url: str) -> str:
    """
    Human-readable publisher/platform label for a URL.

    Known hosts come from SOURCE_LABELS. Otherwise the first DNS label is
    title-cased ("my-blog.example.org" -> "My Blog").
    """
    try:
        hostname = (urlparse(url).hostname or '').lower()
    except ValueError:
        return UNKNOWN_SOURCE

    if hostname.startswith('www.'):
        hostname = hostname[4:]
    if not hostname:
        return UNKNOWN_SOURCE

    if hostname in SOURCE_LABELS:
        return SOURCE_LABELS[hostname]

    label = hostname.split('.')[0].replace('-', ' ').replace('_', ' ')
    words = [word.capitalize() for word in label.split()]
    return ' '.join(words) or UNKNOWN_SOURCE


def fallback_title(url: str) -> str:
    """Heuristic title derived from the kind of link."""
    return _first_match((url or '').lower(), FALLBACK_TITLE_RULES, DEFAULT_TITLE)


def classify(url: str) -> dict:
    """Classify a URL. Pure and total: always returns all three keys."""
    return {
        'category': categorize_link(url),
        'tags': generate_tags(url),
        'source': resolve_source(url),
    }
