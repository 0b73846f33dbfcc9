"""
URL extraction and normalization.

Neither function raises: a message without a URL yields None, and a URL that
cannot be parsed is returned unchanged.
"""

import re
from typing import Optional
from urllib.parse import urlparse

URL_PATTERN = re.compile(r'https?://[^\s]+', re.IGNORECASE)

LINKEDIN_HOSTS = ('linkedin.com', 'lnkd.in')
LINKEDIN_ACTIVITY_MARKER = '/feed/update/urn:li:activity'
LINKEDIN_FEED_UPDATE_URL = 'https://www.linkedin.com/feed/update/{activity_id}'


def extract_url(text: Optional[str]) -> Optional[str]:
    """Return the first http(s) URL in text, or None."""
    if not text:
        return None
    match = URL_PATTERN.search(text)
    return match.group(0) if match else None


def is_linkedin_url(url: str) -> bool:
    lowered = url.lower()
    return any(host in lowered for host in LINKEDIN_HOSTS)


def clean_linkedin_url(url: str) -> str:
    """
    Rewrite a LinkedIn activity-feed URL to its canonical form.

        https://www.linkedin.com/feed/update/urn:li:activity:123456/
        -> https://www.linkedin.com/feed/update/123456

    /posts/ URLs and anything else pass through unchanged.
    """
    try:
        path = urlparse(url).path
    except ValueError:
        return url

    if LINKEDIN_ACTIVITY_MARKER in path:
        activity_id = path.rstrip('/').split(':')[-1]
        if activity_id:
            return LINKEDIN_FEED_UPDATE_URL.format(activity_id=activity_id)

    return url


def normalize_url(url: str) -> str:
    """Canonicalize known platform URL shapes."""
    if not url:
        return url
    if is_linkedin_url(url):
        return clean_linkedin_url(url)
    return url
