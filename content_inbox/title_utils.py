"""
Title and snippet helpers for the Content Inbox.

Saved item titles are limited to 100 characters. Longer titles are cut at a
word boundary, never mid-word.
"""

import re
from typing import Optional, Tuple

MAX_TITLE_LENGTH = 100
MAX_TITLE_WORDS = 12
ELLIPSIS = '...'


def normalize_whitespace(text: Optional[str]) -> str:
    if not text:
        return ''
    return ' '.join(text.split())


def truncate_title(title: str, max_length: int = MAX_TITLE_LENGTH) -> Tuple[str, bool]:
    """
    Truncate title at word boundary, not mid-word.

    Returns:
        Tuple of (truncated_title, was_truncated)

    Examples:
        >>> truncate_title("Hello World", 70)
        ('Hello World', False)

        >>> truncate_title("This is a very long title that exceeds the limit", 20)
        ('This is a very long', True)
    """
    if not title:
        return ('', False)

    title = normalize_whitespace(title)

    if len(title) <= max_length:
        return (title, False)

    truncated = title[:max_length]
    last_space = truncated.rfind(' ')

    # Single long word: hard cut with ellipsis
    if last_space == -1:
        return (title[:max_length - len(ELLIPSIS)] + ELLIPSIS, True)

    return (truncated[:last_space].rstrip(), True)


def sanitize_title(title: str) -> str:
    """
    Sanitize a title for display in a chat message.

    - Removes null bytes and control characters
    - Strips wrapping quotes left by language models
    - Normalizes whitespace
    """
    if not title:
        return ''

    title = re.sub(r'[\x00-\x1f\x7f-\x9f]', ' ', title)
    title = normalize_whitespace(title)
    title = title.strip('"\'`“”')

    return title.strip()


def truncate_words(text: str, max_words: int) -> Tuple[str, bool]:
    """Keep at most max_words words. Returns (text, was_truncated)."""
    words = normalize_whitespace(text).split(' ') if text else []
    if len(words) <= max_words:
        return (' '.join(words), False)
    return (' '.join(words[:max_words]), True)


def truncate_snippet(text: Optional[str], max_length: int) -> str:
    """Cut text to max_length characters, appending an ellipsis when cut."""
    if not text:
        return ''
    text = normalize_whitespace(text)
    if len(text) <= max_length:
        return text
    return text[:max_length] + ELLIPSIS


def clean_title(title: Optional[str], max_words: int = MAX_TITLE_WORDS) -> str:
    """Sanitize, then bound a title by word count and character length."""
    title = sanitize_title(title or '')
    title, _ = truncate_words(title, max_words)
    title, _ = truncate_title(title)
    return title
