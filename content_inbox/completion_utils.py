"""
Decoding and validation of AI completion text.

The model is asked for {"title": ..., "summary": ...} but may wrap it in
prose or code fences, or return something else entirely. parse_completion()
never trusts the text: it returns either CompletionOk with validated,
repaired fields or CompletionMalformed with the raw text.
"""

import json
import re
from dataclasses import dataclass
from typing import Optional, Union

from .title_utils import MAX_TITLE_WORDS, clean_title, normalize_whitespace, truncate_words

MAX_SUMMARY_WORDS = 60

JSON_OBJECT_PATTERN = re.compile(r'\{[\s\S]*\}')


@dataclass(frozen=True)
class CompletionOk:
    title: str
    summary: str


@dataclass(frozen=True)
class CompletionMalformed:
    raw_text: str
    reason: str = ''


CompletionResult = Union[CompletionOk, CompletionMalformed]


def extract_json_object(text: str) -> Optional[dict]:
    """Find and decode the outermost JSON object in text."""
    if not text:
        return None
    match = JSON_OBJECT_PATTERN.search(text)
    if not match:
        return None
    try:
        parsed = json.loads(match.group())
    except json.JSONDecodeError:
        return None
    return parsed if isinstance(parsed, dict) else None


def clean_summary(summary: str, max_words: int = MAX_SUMMARY_WORDS) -> str:
    summary = normalize_whitespace(summary)
    summary, was_truncated = truncate_words(summary, max_words)
    if was_truncated:
        summary = summary.rstrip('.,;:') + '...'
    return summary


def parse_completion(text: Optional[str]) -> CompletionResult:
    """
    Decode a completion into a tagged result.

    Ok requires both a non-empty string title and summary. Titles are cut to
    12 words / 100 chars; summaries to 60 words.
    """
    raw_text = (text or '').strip()
    data = extract_json_object(raw_text)
    if data is None:
        return CompletionMalformed(raw_text=raw_text, reason='No JSON object in completion')

    title = data.get('title')
    summary = data.get('summary')
    if not isinstance(title, str) or not isinstance(summary, str):
        return CompletionMalformed(raw_text=raw_text, reason='Missing title or summary')

    title = clean_title(title, max_words=MAX_TITLE_WORDS)
    summary = clean_summary(summary)
    if not title or not summary:
        return CompletionMalformed(raw_text=raw_text, reason='Empty title or summary')

    return CompletionOk(title=title, summary=summary)
