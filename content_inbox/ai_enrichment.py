"""
AI enrichment of saved links using Gemini.

Given a URL and whatever page metadata could be fetched, asks the model for
a short descriptive title and a one/two sentence summary. The prompt carries
content-type specific guidance chosen from the URL.

This stage is best-effort. Any failure raises EnrichmentFailure and the
caller saves the item without it.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import google.generativeai as genai

from .classifier import DEFAULT_TITLE
from .completion_utils import CompletionMalformed, CompletionOk, parse_completion
from .errors import EnrichmentFailure
from .title_utils import clean_title

logger = logging.getLogger(__name__)

AI_TIMEOUT_SECONDS = 15

# Checked in order against the lower-cased URL; first match wins
CONTENT_KIND_RULES = [
    (['linkedin.com', 'lnkd.in'], 'social_post'),
    (['twitter.com', 'x.com'], 'microblog'),
    (['youtube.com', 'youtu.be', 'vimeo.com', 'tiktok.com'], 'video'),
    (['spotify.com', 'podcasts.apple.com', 'podcast'], 'podcast'),
    (['github.com', 'gitlab.com'], 'code'),
]
DEFAULT_CONTENT_KIND = 'article'

CONTENT_GUIDANCE = {
    'social_post': (
        'This is a LinkedIn post. Name the author if known and capture the '
        'main professional insight, announcement or argument of the post.'
    ),
    'microblog': (
        'This is a post on X (Twitter). Capture the claim or news in the post '
        'and who posted it. Do not describe the platform itself.'
    ),
    'video': (
        'This is a video. Describe what the video covers or teaches and, if '
        'known, the creator or channel.'
    ),
    'podcast': (
        'This is a podcast episode. Mention the show and guest if known and '
        'the main topics discussed.'
    ),
    'code': (
        'This is a code repository. Say what the project does, the language '
        'or stack if known, and who it is useful for.'
    ),
    'article': (
        'This is an article or webpage. State the main topic and the key '
        'takeaway or finding.'
    ),
}

SYSTEM_INSTRUCTION = (
    'You write accurate, specific titles and summaries for saved links. '
    'Never invent facts. If details are unknown, say what kind of content it is.'
)


@dataclass(frozen=True)
class AIEnrichment:
    title: str
    summary: str


def detect_content_kind(url: str) -> str:
    url_lower = (url or '').lower()
    for patterns, kind in CONTENT_KIND_RULES:
        if any(pattern in url_lower for pattern in patterns):
            return kind
    return DEFAULT_CONTENT_KIND


def build_prompt(url: str, metadata: Optional[dict] = None) -> str:
    """Build the enrichment prompt. Missing metadata is rendered as N/A."""
    metadata = metadata or {}
    kind = detect_content_kind(url)

    def value(key):
        return metadata.get(key) or 'N/A'

    return f"""Analyze this saved link and provide a title and a summary.

{CONTENT_GUIDANCE[kind]}

1. **Title**: A specific, descriptive title of 5-12 words. Do not use generic
   titles like "LinkedIn Post" or "Article". Do not include the site name.

2. **Summary**: 1-2 sentences (at most 60 words) describing what the content
   is about and why it matters.

URL: {url}
Page Title: {value('page_title')}
Description: {value('description')}
Author: {value('author')}
Published: {value('publish_date')}
Site: {value('site_name')}

Excerpt:
{value('excerpt')}

Respond in this exact JSON format:
{{
  "title": "Descriptive title here",
  "summary": "One or two sentence summary here"
}}
"""


def request_completion(prompt: str, api_key: str, model_name: str) -> str:
    """Send one completion request to Gemini and return its text."""
    genai.configure(api_key=api_key)
    model = genai.GenerativeModel(model_name, system_instruction=SYSTEM_INSTRUCTION)
    response = model.generate_content(
        prompt,
        generation_config={
            'response_mime_type': 'application/json',
            'temperature': 0.4,
            'max_output_tokens': 300,
        },
        request_options={'timeout': AI_TIMEOUT_SECONDS},
    )
    return response.text


def enrich_link(url: str, metadata: Optional[dict], api_key: Optional[str],
                model_name: str = 'gemini-2.0-flash') -> AIEnrichment:
    """
    Generate an AI title and summary for a link.

    A completion that is not the expected JSON is kept: its raw text becomes
    the summary and the page title (or "Saved Link") the title.

    Raises:
        EnrichmentFailure: missing API key, request error, or empty completion.
    """
    if not api_key:
        raise EnrichmentFailure('GEMINI_API_KEY not configured')

    metadata = metadata or {}
    prompt = build_prompt(url, metadata)

    try:
        text = request_completion(prompt, api_key, model_name)
    except Exception as e:
        raise EnrichmentFailure(f'Gemini request failed: {e}') from e

    result = parse_completion(text)

    if isinstance(result, CompletionOk):
        return AIEnrichment(title=result.title, summary=result.summary)

    if isinstance(result, CompletionMalformed) and result.raw_text:
        logger.warning('Malformed completion for %s (%s), using raw text', url, result.reason)
        title = clean_title(metadata.get('page_title')) or DEFAULT_TITLE
        return AIEnrichment(title=title, summary=result.raw_text)

    raise EnrichmentFailure('Gemini returned an empty completion')
