"""
Command routing and item assembly for inbound chat messages.

Each message is classified into exactly one command, checked in priority
order:

1. attachments present      -> save-media
2. "show" / "show & clear"  -> show / show-and-clear
3. "clear"                  -> clear
4. body contains a URL      -> save-link
5. anything else            -> prompt

Every path returns a Reply whose kind tells the reply categories apart
(saved, partial, inbox, empty, cleared, prompt, error).

No locking is done here: a "clear" racing an in-flight save is ordered by
the item store.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional

from . import classifier
from .ai_enrichment import enrich_link
from .config import Settings
from .errors import ContentInboxError, CredentialMissing, EnrichmentFailure
from .item_store import ItemStore
from .media import ingest_attachments
from .metadata import fetch_metadata
from .models import STATUS_ARCHIVED, STATUS_INBOX, IncomingMessage, SavedItem, utc_now_iso
from .title_utils import clean_title, truncate_snippet
from .url_utils import extract_url, normalize_url

logger = logging.getLogger(__name__)

COMMAND_SAVE_MEDIA = 'save-media'
COMMAND_SHOW = 'show'
COMMAND_SHOW_AND_CLEAR = 'show-and-clear'
COMMAND_CLEAR = 'clear'
COMMAND_SAVE_LINK = 'save-link'
COMMAND_PROMPT = 'prompt'

PREVIEW_LIMIT = 5
SUMMARY_SNIPPET_LENGTH = 100


@dataclass(frozen=True)
class Reply:
    kind: str
    text: str


def classify_command(message: IncomingMessage) -> str:
    if message.has_attachments:
        return COMMAND_SAVE_MEDIA

    body = (message.body or '').strip().lower()
    if body == 'show':
        return COMMAND_SHOW
    if body == 'show & clear':
        return COMMAND_SHOW_AND_CLEAR
    if body == 'clear':
        return COMMAND_CLEAR
    if extract_url(message.body):
        return COMMAND_SAVE_LINK
    return COMMAND_PROMPT


def format_preview_line(item: dict) -> str:
    """'- title — source (category) [tags] · by savedBy' plus a summary line."""
    title = item.get('title') or 'Untitled'
    source = item.get('source') or 'Unknown'
    category = item.get('category') or 'Other'
    tags = ', '.join(item.get('tags') or [])
    line = f'- {title} — {source} ({category}) [{tags}]'
    if item.get('savedBy'):
        line += f" · by {item['savedBy']}"

    summary = truncate_snippet(item.get('summary'), SUMMARY_SNIPPET_LENGTH)
    if summary:
        line += f'\n   {summary}'
    return line


def format_preview(items: List[dict], limit: int = PREVIEW_LIMIT) -> str:
    return '\n'.join(format_preview_line(item) for item in items[:limit])


def build_link_item(url: str, metadata: dict, classification: dict, ai_result=None,
                    saved_by: str = '', saved_by_number: str = '') -> SavedItem:
    """
    Merge the deterministic classification with optional AI output.

    Category, tags and source always come from the classifier. The AI result
    only overrides title and summary; without it the page title (or a
    heuristic title) and the page description are used.
    """
    page_title = metadata.get('page_title')
    if ai_result is not None:
        title = ai_result.title
        summary = ai_result.summary
    else:
        title = clean_title(page_title) or classifier.fallback_title(url)
        summary = metadata.get('description')

    return SavedItem(
        title=title,
        page_title=page_title,
        url=url,
        type='link',
        tags=classification['tags'],
        category=classification['category'],
        status=STATUS_INBOX,
        summary=summary,
        source=classification['source'],
        saved_by=saved_by,
        saved_by_number=saved_by_number,
    )


def enrich_url(url: str, settings: Settings, saved_by: str = '', saved_by_number: str = '') -> SavedItem:
    """Run the link pipeline for a URL and return an unsaved item."""
    url = normalize_url(url)
    classification = classifier.classify(url)
    metadata = fetch_metadata(url)

    ai_result = None
    try:
        ai_result = enrich_link(url, metadata, settings.gemini_api_key, settings.gemini_model)
    except EnrichmentFailure as e:
        logger.warning('AI enrichment skipped for %s: %s', url, e)

    return build_link_item(url, metadata, classification, ai_result, saved_by, saved_by_number)


class CommandRouter:
    """
    Dispatch inbound messages against the item store.

    sender_names maps raw sender ids to display names. It is read-only after
    construction.
    """

    def __init__(self, store: ItemStore, settings: Settings, sender_names: Optional[Mapping[str, str]] = None):
        self.store = store
        self.settings = settings
        self.sender_names: Dict[str, str] = dict(sender_names or {})

    def display_name(self, sender: str) -> str:
        number = (sender or '').replace('whatsapp:', '').strip()
        return self.sender_names.get(sender) or self.sender_names.get(number) or number or 'Unknown'

    def handle(self, message: IncomingMessage) -> Reply:
        command = classify_command(message)
        logger.info('Message from %s routed to %s', message.sender, command)

        if command == COMMAND_SAVE_MEDIA:
            return self.save_media(message)
        if command == COMMAND_SHOW:
            return self.show(clear_after=False)
        if command == COMMAND_SHOW_AND_CLEAR:
            return self.show(clear_after=True)
        if command == COMMAND_CLEAR:
            return self.clear()
        if command == COMMAND_SAVE_LINK:
            return self.save_link(message)
        return Reply('prompt', '⚠️ Please send a link.')

    def show(self, clear_after: bool = False) -> Reply:
        try:
            items = self.store.list_items()
        except ContentInboxError as e:
            logger.error('Error fetching inbox: %s', e)
            return Reply('error', '⚠️ Could not fetch inbox')

        if not items:
            return Reply('empty', '📭 Inbox is empty')

        preview = format_preview(items)
        if not clear_after:
            return Reply('inbox', f'📋 Inbox:\n{preview}')

        try:
            self.store.delete_all()
        except ContentInboxError as e:
            logger.error('Error clearing inbox after show: %s', e)
            return Reply('error', f'📋 Inbox:\n{preview}\n\n⚠️ Could not clear inbox')
        return Reply('inbox', f'📋 Inbox:\n{preview}\n\n🗑️ Cleared after viewing')

    def clear(self) -> Reply:
        try:
            self.store.delete_all()
        except ContentInboxError as e:
            logger.error('Error clearing content: %s', e)
            return Reply('error', '⚠️ Failed to clear content')
        return Reply('cleared', '🗑️ Content Inbox cleared')

    def save_link(self, message: IncomingMessage) -> Reply:
        url = extract_url(message.body)
        item = enrich_url(
            url,
            self.settings,
            saved_by=self.display_name(message.sender),
            saved_by_number=message.sender,
        )
        try:
            self.store.create_item(item)
        except ContentInboxError as e:
            logger.error('Error saving %s: %s', item.url, e)
            return Reply('error', '⚠️ Error saving content.')
        return Reply('saved', f'📌 Saved: {item.title}')

    def save_media(self, message: IncomingMessage) -> Reply:
        try:
            outcomes = ingest_attachments(message, self.settings, self.display_name(message.sender))
        except CredentialMissing as e:
            logger.error('Media save unavailable: %s', e)
            return Reply('error', '⚠️ Media saving is not configured.')

        saved = []
        for outcome in outcomes:
            if not outcome.ok:
                continue
            try:
                self.store.create_item(outcome.item)
            except ContentInboxError as e:
                logger.error('Error saving attachment %d: %s', outcome.index, e)
                continue
            saved.append(outcome.item)

        total = len(outcomes)
        if not saved:
            return Reply('error', '⚠️ Could not save your screenshots.')
        noun = 'screenshot' if total == 1 else 'screenshots'
        if len(saved) < total:
            return Reply('partial', f'📸 Saved {len(saved)} of {total} {noun}')
        return Reply('saved', f'📸 Saved {total} {noun}')


def archive_item(store: ItemStore, item_id: str) -> dict:
    return store.patch_item(item_id, {'status': STATUS_ARCHIVED})


def unarchive_item(store: ItemStore, item_id: str) -> dict:
    return store.patch_item(item_id, {'status': STATUS_INBOX})


def mark_viewed(store: ItemStore, item_id: str) -> dict:
    """Set viewedAt once. An item already viewed is returned unchanged."""
    item = store.get_item(item_id)
    if item.get('viewedAt'):
        return item
    return store.patch_item(item_id, {'viewedAt': utc_now_iso()})


ITEM_ACTIONS = {
    'archive': archive_item,
    'unarchive': unarchive_item,
    'viewed': mark_viewed,
}
