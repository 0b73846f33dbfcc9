"""
Data model for the Content Inbox.

SavedItem serializes to the camelCase record shape the item store expects.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

DEFAULT_MEDIA_CONTENT_TYPE = 'image/jpeg'
UNLABELED_TAG = 'unlabeled'

CATEGORY_OTHER = 'Other'
CATEGORIES = (
    'LinkedIn Posts',
    'Social',
    'Videos',
    'Podcasts',
    'News Articles',
    'Screenshots',
    CATEGORY_OTHER,
)

STATUS_INBOX = 'inbox'
STATUS_ARCHIVED = 'archived'
STATUSES = (STATUS_INBOX, STATUS_ARCHIVED)

ITEM_TYPES = ('link', 'image')


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z')


def normalize_tags(tags) -> List[str]:
    """Lowercase, strip and dedupe tags; never returns an empty list."""
    cleaned = []
    for tag in tags or []:
        tag = str(tag).strip().lower()
        if tag and tag not in cleaned:
            cleaned.append(tag)
    return cleaned or [UNLABELED_TAG]


def normalize_category(category: Optional[str]) -> str:
    return category if category in CATEGORIES else CATEGORY_OTHER


@dataclass
class Attachment:
    url: str
    content_type: Optional[str] = None


@dataclass
class IncomingMessage:
    sender: str
    body: str = ''
    attachments: List[Attachment] = field(default_factory=list)

    @property
    def has_attachments(self) -> bool:
        return len(self.attachments) > 0


@dataclass
class SavedItem:
    title: str
    url: str
    type: str = 'link'
    tags: List[str] = field(default_factory=lambda: [UNLABELED_TAG])
    category: str = CATEGORY_OTHER
    status: str = STATUS_INBOX
    page_title: Optional[str] = None
    summary: Optional[str] = None
    source: str = 'Unknown'
    saved_by: str = ''
    saved_by_number: str = ''
    timestamp: str = field(default_factory=utc_now_iso)
    viewed_at: Optional[str] = None
    id: Optional[str] = None

    def __post_init__(self):
        self.tags = normalize_tags(self.tags)
        self.category = normalize_category(self.category)
        if self.status not in STATUSES:
            self.status = STATUS_INBOX

    def to_record(self) -> Dict[str, Any]:
        """Serialize for a create call. The store assigns the id."""
        return {
            'title': self.title,
            'pageTitle': self.page_title,
            'url': self.url,
            'type': self.type,
            'tags': list(self.tags),
            'category': self.category,
            'status': self.status,
            'summary': self.summary,
            'source': self.source,
            'savedBy': self.saved_by,
            'savedByNumber': self.saved_by_number,
            'timestamp': self.timestamp,
            'viewedAt': self.viewed_at,
        }

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> 'SavedItem':
        return cls(
            id=record.get('id'),
            title=record.get('title') or 'Untitled',
            url=record.get('url') or '',
            type=record.get('type') or 'link',
            tags=record.get('tags') or [],
            category=record.get('category'),
            status=record.get('status') or STATUS_INBOX,
            page_title=record.get('pageTitle'),
            summary=record.get('summary'),
            source=record.get('source') or 'Unknown',
            saved_by=record.get('savedBy') or '',
            saved_by_number=record.get('savedByNumber') or '',
            timestamp=record.get('timestamp') or utc_now_iso(),
            viewed_at=record.get('viewedAt'),
        )
