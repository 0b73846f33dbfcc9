"""Content Inbox: link and media ingestion for a chat-driven saved-items inbox."""

from .classifier import classify, fallback_title
from .config import Settings
from .item_store import ItemStore
from .models import Attachment, IncomingMessage, SavedItem
from .router import CommandRouter, Reply, classify_command, enrich_url
from .url_utils import extract_url, normalize_url

__all__ = [
    # Models
    'Attachment',
    'IncomingMessage',
    'SavedItem',
    # Pipeline
    'classify',
    'fallback_title',
    'extract_url',
    'normalize_url',
    'enrich_url',
    # Routing
    'CommandRouter',
    'Reply',
    'classify_command',
    # Collaborators
    'ItemStore',
    'Settings',
]
