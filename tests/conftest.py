"""
Shared pytest fixtures for Content Inbox tests.
"""

import pytest
import sys
import importlib.util
from pathlib import Path
from bs4 import BeautifulSoup

from content_inbox.config import Settings
from content_inbox.errors import StoreFailure
from content_inbox.models import Attachment, IncomingMessage

# Project root for finding Cloud Function modules
PROJECT_ROOT = Path(__file__).parent.parent


def _load_module_from_path(module_name: str, file_path: Path):
    """Load a module from a specific file path."""
    spec = importlib.util.spec_from_file_location(module_name, file_path)
    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    spec.loader.exec_module(module)
    return module


# Load Cloud Function module with a unique name at module load time
_webhook_module = _load_module_from_path(
    'whatsapp_webhook_main',
    PROJECT_ROOT / 'whatsapp-webhook' / 'main.py'
)


# ============================================================================
# Fakes
# ============================================================================

class FakeItemStore:
    """In-memory stand-in for ItemStore that records every call."""

    def __init__(self, items=None, failing=()):
        self.items = [dict(item) for item in (items or [])]
        self.failing = set(failing)
        self.created = []
        self.delete_calls = 0
        self.patch_calls = []
        self._next_id = len(self.items) + 1

    def _check(self, operation):
        if operation in self.failing:
            raise StoreFailure(f'{operation} failed')

    def list_items(self, status=None, category=None):
        self._check('list')
        items = list(self.items)
        if status:
            items = [item for item in items if item.get('status') == status]
        if category:
            items = [item for item in items if item.get('category') == category]
        return items

    def create_item(self, item):
        self._check('create')
        record = item.to_record()
        record['id'] = f'item-{self._next_id}'
        self._next_id += 1
        self.items.append(record)
        self.created.append(item)
        return record

    def delete_all(self):
        self._check('delete')
        self.delete_calls += 1
        self.items = []

    def get_item(self, item_id):
        self._check('get')
        for item in self.items:
            if item.get('id') == item_id:
                return dict(item)
        raise StoreFailure(f'No item {item_id}')

    def patch_item(self, item_id, fields):
        self._check('patch')
        self.patch_calls.append((item_id, dict(fields)))
        for item in self.items:
            if item.get('id') == item_id:
                item.update(fields)
                return dict(item)
        raise StoreFailure(f'No item {item_id}')


# ============================================================================
# Configuration Fixtures
# ============================================================================

@pytest.fixture
def settings():
    """Settings with every collaborator configured except Gemini."""
    return Settings(
        base44_entity_url='https://base44.test/api/entities/SavedItem',
        base44_api_key='base44-key',
        twilio_account_sid='AC123',
        twilio_auth_token='twilio-token',
        cloudinary_cloud_name='demo-cloud',
        cloudinary_api_key='cloud-key',
        cloudinary_api_secret='cloud-secret',
        sender_names={'+15550001111': 'Dana'},
    )


@pytest.fixture
def fake_store():
    """Returns a factory for FakeItemStore."""
    return FakeItemStore


@pytest.fixture
def make_message():
    """Factory for IncomingMessage objects."""
    def _make(body='', media=None, sender='whatsapp:+15550001111'):
        attachments = [Attachment(url=url) for url in (media or [])]
        return IncomingMessage(sender=sender, body=body, attachments=attachments)
    return _make


@pytest.fixture
def sample_items():
    """Six stored items, in store order."""
    return [
        {
            'id': f'item-{i}',
            'title': f'Item {i}',
            'source': 'Example',
            'category': 'Other',
            'tags': ['unlabeled'],
            'status': 'inbox',
            'summary': f'Summary for item {i}',
            'savedBy': 'Dana',
            'viewedAt': None,
        }
        for i in range(1, 7)
    ]


# ============================================================================
# HTML Fixtures
# ============================================================================

@pytest.fixture
def sample_article_html():
    """Returns BeautifulSoup of a sample article page."""
    paragraph = (
        'Python developers can write cleaner code by leaning on the standard '
        'library and a handful of well chosen idioms.'
    )
    html = f"""
    <!DOCTYPE html>
    <html>
    <head>
        <title>  10 Python Tips | Example Blog </title>
        <meta property="og:title" content="10 Python Tips You Should Know">
        <meta property="og:site_name" content="Example Blog">
        <meta name="author" content="By Jane Developer">
        <meta property="article:published_time" content="2024-12-15T10:00:00Z">
        <meta name="description" content="Learn essential Python tips">
        <meta property="og:description" content="OG description">
    </head>
    <body>
        <nav><p>Short nav text</p></nav>
        <article>
            <h1>10 Python Tips You Should Know</h1>
            <p>Too short.</p>
            <p>{paragraph} One.</p>
            <p>{paragraph} Two.</p>
        </article>
    </body>
    </html>
    """
    return BeautifulSoup(html, 'html.parser')


@pytest.fixture
def empty_soup():
    """Returns empty BeautifulSoup."""
    return BeautifulSoup("", 'html.parser')


# ============================================================================
# HTTP Function Fixtures
# ============================================================================

@pytest.fixture
def mock_flask_request():
    """Factory for creating mock Flask request objects."""
    class MockRequest:
        def __init__(self, json_data=None, form=None, method='POST'):
            self._json = json_data
            self.form = form or {}
            self.method = method
            self.data = b''

        def get_json(self, force=False, silent=False):
            return self._json

    return MockRequest


@pytest.fixture
def webhook_module():
    """Returns the loaded whatsapp-webhook module."""
    return _webhook_module


@pytest.fixture
def whatsapp_webhook():
    """Returns main entry point from whatsapp-webhook."""
    return _webhook_module.whatsapp_webhook


@pytest.fixture
def inbox_item():
    """Returns item action entry point from whatsapp-webhook."""
    return _webhook_module.inbox_item


@pytest.fixture
def parse_twilio_message():
    """Returns parse_twilio_message function from whatsapp-webhook."""
    return _webhook_module.parse_twilio_message
