"""
Unit tests for command routing and item assembly.

External stages (page fetch, AI, media) are patched; the item store is an
in-memory fake.
"""

import pytest

from content_inbox import router
from content_inbox.ai_enrichment import AIEnrichment
from content_inbox.errors import CredentialMissing, EnrichmentFailure
from content_inbox.media import MediaOutcome
from content_inbox.metadata import empty_metadata
from content_inbox.models import SavedItem
from content_inbox.router import (
    CommandRouter,
    build_link_item,
    classify_command,
    format_preview,
    format_preview_line,
)


@pytest.fixture
def no_network(monkeypatch):
    """Page fetch fails and AI is unavailable."""
    monkeypatch.setattr(router, 'fetch_metadata', lambda url: empty_metadata())

    def _fail(*args, **kwargs):
        raise EnrichmentFailure('GEMINI_API_KEY not configured')

    monkeypatch.setattr(router, 'enrich_link', _fail)


class TestClassifyCommand:
    """Tests for classify_command()"""

    @pytest.mark.parametrize("body,command", [
        ("show", "show"),
        ("  SHOW  ", "show"),
        ("Show & Clear", "show-and-clear"),
        ("clear", "clear"),
        ("CLEAR ", "clear"),
        ("look https://example.com", "save-link"),
        ("hello", "prompt"),
        ("", "prompt"),
        ("show me https://example.com", "save-link"),
        ("clear https://example.com", "save-link"),
    ])
    def test_body_commands(self, make_message, body, command):
        assert classify_command(make_message(body)) == command

    def test_attachments_take_priority(self, make_message):
        message = make_message("show", media=["https://api.twilio.com/media/1"])
        assert classify_command(message) == "save-media"


class TestFormatPreview:
    """Tests for format_preview() / format_preview_line()"""

    def test_line_format(self):
        item = {
            'title': 'Great Talk', 'source': 'YouTube', 'category': 'Videos',
            'tags': ['youtube'], 'savedBy': 'Dana', 'summary': 'A talk.',
        }
        assert format_preview_line(item) == (
            "- Great Talk — YouTube (Videos) [youtube] · by Dana\n   A talk."
        )

    def test_summary_truncated_at_100_chars(self):
        item = {'title': 'T', 'summary': 's' * 120}
        summary_line = format_preview_line(item).split('\n')[1]
        assert summary_line == "   " + "s" * 100 + "..."

    def test_summary_not_truncated_when_short(self):
        item = {'title': 'T', 'summary': 's' * 100}
        assert format_preview_line(item).endswith("s" * 100)

    def test_missing_fields_use_defaults(self):
        assert format_preview_line({}) == "- Untitled — Unknown (Other) []"

    def test_at_most_five_in_store_order(self, sample_items):
        lines = [line for line in format_preview(sample_items).split('\n') if line.startswith('- ')]
        assert [line.split(' — ')[0] for line in lines] == [
            "- Item 1", "- Item 2", "- Item 3", "- Item 4", "- Item 5",
        ]


class TestShowCommand:
    """Tests for show and show & clear"""

    def test_empty_store(self, fake_store, settings, make_message):
        store = fake_store()
        reply = CommandRouter(store, settings).handle(make_message("show"))
        assert reply.kind == "empty"
        assert store.delete_calls == 0

    def test_non_empty_store(self, fake_store, settings, make_message, sample_items):
        store = fake_store(sample_items)
        reply = CommandRouter(store, settings).handle(make_message("show"))
        assert reply.kind == "inbox"
        assert "Item 5" in reply.text
        assert "Item 6" not in reply.text
        assert store.delete_calls == 0

    def test_show_and_clear_deletes_once(self, fake_store, settings, make_message, sample_items):
        store = fake_store(sample_items)
        reply = CommandRouter(store, settings).handle(make_message("show & clear"))
        assert reply.kind == "inbox"
        assert "Item 1" in reply.text
        assert "Cleared" in reply.text
        assert store.delete_calls == 1

    def test_show_and_clear_on_empty_store(self, fake_store, settings, make_message):
        store = fake_store()
        reply = CommandRouter(store, settings).handle(make_message("show & clear"))
        assert reply.kind == "empty"
        assert store.delete_calls == 0

    def test_list_failure(self, fake_store, settings, make_message):
        store = fake_store(failing={'list'})
        reply = CommandRouter(store, settings).handle(make_message("show"))
        assert reply.kind == "error"


class TestClearCommand:
    """Tests for clear"""

    def test_clear_empty_store(self, fake_store, settings, make_message):
        store = fake_store()
        reply = CommandRouter(store, settings).handle(make_message("clear"))
        assert reply.kind == "cleared"
        assert store.delete_calls == 1

    def test_clear_non_empty_store(self, fake_store, settings, make_message, sample_items):
        store = fake_store(sample_items)
        reply = CommandRouter(store, settings).handle(make_message("clear"))
        assert reply.kind == "cleared"
        assert store.delete_calls == 1
        assert store.items == []

    def test_clear_failure(self, fake_store, settings, make_message):
        store = fake_store(failing={'delete'})
        reply = CommandRouter(store, settings).handle(make_message("clear"))
        assert reply.kind == "error"


class TestPromptCommand:
    """Tests for messages without a link"""

    def test_prompt_for_link(self, fake_store, settings, make_message):
        store = fake_store()
        reply = CommandRouter(store, settings).handle(make_message("hello there"))
        assert reply.kind == "prompt"
        assert store.created == []
        assert store.delete_calls == 0


class TestSaveLink:
    """Tests for the save-link path"""

    def test_saves_with_heuristic_title_when_everything_fails(
            self, fake_store, settings, make_message, no_network):
        store = fake_store()
        reply = CommandRouter(store, settings).handle(
            make_message("https://www.youtube.com/watch?v=abc"))

        assert reply.kind == "saved"
        assert len(store.created) == 1
        item = store.created[0]
        assert item.title == "YouTube Video"
        assert item.page_title is None
        assert item.category == "Videos"
        assert item.tags == ["youtube"]
        assert item.source == "YouTube"
        assert item.status == "inbox"
        assert item.type == "link"
        assert reply.text.endswith("YouTube Video")

    def test_linkedin_url_is_normalized_before_save(
            self, fake_store, settings, make_message, no_network):
        store = fake_store()
        CommandRouter(store, settings).handle(make_message(
            "https://www.linkedin.com/feed/update/urn:li:activity:123456"))
        assert store.created[0].url == "https://www.linkedin.com/feed/update/123456"
        assert store.created[0].category == "LinkedIn Posts"

    def test_ai_result_overrides_title_and_summary(
            self, fake_store, settings, make_message, monkeypatch):
        monkeypatch.setattr(router, 'fetch_metadata', lambda url: dict(
            empty_metadata(), page_title="Raw Page | Site", description="Desc"))
        monkeypatch.setattr(router, 'enrich_link', lambda *args: AIEnrichment(
            title="A Specific Descriptive Title", summary="What it is."))

        store = fake_store()
        CommandRouter(store, settings).handle(make_message("see https://example.com/post"))

        item = store.created[0]
        assert item.title == "A Specific Descriptive Title"
        assert item.summary == "What it is."
        assert item.page_title == "Raw Page | Site"
        assert item.category == "Other"
        assert item.tags == ["unlabeled"]

    def test_page_title_and_description_used_without_ai(
            self, fake_store, settings, make_message, monkeypatch, no_network):
        monkeypatch.setattr(router, 'fetch_metadata', lambda url: dict(
            empty_metadata(), page_title="Raw Page Title", description="Desc"))

        store = fake_store()
        CommandRouter(store, settings).handle(make_message("https://example.com/post"))

        item = store.created[0]
        assert item.title == "Raw Page Title"
        assert item.summary == "Desc"

    def test_sender_display_name(self, fake_store, settings, make_message, no_network):
        store = fake_store()
        sender_router = CommandRouter(store, settings, {'+15550001111': 'Dana'})
        sender_router.handle(make_message("https://example.com", sender="whatsapp:+15550001111"))

        item = store.created[0]
        assert item.saved_by == "Dana"
        assert item.saved_by_number == "whatsapp:+15550001111"

    def test_unknown_sender_falls_back_to_number(self, fake_store, settings, make_message, no_network):
        store = fake_store()
        CommandRouter(store, settings).handle(make_message("https://example.com", sender="whatsapp:+19990000000"))
        assert store.created[0].saved_by == "+19990000000"

    def test_store_failure_is_reported(self, fake_store, settings, make_message, no_network):
        store = fake_store(failing={'create'})
        reply = CommandRouter(store, settings).handle(make_message("https://example.com"))
        assert reply.kind == "error"


class TestSaveMedia:
    """Tests for the save-media path"""

    def _item(self, index):
        return SavedItem(title="Screenshot", url=f"https://res.cloudinary.com/{index}.png",
                         type='image', tags=['screenshot'], category='Screenshots')

    def test_all_attachments_saved(self, fake_store, settings, make_message, monkeypatch):
        monkeypatch.setattr(router, 'ingest_attachments', lambda message, settings, saved_by: [
            MediaOutcome(index=0, item=self._item(0)),
            MediaOutcome(index=1, item=self._item(1)),
        ])
        store = fake_store()
        reply = CommandRouter(store, settings).handle(make_message(media=["m0", "m1"]))

        assert reply.kind == "saved"
        assert [item.url for item in store.created] == [
            "https://res.cloudinary.com/0.png", "https://res.cloudinary.com/1.png",
        ]

    def test_partial_success(self, fake_store, settings, make_message, monkeypatch):
        monkeypatch.setattr(router, 'ingest_attachments', lambda message, settings, saved_by: [
            MediaOutcome(index=0, item=self._item(0)),
            MediaOutcome(index=1, error=CredentialMissing('boom')),
        ])
        store = fake_store()
        reply = CommandRouter(store, settings).handle(make_message(media=["m0", "m1"]))

        assert reply.kind == "partial"
        assert "1 of 2" in reply.text
        assert len(store.created) == 1

    def test_all_failed(self, fake_store, settings, make_message, monkeypatch):
        monkeypatch.setattr(router, 'ingest_attachments', lambda message, settings, saved_by: [
            MediaOutcome(index=0, error=CredentialMissing('boom')),
        ])
        store = fake_store()
        reply = CommandRouter(store, settings).handle(make_message(media=["m0"]))
        assert reply.kind == "error"

    def test_missing_credentials(self, fake_store, settings, make_message, monkeypatch):
        def _raise(*args):
            raise CredentialMissing('Cloudinary configuration is incomplete')

        monkeypatch.setattr(router, 'ingest_attachments', _raise)
        store = fake_store()
        reply = CommandRouter(store, settings).handle(make_message(media=["m0"]))
        assert reply.kind == "error"
        assert store.created == []


class TestBuildLinkItem:
    """Tests for build_link_item()"""

    def test_classification_is_never_overridden(self):
        classification = {'category': 'Videos', 'tags': ['youtube'], 'source': 'YouTube'}
        item = build_link_item(
            "https://youtu.be/x", empty_metadata(), classification,
            AIEnrichment(title="AI Title", summary="AI summary"))
        assert item.category == "Videos"
        assert item.tags == ["youtube"]
        assert item.source == "YouTube"
        assert item.title == "AI Title"
