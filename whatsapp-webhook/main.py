"""
WhatsApp Webhook Cloud Function

Receives Twilio WhatsApp webhooks and manages the Content Inbox.

Responsibilities:
- Normalize the Twilio form post into an IncomingMessage
- Route inbox commands (show, show & clear, clear) and saves (links, media)
- Reply with TwiML
- Archive / unarchive / mark viewed single items (inbox_item)

Does NOT:
- Authenticate senders
- Retry failed store writes
- Serialize concurrent saves and clears (the item store orders them)
"""

import functions_framework
import json
import logging
import os
import sys
from xml.sax.saxutils import escape

# Make content_inbox importable from the function directory
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))
from content_inbox.config import Settings
from content_inbox.errors import ContentInboxError
from content_inbox.item_store import ItemStore
from content_inbox.models import Attachment, IncomingMessage
from content_inbox.router import ITEM_ACTIONS, CommandRouter

logging.basicConfig(level=os.environ.get('LOG_LEVEL', 'INFO'))
logger = logging.getLogger('whatsapp_webhook')

# Configuration, loaded once per instance
SETTINGS = Settings.from_env()
STORE = ItemStore(SETTINGS.base44_entity_url, SETTINGS.base44_api_key)
ROUTER = CommandRouter(STORE, SETTINGS, SETTINGS.sender_names)

TWIML_HEADERS = {'Content-Type': 'text/xml'}
GENERIC_ERROR_MESSAGE = '⚠️ Something went wrong. Please try again.'


def parse_twilio_message(form) -> IncomingMessage:
    """Build an IncomingMessage from Twilio webhook form fields."""
    try:
        num_media = int(form.get('NumMedia') or 0)
    except (TypeError, ValueError):
        num_media = 0

    attachments = []
    for i in range(num_media):
        media_url = form.get(f'MediaUrl{i}')
        if not media_url:
            continue
        content_type = form.get(f'MediaContentType{i}') or None
        attachments.append(Attachment(url=media_url, content_type=content_type))

    return IncomingMessage(
        sender=form.get('From') or '',
        body=(form.get('Body') or '').strip(),
        attachments=attachments,
    )


def twiml_message(text: str) -> str:
    return f'<Response><Message>{escape(text)}</Message></Response>'


@functions_framework.http
def whatsapp_webhook(request):
    """
    Main Cloud Function entry point (Twilio webhook).

    Always answers 200 with a TwiML message so Twilio delivers the reply.
    """
    try:
        message = parse_twilio_message(request.form)
        logger.info('Message from %s: %s (%d attachments)',
                    message.sender, message.body, len(message.attachments))
        reply = ROUTER.handle(message)
        return (twiml_message(reply.text), 200, TWIML_HEADERS)

    except Exception:
        logger.exception('Unhandled error in whatsapp_webhook')
        return (twiml_message(GENERIC_ERROR_MESSAGE), 200, TWIML_HEADERS)


@functions_framework.http
def inbox_item(request):
    """
    Apply a lifecycle action to one saved item.

    Expected JSON input:
    {
        "id": "item-id",
        "action": "archive" | "unarchive" | "viewed"
    }
    """
    # Handle CORS
    if request.method == 'OPTIONS':
        headers = {
            'Access-Control-Allow-Origin': '*',
            'Access-Control-Allow-Methods': 'POST',
            'Access-Control-Allow-Headers': 'Content-Type',
            'Access-Control-Max-Age': '3600'
        }
        return ('', 204, headers)

    headers = {'Access-Control-Allow-Origin': '*'}

    request_json = request.get_json(silent=True)
    if not request_json or not request_json.get('id'):
        return (json.dumps({'error': 'Missing required field: id'}), 400, headers)

    action = request_json.get('action')
    handler = ITEM_ACTIONS.get(action)
    if handler is None:
        return (json.dumps({
            'error': f"Unknown action: {action}. Expected one of: {', '.join(sorted(ITEM_ACTIONS))}"
        }), 400, headers)

    try:
        item = handler(STORE, request_json['id'])
        return (json.dumps({'item': item}), 200, headers)

    except ContentInboxError as e:
        logger.error('Item action %s failed for %s: %s', action, request_json['id'], e)
        return (json.dumps({'error': e.to_dict()}), 502, headers)
