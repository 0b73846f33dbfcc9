"""
Media ingestion for attachment messages.

Each attachment is downloaded from Twilio's authenticated media endpoint and
re-uploaded to Cloudinary. Attachments of one message are processed
concurrently; a failed attachment does not cancel the others, and outcomes
are returned in attachment order.
"""

import base64
import hashlib
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import List, Optional

import requests

from .config import Settings
from .errors import ContentInboxError, CredentialMissing, MediaDownloadError, MediaUploadError
from .models import Attachment, DEFAULT_MEDIA_CONTENT_TYPE, IncomingMessage, SavedItem
from .title_utils import clean_title

logger = logging.getLogger(__name__)

DOWNLOAD_TIMEOUT_SECONDS = 15
UPLOAD_TIMEOUT_SECONDS = 30
MAX_UPLOAD_WORKERS = 4
CLOUDINARY_UPLOAD_URL = 'https://api.cloudinary.com/v1_1/{cloud_name}/image/upload'

SCREENSHOT_TITLE = 'Screenshot'
SCREENSHOT_CATEGORY = 'Screenshots'
SCREENSHOT_TAGS = ['screenshot']
MEDIA_SOURCE = 'WhatsApp'


@dataclass
class MediaOutcome:
    index: int
    item: Optional[SavedItem] = None
    error: Optional[ContentInboxError] = None

    @property
    def ok(self) -> bool:
        return self.item is not None


def download_media(url: str, account_sid: Optional[str], auth_token: Optional[str]) -> tuple:
    """
    Download a Twilio media object. Returns (bytes, content_type), where
    content_type is None when the response carries no Content-Type header.

    Raises:
        CredentialMissing: Twilio credentials are not configured.
        MediaDownloadError: request failed or returned non-2xx.
    """
    if not account_sid or not auth_token:
        raise CredentialMissing('Twilio credentials missing')

    try:
        response = requests.get(url, auth=(account_sid, auth_token), timeout=DOWNLOAD_TIMEOUT_SECONDS)
    except requests.exceptions.RequestException as e:
        raise MediaDownloadError(f'Twilio media download failed: {e}') from e

    if not response.ok:
        raise MediaDownloadError(
            f'Twilio media download failed ({response.status_code}): {response.text[:200]}'
        )

    return response.content, response.headers.get('Content-Type')


def sign_params(params: dict, api_secret: str) -> str:
    """Cloudinary signature: SHA-1 of sorted key=value pairs plus the secret."""
    to_sign = '&'.join(f'{key}={params[key]}' for key in sorted(params))
    return hashlib.sha1(f'{to_sign}{api_secret}'.encode('utf-8')).hexdigest()


def upload_to_cloudinary(data: bytes, base_name: str, settings: Settings,
                         content_type: str = DEFAULT_MEDIA_CONTENT_TYPE,
                         timestamp: Optional[int] = None) -> dict:
    """
    Upload a buffer to Cloudinary as '<base_name>-<unix timestamp>'.

    Returns the Cloudinary upload response (includes 'secure_url').

    Raises:
        CredentialMissing: Cloudinary configuration is incomplete.
        MediaUploadError: request failed, returned non-2xx, or the response
            is not JSON carrying a secure_url.
    """
    if not settings.has_cloudinary_credentials:
        raise CredentialMissing('Cloudinary configuration is incomplete')

    timestamp = timestamp or int(time.time())
    params = {
        'folder': settings.cloudinary_folder,
        'public_id': f'{base_name}-{timestamp}',
        'timestamp': str(timestamp),
    }
    encoded = base64.b64encode(data).decode('ascii')
    form = dict(params)
    form['file'] = f'data:{content_type};base64,{encoded}'
    form['api_key'] = settings.cloudinary_api_key
    form['signature'] = sign_params(params, settings.cloudinary_api_secret)

    upload_url = CLOUDINARY_UPLOAD_URL.format(cloud_name=settings.cloudinary_cloud_name)
    try:
        response = requests.post(upload_url, data=form, timeout=UPLOAD_TIMEOUT_SECONDS)
    except requests.exceptions.RequestException as e:
        raise MediaUploadError(f'Cloudinary upload failed: {e}') from e

    if not response.ok:
        raise MediaUploadError(f'Cloudinary upload failed ({response.status_code}): {response.text[:200]}')

    try:
        upload = response.json()
    except ValueError as e:
        raise MediaUploadError(f'Cloudinary returned invalid JSON: {response.text[:200]}') from e

    if not isinstance(upload, dict) or not upload.get('secure_url'):
        raise MediaUploadError(f'Cloudinary response has no secure_url: {response.text[:200]}')
    return upload


def build_media_item(upload: dict, message: IncomingMessage, saved_by: str) -> SavedItem:
    caption = clean_title(message.body)
    return SavedItem(
        title=caption or SCREENSHOT_TITLE,
        url=upload['secure_url'],
        type='image',
        tags=list(SCREENSHOT_TAGS),
        category=SCREENSHOT_CATEGORY,
        source=MEDIA_SOURCE,
        saved_by=saved_by,
        saved_by_number=message.sender,
    )


def ingest_attachment(index: int, attachment: Attachment, message: IncomingMessage,
                      settings: Settings, saved_by: str) -> MediaOutcome:
    """Download and re-upload one attachment. Errors are captured, not raised."""
    try:
        data, downloaded_type = download_media(
            attachment.url, settings.twilio_account_sid, settings.twilio_auth_token
        )
        content_type = attachment.content_type or downloaded_type or DEFAULT_MEDIA_CONTENT_TYPE
        upload = upload_to_cloudinary(data, f'screenshot-{index + 1}', settings, content_type)
        return MediaOutcome(index=index, item=build_media_item(upload, message, saved_by))
    except ContentInboxError as e:
        logger.warning('Attachment %d from %s failed: %s', index, message.sender, e)
        return MediaOutcome(index=index, error=e)


def ingest_attachments(message: IncomingMessage, settings: Settings, saved_by: str = '') -> List[MediaOutcome]:
    """
    Ingest every attachment of a message concurrently.

    Raises:
        CredentialMissing: before any download when Twilio or Cloudinary
            credentials are absent, since every attachment would fail.
    """
    if not settings.has_twilio_credentials:
        raise CredentialMissing('Twilio credentials missing')
    if not settings.has_cloudinary_credentials:
        raise CredentialMissing('Cloudinary configuration is incomplete')

    attachments = message.attachments
    if not attachments:
        return []

    workers = min(MAX_UPLOAD_WORKERS, len(attachments))
    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = [
            executor.submit(ingest_attachment, index, attachment, message, settings, saved_by)
            for index, attachment in enumerate(attachments)
        ]
        # Joined in submission order, i.e. attachment index
        return [future.result() for future in futures]
