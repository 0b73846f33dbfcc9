"""
Environment configuration for the Content Inbox functions.

Values are read once per process. Missing credentials are kept as None so
only the operation that needs them fails.
"""

import json
import logging
import os
from dataclasses import dataclass, field
from typing import Dict, Optional

logger = logging.getLogger(__name__)

DEFAULT_GEMINI_MODEL = 'gemini-2.0-flash'
DEFAULT_CLOUDINARY_FOLDER = 'whatsapp-screenshots'


@dataclass(frozen=True)
class Settings:
    base44_entity_url: Optional[str] = None
    base44_api_key: Optional[str] = None
    gemini_api_key: Optional[str] = None
    gemini_model: str = DEFAULT_GEMINI_MODEL
    twilio_account_sid: Optional[str] = None
    twilio_auth_token: Optional[str] = None
    cloudinary_cloud_name: Optional[str] = None
    cloudinary_api_key: Optional[str] = None
    cloudinary_api_secret: Optional[str] = None
    cloudinary_folder: str = DEFAULT_CLOUDINARY_FOLDER
    sender_names: Dict[str, str] = field(default_factory=dict)

    @property
    def has_twilio_credentials(self) -> bool:
        return bool(self.twilio_account_sid and self.twilio_auth_token)

    @property
    def has_cloudinary_credentials(self) -> bool:
        return bool(
            self.cloudinary_cloud_name
            and self.cloudinary_api_key
            and self.cloudinary_api_secret
        )

    @classmethod
    def from_env(cls, environ=None) -> 'Settings':
        """Build settings from environment variables."""
        env = os.environ if environ is None else environ
        return cls(
            base44_entity_url=env.get('BASE44_ENTITY_URL'),
            base44_api_key=env.get('BASE44_API_KEY'),
            gemini_api_key=env.get('GEMINI_API_KEY'),
            gemini_model=env.get('GEMINI_MODEL') or DEFAULT_GEMINI_MODEL,
            twilio_account_sid=env.get('TWILIO_ACCOUNT_SID'),
            twilio_auth_token=env.get('TWILIO_AUTH_TOKEN'),
            cloudinary_cloud_name=env.get('CLOUDINARY_CLOUD_NAME'),
            cloudinary_api_key=env.get('CLOUDINARY_API_KEY'),
            cloudinary_api_secret=env.get('CLOUDINARY_API_SECRET'),
            cloudinary_folder=env.get('CLOUDINARY_FOLDER') or DEFAULT_CLOUDINARY_FOLDER,
            sender_names=parse_sender_names(env.get('SENDER_NAMES')),
        )


def parse_sender_names(raw: Optional[str]) -> Dict[str, str]:
    """Parse the SENDER_NAMES JSON object (number -> display name)."""
    if not raw:
        return {}
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        logger.warning('SENDER_NAMES is not valid JSON, ignoring: %s', e)
        return {}
    if not isinstance(data, dict):
        logger.warning('SENDER_NAMES must be a JSON object, ignoring')
        return {}
    return {str(number): str(name) for number, name in data.items()}
