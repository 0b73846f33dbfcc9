"""
Base44 item store adapter.

Thin REST wrapper over the saved-item entity collection. Every call sends the
static API key in an 'api_key' header. Failures are raised as StoreFailure
and are never retried here.
"""

import logging
from typing import List, Optional

import requests

from .errors import CredentialMissing, StoreFailure
from .models import SavedItem

logger = logging.getLogger(__name__)

STORE_TIMEOUT_SECONDS = 10


class ItemStore:
    """List, create, bulk-delete and patch saved items."""

    def __init__(self, entity_url: Optional[str], api_key: Optional[str], timeout: int = STORE_TIMEOUT_SECONDS):
        self.entity_url = (entity_url or '').rstrip('/')
        self.api_key = api_key
        self.timeout = timeout

    def _request(self, method: str, url: str, **kwargs):
        if not self.entity_url or not self.api_key:
            raise CredentialMissing('BASE44_ENTITY_URL or BASE44_API_KEY not configured')

        headers = {'api_key': self.api_key}
        if 'json' in kwargs:
            headers['Content-Type'] = 'application/json'

        try:
            response = requests.request(method, url, headers=headers, timeout=self.timeout, **kwargs)
        except requests.exceptions.RequestException as e:
            raise StoreFailure(f'{method} {url} failed: {e}') from e

        if not response.ok:
            raise StoreFailure(f'{method} {url} failed ({response.status_code}): {response.text[:200]}')
        return response

    def _json(self, response):
        try:
            return response.json()
        except ValueError as e:
            raise StoreFailure(f'Item store returned invalid JSON: {e}') from e

    def list_items(self, status: Optional[str] = None, category: Optional[str] = None) -> List[dict]:
        """List all items in store order, optionally filtered after fetching."""
        data = self._json(self._request('GET', self.entity_url))
        if not isinstance(data, list):
            raise StoreFailure('Item store list did not return a collection')

        items = [item for item in data if isinstance(item, dict)]
        if status:
            items = [item for item in items if item.get('status') == status]
        if category:
            items = [item for item in items if item.get('category') == category]
        return items

    def get_item(self, item_id: str) -> dict:
        return self._json(self._request('GET', f'{self.entity_url}/{item_id}'))

    def create_item(self, item: SavedItem) -> dict:
        created = self._json(self._request('POST', self.entity_url, json=item.to_record()))
        logger.info('Saved item %s: %s', created.get('id') if isinstance(created, dict) else None, item.title)
        return created

    def delete_all(self) -> None:
        response = self._request('DELETE', self.entity_url)
        logger.info('Cleared item store (%s)', response.status_code)

    def patch_item(self, item_id: str, fields: dict) -> dict:
        return self._json(self._request('PATCH', f'{self.entity_url}/{item_id}', json=fields))
