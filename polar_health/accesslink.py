"""
Polar AccessLink client: user registration and transaction-based data pulls.
"""
import asyncio
import logging
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

import httpx

from .config import Settings
from .errors import NoCredential, RegistrationFailed, TransactionListFailed
from .stores import Credential, TokenStore

logger = logging.getLogger(__name__)

# kind -> (listing path suffix, key holding the item links)
COLLECTIONS: Dict[str, Tuple[str, str]] = {
    "activity": ("activity-transactions", "activity-log"),
    "exercise": ("exercise-transactions", "exercises"),
}


class RegistrationOutcome(str, Enum):
    REGISTERED = "registered"
    ALREADY_REGISTERED = "already_registered"


class AccessLinkClient:
    def __init__(self, settings: Settings, http_client: httpx.AsyncClient, tokens: TokenStore):
        self.settings = settings
        self.http_client = http_client
        self.tokens = tokens

    def _require_credential(self, user_id: str) -> Credential:
        credential = self.tokens.get(user_id)
        if credential is None:
            raise NoCredential(user_id)
        return credential

    @staticmethod
    def _headers(credential: Credential) -> Dict[str, str]:
        return {
            "Authorization": credential.authorization_header,
            "Accept": "application/json",
        }

    async def register_user(self, user_id: str) -> RegistrationOutcome:
        """Register the user with AccessLink. An existing registration is not an error."""
        credential = self._require_credential(user_id)

        response = await self.http_client.post(
            f"{self.settings.ACCESSLINK_BASE_URL}/users",
            json={"member-id": user_id},
            headers=self._headers(credential),
        )

        if response.status_code == 409:
            logger.info(f"User {user_id} already registered with AccessLink")
            return RegistrationOutcome.ALREADY_REGISTERED

        if not response.is_success:
            logger.error(f"AccessLink registration failed for {user_id}: {response.status_code}")
            raise RegistrationFailed(response.status_code, response.text)

        logger.info(f"User {user_id} registered with AccessLink")
        return RegistrationOutcome.REGISTERED

    async def fetch_collection(self, kind: str, user_id: str) -> List[Dict[str, Any]]:
        """
        List the user's transactions of the given kind, then fetch every item.

        Items are fetched concurrently. An item that fails is left out of the
        result instead of failing the whole collection. Results keep the
        listing order.
        """
        if kind not in COLLECTIONS:
            raise ValueError(f"Unknown collection kind: {kind}")
        path, items_key = COLLECTIONS[kind]

        credential = self._require_credential(user_id)
        headers = self._headers(credential)

        listing = await self.http_client.get(
            f"{self.settings.ACCESSLINK_BASE_URL}/users/{user_id}/{path}",
            headers=headers,
        )
        if not listing.is_success:
            logger.error(f"{kind} transaction listing failed for {user_id}: {listing.status_code}")
            raise TransactionListFailed(kind, listing.status_code)

        # An empty listing may come back as 204 with no body
        body = listing.json() if listing.content else {}
        urls = [url for url in (_item_url(entry) for entry in body.get(items_key) or []) if url]
        logger.info(f"Found {len(urls)} {kind} transactions for user {user_id}")

        results = await asyncio.gather(
            *(self._fetch_item(url, headers) for url in urls),
            return_exceptions=True,
        )

        records = []
        for url, result in zip(urls, results):
            if isinstance(result, BaseException):
                logger.warning(f"Dropping {kind} item {url}: {result}")
                continue
            records.append(result)
        return records

    async def _fetch_item(self, url: str, headers: Dict[str, str]) -> Dict[str, Any]:
        response = await self.http_client.get(url, headers=headers)
        response.raise_for_status()
        payload = response.json()
        if not isinstance(payload, dict):
            raise ValueError(f"Unexpected item payload type {type(payload).__name__}")
        return payload


def _item_url(entry: Any) -> Optional[str]:
    if isinstance(entry, str):
        return entry
    if isinstance(entry, dict):
        return entry.get("url")
    return None
