"""Registry of secret sessions: each secret is fetched once and browsed many times."""
import logging
import threading
from typing import Dict

from ..domains.models import MASK, decode_secret_value
from ..domains.store_client import SecretStoreClient
from .session import SecretSession

logger = logging.getLogger(__name__)


class SessionRegistry:
    """
    Cache of SecretSession objects keyed by secret id.

    Owned by whoever hosts the browsing UI; sessions live until evicted.
    Ids are normalized through client.canonical_id before every lookup.
    A single lock serializes get/refetch/evict/invalidate_all so one id
    never maps to two sessions.
    """

    def __init__(self, client: SecretStoreClient, mask: str = MASK):
        self.client = client
        self.mask = mask
        self._sessions: Dict[str, SecretSession] = {}
        self._lock = threading.Lock()

    def _fetch(self, secret_id: str) -> SecretSession:
        raw = self.client.get_secret_value(secret_id)
        return SecretSession(secret_id, decode_secret_value(raw), mask=self.mask)

    def get(self, secret_id: str) -> SecretSession:
        """
        Return the session for secret_id, fetching the secret on first access.

        Raises:
            NotFoundError: If the store does not know secret_id
            TransportError: If the store call fails
        """
        secret_id = self.client.canonical_id(secret_id)
        with self._lock:
            session = self._sessions.get(secret_id)
            if session is not None:
                logger.debug(f"Session cache hit for '{secret_id}'")
                return session

            logger.debug(f"Session cache miss for '{secret_id}', fetching")
            session = self._fetch(secret_id)
            self._sessions[secret_id] = session
            return session

    def refetch(self, secret_id: str) -> SecretSession:
        """
        Fetch secret_id again and replace its cached session.

        The previous session stays cached if the fetch fails.

        Raises:
            NotFoundError: If the store does not know secret_id
            TransportError: If the store call fails
        """
        secret_id = self.client.canonical_id(secret_id)
        with self._lock:
            session = self._fetch(secret_id)
            self._sessions[secret_id] = session
            logger.debug(f"Refetched session for '{secret_id}'")
            return session

    def evict(self, secret_id: str) -> None:
        secret_id = self.client.canonical_id(secret_id)
        with self._lock:
            if self._sessions.pop(secret_id, None) is not None:
                logger.debug(f"Evicted session for '{secret_id}'")

    def invalidate_all(self) -> None:
        """Drop every cached session, e.g. when switching accounts."""
        with self._lock:
            count = len(self._sessions)
            self._sessions.clear()
        logger.debug(f"Invalidated {count} session(s)")

    def __contains__(self, secret_id: str) -> bool:
        secret_id = self.client.canonical_id(secret_id)
        with self._lock:
            return secret_id in self._sessions

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
