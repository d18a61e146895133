"""Catalog of secrets known to the store."""
import logging
from typing import List, Optional

from ..domains.errors import MalformedResponseError
from ..domains.models import SecretSummary
from ..domains.store_client import SecretStoreClient

logger = logging.getLogger(__name__)


class SecretCatalog:
    """
    Ordered list of secret summaries as last listed by the store.

    The list is replaced wholesale on every successful refresh and left
    untouched when a refresh fails. Store order is preserved.
    """

    def __init__(self, client: SecretStoreClient):
        self.client = client
        self._secrets: List[SecretSummary] = []

    def refresh(self) -> List[SecretSummary]:
        """
        Re-list secrets from the store.

        Returns:
            The new ordered sequence of summaries

        Raises:
            UpstreamError: If the store call fails or returns malformed entries
        """
        secrets = list(self.client.list_secrets())
        for entry in secrets:
            if not isinstance(entry, SecretSummary):
                raise MalformedResponseError(f"list-secrets returned a non-summary entry: {entry!r}")

        self._secrets = secrets
        logger.info(f"Catalog refreshed: {len(secrets)} secret(s)")
        return list(secrets)

    def current(self) -> List[SecretSummary]:
        return list(self._secrets)

    def find(self, ref: str) -> Optional[SecretSummary]:
        """Look up a summary by exact id, then by the first matching name."""
        for summary in self._secrets:
            if summary.id == ref:
                return summary
        for summary in self._secrets:
            if summary.name == ref:
                return summary
        return None
