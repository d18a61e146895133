"""Per-secret browsing state: decoded value plus field visibility."""
import logging
from typing import Dict, List, Tuple

from ..domains.errors import UnknownFieldError
from ..domains.models import MASK, PlainTextValue, SecretValue, StructuredValue

logger = logging.getLogger(__name__)


class SecretSession:
    """
    Decoded value of one secret and which of its fields are revealed.

    Structured values carry one visibility flag per field; plain text values
    carry a single flag keyed by the session id. Every flag starts masked.
    """

    def __init__(self, secret_id: str, value: SecretValue, mask: str = MASK):
        self.id = secret_id
        self.value = value
        self.mask = mask
        self.visibility: Dict[str, bool] = {}

    def keys(self) -> List[str]:
        """Field keys in decode order, or [id] for plain text."""
        if isinstance(self.value, StructuredValue):
            return list(self.value.fields)
        if isinstance(self.value, PlainTextValue):
            return [self.id]
        raise TypeError(f"Unsupported secret value type: {type(self.value).__name__}")

    def _lookup(self, key: str, operation: str) -> str:
        if isinstance(self.value, StructuredValue):
            if key in self.value.fields:
                return self.value.fields[key]
        elif isinstance(self.value, PlainTextValue):
            if key == self.id:
                return self.value.text
        else:
            raise TypeError(f"Unsupported secret value type: {type(self.value).__name__}")
        raise UnknownFieldError(self.id, key, operation)

    def is_revealed(self, key: str) -> bool:
        self._lookup(key, "is_revealed")
        return self.visibility.get(key, False)

    def toggle(self, key: str) -> bool:
        """
        Flip visibility of one field.

        Returns:
            The new visibility (True = revealed)

        Raises:
            UnknownFieldError: If key is not a field of this secret
        """
        self._lookup(key, "toggle")
        revealed = not self.visibility.get(key, False)
        self.visibility[key] = revealed
        logger.debug(f"Field '{key}' of '{self.id}' {'revealed' if revealed else 'masked'}")
        return revealed

    def reveal_all(self) -> None:
        self.visibility = {key: True for key in self.keys()}

    def mask_all(self) -> None:
        self.visibility = {}

    def raw_value(self, key: str) -> str:
        """Unmasked value of one field, whatever its visibility."""
        return self._lookup(key, "raw_value")

    def render_rows(self) -> List[Tuple[str, str]]:
        """Ordered (key, display text) pairs with masked fields hidden."""
        rows = []
        for key in self.keys():
            if self.visibility.get(key, False):
                rows.append((key, self._lookup(key, "render_rows")))
            else:
                rows.append((key, self.mask))
        return rows
