from __future__ import annotations

import logging
from typing import Mapping

from pydantic import ValidationError as PydanticValidationError

from mission_monitor.models import StoredDocument
from mission_monitor.storage import MemoryStorageBackend, StorageBackend, serialize_state

LOGGER = logging.getLogger(__name__)


class PersistenceStore:
    """Atomic read and write of the single persisted document.

    Every write replaces the whole document. A document that cannot be decoded
    or validated is replaced by the empty document; the lost data is not
    recovered. Write failures are reported as ``False`` and never raised.
    """

    def __init__(self, backend: StorageBackend | None = None) -> None:
        self.backend: StorageBackend = backend if backend is not None else MemoryStorageBackend()
        self._last_fingerprint: str | None = None

    def load(self) -> StoredDocument:
        try:
            raw = self.backend.load_state()
        except ValueError as exc:
            LOGGER.warning("Stored document is unreadable, resetting to an empty document: %s", exc)
            return self.reset()
        except OSError as exc:
            # stored data stays untouched
            LOGGER.warning("Could not read stored document, continuing with an empty one: %s", exc)
            self._last_fingerprint = None
            return StoredDocument()

        if raw is None:
            return self.reset()

        if not isinstance(raw, Mapping):
            LOGGER.warning("Stored document has unexpected type %s, resetting", type(raw).__name__)
            return self.reset()

        try:
            document = StoredDocument.model_validate(raw)
        except PydanticValidationError as exc:
            LOGGER.warning("Stored document failed validation, resetting: %s", exc)
            return self.reset()

        self._last_fingerprint = serialize_state(_dump(document))
        return document

    def save(self, document: StoredDocument) -> bool:
        payload = _dump(document)
        serialized = serialize_state(payload)
        if serialized == self._last_fingerprint:
            return True

        try:
            self.backend.save_state(payload)
        except OSError as exc:
            LOGGER.warning("Failed to persist document: %s", exc)
            return False

        self._last_fingerprint = serialized
        return True

    def reset(self) -> StoredDocument:
        """Replace the slot content with the empty document and return it."""

        document = StoredDocument()
        self._last_fingerprint = None
        self.save(document)
        return document


def _dump(document: StoredDocument) -> dict[str, object]:
    return document.model_dump(mode="json", by_alias=True)


__all__ = ["PersistenceStore"]
