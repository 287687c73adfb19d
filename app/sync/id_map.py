"""
app/sync/id_map.py

External-id to internal-id map shared between sync stages.
"""

from __future__ import annotations

import threading
import uuid
from collections.abc import Mapping


class FrozenIdMapError(RuntimeError):
    """Raised when a stage writes to a map owned by an earlier stage."""


class IdMap:
    """
    Written by its owning stage, then frozen and read by later stages.
    """

    def __init__(self, kind: str, initial: Mapping[str, uuid.UUID] | None = None) -> None:
        self.kind = kind
        self._entries: dict[str, uuid.UUID] = dict(initial or {})
        self._lock = threading.Lock()
        self._frozen = False

    def set(self, external_id: str, entity_id: uuid.UUID) -> None:
        with self._lock:
            if self._frozen:
                raise FrozenIdMapError(f"{self.kind} id map is frozen")
            self._entries[external_id] = entity_id

    def get(self, external_id: str | None) -> uuid.UUID | None:
        if external_id is None:
            return None
        return self._entries.get(external_id)

    def freeze(self) -> None:
        with self._lock:
            self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, external_id: object) -> bool:
        return external_id in self._entries
