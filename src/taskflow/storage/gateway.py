# src/taskflow/storage/gateway.py

"""
Persistence gateway.

Owns the three named slots and turns every backing-store failure into
"absent" (reads) or False (writes). Knows nothing about what a task is.
"""

from __future__ import annotations

import logging
from enum import StrEnum

from ..core.ports import KeyValueStore
from .kv_store import StorageQuotaExceeded

logger = logging.getLogger(__name__)

PROBE_KEY = "__taskflow_probe__"


class Slot(StrEnum):
    TASKS = "taskflow_tasks"
    CATEGORIES = "taskflow_categories"
    SETTINGS = "taskflow_settings"


class PersistenceGateway:
    """
    Slot-level access to a KeyValueStore with degraded-mode fallback.

    initialize() probes the store (write-then-delete a private key). If the probe
    fails, or no store was given, the gateway is degraded for the rest of its life:
    every read returns None and every write returns False without touching the store.
    """

    def __init__(self, store: KeyValueStore | None) -> None:
        self._store = store
        self._degraded = store is None
        self._probed = False

    @property
    def is_degraded(self) -> bool:
        return self._degraded

    def initialize(self) -> bool:
        """Probe the backing store once. Returns True if it is usable."""
        if self._probed:
            return not self._degraded
        self._probed = True

        if self._store is None:
            logger.warning("No key-value store available. Data will not persist.")
            self._degraded = True
            return False

        try:
            self._store.set_item(PROBE_KEY, PROBE_KEY)
            self._store.remove_item(PROBE_KEY)
        except Exception:
            logger.warning("Key-value store is not writable. Data will not persist.", exc_info=True)
            self._degraded = True
            return False

        self._degraded = False
        return True

    def teardown(self) -> None:
        close = getattr(self._store, "close", None)
        if callable(close):
            try:
                close()
            except Exception:
                logger.debug("Store close failed.", exc_info=True)

    def read_slot(self, slot: Slot) -> str | None:
        if self._degraded or self._store is None:
            return None
        try:
            return self._store.get_item(slot.value)
        except Exception:
            logger.exception("Failed to read slot %s", slot.value)
            return None

    def write_slot(self, slot: Slot, text: str) -> bool:
        if self._degraded or self._store is None:
            return False
        try:
            self._store.set_item(slot.value, text)
            return True
        except StorageQuotaExceeded:
            logger.error("Storage quota exceeded writing slot %s (%d chars)", slot.value, len(text))
            return False
        except Exception:
            logger.exception("Failed to write slot %s", slot.value)
            return False

    def remove_slot(self, slot: Slot) -> bool:
        if self._degraded or self._store is None:
            return False
        try:
            self._store.remove_item(slot.value)
            return True
        except Exception:
            logger.exception("Failed to remove slot %s", slot.value)
            return False
