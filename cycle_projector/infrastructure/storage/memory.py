"""In-process read-state store"""

import threading
from collections import defaultdict
from typing import AbstractSet, Dict, Set


class InMemoryReadStateStore:
    """
    Read-sets kept in a dict, one per owner.

    Writes are set unions under a per-owner lock, so two concurrent mark-read
    calls for the same owner both land.
    """

    def __init__(self) -> None:
        self._read_ids: Dict[str, Set[str]] = defaultdict(set)
        self._locks: Dict[str, threading.Lock] = defaultdict(threading.Lock)
        self._registry_lock = threading.Lock()

    def _lock_for(self, owner_id: str) -> threading.Lock:
        with self._registry_lock:
            return self._locks[owner_id]

    def load_read_ids(self, owner_id: str) -> Set[str]:
        with self._lock_for(owner_id):
            return set(self._read_ids.get(owner_id, ()))

    def save_read_ids(self, owner_id: str, read_ids: AbstractSet[str]) -> None:
        with self._lock_for(owner_id):
            self._read_ids[owner_id] |= set(read_ids)
