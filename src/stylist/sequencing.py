"""
Per-owner request sequencing.

A screen (or user) can fire a new recommendation request before the
previous one finishes. Each request takes a number from the sequencer;
a result whose number is no longer the owner's latest is stale and the
client should drop it.
"""

import threading
from typing import Dict


class ResponseSequencer:
    def __init__(self) -> None:
        self._latest: Dict[str, int] = {}
        self._lock = threading.Lock()

    def next(self, owner: str) -> int:
        with self._lock:
            seq = self._latest.get(owner, 0) + 1
            self._latest[owner] = seq
            return seq

    def is_current(self, owner: str, sequence: int) -> bool:
        with self._lock:
            return self._latest.get(owner, 0) == sequence

    def latest(self, owner: str) -> int:
        with self._lock:
            return self._latest.get(owner, 0)
