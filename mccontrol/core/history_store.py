"""Bounded in-memory console history used to seed new viewers."""

import threading
import time
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime

LOG_KINDS = ("info", "warn", "error", "system", "command")
DEFAULT_HISTORY_CAPACITY = 2000


@dataclass(frozen=True)
class LogEntry:
    text: str
    kind: str = "info"
    timestamp: float = field(default_factory=time.time)

    @property
    def display_time(self):
        return datetime.fromtimestamp(self.timestamp).strftime("%H:%M:%S")

    def to_dict(self):
        return {"text": self.text, "kind": self.kind, "time": self.display_time, "timestamp": self.timestamp}


class HistoryStore:
    """FIFO ring of the most recent rendered log entries."""

    def __init__(self, capacity=DEFAULT_HISTORY_CAPACITY):
        if capacity <= 0:
            raise ValueError("history capacity must be positive")
        self.capacity = capacity
        self._lock = threading.Lock()
        self._entries = deque(maxlen=capacity)

    def append(self, entry):
        # deque(maxlen) drops the oldest entry once full.
        with self._lock:
            self._entries.append(entry)

    def snapshot(self):
        with self._lock:
            return list(self._entries)

    def __len__(self):
        with self._lock:
            return len(self._entries)
