"""Online-player roster derived from parsed console events."""

import threading
import time
from dataclasses import dataclass

from mccontrol.core.log_parser import PlayerJoined, PlayerLeft, RosterReplaced


@dataclass(frozen=True)
class Player:
    name: str
    joined_at: float

    def to_dict(self):
        # Epoch milliseconds keep parity with the browser's Date.now().
        return {"name": self.name, "joined": int(self.joined_at * 1000)}


class PresenceTracker:
    """Thread-safe name -> Player map that publishes full roster snapshots."""

    def __init__(self, on_change=None, clock=time.time):
        self._lock = threading.Lock()
        self._players = {}
        self._on_change = on_change
        self._clock = clock

    def apply_join(self, name):
        with self._lock:
            self._players[name] = Player(name, self._clock())
            snapshot = self._snapshot_locked()
        self._notify(snapshot)

    def apply_leave(self, name):
        # Leave for an untracked name still publishes; consumers only see snapshots.
        with self._lock:
            self._players.pop(name, None)
            snapshot = self._snapshot_locked()
        self._notify(snapshot)

    def apply_roster_replace(self, names):
        with self._lock:
            now = self._clock()
            self._players = {name: Player(name, now) for name in names if name}
            snapshot = self._snapshot_locked()
        self._notify(snapshot)

    def clear(self):
        with self._lock:
            self._players = {}
            snapshot = []
        self._notify(snapshot)

    def apply(self, event):
        """Dispatch one parsed event; returns False for anything that is not a presence event."""
        if isinstance(event, PlayerJoined):
            self.apply_join(event.name)
        elif isinstance(event, PlayerLeft):
            self.apply_leave(event.name)
        elif isinstance(event, RosterReplaced):
            self.apply_roster_replace(event.names)
        else:
            return False
        return True

    def names(self):
        with self._lock:
            return set(self._players)

    def snapshot(self):
        with self._lock:
            return self._snapshot_locked()

    def __len__(self):
        with self._lock:
            return len(self._players)

    def _snapshot_locked(self):
        return [player.to_dict() for player in self._players.values()]

    def _notify(self, snapshot):
        if self._on_change is not None:
            self._on_change(snapshot)
