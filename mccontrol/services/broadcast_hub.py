"""Fan-out of panel events to connected viewers over Server-Sent Events."""

import json
import threading
import time
from collections import deque

from mccontrol.services import supervisor as supervisor_service


def encode_event(event):
    """Serialize one event dict to the compact JSON used on the wire."""
    return json.dumps(event, separators=(",", ":"))


def format_sse(payload):
    return f"data: {payload}\n\n"


class ViewerChannel:
    """Per-viewer outbox; a full or closed outbox is not write-ready."""

    def __init__(self, capacity):
        self.capacity = capacity
        self._cond = threading.Condition()
        self._pending = deque()
        self.closed = False

    def is_write_ready(self):
        with self._cond:
            return not self.closed and len(self._pending) < self.capacity

    def offer(self, payload):
        """Queue ``payload`` if there is room; returns False when skipped."""
        with self._cond:
            if self.closed or len(self._pending) >= self.capacity:
                return False
            self._pending.append(payload)
            self._cond.notify_all()
            return True

    def push(self, payload):
        # Replay messages bypass the capacity check so a large history is never cut short.
        with self._cond:
            self._pending.append(payload)
            self._cond.notify_all()

    def drain(self, timeout):
        """Wait up to ``timeout`` seconds and return every queued payload."""
        with self._cond:
            self._cond.wait_for(lambda: self._pending or self.closed, timeout=timeout)
            items = list(self._pending)
            self._pending.clear()
            return items

    def close(self):
        with self._cond:
            self.closed = True
            self._cond.notify_all()


class BroadcastHub:
    """Set of connected viewer channels."""

    def __init__(self, outbox_size=500):
        self.outbox_size = outbox_size
        self._lock = threading.Lock()
        self._channels = set()

    def attach(self, replay_events=()):
        """Register a new channel pre-loaded with ``replay_events`` in order."""
        channel = ViewerChannel(self.outbox_size)
        with self._lock:
            for event in replay_events:
                channel.push(encode_event(event))
            self._channels.add(channel)
        return channel

    def detach(self, channel):
        channel.close()
        with self._lock:
            self._channels.discard(channel)

    def broadcast(self, event):
        """Offer ``event`` to every write-ready channel and return the delivery count."""
        payload = encode_event(event)
        delivered = 0
        with self._lock:
            for channel in self._channels:
                if channel.is_write_ready() and channel.offer(payload):
                    delivered += 1
        return delivered

    def viewer_count(self):
        with self._lock:
            return len(self._channels)


def build_state_events(ctx):
    """Status, config, stats and download snapshots for a new viewer, in order."""
    with ctx.process_lock:
        running = ctx.process.running
        uptime = supervisor_service.get_uptime_text(ctx)
    events = [
        {"type": "status", "running": running, "players": ctx.presence.snapshot(), "uptime": uptime},
        {"type": "config", "config": ctx.config_store.get().to_json()},
        {"type": "stats", **ctx.stats.to_dict()},
    ]
    with ctx.download_lock:
        if ctx.download is not None:
            events.append({"type": "download", **ctx.download.to_dict()})
    return events


def attach_viewer(ctx):
    """Connect a viewer: replay history and current state, then live events."""
    # Same lock order as handle_exit: no exit or log line can land between
    # the replayed snapshot and the channel registration.
    with ctx.process_lock:
        with ctx.log_lock:
            history_event = {"type": "history", "logs": [entry.to_dict() for entry in ctx.history.snapshot()]}
            return ctx.hub.attach([history_event] + build_state_events(ctx))


def event_stream(ctx, channel, clock=time.monotonic):
    """Yield SSE frames for ``channel``: queued events, uptime ticks, keepalives."""
    last_tick = clock()
    last_sent = clock()
    try:
        while not channel.closed:
            frames = [format_sse(payload) for payload in channel.drain(ctx.UPTIME_TICK_SECONDS)]
            now = clock()
            if now - last_tick >= ctx.UPTIME_TICK_SECONDS:
                last_tick = now
                uptime = supervisor_service.get_uptime_text(ctx)
                if uptime is not None:
                    frames.append(format_sse(encode_event({"type": "uptime", "uptime": uptime})))
            if not frames and now - last_sent >= ctx.STREAM_KEEPALIVE_SECONDS:
                frames.append(": keepalive\n\n")
            if frames:
                last_sent = now
                yield "".join(frames)
    finally:
        ctx.hub.detach(channel)
