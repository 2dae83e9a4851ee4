"""Console line ingestion: parse, track presence, store and broadcast."""

import threading

from mccontrol.core.history_store import LogEntry
from mccontrol.core.log_parser import normalize_line, parse_line

# Only lines produced by the server itself may move the roster.
PARSED_KINDS = {"info", "warn"}


def append_log(ctx, raw, kind="info"):
    """Record one console line and return its LogEntry (None for blank lines)."""
    text = normalize_line(raw)
    if not text:
        return None
    with ctx.log_lock:
        if kind in PARSED_KINDS:
            event = parse_line(text, ctx.patterns)
            if event is not None:
                ctx.presence.apply(event)
        entry = LogEntry(text, kind)
        ctx.history.append(entry)
        ctx.echo(entry)
        ctx.hub.broadcast({"type": "log", **entry.to_dict()})
    return entry


def make_players_publisher(hub):
    """Build the PresenceTracker change callback broadcasting the full roster."""

    def publish_players(players):
        hub.broadcast({"type": "players", "players": players})

    return publish_players


def start_output_reader(ctx, stream, kind):
    """Pump one child output stream into the log on a daemon thread."""

    def pump():
        try:
            for line in stream:
                append_log(ctx, line, kind)
        except (OSError, ValueError) as exc:
            ctx.log_exception(f"output_reader/{kind}", exc)
        finally:
            try:
                stream.close()
            except OSError:
                pass

    reader = threading.Thread(target=pump, daemon=True)
    reader.start()
    return reader
