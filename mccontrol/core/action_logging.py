"""Panel action/error log writers and optional verbose console echo."""

from datetime import datetime
import os
import sys
import traceback
from flask import request, has_request_context

LOG_ROTATE_MAX_BYTES = 5 * 1024 * 1024
LOG_ROTATE_BACKUP_COUNT = 5

ANSI_RESET = "\x1b[0m"
ANSI_DIM = "\x1b[2m"
KIND_COLORS = {
    "warn": "\x1b[33m",
    "error": "\x1b[31m",
    "system": "\x1b[32m",
    "command": "\x1b[34m",
}


def sanitize_log_fragment(text):
    """Collapse text into one whitespace-normalized log line fragment."""
    return " ".join(str(text or "").replace("\r", " ").replace("\n", " ").split()).strip()


def get_client_ip():
    """Return the requesting client's address, or ``panel`` outside requests."""
    if not has_request_context():
        return "panel"
    forwarded = (request.headers.get("X-Forwarded-For") or "").split(",")[0].strip()
    if forwarded:
        return forwarded
    return (request.remote_addr or "").strip() or "panel"


def _rotate_log_file(path, max_bytes=LOG_ROTATE_MAX_BYTES, backup_count=LOG_ROTATE_BACKUP_COUNT):
    """Shift ``path`` to ``path.1`` (and older copies up) once it reaches max_bytes."""
    if max_bytes <= 0 or backup_count <= 0:
        return
    try:
        if not path.exists() or path.stat().st_size < max_bytes:
            return
        for idx in range(backup_count - 1, 0, -1):
            older = path.with_name(f"{path.name}.{idx}")
            if older.exists():
                os.replace(older, path.with_name(f"{path.name}.{idx + 1}"))
        os.replace(path, path.with_name(f"{path.name}.1"))
    except OSError:
        # Rotation failures must not break control endpoints.
        pass


def make_log_action(log_dir, action_log_file):
    """Build the action logger closure writing to ``action_log_file``."""

    def log_action(action, command=None, rejection_message=None):
        """Append ``<time> <client> [panel/action] command rejected: reason``."""
        timestamp = datetime.now().strftime("%b %d %H:%M:%S")
        client_ip = sanitize_log_fragment(get_client_ip()) or "unknown"
        safe_action = sanitize_log_fragment(action) or "unknown"
        parts = [f"{timestamp} <{client_ip}> [panel/{safe_action}]"]
        safe_command = sanitize_log_fragment(command)
        if safe_command:
            parts.append(safe_command)
        safe_rejection = sanitize_log_fragment(rejection_message)
        if safe_rejection:
            parts.append(f"rejected: {safe_rejection}")
        line = " ".join(parts)
        try:
            log_dir.mkdir(parents=True, exist_ok=True)
            _rotate_log_file(action_log_file)
            with action_log_file.open("a", encoding="utf-8") as f:
                f.write(line + "\n")
        except OSError:
            # Logging must not break control endpoints.
            pass

    return log_action


def make_log_exception(log_action):
    """Build an exception logger that reports through ``log_action``."""

    def log_exception(context, exc):
        exc_name = type(exc).__name__ if exc is not None else "Exception"
        message = f"{context}: {exc_name}"
        exc_text = sanitize_log_fragment(str(exc) if exc is not None else "")
        if exc_text:
            message += f": {exc_text}"
        if exc is not None:
            tb = sanitize_log_fragment(" | ".join(traceback.format_exception(type(exc), exc, exc.__traceback__)))
            message += f" | traceback: {tb[:700]}"
        log_action("error", rejection_message=message)

    return log_exception


def make_console_echo(enabled, stream=None):
    """Return a callable echoing log entries to the terminal when enabled."""

    def echo(entry):
        if not enabled:
            return
        out = stream or sys.stdout
        color = KIND_COLORS.get(entry.kind, ANSI_RESET)
        try:
            out.write(f"{ANSI_DIM}{entry.display_time}{ANSI_RESET} {color}{entry.text}{ANSI_RESET}\n")
            out.flush()
        except (OSError, ValueError):
            pass

    return echo
