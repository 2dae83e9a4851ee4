"""server.properties reading and order-preserving rewriting."""

from pathlib import Path

PROPERTIES_FILENAME = "server.properties"


def parse_properties_text(text):
    """Parse ``key=value`` lines; comments and lines without ``=`` are skipped."""
    props = {}
    for line in (text or "").split("\n"):
        if line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        props[key.strip()] = value.strip()
    return props


def update_properties_text(original_text, updates):
    """Return ``original_text`` with ``updates`` applied.

    Untouched lines (comments included) are kept verbatim and in order,
    existing keys are rewritten in place and new keys are appended.
    """
    written = set()
    out = []
    trailing_newline = not original_text or original_text.endswith("\n")
    body = original_text[:-1] if trailing_newline else original_text
    lines = body.split("\n") if body else []
    for line in lines:
        if line.startswith("#") or "=" not in line:
            out.append(line)
            continue
        key = line.split("=", 1)[0].strip()
        if key in updates:
            written.add(key)
            out.append(f"{key}={updates[key]}")
        else:
            out.append(line)
    for key, value in updates.items():
        if key not in written:
            out.append(f"{key}={value}")
    return "\n".join(out) + ("\n" if trailing_newline else "")


def properties_path(server_dir):
    return Path(server_dir) / PROPERTIES_FILENAME


def read_properties(server_dir):
    path = properties_path(server_dir)
    try:
        return parse_properties_text(path.read_text(encoding="utf-8", errors="ignore"))
    except FileNotFoundError:
        return {}


def write_properties(server_dir, updates):
    """Merge ``updates`` into server.properties, creating the directory if needed."""
    path = properties_path(server_dir)
    try:
        existing = path.read_text(encoding="utf-8", errors="ignore")
    except FileNotFoundError:
        existing = ""
    clean = {str(key).strip(): str(value) for key, value in (updates or {}).items() if str(key).strip()}
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(update_properties_text(existing, clean), encoding="utf-8")
