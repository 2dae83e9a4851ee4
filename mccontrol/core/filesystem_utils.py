"""Filesystem helpers for the mods/plugins folders and safe file names."""

import base64
import binascii
from pathlib import Path

from mccontrol.core.errors import FileNotFound, InvalidUpload


def format_file_size(num_bytes):
    """Format bytes into a human-readable string (B/KB/MB/GB/TB)."""
    value = float(max(0, num_bytes or 0))
    units = ["B", "KB", "MB", "GB", "TB"]
    idx = 0
    while value >= 1024 and idx < len(units) - 1:
        value /= 1024
        idx += 1
    if idx == 0:
        return f"{int(value)} {units[idx]}"
    return f"{value:.1f} {units[idx]}"


def list_jar_files(base_dir):
    """Return ``{name, size, size_text}`` for each ``.jar`` directly in base_dir."""
    base_dir = Path(base_dir)
    if not base_dir.is_dir():
        return []
    items = []
    for path in sorted(base_dir.glob("*.jar")):
        try:
            size = path.stat().st_size
        except OSError:
            continue
        items.append({"name": path.name, "size": size, "size_text": format_file_size(size)})
    return items


def safe_basename(filename):
    """Strip any directory components a client may have sent."""
    name = Path(str(filename or "").replace("\\", "/")).name
    if name in {"", ".", ".."}:
        return None
    return name


def save_uploaded_jar(base_dir, filename, data_b64):
    """Decode a base64 upload into ``base_dir``; refuses to overwrite."""
    if not filename or not data_b64:
        raise InvalidUpload("Missing filename or data")
    name = safe_basename(filename)
    if name is None or not name.endswith(".jar"):
        raise InvalidUpload("Only .jar files allowed")
    try:
        payload = base64.b64decode(data_b64, validate=True)
    except (binascii.Error, ValueError):
        raise InvalidUpload("Upload data is not valid base64")
    base_dir = Path(base_dir)
    base_dir.mkdir(parents=True, exist_ok=True)
    target = base_dir / name
    if target.exists():
        raise InvalidUpload("File already exists")
    target.write_bytes(payload)
    return target


def delete_jar_file(base_dir, filename):
    name = safe_basename(filename)
    target = Path(base_dir) / name if name else None
    if target is None or not target.is_file():
        raise FileNotFound("Not found")
    target.unlink()
