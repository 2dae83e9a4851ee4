"""Process settings from an optional KEY=VALUE file overlaid by the environment."""

import os
from pathlib import Path


def parse_env_lines(lines):
    """Parse dotenv-style lines, ignoring comments and unquoting values."""
    values = {}
    for raw in lines:
        line = raw.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = (part.strip() for part in line.split("=", 1))
        if not key:
            continue
        if len(value) >= 2 and value[0] == value[-1] and value[0] in {"'", '"'}:
            value = value[1:-1]
        values[key] = value
    return values


class EnvSettings:
    """Typed read-only access to panel settings.

    Environment variables win over the settings file so one-off overrides
    (``UI_PORT=9000 mccontrol``) keep working without editing the file.
    """

    def __init__(self, settings_path=None, base_dir=None, environ=None):
        self.base_dir = Path(base_dir) if base_dir is not None else Path.cwd()
        self.values = {}
        if settings_path is not None:
            try:
                text = Path(settings_path).read_text(encoding="utf-8")
            except OSError:
                text = ""
            self.values.update(parse_env_lines(text.splitlines()))
        self.values.update(os.environ if environ is None else environ)

    def _raw(self, name):
        value = self.values.get(name)
        if value is None:
            return None
        value = str(value).strip()
        return value or None

    def get_str(self, name, default):
        value = self._raw(name)
        return default if value is None else value

    def get_bool(self, name, default=False):
        value = self._raw(name)
        if value is None:
            return default
        return value.lower() in {"1", "true", "yes", "on"}

    def get_int(self, name, default, minimum=None):
        try:
            parsed = int(self._raw(name))
        except (TypeError, ValueError):
            return default
        if minimum is not None and parsed < minimum:
            return minimum
        return parsed

    def get_float(self, name, default, minimum=None):
        try:
            parsed = float(self._raw(name))
        except (TypeError, ValueError):
            return default
        if minimum is not None and parsed < minimum:
            return minimum
        return parsed

    def get_path(self, name, default):
        """Resolve a path setting; relative values are taken from ``base_dir``."""
        value = self._raw(name)
        if value is None:
            return Path(default)
        candidate = Path(value).expanduser()
        return candidate if candidate.is_absolute() else self.base_dir / candidate
