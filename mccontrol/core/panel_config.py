"""Persisted server settings (config.json) edited from the panel."""

import json
import threading
from dataclasses import dataclass, fields
from pathlib import Path

# dataclass attribute -> persisted JSON key
JSON_KEYS = {
    "server_jar": "serverJar",
    "server_dir": "serverDir",
    "memory": "memory",
    "java_path": "javaPath",
    "ui_port": "uiPort",
    "server_type": "serverType",
    "server_version": "serverVersion",
}


@dataclass
class PanelConfig:
    server_jar: str = "server.jar"
    server_dir: str = "minecraft"
    memory: str = "1G"
    java_path: str = "java"
    ui_port: int = 8080
    server_type: str = ""
    server_version: str = ""

    @property
    def jar_path(self):
        return Path(self.server_dir) / self.server_jar

    def to_json(self):
        return {JSON_KEYS[f.name]: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_json(cls, data, defaults=None):
        """Merge known JSON keys from ``data`` over ``defaults``."""
        base = defaults.to_json() if defaults is not None else cls().to_json()
        base.update({key: value for key, value in (data or {}).items() if key in base})
        kwargs = {attr: base[key] for attr, key in JSON_KEYS.items()}
        try:
            kwargs["ui_port"] = int(kwargs["ui_port"])
        except (TypeError, ValueError):
            kwargs["ui_port"] = defaults.ui_port if defaults is not None else cls.ui_port
        return cls(**kwargs)


def default_panel_config(settings, home_dir):
    """Build defaults honouring MC_JAR/MC_DIR/MC_RAM/JAVA/UI_PORT overrides."""
    return PanelConfig(
        server_jar=settings.get_str("MC_JAR", "server.jar"),
        server_dir=settings.get_str("MC_DIR", str(Path(home_dir) / "minecraft")),
        memory=settings.get_str("MC_RAM", "1G"),
        java_path=settings.get_str("JAVA", "java"),
        ui_port=settings.get_int("UI_PORT", 8080, minimum=1),
    )


class ConfigStore:
    """Owns the live PanelConfig and its JSON file."""

    def __init__(self, config_file, defaults, log_exception=None):
        self.config_file = Path(config_file)
        self.defaults = defaults
        self._lock = threading.Lock()
        self._log_exception = log_exception
        self._config = self._load()

    def _load(self):
        try:
            raw = json.loads(self.config_file.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return PanelConfig.from_json({}, self.defaults)
        except (OSError, ValueError) as exc:
            # Unreadable config falls back to defaults; the next save rewrites it.
            if self._log_exception is not None:
                self._log_exception("config_load", exc)
            return PanelConfig.from_json({}, self.defaults)
        if not isinstance(raw, dict):
            raw = {}
        return PanelConfig.from_json(raw, self.defaults)

    def get(self):
        """Return a copy of the current config."""
        with self._lock:
            return PanelConfig(**vars(self._config))

    def save(self, **changes):
        """Apply attribute changes, persist the whole config and return a copy."""
        with self._lock:
            for key, value in changes.items():
                if key not in JSON_KEYS:
                    raise KeyError(f"Unknown config field: {key}")
                setattr(self._config, key, value)
            self._write_locked()
            return PanelConfig(**vars(self._config))

    def _write_locked(self):
        try:
            self.config_file.parent.mkdir(parents=True, exist_ok=True)
            self.config_file.write_text(json.dumps(self._config.to_json(), indent=2), encoding="utf-8")
        except OSError as exc:
            # In-memory config stays authoritative when the disk write fails.
            if self._log_exception is not None:
                self._log_exception("config_save", exc)
