"""Local web control panel for one Java Minecraft server process.

This app provides:
- Start/stop/kill and console commands for the server process
- Live console log, online players and host CPU/RAM over Server-Sent Events
- server.properties, mods/plugins and panel config editing
- Paper/Vanilla/Fabric server jar downloads
"""

from pathlib import Path
import threading

import requests

from mccontrol.application_factory import build_flask_app
from mccontrol.core.action_logging import make_console_echo, make_log_action, make_log_exception
from mccontrol.core.history_store import DEFAULT_HISTORY_CAPACITY, HistoryStore
from mccontrol.core.log_parser import VANILLA_PATTERNS
from mccontrol.core.panel_config import ConfigStore, default_panel_config
from mccontrol.core.presence_tracker import PresenceTracker
from mccontrol.core.settings import EnvSettings
from mccontrol.services import bootstrap as bootstrap_service
from mccontrol.services import log_pipeline
from mccontrol.services import system_metrics as system_metrics_service
from mccontrol.services.broadcast_hub import BroadcastHub
from mccontrol.state import AppState, StatsState, SupervisorState

SETTINGS_FILENAME = "mccontrol.env"


def load_settings():
    return EnvSettings(Path.cwd() / SETTINGS_FILENAME, Path.cwd())


def build_state(settings, home_dir=None):
    """Wire every shared structure into one AppState."""
    home_dir = Path(home_dir) if home_dir is not None else Path.home()
    panel_dir = home_dir / "mc-control"
    log_dir = settings.get_path("MC_LOG_DIR", panel_dir / "logs")
    log_action = make_log_action(log_dir, log_dir / "panel-actions.log")
    log_exception = make_log_exception(log_action)

    config_store = ConfigStore(
        settings.get_path("MC_CONFIG_FILE", panel_dir / "config.json"),
        default_panel_config(settings, home_dir),
        log_exception=log_exception,
    )
    hub = BroadcastHub(settings.get_int("VIEWER_OUTBOX_SIZE", AppState.VIEWER_OUTBOX_SIZE, minimum=1))
    presence = PresenceTracker(on_change=log_pipeline.make_players_publisher(hub))
    http = requests.Session()

    return AppState(
        config_store=config_store,
        history=HistoryStore(DEFAULT_HISTORY_CAPACITY),
        presence=presence,
        hub=hub,
        patterns=VANILLA_PATTERNS,
        process=SupervisorState(),
        # Reentrant: the exit handler appends its log line while holding both.
        process_lock=threading.RLock(),
        log_lock=threading.RLock(),
        download_lock=threading.Lock(),
        stats=StatsState(lock=threading.Lock()),
        http=http,
        log_action=log_action,
        log_exception=log_exception,
        echo=make_console_echo(settings.get_bool("MC_VERBOSE")),
        STATS_INTERVAL_SECONDS=settings.get_float("STATS_INTERVAL_SECONDS", AppState.STATS_INTERVAL_SECONDS, minimum=0.1),
        STREAM_KEEPALIVE_SECONDS=settings.get_float("STREAM_KEEPALIVE_SECONDS", AppState.STREAM_KEEPALIVE_SECONDS, minimum=1.0),
        HTTP_TIMEOUT_SECONDS=settings.get_float("HTTP_TIMEOUT_SECONDS", AppState.HTTP_TIMEOUT_SECONDS, minimum=1.0),
    )


SETTINGS = load_settings()
STATE = build_state(SETTINGS)
app = build_flask_app(STATE)


def log_boot_diagnostics():
    # Log boot-time file/config detection snapshot.
    config = STATE.config_store.get()
    details = (
        f"config_file={STATE.config_store.config_file} exists={STATE.config_store.config_file.exists()}; "
        f"server_dir={config.server_dir}; "
        f"jar={config.jar_path} exists={config.jar_path.is_file()}; "
        f"java={config.java_path}; memory={config.memory}"
    )
    STATE.log_action("boot", command=details)


def run_server():
    config = STATE.config_store.get()
    host = SETTINGS.get_str("WEB_HOST", "0.0.0.0")
    print(f"MC Control running at http://localhost:{config.ui_port}")
    bootstrap_service.run_server(
        app,
        host,
        config.ui_port,
        STATE.log_action,
        STATE.log_exception,
        boot_steps=[
            ("boot_diagnostics", log_boot_diagnostics),
            ("stats_sampler", lambda: system_metrics_service.ensure_stats_sampler_started(STATE)),
        ],
    )


if __name__ == "__main__":
    run_server()
