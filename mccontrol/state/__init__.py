"""Typed application runtime state container."""
from dataclasses import dataclass, field
from typing import Any, Callable, Optional


@dataclass
class SupervisorState:
    """The one supervised server process; ``handle`` is None while stopped."""
    handle: Any = None
    started_at: Optional[float] = None
    readers: list = field(default_factory=list)

    @property
    def running(self):
        return self.handle is not None


@dataclass
class DownloadState:
    """Progress of the single in-flight (or last) server jar download."""
    name: str
    progress: int = 0
    total: int = 0
    done: bool = False
    error: Optional[str] = None

    @property
    def in_flight(self):
        return not self.done and self.error is None

    def to_dict(self):
        return {
            "name": self.name,
            "progress": self.progress,
            "total": self.total,
            "done": self.done,
            "error": self.error,
        }


@dataclass
class StatsState:
    """Latest host CPU/RAM sample plus the previous CPU tick counters."""
    lock: Any
    cpu: int = 0
    ram: int = 0
    prev_cpu_times: Optional[tuple] = None
    started: bool = False

    def to_dict(self):
        return {"cpu": self.cpu, "ram": self.ram}


@dataclass
class AppState:
    """Everything one panel instance owns, passed to services as ``ctx``."""
    config_store: Any
    history: Any
    presence: Any
    hub: Any
    patterns: Any
    process: SupervisorState
    process_lock: Any
    log_lock: Any
    download_lock: Any
    stats: StatsState
    http: Any
    log_action: Callable
    log_exception: Callable
    echo: Callable
    download: Optional[DownloadState] = None
    STATS_INTERVAL_SECONDS: float = 1.0
    UPTIME_TICK_SECONDS: float = 1.0
    STREAM_KEEPALIVE_SECONDS: float = 15.0
    VIEWER_OUTBOX_SIZE: int = 500
    DOWNLOAD_CHUNK_SIZE: int = 64 * 1024
    HTTP_TIMEOUT_SECONDS: float = 30.0
    USER_AGENT: str = "MC-Control/2.0 (python-panel)"
    PROC_DIR: str = "/proc"
