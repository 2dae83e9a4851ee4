"""Lifecycle control of the supervised Minecraft server process."""

import subprocess
import threading
import time
from pathlib import Path

from mccontrol.core.errors import AlreadyRunning, ArtifactMissing, EmptyCommand, NotRunning, SpawnFailure
from mccontrol.services import log_pipeline

EULA_FILENAME = "eula.txt"
STOP_COMMAND = "stop"
LIST_COMMAND = "list"
READER_JOIN_TIMEOUT_SECONDS = 5


def format_duration(seconds):
    """Render elapsed seconds as ``HH:MM:SS``."""
    elapsed = max(0, int(seconds))
    return f"{elapsed // 3600:02d}:{(elapsed % 3600) // 60:02d}:{elapsed % 60:02d}"


def get_uptime_text(ctx):
    """Return uptime since the last start, or None while stopped."""
    started_at = ctx.process.started_at
    if started_at is None:
        return None
    return format_duration(time.time() - started_at)


def is_running(ctx):
    with ctx.process_lock:
        return ctx.process.running


def status_snapshot(ctx):
    """Return the run status payload shared by /api/status and the event stream."""
    with ctx.process_lock:
        return {
            "running": ctx.process.running,
            "players": ctx.presence.snapshot(),
            "uptime": get_uptime_text(ctx),
        }


def build_launch_command(config):
    """Return argv for the server: fixed heap, the configured jar, no GUI."""
    return [
        config.java_path,
        f"-Xmx{config.memory}",
        f"-Xms{config.memory}",
        "-jar",
        config.server_jar,
        "nogui",
    ]


def ensure_eula_accepted(server_dir):
    """Write ``eula=true`` when the server directory has no eula.txt yet."""
    eula = Path(server_dir) / EULA_FILENAME
    if eula.exists():
        return False
    eula.write_text("eula=true\n", encoding="utf-8")
    return True


def start_server(ctx, popen=subprocess.Popen):
    """Spawn the server process and begin streaming its output."""
    config = ctx.config_store.get()
    with ctx.process_lock:
        if ctx.process.running:
            raise AlreadyRunning()
        if not config.jar_path.is_file():
            raise ArtifactMissing(f"{config.server_jar} not found in {config.server_dir}")
        try:
            ensure_eula_accepted(config.server_dir)
        except OSError as exc:
            log_pipeline.append_log(ctx, f"Process error: {exc}", "system")
            raise SpawnFailure(f"Could not write {EULA_FILENAME} in {config.server_dir}: {exc}")
        try:
            proc = popen(
                build_launch_command(config),
                cwd=config.server_dir,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
                bufsize=1,
            )
        except (OSError, ValueError) as exc:
            # ValueError: argv or cwd carries an embedded NUL byte.
            log_pipeline.append_log(ctx, f"Process error: {exc}", "system")
            raise SpawnFailure(f"Could not launch {config.java_path}: {exc}")

        ctx.process.handle = proc
        ctx.process.started_at = time.time()
        log_pipeline.append_log(ctx, f"--- Starting {config.server_jar} ({config.memory} RAM) ---", "system")
        readers = [
            log_pipeline.start_output_reader(ctx, proc.stdout, "info"),
            log_pipeline.start_output_reader(ctx, proc.stderr, "warn"),
        ]
        ctx.process.readers = readers
        ctx.hub.broadcast({"type": "status", "running": True, "players": ctx.presence.snapshot(), "uptime": get_uptime_text(ctx)})
        waiter = threading.Thread(target=_wait_for_exit, args=(ctx, proc, readers), daemon=True)
        waiter.start()
    ctx.log_action("start", command=f"jar={config.server_jar} memory={config.memory} dir={config.server_dir}")
    return proc


def _wait_for_exit(ctx, proc, readers):
    returncode = proc.wait()
    # Let buffered output land in the history before the exit line.
    for reader in readers:
        reader.join(timeout=READER_JOIN_TIMEOUT_SECONDS)
    handle_exit(ctx, proc, returncode)


def describe_exit(returncode):
    """Exit code as text; negative codes mean the process died from a signal."""
    if returncode is None or returncode < 0:
        return "signal"
    return str(returncode)


def handle_exit(ctx, proc, returncode):
    """Transition to Stopped after ``proc`` ended; no-op for a stale handle."""
    with ctx.process_lock:
        if ctx.process.handle is not proc:
            return False
        ctx.process.handle = None
        ctx.process.started_at = None
        ctx.process.readers = []
        with ctx.log_lock:
            ctx.presence.clear()
            log_pipeline.append_log(ctx, f"--- Server stopped (exit {describe_exit(returncode)}) ---", "system")
            ctx.hub.broadcast({"type": "status", "running": False, "players": [], "uptime": None})
    if proc.stdin is not None:
        try:
            proc.stdin.close()
        except OSError:
            pass
    ctx.log_action("exit", command=f"code={describe_exit(returncode)}")
    return True


def _write_stdin(proc, text):
    try:
        proc.stdin.write(text + "\n")
        proc.stdin.flush()
    except (OSError, ValueError):
        # Closed pipe: the process is on its way out and the exit handler will follow.
        raise NotRunning("Server is not accepting commands")


def _require_process(ctx):
    proc = ctx.process.handle
    if proc is None:
        raise NotRunning()
    return proc


def stop_server(ctx):
    """Ask the server to shut down gracefully; does not wait for the exit."""
    with ctx.process_lock:
        proc = _require_process(ctx)
        _write_stdin(proc, STOP_COMMAND)
        log_pipeline.append_log(ctx, "--- Stop command sent ---", "system")
    ctx.log_action("stop")


def kill_server(ctx):
    """Terminate the server immediately (SIGKILL); unsaved world data is lost."""
    with ctx.process_lock:
        proc = _require_process(ctx)
        try:
            proc.kill()
        except ProcessLookupError:
            pass
        log_pipeline.append_log(ctx, "--- Force killed ---", "error")
    ctx.log_action("kill")


def send_command(ctx, text):
    """Write one console command to the server's stdin."""
    command = (text or "").strip()
    if not command:
        raise EmptyCommand()
    with ctx.process_lock:
        proc = _require_process(ctx)
        _write_stdin(proc, command)
        log_pipeline.append_log(ctx, f"> {command}", "command")
    ctx.log_action("command", command=command)
    return command


def request_player_list(ctx):
    """Ask a running server for its roster; returns whether it was sent."""
    with ctx.process_lock:
        proc = ctx.process.handle
        if proc is None:
            return False
        try:
            _write_stdin(proc, LIST_COMMAND)
        except NotRunning:
            return False
    return True
