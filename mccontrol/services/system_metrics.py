"""Host CPU/RAM sampling from procfs, published once per interval."""

import os
import threading
import time


def read_cpu_times(proc_dir="/proc"):
    """Return aggregate ``(idle, total)`` jiffies from the ``cpu`` line of /proc/stat."""
    with open(os.path.join(proc_dir, "stat"), "r", encoding="utf-8") as f:
        for line in f:
            if line.startswith("cpu "):
                values = [int(v) for v in line.split()[1:]]
                idle = values[3] + (values[4] if len(values) > 4 else 0)
                return idle, sum(values)
    raise ValueError("no aggregate cpu line in /proc/stat")


def cpu_percent(previous, current):
    """Utilization between two ``(idle, total)`` samples; 0 without a previous one."""
    if previous is None:
        return 0
    idle_delta = current[0] - previous[0]
    total_delta = current[1] - previous[1]
    if total_delta <= 0:
        return 0
    return round(100 * (1 - idle_delta / total_delta))


def read_ram_percent(proc_dir="/proc"):
    """Return used RAM as a rounded percent of MemTotal."""
    mem_total_kb = 0
    mem_free_kb = None
    with open(os.path.join(proc_dir, "meminfo"), "r", encoding="utf-8") as f:
        for line in f:
            if line.startswith("MemTotal:"):
                mem_total_kb = int(line.split()[1])
            elif line.startswith("MemAvailable:"):
                mem_free_kb = int(line.split()[1])
            elif line.startswith("MemFree:") and mem_free_kb is None:
                mem_free_kb = int(line.split()[1])
    if mem_total_kb <= 0:
        return 0
    return round(100 * (mem_total_kb - (mem_free_kb or 0)) / mem_total_kb)


def sample_stats(ctx):
    """Take one sample, store it on ``ctx.stats`` and broadcast it."""
    current = read_cpu_times(ctx.PROC_DIR)
    ram = read_ram_percent(ctx.PROC_DIR)
    with ctx.stats.lock:
        ctx.stats.cpu = cpu_percent(ctx.stats.prev_cpu_times, current)
        ctx.stats.prev_cpu_times = current
        ctx.stats.ram = ram
        payload = ctx.stats.to_dict()
    ctx.hub.broadcast({"type": "stats", **payload})
    return payload


def stats_sampler_loop(ctx):
    # Runs for the life of the panel, whether or not the server is up.
    while True:
        try:
            sample_stats(ctx)
        except (OSError, ValueError) as exc:
            ctx.log_exception("stats_sampler", exc)
        time.sleep(ctx.STATS_INTERVAL_SECONDS)


def ensure_stats_sampler_started(ctx):
    """Start the sampler thread exactly once."""
    with ctx.stats.lock:
        if ctx.stats.started:
            return
        ctx.stats.started = True
    sampler = threading.Thread(target=stats_sampler_loop, args=(ctx,), daemon=True)
    sampler.start()
