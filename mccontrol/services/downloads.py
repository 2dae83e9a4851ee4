"""Server jar version lookups, downloads and the Fabric installer run."""

import os
import subprocess
import threading
from pathlib import Path

import requests

from mccontrol.core.errors import DownloadFailure, DownloadInProgress, InstallerFailure, PanelError, UnknownAction
from mccontrol.services import log_pipeline
from mccontrol.services.supervisor import EULA_FILENAME
from mccontrol.state import DownloadState

PAPER_PROJECT_URL = "https://api.papermc.io/v2/projects/paper"
VANILLA_MANIFEST_URL = "https://launchermeta.mojang.com/mc/game/version_manifest_v2.json"
FABRIC_META_URL = "https://meta.fabricmc.net/v2/versions"
FABRIC_INSTALLER_MAVEN_URL = "https://maven.fabricmc.net/net/fabricmc/fabric-installer"

SERVER_TYPES = ("paper", "vanilla", "fabric")
DOWNLOADED_JAR_NAME = "server.jar"
FABRIC_LAUNCH_JAR_NAME = "fabric-server-launch.jar"


def fetch_json(ctx, url):
    """GET ``url`` and decode JSON, mapping transport/HTTP errors to DownloadFailure."""
    try:
        response = ctx.http.get(url, headers={"User-Agent": ctx.USER_AGENT}, timeout=ctx.HTTP_TIMEOUT_SECONDS)
        response.raise_for_status()
        return response.json()
    except requests.RequestException as exc:
        raise DownloadFailure(f"{url}: {exc}")
    except ValueError:
        raise DownloadFailure(f"{url}: response is not JSON")


def _validate_server_type(server_type):
    normalized = (server_type or "").strip().lower()
    if normalized not in SERVER_TYPES:
        raise UnknownAction(f"Unknown server type: {server_type}")
    return normalized


def list_versions(ctx, server_type):
    """Return the selectable versions for one server type, newest first."""
    server_type = _validate_server_type(server_type)
    try:
        if server_type == "paper":
            project = fetch_json(ctx, PAPER_PROJECT_URL)
            return {"versions": list(reversed(project["versions"]))}
        if server_type == "vanilla":
            manifest = fetch_json(ctx, VANILLA_MANIFEST_URL)
            releases = [v for v in manifest["versions"] if v.get("type") == "release"]
            return {
                "versions": [v["id"] for v in releases],
                "urls": {v["id"]: v["url"] for v in releases},
            }
        games = fetch_json(ctx, f"{FABRIC_META_URL}/game")
        return {"versions": [v["version"] for v in games if v.get("stable")]}
    except (KeyError, TypeError) as exc:
        raise DownloadFailure(f"Unexpected {server_type} manifest format: {exc}")


def resolve_download_url(ctx, server_type, version):
    """Return the direct server jar URL for a Paper or Vanilla version."""
    try:
        if server_type == "paper":
            builds = fetch_json(ctx, f"{PAPER_PROJECT_URL}/versions/{version}")
            build = max(builds["builds"])
            return f"{PAPER_PROJECT_URL}/versions/{version}/builds/{build}/downloads/paper-{version}-{build}.jar"
        manifest = fetch_json(ctx, VANILLA_MANIFEST_URL)
        entry = next((v for v in manifest["versions"] if v["id"] == version), None)
        if entry is None:
            raise DownloadFailure("Version not found")
        details = fetch_json(ctx, entry["url"])
        return details["downloads"]["server"]["url"]
    except (KeyError, TypeError, ValueError) as exc:
        raise DownloadFailure(f"Unexpected {server_type} manifest format: {exc}")


def get_download_snapshot(ctx):
    with ctx.download_lock:
        return ctx.download.to_dict() if ctx.download is not None else None


def _update_download(ctx, **changes):
    """Apply changes to the current DownloadState and broadcast the snapshot."""
    with ctx.download_lock:
        for key, value in changes.items():
            setattr(ctx.download, key, value)
        snapshot = ctx.download.to_dict()
    ctx.hub.broadcast({"type": "download", **snapshot})
    return snapshot


def _content_length(headers):
    """Declared body size, or 0 when the header is absent or unparseable."""
    try:
        return max(0, int(headers.get("content-length") or 0))
    except ValueError:
        return 0


def stream_to_file(ctx, url, out_path):
    """Download ``url`` into ``out_path`` reporting byte progress per chunk."""
    out_path = Path(out_path)
    part_path = out_path.with_name(out_path.name + ".part")
    try:
        with ctx.http.get(url, headers={"User-Agent": ctx.USER_AGENT}, stream=True, timeout=ctx.HTTP_TIMEOUT_SECONDS) as response:
            if response.status_code != 200:
                raise DownloadFailure(f"HTTP {response.status_code}")
            total = _content_length(response.headers)
            _update_download(ctx, total=total, progress=0)
            received = 0
            with part_path.open("wb") as out:
                for chunk in response.iter_content(chunk_size=ctx.DOWNLOAD_CHUNK_SIZE):
                    if not chunk:
                        continue
                    out.write(chunk)
                    received += len(chunk)
                    _update_download(ctx, progress=received)
        os.replace(part_path, out_path)
    except requests.RequestException as exc:
        raise DownloadFailure(str(exc))
    finally:
        _remove_quietly(part_path)
    return out_path


def _remove_quietly(path):
    try:
        Path(path).unlink()
    except OSError:
        pass


def _accept_eula(server_dir):
    (Path(server_dir) / EULA_FILENAME).write_text("eula=true\n", encoding="utf-8")


def run_fabric_installer(ctx, config, version, installer_path, loader_version, popen=subprocess.Popen):
    """Run the Fabric installer jar, streaming its output into the console log."""
    argv = [
        config.java_path, "-jar", str(installer_path), "server",
        "-mcversion", version, "-loader", loader_version, "-downloadMinecraft",
    ]
    try:
        proc = popen(argv, cwd=config.server_dir, stdout=subprocess.PIPE, stderr=subprocess.PIPE,
                     text=True, encoding="utf-8", errors="replace", bufsize=1)
    except (OSError, ValueError) as exc:
        raise InstallerFailure(f"Could not launch Fabric installer: {exc}")
    readers = [
        log_pipeline.start_output_reader(ctx, proc.stdout, "system"),
        log_pipeline.start_output_reader(ctx, proc.stderr, "warn"),
    ]
    returncode = proc.wait()
    for reader in readers:
        reader.join()
    if returncode != 0:
        raise InstallerFailure(f"Fabric installer exited {returncode}")


def install_fabric(ctx, config, version, popen=subprocess.Popen):
    """Fetch the latest Fabric installer and build a fabric server for ``version``."""
    try:
        loader_version = fetch_json(ctx, f"{FABRIC_META_URL}/loader")[0]["version"]
        installer_version = fetch_json(ctx, f"{FABRIC_META_URL}/installer")[0]["version"]
    except (KeyError, IndexError, TypeError) as exc:
        raise DownloadFailure(f"Unexpected fabric manifest format: {exc}")
    installer_url = f"{FABRIC_INSTALLER_MAVEN_URL}/{installer_version}/fabric-installer-{installer_version}.jar"
    installer_path = Path(config.server_dir) / f"fabric-installer-{installer_version}.jar"

    log_pipeline.append_log(ctx, "--- Downloading Fabric installer... ---", "system")
    try:
        stream_to_file(ctx, installer_url, installer_path)
        log_pipeline.append_log(ctx, "--- Running Fabric installer (this also downloads MC, may take a while)... ---", "system")
        _update_download(ctx, name=f"fabric-{version} (installing...)")
        run_fabric_installer(ctx, config, version, installer_path, loader_version, popen=popen)
    finally:
        _remove_quietly(installer_path)

    if not (Path(config.server_dir) / FABRIC_LAUNCH_JAR_NAME).is_file():
        raise InstallerFailure(f"Fabric installer ran but {FABRIC_LAUNCH_JAR_NAME} not found")
    return FABRIC_LAUNCH_JAR_NAME


def run_download(ctx, server_type, version, popen=subprocess.Popen):
    """Download/install one server jar; always ends in a done or error state."""
    try:
        config = ctx.config_store.get()
        Path(config.server_dir).mkdir(parents=True, exist_ok=True)
        if server_type == "fabric":
            jar_name = install_fabric(ctx, config, version, popen=popen)
        else:
            url = resolve_download_url(ctx, server_type, version)
            jar_name = DOWNLOADED_JAR_NAME
            stream_to_file(ctx, url, Path(config.server_dir) / jar_name)
        saved = ctx.config_store.save(server_jar=jar_name, server_type=server_type, server_version=version)
        _accept_eula(config.server_dir)
        log_pipeline.append_log(ctx, f"--- Downloaded {server_type} {version} -> {jar_name} ---", "system")
        _update_download(ctx, done=True)
        ctx.hub.broadcast({"type": "jarReady"})
        ctx.hub.broadcast({"type": "config", "config": saved.to_json()})
        ctx.log_action("download", command=f"{server_type} {version} -> {jar_name}")
    except PanelError as exc:
        _fail_download(ctx, server_type, version, exc.message)
    except OSError as exc:
        ctx.log_exception("download", exc)
        _fail_download(ctx, server_type, version, str(exc))
    except Exception as exc:
        # The worker must always leave the download done or errored.
        ctx.log_exception("download", exc)
        _fail_download(ctx, server_type, version, f"Unexpected error: {type(exc).__name__}: {exc}")


def _fail_download(ctx, server_type, version, message):
    log_pipeline.append_log(ctx, f"Download error: {message}", "error")
    _update_download(ctx, error=message)
    ctx.log_action("download", command=f"{server_type} {version}", rejection_message=message)


def start_download(ctx, server_type, version, popen=subprocess.Popen):
    """Accept a download request and run it on a background thread."""
    server_type = _validate_server_type(server_type)
    version = (version or "").strip()
    if not version:
        raise UnknownAction("A version is required")
    with ctx.download_lock:
        if ctx.download is not None and ctx.download.in_flight:
            raise DownloadInProgress()
        ctx.download = DownloadState(name=f"{server_type}-{version}.jar")
        snapshot = ctx.download.to_dict()
    ctx.hub.broadcast({"type": "download", **snapshot})
    worker = threading.Thread(target=run_download, args=(ctx, server_type, version), kwargs={"popen": popen}, daemon=True)
    worker.start()
    return snapshot
