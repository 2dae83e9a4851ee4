import base64
import tempfile
import threading
import unittest
from pathlib import Path
from unittest.mock import Mock, patch

from mccontrol.core.history_store import HistoryStore
from mccontrol.core.log_parser import VANILLA_PATTERNS
from mccontrol.core.panel_config import ConfigStore, PanelConfig
from mccontrol.core.presence_tracker import PresenceTracker
from mccontrol.application_factory import build_flask_app
from mccontrol.services import downloads
from mccontrol.services.broadcast_hub import BroadcastHub
from mccontrol.state import AppState, DownloadState, StatsState, SupervisorState


class RecordingStdin:
    def __init__(self):
        self.written = []

    def write(self, text):
        self.written.append(text)

    def flush(self):
        pass


class RouteTests(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.server_dir = Path(self._tmp.name) / "server"
        self.server_dir.mkdir()
        self.ctx = AppState(
            config_store=ConfigStore(Path(self._tmp.name) / "config.json", PanelConfig(server_dir=str(self.server_dir))),
            history=HistoryStore(capacity=100),
            presence=PresenceTracker(),
            hub=BroadcastHub(100),
            patterns=VANILLA_PATTERNS,
            process=SupervisorState(),
            process_lock=threading.RLock(),
            log_lock=threading.RLock(),
            download_lock=threading.Lock(),
            stats=StatsState(lock=threading.Lock()),
            http=Mock(),
            log_action=Mock(),
            log_exception=Mock(),
            echo=lambda entry: None,
        )
        self.client = build_flask_app(self.ctx).test_client()

    def tearDown(self):
        self._tmp.cleanup()

    def _fake_running(self):
        stdin = RecordingStdin()
        self.ctx.process.handle = Mock(stdin=stdin)
        self.ctx.process.started_at = 0.0
        return stdin

    def test_index_page(self):
        response = self.client.get("/")
        self.assertEqual(response.status_code, 200)
        self.assertIn(b"MC Control", response.data)
        for marker in (b"config-form", b"properties-form", b"mods-upload", b"plugins-upload", b"readAsDataURL"):
            self.assertIn(marker, response.data)

    def test_status_while_stopped(self):
        payload = self.client.get("/api/status").get_json()
        self.assertFalse(payload["running"])
        self.assertFalse(payload["jarExists"])
        self.assertIsNone(payload["uptime"])
        self.assertIsNone(payload["download"])
        self.assertEqual(payload["config"]["serverDir"], str(self.server_dir))

    def test_start_without_jar_is_rejected(self):
        response = self.client.post("/api/start")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.get_json()["error"], "artifact_missing")
        _, kwargs = self.ctx.log_action.call_args
        self.assertIn("server.jar", kwargs["rejection_message"])

    def test_start_with_nul_in_java_path_returns_spawn_failure(self):
        (self.server_dir / "server.jar").write_bytes(b"jar")
        self.ctx.config_store.save(java_path="java\x00")
        response = self.client.post("/api/start")
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.get_json()["error"], "spawn_failure")
        self.assertIsNone(self.ctx.process.handle)

    def test_kill_while_stopped(self):
        response = self.client.post("/api/kill")
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.get_json(), {"ok": False, "error": "not_running", "message": "Not running"})

    def test_empty_command(self):
        stdin = self._fake_running()
        response = self.client.post("/api/command", json={"command": "   "})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()["error"], "empty_command")
        self.assertEqual(stdin.written, [])

    def test_command_and_player_action_write_stdin(self):
        stdin = self._fake_running()
        self.assertTrue(self.client.post("/api/command", json={"command": "say hi"}).get_json()["ok"])
        response = self.client.post("/api/player/kick", json={"name": "Steve"})
        self.assertEqual(response.get_json()["command"], "kick Steve Kicked by admin")
        self.assertEqual(stdin.written, ["say hi\n", "kick Steve Kicked by admin\n"])

    def test_unknown_player_action(self):
        self._fake_running()
        response = self.client.post("/api/player/fly", json={"name": "Steve"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()["error"], "unknown_action")

    def test_list_reports_whether_sent(self):
        self.assertFalse(self.client.post("/api/list").get_json()["sent"])

    def test_config_update(self):
        response = self.client.post("/api/config", json={"memory": "2G", "serverType": "ignored"})
        self.assertEqual(response.get_json()["config"]["memory"], "2G")
        self.assertEqual(self.ctx.config_store.get().memory, "2G")
        self.assertEqual(self.ctx.config_store.get().server_type, "")
        self.assertEqual(self.client.get("/api/config").get_json()["memory"], "2G")

    def test_properties_round_trip(self):
        (self.server_dir / "server.properties").write_text("#comment\nmotd=Old\n", encoding="utf-8")
        self.assertTrue(self.client.post("/api/properties", json={"motd": "New", "pvp": "false"}).get_json()["ok"])
        self.assertEqual(self.client.get("/api/properties").get_json(), {"motd": "New", "pvp": "false"})
        self.assertTrue((self.server_dir / "server.properties").read_text(encoding="utf-8").startswith("#comment\n"))

    def test_properties_rejects_non_object(self):
        response = self.client.post("/api/properties", json=["motd"])
        self.assertEqual(response.status_code, 400)

    def test_mods_upload_list_delete(self):
        data = base64.b64encode(b"mod").decode("ascii")
        self.assertTrue(self.client.post("/api/mods/upload", json={"filename": "a.jar", "data": data}).get_json()["ok"])
        duplicate = self.client.post("/api/mods/upload", json={"filename": "a.jar", "data": data})
        self.assertEqual(duplicate.get_json()["error"], "invalid_upload")
        self.assertEqual([item["name"] for item in self.client.get("/api/mods").get_json()], ["a.jar"])
        self.assertTrue(self.client.delete("/api/mods/a.jar").get_json()["ok"])
        self.assertEqual(self.client.delete("/api/mods/a.jar").status_code, 404)
        self.assertEqual(self.client.get("/api/plugins").get_json(), [])

    def test_download_in_progress(self):
        self.ctx.download = DownloadState(name="paper-1.21.jar")
        response = self.client.post("/api/download", json={"type": "vanilla", "version": "1.21"})
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.get_json()["error"], "download_in_progress")

    def test_download_starts_worker(self):
        with patch.object(downloads, "run_download"):
            response = self.client.post("/api/download", json={"type": "paper", "version": "1.21"})
        self.assertEqual(response.get_json()["download"]["name"], "paper-1.21.jar")

    def test_versions_unknown_type(self):
        response = self.client.get("/api/versions/forge")
        self.assertEqual(response.status_code, 400)

    def test_unexpected_errors_become_internal_error(self):
        with patch("mccontrol.routes.dashboard_routes.read_properties", side_effect=RuntimeError("boom")):
            response = self.client.get("/api/properties")
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.get_json()["error"], "internal_error")
        self.ctx.log_exception.assert_called_once()

    def test_unknown_route_stays_404(self):
        self.assertEqual(self.client.get("/api/nope").status_code, 404)


if __name__ == "__main__":
    unittest.main()
