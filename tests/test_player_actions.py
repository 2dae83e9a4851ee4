import threading
import unittest
from types import SimpleNamespace
from unittest.mock import patch

from mccontrol.core.errors import EmptyCommand, NotRunning, UnknownAction
from mccontrol.services import player_actions
from mccontrol.state import SupervisorState


class PlayerActionTests(unittest.TestCase):
    def test_templates(self):
        build = player_actions.build_player_command
        self.assertEqual(build("kick", "Steve"), "kick Steve Kicked by admin")
        self.assertEqual(build("ban", "Steve", "griefing"), "ban Steve griefing")
        self.assertEqual(build("unban", "Steve"), "pardon Steve")
        self.assertEqual(build("creative", "Steve"), "gamemode creative Steve")
        self.assertEqual(build("gamemode", "Steve", "spectator"), "gamemode spectator Steve")
        self.assertEqual(build("tp", "Steve", "Alex"), "tp Steve Alex")
        self.assertEqual(build("heal", "Steve"), "effect give Steve minecraft:instant_health 1 255")

    def test_tp_requires_destination(self):
        with self.assertRaises(UnknownAction):
            player_actions.build_player_command("tp", "Steve")

    def test_unknown_action(self):
        with self.assertRaises(UnknownAction):
            player_actions.build_player_command("fly", "Steve")

    def test_blank_name(self):
        with self.assertRaises(EmptyCommand):
            player_actions.build_player_command("op", "  ")

    def test_run_requires_running_server(self):
        ctx = SimpleNamespace(process=SupervisorState(), process_lock=threading.RLock())
        with self.assertRaises(NotRunning):
            player_actions.run_player_action(ctx, "op", "Steve")

    def test_run_sends_expanded_command(self):
        ctx = SimpleNamespace(process=SupervisorState(handle=object()), process_lock=threading.RLock())
        with patch.object(player_actions.supervisor_service, "send_command", return_value="op Steve") as send:
            self.assertEqual(player_actions.run_player_action(ctx, "op", "Steve"), "op Steve")
        send.assert_called_once_with(ctx, "op Steve")


if __name__ == "__main__":
    unittest.main()
