import re
import unittest

from mccontrol.core.log_parser import (
    LogPatternSet,
    PlayerJoined,
    PlayerLeft,
    RosterReplaced,
    normalize_line,
    parse_line,
    split_roster_names,
)


class LogParserTests(unittest.TestCase):
    def test_join_and_leave(self):
        self.assertEqual(parse_line("[12:00:00] [Server thread/INFO]: Steve joined the game"), PlayerJoined("Steve"))
        self.assertEqual(parse_line("[12:00:00] [Server thread/INFO]: Alex_2 left the game"), PlayerLeft("Alex_2"))

    def test_roster_line(self):
        event = parse_line("[12:00:00] [Server thread/INFO]: There are 2 of a max of 20 players online: Alex, Bob")
        self.assertEqual(event, RosterReplaced(("Alex", "Bob")))

    def test_empty_roster(self):
        event = parse_line("[12:00:00] [Server thread/INFO]: There are 0 of a max of 20 players online:")
        self.assertEqual(event, RosterReplaced(()))

    def test_other_lines_do_not_match(self):
        self.assertIsNone(parse_line("[12:00:00] [Server thread/INFO]: Done (3.2s)! For help, type \"help\""))
        self.assertIsNone(parse_line(""))
        # Chat without the ": " prefix before the name is not a join.
        self.assertIsNone(parse_line("Steve joined the game"))

    def test_normalize_strips_carriage_returns_and_whitespace(self):
        self.assertEqual(normalize_line("  hello\r\n"), "hello")
        self.assertEqual(normalize_line(None), "")

    def test_split_roster_names_drops_blanks(self):
        self.assertEqual(split_roster_names(" a, ,b ,"), ("a", "b"))

    def test_custom_pattern_set(self):
        patterns = LogPatternSet(
            join=re.compile(r"\+ (\w+)"),
            leave=re.compile(r"- (\w+)"),
            roster=re.compile(r"online=(.*)"),
        )
        self.assertEqual(parse_line("+ Steve", patterns), PlayerJoined("Steve"))
        self.assertEqual(parse_line("online=a,b", patterns), RosterReplaced(("a", "b")))


if __name__ == "__main__":
    unittest.main()
