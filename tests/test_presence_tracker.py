import random
import unittest

from mccontrol.core.log_parser import PlayerJoined, PlayerLeft, RosterReplaced
from mccontrol.core.presence_tracker import PresenceTracker


class PresenceTrackerTests(unittest.TestCase):
    def test_snapshot_published_on_every_change(self):
        published = []
        tracker = PresenceTracker(on_change=published.append, clock=lambda: 1.5)
        tracker.apply_join("Steve")
        tracker.apply_leave("Nobody")
        tracker.clear()
        self.assertEqual(published, [[{"name": "Steve", "joined": 1500}], [{"name": "Steve", "joined": 1500}], []])

    def test_rejoin_refreshes_join_time(self):
        now = [10.0]
        tracker = PresenceTracker(clock=lambda: now[0])
        tracker.apply_join("Steve")
        now[0] = 20.0
        tracker.apply_join("Steve")
        self.assertEqual(tracker.snapshot(), [{"name": "Steve", "joined": 20000}])

    def test_roster_replace_resets_everyone(self):
        tracker = PresenceTracker(clock=lambda: 5.0)
        tracker.apply_join("Steve")
        tracker.apply_roster_replace(("Alex", "Bob"))
        self.assertEqual(tracker.names(), {"Alex", "Bob"})

    def test_apply_ignores_non_presence_events(self):
        tracker = PresenceTracker()
        self.assertFalse(tracker.apply(None))
        self.assertFalse(tracker.apply("line"))
        self.assertEqual(len(tracker), 0)

    def test_matches_set_model_over_random_event_sequences(self):
        rng = random.Random(7)
        pool = ["Steve", "Alex", "Bob", "Eve"]
        for _ in range(50):
            tracker = PresenceTracker()
            model = set()
            for _ in range(40):
                roll = rng.random()
                if roll < 0.45:
                    name = rng.choice(pool)
                    tracker.apply(PlayerJoined(name))
                    model.add(name)
                elif roll < 0.85:
                    name = rng.choice(pool)
                    tracker.apply(PlayerLeft(name))
                    model.discard(name)
                else:
                    names = tuple(rng.sample(pool, rng.randint(0, len(pool))))
                    tracker.apply(RosterReplaced(names))
                    model = set(names)
                self.assertEqual(tracker.names(), model)


if __name__ == "__main__":
    unittest.main()
