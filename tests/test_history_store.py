import unittest

from mccontrol.core.history_store import DEFAULT_HISTORY_CAPACITY, HistoryStore, LogEntry


class HistoryStoreTests(unittest.TestCase):
    def test_oldest_entry_evicted_past_capacity(self):
        store = HistoryStore()
        for i in range(DEFAULT_HISTORY_CAPACITY + 1):
            store.append(LogEntry(f"line {i}"))
        entries = store.snapshot()
        self.assertEqual(len(entries), 2000)
        self.assertEqual(entries[0].text, "line 1")
        self.assertEqual(entries[-1].text, "line 2000")

    def test_snapshot_is_repeatable_without_appends(self):
        store = HistoryStore(capacity=3)
        store.append(LogEntry("a"))
        store.append(LogEntry("b", "warn"))
        self.assertEqual(store.snapshot(), store.snapshot())
        self.assertEqual([e.text for e in store.snapshot()], ["a", "b"])

    def test_snapshot_is_a_copy(self):
        store = HistoryStore(capacity=3)
        store.append(LogEntry("a"))
        snap = store.snapshot()
        store.append(LogEntry("b"))
        self.assertEqual(len(snap), 1)

    def test_rejects_non_positive_capacity(self):
        with self.assertRaises(ValueError):
            HistoryStore(capacity=0)

    def test_entry_payload(self):
        entry = LogEntry("hello", "system", timestamp=0.0)
        payload = entry.to_dict()
        self.assertEqual(payload["text"], "hello")
        self.assertEqual(payload["kind"], "system")
        self.assertRegex(payload["time"], r"^\d{2}:\d{2}:\d{2}$")


if __name__ == "__main__":
    unittest.main()
