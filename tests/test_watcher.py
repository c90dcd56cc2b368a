import tempfile
import threading
import unittest
from pathlib import Path
from unittest import mock

from notegraph.graph import GraphEngine
from notegraph.ingest.vault import Vault, VaultError
from notegraph.ingest.watcher import VaultChanges, VaultWatcher, apply_changes


class TestVaultWatcher(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)
        (self.root / "a.md").write_text("[[b]]", encoding="utf-8")
        (self.root / "b.md").write_text("Plain", encoding="utf-8")
        self.vault = Vault(self.root)
        self.engine = GraphEngine(self.vault)
        self.engine.build()
        self.seen = []
        self.watcher = VaultWatcher(self.vault, on_changes=self.seen.append, poll_interval_s=0.01)
        self.watcher.start()

    def tearDown(self):
        self._tmp.cleanup()

    def test_no_changes(self):
        self.assertIsNone(self.watcher.poll())
        self.assertEqual(self.seen, [])
        self.assertEqual(self.watcher.known_paths, {"a.md", "b.md"})

    def test_detects_added_deleted_modified(self):
        (self.root / "c.md").write_text("[[a]]", encoding="utf-8")
        (self.root / "b.md").unlink()
        (self.root / "a.md").write_text("[[c]]", encoding="utf-8")

        changes = self.watcher.poll()
        self.assertEqual(changes, VaultChanges(added=["c.md"], deleted=["b.md"], modified=["a.md"]))
        self.assertEqual(self.seen, [changes])
        self.assertIsNone(self.watcher.poll())

    def test_apply_changes_syncs_engine(self):
        (self.root / "c.md").write_text("[[a]]", encoding="utf-8")
        (self.root / "b.md").unlink()
        (self.root / "a.md").write_text("[[c]]", encoding="utf-8")

        apply_changes(self.engine, self.watcher.poll())

        self.assertEqual([n.path for n in self.engine.get_all_nodes()], ["a.md", "c.md"])
        self.assertEqual(self.engine.get_backlinks("a"), ["c.md"])
        self.assertEqual(self.engine.get_backlinks("c"), ["a.md"])

    def test_apply_changes_drops_vanished_notes(self):
        changes = VaultChanges(added=["ghost.md"])
        with self.assertLogs("notegraph.ingest.watcher", level="WARNING"):
            apply_changes(self.engine, changes)
        self.assertNotIn("ghost.md", self.engine)

    def test_empty_changes_are_falsy(self):
        self.assertFalse(VaultChanges())
        self.assertTrue(VaultChanges(deleted=["x.md"]))

    def test_run_survives_failed_polls(self):
        stop = threading.Event()
        calls = []

        def failing_poll():
            calls.append(1)
            if len(calls) >= 2:
                stop.set()
            raise VaultError("vault went away")

        with mock.patch.object(self.watcher, "poll", side_effect=failing_poll):
            with self.assertLogs("notegraph.ingest.watcher", level="ERROR") as logs:
                self.watcher.run(stop)

        self.assertEqual(len(calls), 2)
        self.assertTrue(any("Polling" in line for line in logs.output))


if __name__ == "__main__":
    unittest.main()
