import tempfile
import unittest
from pathlib import Path

from notegraph.ingest.vault import NoteNotFoundError, Vault, VaultError


class TestVault(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)
        (self.root / "sub").mkdir()
        (self.root / ".git").mkdir()
        (self.root / "b.md").write_text("# B\n", encoding="utf-8")
        (self.root / "sub" / "a.md").write_text("[[b]]", encoding="utf-8")
        (self.root / "notes.txt").write_text("not a note", encoding="utf-8")
        (self.root / ".hidden.md").write_text("hidden", encoding="utf-8")
        (self.root / ".git" / "x.md").write_text("ignored", encoding="utf-8")
        self.vault = Vault(self.root)

    def tearDown(self):
        self._tmp.cleanup()

    def test_list_notes(self):
        self.assertEqual(self.vault.list_notes(), ["b.md", "sub/a.md"])

    def test_missing_root(self):
        with self.assertRaises(VaultError):
            Vault(self.root / "nope").list_notes()

    def test_normalize_path(self):
        self.assertEqual(self.vault.normalize_path("sub/a"), "sub/a.md")
        self.assertEqual(self.vault.normalize_path("/sub\\a.md"), "sub/a.md")
        with self.assertRaises(VaultError):
            self.vault.normalize_path("../outside")
        with self.assertRaises(VaultError):
            self.vault.normalize_path("")

    def test_read_note(self):
        note = self.vault.read_note("sub/a")
        self.assertEqual(note.path, "sub/a.md")
        self.assertEqual(note.title, "a")
        self.assertEqual(note.link_targets, ["b"])
        with self.assertRaises(NoteNotFoundError):
            self.vault.read_note("missing")

    def test_cache_until_cleared(self):
        first = self.vault.read_note("b.md")
        (self.root / "b.md").write_text("# Changed\n", encoding="utf-8")
        self.assertIs(self.vault.read_note("b.md"), first)

        self.vault.clear_cache()
        self.assertEqual(self.vault.read_note("b.md").headings[0].text, "Changed")

    def test_cache_disabled(self):
        vault = Vault(self.root, cache_enabled=False)
        vault.read_note("b.md")
        (self.root / "b.md").write_text("# Fresh\n", encoding="utf-8")
        self.assertEqual(vault.read_note("b.md").headings[0].text, "Fresh")

    def test_create_update_delete(self):
        note = self.vault.create_note("new/c", "Hello [[b]]")
        self.assertEqual(note.path, "new/c.md")
        self.assertTrue(self.vault.note_exists("new/c"))

        updated = self.vault.update_note("new/c.md", "Bye")
        self.assertEqual(updated.content, "Bye")
        with self.assertRaises(NoteNotFoundError):
            self.vault.update_note("ghost", "x")

        self.vault.delete_note("new/c")
        self.assertFalse(self.vault.note_exists("new/c.md"))
        self.vault.delete_note("new/c")

    def test_documents_and_fingerprint(self):
        self.assertEqual(self.vault.documents(), {"b.md": "# B\n", "sub/a.md": "[[b]]"})

        before = self.vault.fingerprint("b.md")
        self.assertEqual(before, self.vault.fingerprint("b"))
        (self.root / "b.md").write_text("# B2\n", encoding="utf-8")
        self.assertNotEqual(self.vault.fingerprint("b.md"), before)
        with self.assertRaises(NoteNotFoundError):
            self.vault.fingerprint("missing.md")


if __name__ == "__main__":
    unittest.main()
