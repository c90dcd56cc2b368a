import importlib.util
import tempfile
import unittest
from pathlib import Path

HAS_WEB = all(importlib.util.find_spec(m) is not None for m in ("fastapi", "httpx"))


@unittest.skipUnless(HAS_WEB, "web extras not installed")
class TestWebApi(unittest.TestCase):
    def setUp(self):
        from fastapi.testclient import TestClient

        from notegraph.web.server import create_app

        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)
        (self.root / "a.md").write_text("---\ntags: [x]\n---\n# A\nSee [[b]]", encoding="utf-8")
        (self.root / "b.md").write_text("Python programming notes", encoding="utf-8")
        self.client = TestClient(create_app(vault_path=str(self.root)))

    def tearDown(self):
        self._tmp.cleanup()

    def test_health_and_notes(self):
        r = self.client.get("/api/health")
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["notes"], 2)
        self.assertEqual(self.client.get("/api/notes").json()["notes"], ["a.md", "b.md"])

    def test_get_note(self):
        data = self.client.get("/api/note", params={"path": "a"}).json()
        self.assertTrue(data["ok"])
        self.assertEqual(data["note"]["path"], "a.md")
        self.assertEqual(data["note"]["tags"], ["x"])
        self.assertEqual(data["note"]["headings"], [{"level": 1, "text": "A", "line": 1}])

        r = self.client.get("/api/note", params={"path": "missing"})
        self.assertEqual(r.status_code, 404)
        self.assertFalse(r.json()["ok"])

    def test_put_and_delete(self):
        r = self.client.put("/api/note", json={"path": "c", "content": "Back to [[a]]"})
        self.assertEqual(r.status_code, 200)
        self.assertTrue(r.json()["created"])
        self.assertTrue((self.root / "c.md").is_file())
        self.assertEqual(self.client.get("/api/backlinks", params={"path": "a"}).json()["backlinks"], ["c.md"])

        r = self.client.put("/api/note", json={"path": "c"})
        self.assertEqual(r.status_code, 400)

        r = self.client.delete("/api/note", params={"path": "c"})
        self.assertEqual(r.json(), {"ok": True, "deleted": "c.md"})
        self.assertEqual(self.client.get("/api/backlinks", params={"path": "a"}).json()["backlinks"], [])
        self.assertEqual(self.client.delete("/api/note", params={"path": "c"}).status_code, 404)

    def test_delete_drops_node_removed_outside_the_app(self):
        (self.root / "b.md").unlink()
        r = self.client.delete("/api/note", params={"path": "b"})
        self.assertEqual(r.status_code, 404)
        self.assertEqual(self.client.get("/api/notes").json()["notes"], ["a.md"])
        self.assertEqual(self.client.get("/api/graph").json()["edges"], [])

    def test_rejects_paths_outside_vault(self):
        r = self.client.put("/api/note", json={"path": "../evil", "content": "x"})
        self.assertEqual(r.status_code, 400)

    def test_graph_queries(self):
        graph = self.client.get("/api/graph").json()
        self.assertEqual(graph["edges"], [{"source": "a.md", "target": "b.md"}])

        near = self.client.get("/api/graph", params={"path": "b", "depth": 1}).json()
        self.assertEqual([n["path"] for n in near["nodes"]], ["a.md"])

        self.assertEqual(self.client.get("/api/tags/x").json()["notes"], ["a.md"])
        self.assertEqual(self.client.get("/api/path", params={"source": "a", "target": "b"}).json()["path"], ["a.md", "b.md"])
        self.assertEqual(self.client.get("/api/clusters").json()["clusters"], [["a.md", "b.md"]])
        self.assertEqual(self.client.get("/api/bridges").json()["bridges"], [])
        self.assertEqual(self.client.get("/api/hubs", params={"limit": 1}).json()["hubs"][0]["degree"], 1)

        stats = self.client.get("/api/stats").json()["stats"]
        self.assertEqual(stats["total_edges"], 1)

    def test_search(self):
        hits = self.client.get("/api/search", params={"q": "python"}).json()["hits"]
        self.assertEqual([h["path"] for h in hits], ["b.md"])
        self.assertEqual(self.client.get("/api/search", params={"q": "  "}).status_code, 400)
        self.assertEqual(self.client.get("/api/similar", params={"path": "zzz"}).status_code, 404)

    def test_rebuild_picks_up_disk_changes(self):
        (self.root / "d.md").write_text("[[a]]", encoding="utf-8")
        res = self.client.post("/api/rebuild").json()
        self.assertEqual(res["notes"], 3)
        self.assertEqual(res["edges"], 2)


if __name__ == "__main__":
    unittest.main()
