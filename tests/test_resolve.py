import unittest

from notegraph.graph.resolve import Resolver, base_name


class TestResolver(unittest.TestCase):
    def setUp(self):
        self.r = Resolver()
        self.r.add("Projects/Alpha.md", "Project Alpha")
        self.r.add("notes/zeta.md", "Misc")
        self.r.add("Beta.md", "zeta")

    def test_base_name(self):
        self.assertEqual(base_name("Projects/Alpha.md"), "Alpha")
        self.assertEqual(base_name("top.md"), "top")
        self.assertEqual(base_name("a/b/c.txt", ".txt"), "c")

    def test_exact_and_extension(self):
        self.assertEqual(self.r.resolve("Projects/Alpha.md"), "Projects/Alpha.md")
        self.assertEqual(self.r.resolve("Projects/Alpha"), "Projects/Alpha.md")

    def test_base_name_is_case_insensitive(self):
        self.assertEqual(self.r.resolve("alpha"), "Projects/Alpha.md")
        self.assertEqual(self.r.resolve("ALPHA"), "Projects/Alpha.md")

    def test_title_fallback(self):
        self.assertEqual(self.r.resolve("project alpha"), "Projects/Alpha.md")

    def test_base_name_beats_title(self):
        # "zeta" is Beta.md's title but notes/zeta.md's file name.
        self.assertEqual(self.r.resolve("Zeta"), "notes/zeta.md")

    def test_unknown_reference(self):
        self.assertIsNone(self.r.resolve("nowhere"))
        self.assertIsNone(self.r.resolve(""))

    def test_smallest_path_wins_ties(self):
        r = Resolver()
        r.add("b/same.md", "Two")
        r.add("a/Same.md", "One")
        self.assertEqual(r.resolve("same"), "a/Same.md")

        r.add("a/Same.md", "One again")
        self.assertEqual(r.resolve("same"), "a/Same.md")

        r.discard("a/Same.md")
        self.assertEqual(r.resolve("same"), "b/same.md")

    def test_title_ties_ignore_insertion_order(self):
        first, second = Resolver(), Resolver()
        first.add("x.md", "Shared")
        first.add("m.md", "shared")
        second.add("m.md", "shared")
        second.add("x.md", "Shared")
        self.assertEqual(first.resolve("shared"), "m.md")
        self.assertEqual(second.resolve("shared"), "m.md")

    def test_title_refresh_and_discard(self):
        self.r.add("Projects/Alpha.md", "Renamed")
        self.assertIsNone(self.r.resolve("project alpha"))
        self.assertEqual(self.r.resolve("renamed"), "Projects/Alpha.md")

        self.r.discard("Projects/Alpha.md")
        self.assertIsNone(self.r.resolve("renamed"))
        self.assertNotIn("Projects/Alpha.md", self.r)
        self.r.discard("Projects/Alpha.md")

    def test_clear(self):
        self.r.clear()
        self.assertIsNone(self.r.resolve("alpha"))


if __name__ == "__main__":
    unittest.main()
