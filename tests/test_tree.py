"""Tests for the path tree builder."""

from __future__ import annotations

from codepilot.indexer.tree import FILE, FOLDER, PathTreeNode, build_tree


def _shape(node: PathTreeNode):
    """(name, kind, path, children) tuples for structural comparison."""
    return (node.name, node.kind, node.path, [_shape(c) for c in node.children])


class TestBuildTree:
    def test_empty(self):
        root = build_tree([])
        assert root.name == "root"
        assert root.kind == FOLDER
        assert root.path == ""
        assert root.children == []

    def test_scenario_a(self):
        root = build_tree(["src/a.ts", "src/b.md"])
        assert [c.name for c in root.children] == ["src"]
        src = root.children[0]
        assert src.kind == FOLDER
        assert src.path == "src"
        assert [(c.name, c.kind, c.path) for c in src.children] == [
            ("a.ts", FILE, "src/a.ts"),
            ("b.md", FILE, "src/b.md"),
        ]

    def test_sibling_order_is_first_seen(self):
        root = build_tree(["z/one.py", "a.py", "z/two.py", "m/x.py"])
        assert [c.name for c in root.children] == ["z", "a.py", "m"]
        assert [c.name for c in root.children[0].children] == ["one.py", "two.py"]

    def test_prefix_paths_become_ancestors(self):
        root = build_tree(["a/b/c/d.ts", "a/e.ts"])
        node = root.find("a/b/c/d.ts")
        assert node is not None and node.kind == FILE
        assert root.find("a/b").kind == FOLDER
        assert [c.name for c in root.find("a").children] == ["b", "e.ts"]

    def test_node_paths_join_parent_and_name(self):
        root = build_tree(["x/y/z.go", "x/w.go", "top.md"])

        def check(node: PathTreeNode):
            for c in node.children:
                expected = c.name if node.path == "" else f"{node.path}/{c.name}"
                assert c.path == expected
                check(c)

        check(root)

    def test_duplicate_paths_add_nothing(self):
        once = build_tree(["src/a.ts", "src/b.ts"])
        twice = build_tree(["src/a.ts", "src/b.ts", "src/a.ts"])
        assert _shape(once) == _shape(twice)

    def test_sibling_names_unique(self):
        root = build_tree(["a/x.ts", "a/y.ts", "a/x.ts", "b/x.ts"])
        for node in [root, root.find("a"), root.find("b")]:
            names = [c.name for c in node.children]
            assert len(names) == len(set(names))

    def test_idempotent(self):
        paths = ["lib/core.py", "lib/io/read.py", "README.md", "lib/io/write.py"]
        assert _shape(build_tree(paths)) == _shape(build_tree(paths))

    def test_empty_segments_ignored(self):
        root = build_tree(["a//b.ts"])
        assert root.find("a/b.ts").path == "a/b.ts"

    def test_file_then_folder_keeps_file(self):
        root = build_tree(["a", "a/b"])
        a = root.find("a")
        assert a.kind == FILE
        assert a.children == []
        assert root.find("a/b") is None

    def test_folder_then_file_keeps_folder(self):
        root = build_tree(["a/b", "a"])
        a = root.find("a")
        assert a.kind == FOLDER
        assert [c.name for c in a.children] == ["b"]
        assert len(root.children) == 1


class TestTreeQueries:
    def test_find_root(self):
        root = build_tree(["a.py"])
        assert root.find("") is root

    def test_find_missing(self):
        root = build_tree(["a/b.py"])
        assert root.find("a/c.py") is None
        assert root.find("a/b.py/c") is None

    def test_iter_files_depth_first(self):
        root = build_tree(["a/x.py", "b.py", "a/y/z.py"])
        assert [f.path for f in root.iter_files()] == ["a/x.py", "a/y/z.py", "b.py"]

    def test_to_dict(self):
        root = build_tree(["src/a.ts"])
        assert root.to_dict() == {
            "name": "root",
            "type": "folder",
            "path": "",
            "children": [
                {
                    "name": "src",
                    "type": "folder",
                    "path": "src",
                    "children": [{"name": "a.ts", "type": "file", "path": "src/a.ts"}],
                }
            ],
        }


class TestDeepTree:
    DEPTH = 1200

    def _deep_root(self):
        return build_tree(["/".join(["d"] * self.DEPTH + ["x.ts"])])

    def test_build_and_find(self):
        root = self._deep_root()
        path = "/".join(["d"] * self.DEPTH + ["x.ts"])
        assert root.find(path).is_file

    def test_iter_files(self):
        root = self._deep_root()
        files = list(root.iter_files())
        assert len(files) == 1
        assert files[0].name == "x.ts"

    def test_to_dict(self):
        d = self._deep_root().to_dict()
        depth = 0
        while "children" in d:
            d = d["children"][0]
            depth += 1
        assert depth == self.DEPTH + 1
        assert d["type"] == "file"

    def test_repr_does_not_recurse(self):
        assert repr(self._deep_root()) == "PathTreeNode(name='root', kind='folder', path='')"
