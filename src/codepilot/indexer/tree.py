"""Build a folder/file tree from the ordered list of kept archive paths."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import Any

FILE = "file"
FOLDER = "folder"

ROOT_NAME = "root"


@dataclass
class PathTreeNode:
    """One node of the path tree.

    Folders keep their children in first-seen order; files never have
    children. The root is a folder with an empty path.
    """

    name: str
    kind: str
    path: str
    children: list[PathTreeNode] = field(default_factory=list, repr=False)

    @property
    def is_file(self) -> bool:
        return self.kind == FILE

    def child(self, name: str) -> PathTreeNode | None:
        for c in self.children:
            if c.name == name:
                return c
        return None

    def find(self, path: str) -> PathTreeNode | None:
        """Return the node at ``path`` (slash-separated), or None."""
        node: PathTreeNode | None = self
        for part in _split(path):
            if node is None or node.is_file:
                return None
            node = node.child(part)
        return node

    def iter_files(self) -> Iterator[PathTreeNode]:
        """Yield file leaves depth-first, in child order."""
        stack = [iter(self.children)]
        while stack:
            for c in stack[-1]:
                if c.is_file:
                    yield c
                else:
                    stack.append(iter(c.children))
                    break
            else:
                stack.pop()

    def _header(self) -> dict[str, Any]:
        return {"name": self.name, "type": self.kind, "path": self.path}

    def to_dict(self) -> dict[str, Any]:
        """Serialize to nested dicts; file nodes carry no ``children`` key."""
        out = self._header()
        stack = [(self, out)]
        while stack:
            node, d = stack.pop()
            if node.is_file:
                continue
            d["children"] = []
            for c in node.children:
                cd = c._header()
                d["children"].append(cd)
                stack.append((c, cd))
        return out


def _split(path: str) -> list[str]:
    return [p for p in path.split("/") if p]


def build_tree(paths: Iterable[str]) -> PathTreeNode:
    """Build a single-root tree from ``paths`` in the given order.

    Each path is walked from the root one segment at a time: an existing
    child with the same name is reused, otherwise a new node is appended
    (a file for the last segment, a folder before that). A node's kind is
    fixed when it is created, so duplicate paths add nothing.

    A path that descends through a node already created as a file is
    truncated at that file: files never get children.
    """
    root = PathTreeNode(name=ROOT_NAME, kind=FOLDER, path="")
    for path in paths:
        parts = _split(path)
        node = root
        for i, part in enumerate(parts):
            if node.is_file:
                break
            child = node.child(part)
            if child is None:
                child = PathTreeNode(
                    name=part,
                    kind=FILE if i == len(parts) - 1 else FOLDER,
                    path="/".join(parts[: i + 1]),
                )
                node.children.append(child)
            node = child
    return root
