"""In-memory path -> content index for an uploaded codebase."""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from codepilot.errors import NotFound


class FileIndex:
    """Ordered mapping from archive-relative path to decoded file text.

    Iteration order is insertion order, i.e. the order entries were read
    from the archive. A re-inserted path keeps its original position but
    takes the new content.
    """

    def __init__(self, entries: Iterable[tuple[str, str]] = ()) -> None:
        self._files: dict[str, str] = {}
        for path, content in entries:
            self._files[path] = content

    def __len__(self) -> int:
        return len(self._files)

    def __contains__(self, path: object) -> bool:
        return path in self._files

    def __iter__(self) -> Iterator[str]:
        return iter(self._files)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FileIndex):
            return NotImplemented
        return list(self._files.items()) == list(other._files.items())

    def __repr__(self) -> str:
        return f"FileIndex({len(self._files)} files)"

    def paths(self) -> list[str]:
        return list(self._files)

    def items(self) -> list[tuple[str, str]]:
        return list(self._files.items())

    def to_dict(self) -> dict[str, str]:
        return dict(self._files)

    @property
    def total_chars(self) -> int:
        return sum(len(c) for c in self._files.values())

    def get_content(self, path: str) -> str:
        """Return the text stored at ``path``.

        Raises:
            NotFound: If no file with that exact path was indexed.
        """
        try:
            return self._files[path]
        except KeyError:
            raise NotFound(f"File '{path}' not found.") from None

    def filter_by_substring(self, query: str) -> list[tuple[str, str]]:
        """Return (path, content) for every file whose content contains ``query``.

        Matching is case-insensitive and looks at file content only, never
        the path. An empty query matches nothing.
        """
        if not query:
            return []
        needle = query.lower()
        return [
            (path, content)
            for path, content in self._files.items()
            if needle in content.lower()
        ]
