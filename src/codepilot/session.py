"""Per-user session state and the actions that move it between states."""

from __future__ import annotations

import logging
import threading
import time
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, Callable

from pydantic import BaseModel

from codepilot import config
from codepilot.agent.gateway import (
    NO_RESULTS,
    SEARCH_FAILED,
    AssistantGateway,
    ExplainRequest,
    ExplainResult,
    FixRequest,
    FixResult,
    SearchRequest,
    SearchResult,
    format_search_snippet,
)
from codepilot.errors import AssistantError, NotFound, ValidationError
from codepilot.indexer.archive import read_archive
from codepilot.indexer.tree import PathTreeNode, build_tree
from codepilot.storage.file_index import FileIndex

logger = logging.getLogger(__name__)

READ_ERROR_CONTENT = "Error reading file."
SEARCH_RESULT_TITLE = "Search Result"
SEARCH_ERROR_TITLE = "Search Result (Error)"


class IndexResult(BaseModel):
    """Outcome of installing an uploaded codebase."""

    success: bool
    message: str
    file_count: int | None = None


class SessionState:
    """Everything one user session knows: the uploaded codebase and UI results.

    Each action holds the session lock for its whole duration, so two
    overlapping actions on the same session run one after the other.
    ``is_loading`` and ``ai_task`` describe the action in progress and are
    cleared when it ends, whether it succeeded or not.
    """

    def __init__(self, gateway: AssistantGateway, session_id: str | None = None) -> None:
        self.id = session_id or str(uuid.uuid4())
        self._gateway = gateway
        self._lock = threading.Lock()

        self.file_index = FileIndex()
        self.tree: PathTreeNode | None = None

        self.active_file: str | None = None
        self.active_file_content = ""

        self.search_query = ""
        self.search_result: SearchResult | None = None

        self.explanation: str | None = None

        self.error_message = ""
        self.error_code = ""
        self.error_fix: FixResult | None = None

        self.is_loading = False
        self.ai_task: str | None = None

    @contextmanager
    def _action(self, label: str | None) -> Iterator[None]:
        with self._lock:
            self.is_loading = label is not None
            self.ai_task = label
            try:
                yield
            finally:
                self.is_loading = False
                self.ai_task = None

    # ── Upload ──

    def upload(self, data: bytes) -> IndexResult:
        """Replace the codebase with the contents of a zip archive.

        The index and tree are swapped in together only after the archive
        has been read completely; on DecodeError the previous codebase stays.
        """
        with self._action("Processing codebase..."):
            index = read_archive(data)
            tree = build_tree(index.paths())
            self.file_index = index
            self.tree = tree
            self.active_file = None
            self.active_file_content = ""
            self.search_result = None
            logger.info("Session %s: installed %d files", self.id, len(index))
            return IndexResult(
                success=True,
                message=f"Indexed {len(index)} files.",
                file_count=len(index),
            )

    # ── File browsing ──

    def open_file(self, path: str) -> str:
        """Make ``path`` the active file and return its content."""
        with self._action(None):
            self.active_file = path
            self.search_result = None
            try:
                self.active_file_content = self.file_index.get_content(path)
            except NotFound:
                self.active_file_content = READ_ERROR_CONTENT
                raise
            return self.active_file_content

    # ── Assistant actions ──

    def search(self, query: str) -> SearchResult:
        """Search the codebase for ``query``.

        Files whose content contains the query (case-insensitively) are sent
        to the assistant. No match returns NO_RESULTS without a model call;
        an assistant failure returns SEARCH_FAILED instead of raising.
        """
        if not query:
            raise ValidationError("Please enter a search query.")
        with self._action("Searching code..."):
            self.search_query = query
            self.search_result = None
            matches = self.file_index.filter_by_substring(query)
            snippet = format_search_snippet(matches)
            logger.info("Session %s: search %r matched %d files", self.id, query[:120], len(matches))
            title = SEARCH_RESULT_TITLE
            if not snippet:
                result = NO_RESULTS.model_copy()
            else:
                try:
                    result = self._gateway.search(SearchRequest(query=query, codeSnippet=snippet))
                except AssistantError:
                    logger.exception("Session %s: search failed, falling back", self.id)
                    result = SEARCH_FAILED.model_copy()
                    title = SEARCH_ERROR_TITLE
            self.search_result = result
            self.active_file = title
            self.active_file_content = result.relevantCode
            return result

    def explain(self, code: str) -> ExplainResult:
        """Explain a selected code block."""
        if not code:
            raise ValidationError("Please select a code block to explain.")
        with self._action("Generating explanation..."):
            self.explanation = None
            result = self._gateway.explain(ExplainRequest(code=code))
            self.explanation = result.explanation
            return result

    def fix(self, error_message: str, code_snippet: str) -> FixResult:
        """Suggest a fix for ``error_message`` raised by ``code_snippet``."""
        if not error_message or not code_snippet:
            raise ValidationError("Please provide both an error message and a code snippet.")
        with self._action("Analyzing error..."):
            self.error_message = error_message
            self.error_code = code_snippet
            self.error_fix = None
            result = self._gateway.fix(FixRequest(errorMessage=error_message, codeSnippet=code_snippet))
            self.error_fix = result
            return result

    def snapshot(self) -> dict[str, Any]:
        """JSON-friendly view of the session for the API."""
        return {
            "id": self.id,
            "file_count": len(self.file_index),
            "has_codebase": self.tree is not None,
            "active_file": self.active_file,
            "is_loading": self.is_loading,
            "ai_task": self.ai_task,
            "search_query": self.search_query,
            "search_result": self.search_result.model_dump() if self.search_result else None,
            "explanation": self.explanation,
            "error_fix": self.error_fix.model_dump() if self.error_fix else None,
        }


class SessionManager:
    """Creates, looks up, and discards independent sessions.

    Sessions idle for longer than ``ttl`` seconds are dropped on the next
    ``create`` or ``get``. When ``max_sessions`` are live, creating another
    drops the least recently used one. A ttl or max of 0 disables that limit.
    """

    def __init__(
        self,
        gateway: AssistantGateway | None = None,
        ttl: float | None = None,
        max_sessions: int | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._gateway = gateway or AssistantGateway()
        self._ttl = config.SESSION_TTL_SECONDS if ttl is None else ttl
        self._max_sessions = config.MAX_SESSIONS if max_sessions is None else max_sessions
        self._clock = clock
        # Ordered least recently used first
        self._sessions: dict[str, SessionState] = {}
        self._last_used: dict[str, float] = {}
        self._lock = threading.Lock()

    def _touch(self, session_id: str, now: float) -> None:
        self._sessions[session_id] = self._sessions.pop(session_id)
        self._last_used[session_id] = now

    def _evict_expired(self, now: float) -> None:
        if not self._ttl:
            return
        expired = [sid for sid, t in self._last_used.items() if now - t > self._ttl]
        for sid in expired:
            del self._sessions[sid]
            del self._last_used[sid]
        if expired:
            logger.info("Expired %d idle session(s)", len(expired))

    def create(self) -> SessionState:
        session = SessionState(self._gateway)
        with self._lock:
            now = self._clock()
            self._evict_expired(now)
            while self._max_sessions and len(self._sessions) >= self._max_sessions:
                oldest = next(iter(self._sessions))
                del self._sessions[oldest]
                del self._last_used[oldest]
                logger.info("Session limit %d reached, dropped %s", self._max_sessions, oldest)
            self._sessions[session.id] = session
            self._last_used[session.id] = now
        logger.info("Created session %s", session.id)
        return session

    def get(self, session_id: str) -> SessionState:
        with self._lock:
            now = self._clock()
            self._evict_expired(now)
            session = self._sessions.get(session_id)
            if session is not None:
                self._touch(session_id, now)
        if session is None:
            raise NotFound(f"Session '{session_id}' not found.")
        return session

    def delete(self, session_id: str) -> None:
        with self._lock:
            if self._sessions.pop(session_id, None) is None:
                raise NotFound(f"Session '{session_id}' not found.")
            del self._last_used[session_id]
        logger.info("Deleted session %s", session_id)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
