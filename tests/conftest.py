"""Shared fixtures: sample archives, mock providers, and sessions."""

import pytest

from codepilot.agent.gateway import AssistantGateway
from codepilot.session import SessionState
from tests.helpers import _make_mock_provider, _make_zip


@pytest.fixture
def scenario_zip():
    """Two kept source files under src/ plus one skipped binary."""
    return _make_zip([
        ("src/", ""),
        ("src/a.ts", "foo"),
        ("src/b.md", "bar"),
        ("README.exe", "MZ"),
    ])


@pytest.fixture
def project_zip():
    """A small multi-language project."""
    return _make_zip([
        ("app/main.py", "def list_task():\n    return TASKS\n"),
        ("app/util/strings.py", "def slug(s):\n    return s.lower()\n"),
        ("web/index.html", "<html><body>Tasks</body></html>"),
        ("web/app.js", "function listTasks() { return fetch('/tasks'); }\n"),
        ("package.json", '{"name": "demo"}'),
        ("logo.png", b"\x89PNG\r\n"),
    ])


@pytest.fixture
def provider():
    return _make_mock_provider({
        "relevantCode": "// File: src/a.ts\nfoo",
        "explanation": "Returns foo.",
    })


@pytest.fixture
def gateway(provider):
    return AssistantGateway(provider=provider)


@pytest.fixture
def session(gateway):
    return SessionState(gateway, session_id="test-session")
