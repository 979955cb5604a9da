"""
Tests for aicore/memory/chat_export.py.
"""

from __future__ import annotations

import json

import pytest

from aicore.core.errors import ValidationError
from aicore.memory.chat_export import export_session
from aicore.memory.chat_sessions import ROLE_ASSISTANT, ROLE_USER, ChatMessage, SessionStore


@pytest.fixture
def session():
    sessions = SessionStore()
    sessions.append(
        "s1",
        ChatMessage.create(ROLE_USER, "<b>halo</b>"),
        ChatMessage.create(ROLE_ASSISTANT, "Halo! Ada yang bisa saya bantu?", ("exp_000001_aaaaaaaa",)),
    )
    return sessions.get("s1")


class TestExport:
    def test_json(self, session):
        data = json.loads(export_session(session, "json"))
        assert data["id"] == "s1"
        assert [m["role"] for m in data["messages"]] == ["user", "assistant"]
        assert data["messages"][1]["context_experience_ids"] == ["exp_000001_aaaaaaaa"]

    def test_txt(self, session):
        text = export_session(session, "txt")
        assert text.startswith("Chat Session: s1\n")
        assert "] USER\n<b>halo</b>" in text
        assert "] ASSISTANT\n" in text

    @pytest.mark.parametrize("fmt", ["markdown", "md", "MD"])
    def test_markdown_aliases(self, session, fmt):
        text = export_session(session, fmt)
        assert text.startswith("# Chat Session: s1")
        assert "## 👤 USER" in text
        assert "## 🤖 ASSISTANT" in text

    def test_html_escapes_content(self, session):
        text = export_session(session, "html")
        assert "&lt;b&gt;halo&lt;/b&gt;" in text
        assert "<b>halo</b>" not in text
        assert text.rstrip().endswith("</html>")

    def test_unsupported_format(self, session):
        with pytest.raises(ValidationError, match="Unsupported format"):
            export_session(session, "pdf")
