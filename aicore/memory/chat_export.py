"""Render a chat session as a downloadable document.

Supported formats: `json`, `txt`, `markdown` (alias `md`), `html`.
All renderers are pure functions of the session snapshot.
"""

import html
import json

from aicore.core.errors import ValidationError


SEPARATOR_WIDTH = 50


def export_json(session) -> str:
    return json.dumps(session.to_dict(), indent=2, ensure_ascii=False)


def export_txt(session) -> str:
    lines = [
        f"Chat Session: {session.id}",
        f"Created: {session.created_at.strftime('%Y-%m-%d %H:%M:%S')}",
        "",
        "=" * SEPARATOR_WIDTH,
    ]
    for msg in session.messages:
        lines.append("")
        lines.append(f"[{msg.timestamp.strftime('%H:%M:%S')}] {msg.role.upper()}")
        lines.append(msg.content)
        lines.append("-" * SEPARATOR_WIDTH)
    return "\n".join(lines) + "\n"


def export_markdown(session) -> str:
    parts = [
        f"# Chat Session: {session.id}\n",
        f"**Created:** {session.created_at.strftime('%Y-%m-%d %H:%M:%S')}\n",
        "---\n",
    ]
    for msg in session.messages:
        icon = "👤" if msg.role == "user" else "🤖"
        parts.append(f"## {icon} {msg.role.upper()} ({msg.timestamp.strftime('%H:%M:%S')})\n")
        parts.append(f"{msg.content}\n")
    return "\n".join(parts)


_HTML_HEAD = """<!DOCTYPE html>
<html>
<head>
    <meta charset="UTF-8">
    <title>Chat Export</title>
    <style>
        body { font-family: Arial, sans-serif; max-width: 800px; margin: 0 auto; padding: 20px; }
        .message { margin: 20px 0; padding: 15px; border-radius: 8px; }
        .user { background-color: #e3f2fd; text-align: right; }
        .assistant { background-color: #f5f5f5; }
        .role { font-weight: bold; margin-bottom: 5px; }
        .time { color: #666; font-size: 0.9em; }
    </style>
</head>
<body>
"""


def export_html(session) -> str:
    # Message content is user-controlled; escape everything interpolated.
    parts = [
        _HTML_HEAD,
        f"<h1>Chat Session: {html.escape(session.id)}</h1>\n",
        f"<p>Created: {session.created_at.strftime('%Y-%m-%d %H:%M:%S')}</p>\n",
        "<hr>\n",
    ]
    for msg in session.messages:
        role = html.escape(msg.role)
        parts.append(
            f'<div class="message {role}">\n'
            f'    <div class="role">{role.upper()}</div>\n'
            f'    <div class="time">{msg.timestamp.strftime("%H:%M:%S")}</div>\n'
            f"    <p>{html.escape(msg.content)}</p>\n"
            f"</div>\n"
        )
    parts.append("</body>\n</html>")
    return "".join(parts)


EXPORTERS = {
    "json": export_json,
    "txt": export_txt,
    "markdown": export_markdown,
    "md": export_markdown,
    "html": export_html,
}


def export_session(session, fmt: str) -> str:
    """Render `session` in the requested format.

    Raises:
        ValidationError: For unsupported formats.
    """
    exporter = EXPORTERS.get(str(fmt or "").strip().lower())
    if exporter is None:
        raise ValidationError(f"Unsupported format: {fmt}. Use json, txt, markdown, or html")
    return exporter(session)
