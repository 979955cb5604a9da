"""Plain-text extraction for uploaded documents.

Architectural role:
    Turns an uploaded document body into plain text that the HTTP adapter
    stores as one experience (source `document:<filename>`). No memory
    access happens here.

Supported types:
    - `txt` / `text/plain`: passed through unchanged.
    - `json` / `application/json`: recursively flattened to `key: value` lines.
    - `csv` / `text/csv`: parsed with pandas; one header line plus one
      `Row N:` line per non-empty row.
    - anything else: treated as plain text.

Error handling strategy:
    Malformed JSON/CSV and empty results raise `ValidationError` so the
    adapter can reject the upload without touching memory.
"""

import io
import json

import pandas as pd

from aicore.core.errors import ValidationError


JSON_TYPES = {"json", "application/json"}
CSV_TYPES = {"csv", "text/csv"}


def _flatten_json(value) -> str:
    """Recursively extract readable text from a decoded JSON value."""
    if isinstance(value, str):
        return value + "\n" if value.strip() else ""
    if isinstance(value, bool):
        return ("true" if value else "false") + "\n"
    if isinstance(value, (int, float)):
        return f"{value}\n"
    if isinstance(value, list):
        return "".join(_flatten_json(item) for item in value)
    if isinstance(value, dict):
        return "".join(f"{key}: {_flatten_json(val)}" for key, val in value.items())
    return ""


def extract_json(content: str) -> str:
    try:
        data = json.loads(content)
    except json.JSONDecodeError as err:
        raise ValidationError(f"Invalid JSON: {err}") from err
    return _flatten_json(data)


def extract_csv(content: str) -> str:
    try:
        frame = pd.read_csv(
            io.StringIO(content),
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
        )
    except (pd.errors.EmptyDataError, pd.errors.ParserError) as err:
        raise ValidationError(f"Invalid CSV: {err}") from err

    lines = [f"CSV Headers: {','.join(str(col) for col in frame.columns)}"]
    for number, row in enumerate(frame.itertuples(index=False), start=1):
        lines.append(f"Row {number}: {','.join(str(cell) for cell in row)}")
    return "\n".join(lines) + "\n"


def process_document(content: str, filetype: str) -> str:
    """Extract plain text from `content` according to `filetype`.

    Returns:
        Extracted text, stripped.

    Raises:
        ValidationError: On malformed input or when nothing readable remains.
    """
    kind = str(filetype or "").strip().lower()

    if kind in JSON_TYPES:
        text = extract_json(content)
    elif kind in CSV_TYPES:
        text = extract_csv(content)
    else:
        text = str(content or "")

    text = text.strip()
    if not text:
        raise ValidationError("document contains no readable text")
    return text
