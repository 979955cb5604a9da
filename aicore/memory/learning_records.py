"""In-memory records of outbound HTTP calls made through the API-learning flow.

Purpose of this abstraction:
    Keep one record per executed call (method, url, bodies, status) with
    derived tags and a one-line summary. The experience store holds the
    searchable trace of each call (source `api_learning`, metadata
    `record_id:<id>`); this store holds the full request/response detail.

Locking model:
    One `threading.Lock` guards the id -> record map. Records are frozen
    dataclasses; `update` swaps in a replaced copy, so callers never observe
    a half-edited record.

Lifecycle:
    Records live for the process only. They are not part of the snapshot.
"""

import threading
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence, Tuple
from urllib.parse import urlparse

from aicore.core.errors import NotFound, ValidationError


MAX_PATH_TAGS = 2


def _now():
    return datetime.now(timezone.utc)


def extract_tags(url: str) -> Tuple[str, ...]:
    """Host plus the first two non-empty path segments of `url`."""
    parsed = urlparse(url)
    tags = [parsed.netloc] if parsed.netloc else []
    segments = [part for part in parsed.path.split("/") if part]
    tags.extend(segments[:MAX_PATH_TAGS])
    return tuple(tags)


def status_label(status_code: int) -> str:
    if 200 <= status_code < 300:
        return "Success"
    if 400 <= status_code < 500:
        return "Client Error"
    if status_code >= 500:
        return "Server Error"
    return "Unknown"


def summarize(url: str, status_code: int) -> str:
    return f"{status_label(status_code)} - {url} ({status_code})"


@dataclass(frozen=True)
class LearningRecord:
    id: str
    method: str
    url: str
    request_body: Optional[str]
    response_body: str
    status_code: int
    learned_at: datetime = field(default_factory=_now)
    tags: Tuple[str, ...] = ()
    summary: str = ""

    @classmethod
    def create(cls, method: str, url: str, request_body: Optional[str],
               response_body: str, status_code: int) -> "LearningRecord":
        return cls(
            id=f"api_{uuid.uuid4()}",
            method=method,
            url=url,
            request_body=request_body,
            response_body=response_body,
            status_code=status_code,
            tags=extract_tags(url),
            summary=summarize(url, status_code),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "method": self.method,
            "url": self.url,
            "request_body": self.request_body,
            "response_body": self.response_body,
            "status_code": self.status_code,
            "learned_at": self.learned_at.isoformat(),
            "tags": list(self.tags),
            "summary": self.summary,
        }


class LearningRecordStore:
    def __init__(self):
        self._records: Dict[str, LearningRecord] = {}
        self._lock = threading.Lock()

    def add(self, record: LearningRecord) -> LearningRecord:
        with self._lock:
            self._records[record.id] = record
        return record

    def list(self) -> List[LearningRecord]:
        """All records, newest first."""
        with self._lock:
            return list(reversed(self._records.values()))

    def get(self, record_id: str) -> LearningRecord:
        with self._lock:
            record = self._records.get(record_id)
        if record is None:
            raise NotFound("learning record", record_id)
        return record

    def update(self, record_id: str, tags: Optional[Sequence[str]] = None,
               summary: Optional[str] = None) -> LearningRecord:
        """Replace the tags and/or summary of a record; omitted fields are kept.

        Raises:
            NotFound: For unknown ids.
        """
        with self._lock:
            record = self._records.get(record_id)
            if record is None:
                raise NotFound("learning record", record_id)
            changes = {}
            if tags is not None:
                changes["tags"] = tuple(str(tag) for tag in tags)
            if summary is not None:
                changes["summary"] = str(summary)
            record = replace(record, **changes)
            self._records[record_id] = record
        return record

    def delete(self, record_id: str) -> None:
        with self._lock:
            record = self._records.pop(record_id, None)
        if record is None:
            raise NotFound("learning record", record_id)

    def search(self, query: str) -> List[LearningRecord]:
        """Records whose url, any tag, or summary contains `query`, ignoring case.

        Raises:
            ValidationError: If `query` is blank.
        """
        needle = str(query or "").strip().lower()
        if not needle:
            raise ValidationError("search query must not be empty")
        return [
            record for record in self.list()
            if needle in record.url.lower()
            or any(needle in tag.lower() for tag in record.tags)
            or needle in record.summary.lower()
        ]

    def clear(self) -> int:
        with self._lock:
            removed = len(self._records)
            self._records = {}
        return removed
