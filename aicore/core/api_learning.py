"""API-learning: execute an outbound call and remember what happened.

Flow (per call):
    1. `HttpExecutor.execute` validates and sends the request. Validation and
       transport failures propagate; nothing is recorded for them.
    2. A `LearningRecord` is built from the request and response and added
       to the record store.
    3. When `save_to_memory` is set, an experience
       `"API Call: <METHOD> <url> - Status <status>"` is inserted with source
       `api_learning` and metadata `record_id:<id>`, so the call becomes
       part of retrieval and the pattern index.
"""

import logging
from dataclasses import dataclass
from typing import Mapping, Optional

from aicore.memory.learning_records import LearningRecord, LearningRecordStore
from aicore.retrieval.web.http_executor import HttpExecutor, HttpResult


logger = logging.getLogger(__name__)

EXPERIENCE_SOURCE = "api_learning"


def experience_text(method: str, url: str, status_code: int) -> str:
    return f"API Call: {method} {url} - Status {status_code}"


@dataclass(frozen=True)
class LearnedCall:
    result: HttpResult
    record: LearningRecord
    experience_id: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "status": self.result.status_code,
            "body": self.result.body,
            "success": self.result.success,
            "record_id": self.record.id,
            "experience_id": self.experience_id,
        }


class ApiLearningService:
    def __init__(self, store, records: Optional[LearningRecordStore] = None,
                 executor: Optional[HttpExecutor] = None):
        self.store = store
        self.records = records or LearningRecordStore()
        self.executor = executor or HttpExecutor()

    def execute(self, method: str, url: str, body: Optional[str] = None,
                headers: Optional[Mapping[str, str]] = None,
                save_to_memory: bool = True) -> LearnedCall:
        """Run one call, record it, and optionally store it as an experience.

        Raises:
            ValidationError: Bad method or URL.
            UpstreamError: The target could not be reached.
        """
        result = self.executor.execute(method, url, body=body, headers=headers)
        verb = method.strip().upper()
        target = url.strip()

        record = self.records.add(LearningRecord.create(
            verb, target, body, result.body, result.status_code,
        ))

        experience_id = None
        if save_to_memory:
            exp = self.store.insert(
                experience_text(verb, target, result.status_code),
                EXPERIENCE_SOURCE,
                f"record_id:{record.id}",
            )
            experience_id = exp.id

        logger.info("Learned %s (%s)", record.id, record.summary)
        return LearnedCall(result=result, record=record, experience_id=experience_id)
