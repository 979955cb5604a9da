"""
HTTP API adapter for the aicore engine.

Architectural role:
- Expose every core contract as a JSON endpoint.
- Parse request bodies into pydantic models and hand them to the core.
- Map the core error taxonomy to HTTP status codes.
- Wrap every payload in the `{success, data, message}` envelope.

Endpoint groups:
- Experiences: create, list, search, get, reflect, clear.
- Patterns: stats, detail, rebuild.
- Decisions: global and query-scoped.
- Personality: update and inspect.
- Chat: send, history, sessions, upload, export.
- Interaction summary.
- API learning: execute outbound calls, manage the resulting records.

Error handling strategy:
- `ValidationError` and malformed request bodies -> HTTP 400.
- `NotFound` -> HTTP 404.
- `UpstreamError` (API-learning target unreachable) -> HTTP 502.
- Generator and persistence failures never reach this layer; the core logs
  them and degrades.

Authentication:
- None here. Callers are assumed to be authenticated upstream.

Lifecycle:
- `create_app` builds (or receives) an `AppContext`; the FastAPI lifespan
  calls `startup()` before serving and `shutdown()` on exit.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel

from aicore import __version__
from aicore.core.config import load_settings
from aicore.core.context import AppContext
from aicore.core.errors import NotFound, UpstreamError, ValidationError
from aicore.memory.chat_export import export_session
from aicore.retrieval.ingestion.document_parser import process_document


logger = logging.getLogger(__name__)

TOP_PATTERNS = 10


# ============================================================
# Request Schemas
# ============================================================

class CreateExperienceRequest(BaseModel):
    content: str
    source: str = "user"
    metadata: Optional[str] = None


class PersonalityRequest(BaseModel):
    input: str
    response: str


class ChatMessageRequest(BaseModel):
    content: str
    session_id: Optional[str] = None


class DocumentUploadRequest(BaseModel):
    filename: str
    content: str
    filetype: str = "txt"


class ApiCallRequest(BaseModel):
    method: str
    url: str
    body: Optional[str] = None
    headers: Optional[Dict[str, str]] = None
    save_to_memory: bool = True


class UpdateLearningRecordRequest(BaseModel):
    tags: Optional[List[str]] = None
    summary: Optional[str] = None


# ============================================================
# Helpers
# ============================================================

def envelope(data: Any, message: str, success: bool = True) -> dict:
    return {"success": success, "data": data, "message": message}


def get_context(request: Request) -> AppContext:
    return request.app.state.context


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=envelope(None, message, success=False))


router = APIRouter()


# ============================================================
# Health
# ============================================================

@router.get("/", response_class=PlainTextResponse)
def root():
    return f"AI Core API v{__version__}"


@router.get("/health")
def health_check(ctx: AppContext = Depends(get_context)):
    return envelope(
        {
            "status": "AI Core is running",
            "remote_generator_enabled": ctx.settings.provider.enabled,
            "snapshot_timer_running": ctx.persistence.running,
        },
        "OK",
    )


# ============================================================
# Experiences
# ============================================================

@router.get("/experiences")
def list_experiences(ctx: AppContext = Depends(get_context)):
    experiences = [exp.to_dict() for exp in ctx.store.list()]
    return envelope(experiences, f"Retrieved {len(experiences)} experiences")


@router.post("/experiences")
def create_experience(payload: CreateExperienceRequest, ctx: AppContext = Depends(get_context)):
    exp = ctx.store.insert(payload.content, payload.source, payload.metadata)
    return envelope(exp.to_dict(), "Experience created successfully")


# Registered before `/experiences/{experience_id}` so "search" is not read as an id.
@router.get("/experiences/search")
def search_experiences(q: str = Query(...), ctx: AppContext = Depends(get_context)):
    results = [exp.to_dict() for exp in ctx.store.search(q)]
    return envelope(results, f"Found {len(results)} matching experiences")


@router.get("/experiences/{experience_id}")
def get_experience(experience_id: str, ctx: AppContext = Depends(get_context)):
    return envelope(ctx.store.get(experience_id).to_dict(), "Experience found")


@router.get("/reflect")
def reflect_memory(ctx: AppContext = Depends(get_context)):
    items = ctx.store.reflect()
    return envelope(
        {"total_experiences": len(items), "experiences": items},
        f"Reflected on {len(items)} experiences",
    )


@router.delete("/memory/clear")
def clear_memory(ctx: AppContext = Depends(get_context)):
    removed = ctx.clear_experiences()
    return envelope({"removed": removed}, f"Cleared {removed} experiences from memory")


# ============================================================
# Patterns
# ============================================================

@router.get("/stats")
def get_stats(ctx: AppContext = Depends(get_context)):
    return envelope(ctx.stats(TOP_PATTERNS), "Statistics retrieved")


@router.post("/patterns/clear")
def clear_patterns(ctx: AppContext = Depends(get_context)):
    total = ctx.store.patterns.rebuild_all()
    return envelope(
        f"Patterns rebuilt. Found {total} unique patterns",
        "Pattern cache cleared and rebuilt",
    )


@router.get("/patterns/{keyword}")
def get_pattern_detail(keyword: str, ctx: AppContext = Depends(get_context)):
    entry, related = ctx.store.patterns.detail_with_related(keyword)
    return envelope(
        {
            "keyword": entry.keyword,
            "frequency": entry.frequency,
            "experience_count": entry.experience_count,
            "experience_ids": list(entry.experience_ids),
            "related_contents": related,
        },
        f"Found pattern for keyword: {entry.keyword}",
    )


# ============================================================
# Decisions
# ============================================================

@router.get("/decision")
def make_decision(ctx: AppContext = Depends(get_context)):
    return envelope(ctx.decisions.decide().to_dict(), "Decision made")


@router.get("/decision/query")
def make_decision_for_query(q: str = Query(...), ctx: AppContext = Depends(get_context)):
    return envelope(ctx.decisions.decide_for(q).to_dict(), "Decision made for query")


# ============================================================
# Personality
# ============================================================

@router.post("/personality")
def update_personality(payload: PersonalityRequest, ctx: AppContext = Depends(get_context)):
    result = ctx.personality.update(payload.input, payload.response)
    return envelope(result.to_dict(), "Personality updated")


@router.get("/personality")
def get_personality(ctx: AppContext = Depends(get_context)):
    state = ctx.personality.state()
    data = state.to_dict()
    data["dominant_trait"] = ctx.personality.dominant_trait()
    return envelope(data, "Personality state retrieved")


# ============================================================
# Chat
# ============================================================

@router.post("/chat/send")
async def send_chat_message(payload: ChatMessageRequest, ctx: AppContext = Depends(get_context)):
    reply = await ctx.chat.send(payload.content, payload.session_id)
    return envelope(reply.to_dict(), "Message processed")


@router.get("/chat/history/{session_id}")
def get_chat_history(session_id: str, ctx: AppContext = Depends(get_context)):
    session = ctx.chat.get_history(session_id)
    return envelope(session.to_dict(), f"Retrieved {len(session.messages)} messages")


@router.get("/chat/sessions")
def list_chat_sessions(ctx: AppContext = Depends(get_context)):
    ids = ctx.chat.list_session_ids()
    return envelope(ids, f"Found {len(ids)} chat sessions")


@router.delete("/chat/sessions/{session_id}")
def clear_chat_session(session_id: str, ctx: AppContext = Depends(get_context)):
    removed = ctx.chat.clear_session(session_id)
    return envelope({"session_id": session_id, "removed_messages": removed}, "Chat session cleared")


@router.delete("/chat/sessions")
def clear_all_chat_sessions(ctx: AppContext = Depends(get_context)):
    removed = ctx.chat.clear_all_sessions()
    return envelope({"removed_sessions": removed}, f"Cleared {removed} chat sessions")


@router.post("/chat/upload")
def upload_document(payload: DocumentUploadRequest, ctx: AppContext = Depends(get_context)):
    text = process_document(payload.content, payload.filetype)
    exp = ctx.store.insert(text, f"document:{payload.filename}")
    return envelope(
        {"processed": True, "text": text, "added_to_memory": True, "experience_id": exp.id},
        f"Document '{payload.filename}' processed and added to memory",
    )


@router.get("/chat/export")
def export_chat_session(session_id: str = Query(...), format: str = Query("json"),
                        ctx: AppContext = Depends(get_context)):
    session = ctx.chat.get_history(session_id)
    exported = export_session(session, format)
    return envelope(exported, f"Chat session exported as {format}")


# ============================================================
# Interaction
# ============================================================

@router.get("/interact")
def interact(ctx: AppContext = Depends(get_context)):
    return envelope(ctx.interact(), "Interaction completed")


# ============================================================
# API Learning
# ============================================================

@router.post("/api-learning/execute")
def execute_api_call(payload: ApiCallRequest, ctx: AppContext = Depends(get_context)):
    learned = ctx.learning.execute(
        payload.method,
        payload.url,
        body=payload.body,
        headers=payload.headers,
        save_to_memory=payload.save_to_memory,
    )
    return envelope(learned.to_dict(), f"API call completed with status {learned.result.status_code}")


@router.get("/api-learning/records")
def list_learning_records(ctx: AppContext = Depends(get_context)):
    records = [record.to_dict() for record in ctx.learning.records.list()]
    return envelope(records, f"Retrieved {len(records)} learning records")


@router.get("/api-learning/search")
def search_learning_records(q: str = Query(...), ctx: AppContext = Depends(get_context)):
    records = [record.to_dict() for record in ctx.learning.records.search(q)]
    return envelope(records, f"Found {len(records)} matching learning records")


@router.delete("/api-learning/clear")
def clear_learning_records(ctx: AppContext = Depends(get_context)):
    removed = ctx.learning.records.clear()
    return envelope({"removed": removed}, f"Cleared {removed} learning records")


@router.get("/api-learning/records/{record_id}")
def get_learning_record(record_id: str, ctx: AppContext = Depends(get_context)):
    return envelope(ctx.learning.records.get(record_id).to_dict(), "Learning record found")


@router.post("/api-learning/records/{record_id}")
def update_learning_record(record_id: str, payload: UpdateLearningRecordRequest,
                           ctx: AppContext = Depends(get_context)):
    record = ctx.learning.records.update(record_id, tags=payload.tags, summary=payload.summary)
    return envelope(record.to_dict(), "Learning record updated")


@router.delete("/api-learning/records/{record_id}")
def delete_learning_record(record_id: str, ctx: AppContext = Depends(get_context)):
    ctx.learning.records.delete(record_id)
    return envelope({"id": record_id}, "Learning record deleted")


# ============================================================
# App Factory
# ============================================================

def create_app(context: Optional[AppContext] = None, manage_lifecycle: bool = True) -> FastAPI:
    """
    Build the FastAPI application around one `AppContext`.

    Args:
        context: Prebuilt context. When omitted, settings are loaded from the
            environment and a fresh context is created.
        manage_lifecycle: When True, the lifespan loads the snapshot and runs
            the snapshot timer. Tests that manage state directly pass False.
    """
    ctx = context or AppContext.create(load_settings())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if manage_lifecycle:
            ctx.startup()
        try:
            yield
        finally:
            if manage_lifecycle:
                ctx.shutdown()

    app = FastAPI(title="AI Core API", version=__version__, lifespan=lifespan)
    app.state.context = ctx

    if ctx.settings.debug:
        @app.middleware("http")
        async def _log_requests(request: Request, call_next):
            response = await call_next(request)
            logger.debug("[DEBUG] %s %s -> %d", request.method, request.url.path, response.status_code)
            return response

    @app.exception_handler(ValidationError)
    async def _validation_error(request: Request, exc: ValidationError):
        return _error_response(400, str(exc))

    @app.exception_handler(RequestValidationError)
    async def _request_validation_error(request: Request, exc: RequestValidationError):
        return _error_response(400, "Invalid request: " + "; ".join(
            f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg')}"
            for err in exc.errors()
        ))

    @app.exception_handler(NotFound)
    async def _not_found(request: Request, exc: NotFound):
        return _error_response(404, str(exc))

    @app.exception_handler(UpstreamError)
    async def _upstream_error(request: Request, exc: UpstreamError):
        return _error_response(502, str(exc))

    app.include_router(router)
    return app
