"""
Affiliate Scout - FastAPI Application
Control surface for the discovery pipeline: run batches, run the
auto-continuation loop, and reset subjects.
"""
import asyncio
from typing import Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from affiliate_scout.adapters.fetch_client import FetchClient
from affiliate_scout.adapters.record_store import InMemoryRecordStore, RecordStore
from affiliate_scout.adapters.search_oracle import ClaudeSearchOracle, NullSearchOracle, SearchOracle
from affiliate_scout.adapters.supabase_store import SupabaseRecordStore
from affiliate_scout.config import (
    MAX_BATCH_SIZE,
    MAX_PAUSE_SECONDS,
    MIN_BATCH_SIZE,
    MIN_PAUSE_SECONDS,
    config,
)
from affiliate_scout.errors import RecordStoreError, SubjectNotFoundError
from affiliate_scout.layers.maintenance import SubjectResetter
from affiliate_scout.layers.orchestrator import BatchOrchestrator
from affiliate_scout.layers.prober import SubjectProber
from affiliate_scout.models.subject import (
    AutoRunSummary,
    BatchResult,
    PendingSubject,
    SubjectStatus,
)
from affiliate_scout.utils.logger import get_logger, set_trace_id


logger = get_logger("main")


# Request/Response models
class BatchRequest(BaseModel):
    """Request model for a single batch."""
    batch_size: int = Field(default=config.BATCH_SIZE, ge=MIN_BATCH_SIZE, le=MAX_BATCH_SIZE)


class AutoRunRequest(BaseModel):
    """Request model for starting auto-continuation."""
    batch_size: int = Field(default=config.BATCH_SIZE, ge=MIN_BATCH_SIZE, le=MAX_BATCH_SIZE)
    pause_seconds: float = Field(default=config.BATCH_PAUSE_SECONDS, ge=MIN_PAUSE_SECONDS, le=MAX_PAUSE_SECONDS)


class AutoRunStatus(BaseModel):
    """Response model for auto-continuation status."""
    running: bool
    stop_requested: bool = False
    last_summary: Optional[AutoRunSummary] = None


class ResetByStatusRequest(BaseModel):
    """Request model for bulk reset."""
    status: SubjectStatus


class DiscoverResponse(BaseModel):
    """Response model for a single-subject discovery."""
    subject_id: str
    status: str
    outreach_status: str
    notes: str
    stage: str
    affiliate_url: Optional[str] = None
    trace_id: str


def build_store() -> RecordStore:
    """Supabase when configured, otherwise a process-local store."""
    if config.is_supabase_configured():
        return SupabaseRecordStore(config.SUPABASE_URL, config.SUPABASE_KEY, table=config.SUPABASE_TABLE)

    logger.warning(
        "record_store_fallback",
        reason="Supabase not configured, using in-memory store",
        missing=config.get_missing_supabase_vars(),
    )
    return InMemoryRecordStore()


def build_search_oracle() -> SearchOracle:
    """Claude-backed oracle when a key is configured, otherwise always UNKNOWN."""
    if config.is_claude_configured():
        return ClaudeSearchOracle(config.CLAUDE_API_KEY)
    return NullSearchOracle()


def create_app(
    store: Optional[RecordStore] = None,
    fetch_client: Optional[FetchClient] = None,
    search_oracle: Optional[SearchOracle] = None,
) -> FastAPI:
    """
    Build the application with its collaborators wired explicitly.

    Every component receives the same store instance.
    """
    store = store or build_store()
    prober = SubjectProber(
        store,
        fetch_client=fetch_client or FetchClient(),
        search_oracle=search_oracle or build_search_oracle(),
    )
    orchestrator = BatchOrchestrator(store, prober=prober)

    app = FastAPI(
        title="Affiliate Scout",
        description="Discovers affiliate programs, contacts and branding for a catalog of web products",
        version="1.0.0",
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.store = store
    app.state.prober = prober
    app.state.orchestrator = orchestrator
    app.state.resetter = SubjectResetter(store)
    app.state.auto_task = None
    app.state.last_summary = None

    @app.exception_handler(SubjectNotFoundError)
    async def subject_not_found_handler(request: Request, exc: SubjectNotFoundError):
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(RecordStoreError)
    async def record_store_error_handler(request: Request, exc: RecordStoreError):
        logger.error("record_store_error", error=str(exc), path=request.url.path)
        return JSONResponse(status_code=502, content={"detail": str(exc)})

    @app.get("/api/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "version": "1.0.0"}

    @app.get("/api/subjects/pending/count")
    async def pending_count():
        """Number of subjects waiting for discovery."""
        return {"pending": await store.count_pending()}

    @app.post("/api/batches", response_model=BatchResult)
    async def run_batch(request: BatchRequest):
        """Process one page of pending subjects and return the counts."""
        if orchestrator.is_running:
            raise HTTPException(status_code=409, detail="Auto-continuation is running")

        trace_id = set_trace_id()
        logger.info("batch_request", batch_size=request.batch_size, trace_id=trace_id)
        return await orchestrator.run_batch(request.batch_size)

    @app.post("/api/batches/auto", status_code=202, response_model=AutoRunStatus)
    async def start_auto_run(request: AutoRunRequest):
        """Start auto-continuation in the background."""
        if orchestrator.is_running or (app.state.auto_task and not app.state.auto_task.done()):
            raise HTTPException(status_code=409, detail="Auto-continuation is already running")

        async def _run():
            try:
                summary = await orchestrator.auto_continue(request.batch_size, request.pause_seconds)
            except Exception as e:
                logger.error("auto_run_failed", error=str(e), error_type=e.__class__.__name__)
                summary = AutoRunSummary(stopped_reason="error")
            app.state.last_summary = summary

        app.state.auto_task = asyncio.create_task(_run())
        logger.info(
            "auto_run_started",
            batch_size=request.batch_size,
            pause_seconds=request.pause_seconds,
        )
        return AutoRunStatus(running=True, last_summary=app.state.last_summary)

    @app.get("/api/batches/auto", response_model=AutoRunStatus)
    async def auto_run_status():
        """Whether auto-continuation is running, plus the last finished run."""
        task = app.state.auto_task
        return AutoRunStatus(
            running=bool(task and not task.done()),
            stop_requested=orchestrator.stop_requested,
            last_summary=app.state.last_summary,
        )

    @app.delete("/api/batches/auto", response_model=AutoRunStatus)
    async def stop_auto_run():
        """Request a stop; honoured before the next batch starts."""
        task = app.state.auto_task
        if not task or task.done():
            raise HTTPException(status_code=404, detail="Auto-continuation is not running")
        orchestrator.request_stop()
        return AutoRunStatus(running=True, stop_requested=True, last_summary=app.state.last_summary)

    @app.post("/api/subjects/{subject_id}/discover", response_model=DiscoverResponse)
    async def discover_subject(subject_id: str):
        """Run the full pipeline for a single subject, whatever its status."""
        trace_id = set_trace_id()
        subject = await store.get_subject(subject_id)
        if subject is None:
            raise SubjectNotFoundError(subject_id)

        outcome = await prober.process(PendingSubject(
            id=subject.id,
            tool_name=subject.tool_name,
            website_url=subject.website_url,
        ))
        return DiscoverResponse(
            subject_id=subject.id,
            status=outcome.status.value,
            outreach_status=outcome.outreach_status.value,
            notes=outcome.notes,
            stage=outcome.stage.value,
            affiliate_url=outcome.facts.affiliate_url,
            trace_id=trace_id,
        )

    @app.post("/api/subjects/{subject_id}/reset")
    async def reset_subject(subject_id: str):
        """Clear a subject's affiliate facts and return it to Pending."""
        await app.state.resetter.reset_subject(subject_id)
        return {"success": True, "subject_id": subject_id}

    @app.post("/api/subjects/reset")
    async def reset_by_status(request: ResetByStatusRequest):
        """Reset every subject with the given status."""
        count = await app.state.resetter.reset_by_status(request.status)
        return {
            "success": True,
            "count": count,
            "message": f"Successfully reset {count} subjects with status: {request.status.value}",
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=config.HOST, port=config.PORT)
