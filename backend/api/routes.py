"""
REST API routes for the review pipeline.

Endpoints:
    GET  /api/health                    — Health check
    POST /api/pipeline/run              — Start a pipeline run for a transcript
    GET  /api/pipeline/run/{run_id}     — Poll the status/result of a run
"""

import uuid
from typing import Any, Dict, Optional

from fastapi import APIRouter, BackgroundTasks, HTTPException
from pydantic import BaseModel, Field

from agents import build_default_collaborators
from api.run_store import run_store
from config import PipelineConfig
from logger import get_logger
from models.run_result import RunFailure
from services.graph_builder import run_pipeline_async
from services.result_aggregator import format_report


router = APIRouter()
log = get_logger(__name__)


# ---------------------------------------------------------------------------
# Request / Response Models
# ---------------------------------------------------------------------------

class PipelineRunRequest(BaseModel):
    transcript: str = Field(
        ...,
        min_length=1,
        max_length=200_000,
        description="The interview transcript to analyze.",
        examples=["Interviewer: How would you size the market?\nCandidate: Um, I'd start with..."],
    )
    max_revisions_per_stage: Optional[int] = Field(default=None, ge=0)
    timeout_ms: Optional[int] = Field(default=None, gt=0)


class PipelineRunResponse(BaseModel):
    run_id: str
    status: str  # "pending" | "running" | "completed" | "failed"
    message: str


class PipelineResultResponse(BaseModel):
    run_id: str
    status: str
    active_node: Optional[str] = None
    final_analysis: Optional[Dict[str, Any]] = None
    final_metrics: Optional[Dict[str, Any]] = None
    final_report: Optional[Dict[str, Any]] = None
    report_text: Optional[str] = None
    stats: Optional[Dict[str, Any]] = None
    failed_stage: Optional[str] = None
    error: Optional[str] = None


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "ok", "service": "Review Council API"}


@router.post("/pipeline/run", response_model=PipelineRunResponse, status_code=202)
async def start_pipeline_run(
    request: PipelineRunRequest,
    background_tasks: BackgroundTasks,
):
    """
    Start a new pipeline run.

    The run executes in the background. Poll GET /api/pipeline/run/{run_id}
    for the result.
    """
    run_id = str(uuid.uuid4())
    run_store.create(run_id, request.transcript)

    config = PipelineConfig.from_env()
    if request.max_revisions_per_stage is not None:
        config = config.with_revision_cap(request.max_revisions_per_stage)
    if request.timeout_ms is not None:
        config = config.model_copy(update={"timeout_ms": request.timeout_ms})

    background_tasks.add_task(_execute_run, run_id, request.transcript, config)

    return PipelineRunResponse(
        run_id=run_id,
        status="pending",
        message=f"Pipeline run started. Poll /api/pipeline/run/{run_id} for the result.",
    )


@router.get("/pipeline/run/{run_id}", response_model=PipelineResultResponse)
async def get_pipeline_result(run_id: str):
    """Retrieve the current status or final result of a pipeline run."""
    run = run_store.get(run_id)
    if run is None:
        raise HTTPException(status_code=404, detail=f"Run '{run_id}' not found.")

    return PipelineResultResponse(
        run_id=run_id,
        status=run["status"],
        active_node=run.get("active_node"),
        final_analysis=run.get("final_analysis"),
        final_metrics=run.get("final_metrics"),
        final_report=run.get("final_report"),
        report_text=run.get("report_text"),
        stats=run.get("stats"),
        failed_stage=run.get("failed_stage"),
        error=run.get("error"),
    )


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

async def _execute_run(run_id: str, transcript: str, config: PipelineConfig) -> None:
    """Background task that runs the pipeline with the default collaborators."""
    run_store.update(run_id, {"status": "running"})
    try:
        outcome = await run_pipeline_async(
            transcript,
            config=config,
            run_id=run_id,
            on_node_event=lambda rid, node: run_store.update(rid, {"active_node": node}),
            **build_default_collaborators(),
        )
    except Exception as exc:  # noqa: BLE001
        log.exception("[{}] Pipeline run crashed", run_id)
        run_store.update(run_id, {"status": "failed", "error": str(exc)})
        return

    if isinstance(outcome, RunFailure):
        run_store.update(
            run_id,
            {
                "status": "failed",
                "failed_stage": outcome.failed_stage,
                "error": outcome.cause,
            },
        )
        return

    run_store.update(
        run_id,
        {
            "status": "completed",
            "active_node": "done",
            "final_analysis": outcome.final_analysis,
            "final_metrics": outcome.final_metrics,
            "final_report": outcome.final_report,
            "report_text": format_report(outcome.final_report),
            "stats": outcome.stats.model_dump(),
        },
    )
