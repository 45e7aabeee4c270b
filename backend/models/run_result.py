"""
Run outcome models — what a caller gets back from a pipeline run.

A run ends either as a RunResult (all three final payloads present) or as a
RunFailure (cause plus the history recorded before the failure). There is
no third, partially successful shape.
"""

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field


class PipelineStats(BaseModel):
    iterations_per_stage: Dict[str, int] = Field(default_factory=dict)
    feedback_counts_per_stage: Dict[str, int] = Field(default_factory=dict)
    evaluations_per_stage: Dict[str, int] = Field(default_factory=dict)
    pass_rates_per_stage: Dict[str, float] = Field(default_factory=dict)
    forced_passes_per_stage: Dict[str, int] = Field(default_factory=dict)
    stage_durations_ms: Dict[str, float] = Field(default_factory=dict)
    total_feedback: int = 0
    total_steps: int = 0
    total_duration_ms: float = 0.0


class RunResult(BaseModel):
    """A run that reached Done."""

    run_id: str
    status: Literal["completed"] = "completed"
    final_analysis: Dict[str, Any]
    final_metrics: Dict[str, Any]
    final_report: Dict[str, Any]
    history: List[Dict[str, Any]] = Field(default_factory=list)
    stats: PipelineStats


class RunFailure(BaseModel):
    """A run that ended in Failed."""

    run_id: str
    status: Literal["failed"] = "failed"
    cause: str
    failed_stage: Optional[str] = None
    partial_history: List[Dict[str, Any]] = Field(default_factory=list)
    total_duration_ms: float = 0.0
