"""
Result Aggregator — turns a finished PipelineState into a RunResult.

Read-only: nothing here touches the state it is given.
"""

import json
from typing import Any, Dict, List, Optional

from errors import StageFailure
from models.run_result import PipelineStats, RunResult
from state import QUALITY_GATE, STAGE_ORDER, PipelineState, StepRecord, payload_key


def categorize_outputs(history: List[StepRecord]) -> Dict[str, List[StepRecord]]:
    """
    Group history records by who produced them.

    Returns:
        {"Analysis": [...], "Metrics": [...], "Report": [...], "QualityGate": [...]}
    """
    grouped: Dict[str, List[StepRecord]] = {stage: [] for stage in STAGE_ORDER}
    grouped[QUALITY_GATE] = []
    for record in history:
        grouped.setdefault(record.get("stage", ""), []).append(record)
    return grouped


def calculate_stats(history: List[StepRecord], total_duration_ms: float = 0.0) -> PipelineStats:
    """Per-stage iteration, feedback, pass-rate and timing statistics."""
    iterations = {stage: 0 for stage in STAGE_ORDER}
    feedback = {stage: 0 for stage in STAGE_ORDER}
    evaluations = {stage: 0 for stage in STAGE_ORDER}
    passes = {stage: 0 for stage in STAGE_ORDER}
    forced = {stage: 0 for stage in STAGE_ORDER}
    durations = {stage: 0.0 for stage in STAGE_ORDER}

    for record in history:
        action = record.get("action")
        if action == "output" and record.get("stage") in iterations:
            stage = record["stage"]
            iterations[stage] += 1
            durations[stage] += record.get("duration_ms", 0.0)
        elif action == "evaluate" and record.get("source_stage") in evaluations:
            stage = record["source_stage"]
            evaluations[stage] += 1
            if record.get("passed"):
                passes[stage] += 1
            if record.get("forced"):
                forced[stage] += 1
        elif action == "feedback" and record.get("target_stage") in feedback:
            feedback[record["target_stage"]] += 1

    pass_rates = {
        stage: (passes[stage] / evaluations[stage]) if evaluations[stage] else 0.0
        for stage in STAGE_ORDER
    }

    return PipelineStats(
        iterations_per_stage=iterations,
        feedback_counts_per_stage=feedback,
        evaluations_per_stage=evaluations,
        pass_rates_per_stage=pass_rates,
        forced_passes_per_stage=forced,
        stage_durations_ms=durations,
        total_feedback=sum(feedback.values()),
        total_steps=sum(1 for record in history if record.get("action") in ("output", "evaluate")),
        total_duration_ms=total_duration_ms,
    )


def aggregate_result(state: PipelineState, total_duration_ms: float = 0.0) -> RunResult:
    """
    Extract the final payloads and statistics from a finished run.

    Raises:
        StageFailure: If any of the three final payloads is missing.
    """
    finals: Dict[str, Any] = {}
    for stage in STAGE_ORDER:
        payload = state.get(payload_key(stage))
        if not payload:
            raise StageFailure(stage, "run finished without a final payload")
        finals[stage] = dict(payload)

    history = [dict(record) for record in state.get("history", [])]
    return RunResult(
        run_id=state["run_id"],
        final_analysis=finals[STAGE_ORDER[0]],
        final_metrics=finals[STAGE_ORDER[1]],
        final_report=finals[STAGE_ORDER[2]],
        history=history,
        stats=calculate_stats(history, total_duration_ms),
    )


def format_report(report: Optional[Dict[str, Any]]) -> str:
    """
    Human-readable text of a Report payload.

    Uses ``parsed["humanReadable"]`` when present, otherwise pretty JSON.
    """
    if not report:
        return "No report generated"
    parsed = report.get("parsed")
    if isinstance(parsed, dict) and isinstance(parsed.get("humanReadable"), str):
        return parsed["humanReadable"]
    return json.dumps(parsed, indent=2)
