"""
Quality Gate — evaluates a stage's latest payload and decides where control goes.

The gate scores the payload through the judge and either advances to the next
stage or sends the stage back with numbered feedback. Decision policy:

    passed = score >= pass_threshold and critical_issues == 0

The judge's own passed flag is recorded but does not decide.

Safety valve: once a stage has been rejected max_revisions times, the next
failing verdict is forced to a pass so the pipeline always moves on. The judge
is still consulted, so the recorded score is real.

Errors never count as a pass. A bad label, a judge exception or a malformed
verdict ends the run with an EvalError.
"""

import math
import time
from concurrent.futures import Executor
from typing import Any, Callable, List, Optional, Tuple

from pydantic import ValidationError

from errors import EvalError, ParseError
from logger import get_logger
from models.payload import classify_label, format_feedback
from models.schemas import JudgeVerdict
from services.stage_runner import call_collaborator, utc_timestamp
from state import (
    EVALUATION,
    MAX_REVISIONS,
    PASS_THRESHOLD,
    QUALITY_GATE,
    STAGE_ORDER,
    Evaluation,
    FeedbackRecord,
    PipelineState,
    StepRecord,
    next_stage,
    payload_key,
)


log = get_logger(__name__)

_CRITICAL_PREFIX = "critical:"


def _normalize_verdict(stage: str, verdict: Any) -> Tuple[float, bool, List[str], int]:
    """
    Validate a judge verdict and return (score, judge_passed, issues, critical).

    Scores are clamped to 0–10. Non-numeric scores are an EvalError.
    """
    try:
        if isinstance(verdict, JudgeVerdict):
            parsed = verdict
        else:
            parsed = JudgeVerdict.model_validate(verdict)
    except ValidationError as exc:
        raise EvalError(stage, f"malformed verdict: {exc.errors()[0]['msg']}") from exc

    if math.isnan(parsed.score):
        raise EvalError(stage, "judge returned a NaN score")
    score = max(0.0, min(10.0, parsed.score))

    if parsed.critical_issues is not None:
        critical = parsed.critical_issues
    else:
        critical = sum(
            1 for issue in parsed.issues if issue.strip().lower().startswith(_CRITICAL_PREFIX)
        )

    return score, parsed.passed, list(parsed.issues), critical


def decide(
    score: float,
    critical: int,
    revision_count: int,
    pass_threshold: float = PASS_THRESHOLD,
    max_revisions: int = MAX_REVISIONS,
) -> Tuple[bool, bool]:
    """
    Apply the decision policy and the safety valve.

    Returns:
        (passed, forced) — forced is True when the safety valve turned a
        failing verdict into a pass.
    """
    passed = score >= pass_threshold and critical == 0
    if not passed and revision_count >= max_revisions:
        return True, True
    return passed, False


async def evaluate_stage(
    state: PipelineState,
    judge: Any,
    pass_threshold: float = PASS_THRESHOLD,
    max_revisions: int = MAX_REVISIONS,
    executor: Optional[Executor] = None,
) -> dict:
    """
    Judge the payload of ``state["active_stage"]`` and return the state delta.

    On pass: active_stage moves to the successor stage (or "Done").
    On fail: revision_counts[stage] is incremented, a FeedbackRecord
    "Feedback for <Stage> #<n>" is appended, and active_stage stays put.

    Raises:
        EvalError: Unknown/mismatched label, judge exception, bad verdict.
    """
    source = state.get("active_stage")
    if source not in STAGE_ORDER:
        raise EvalError(str(source), "no stage output to evaluate")

    payload = state.get(payload_key(source))
    if not payload:
        raise EvalError(source, f"no {source} payload in state")

    # Classify from the label before anything else
    try:
        kind = classify_label(payload.get("raw"))
    except ParseError as exc:
        raise EvalError(source, f"protocol violation: {exc.message}") from exc
    if kind == EVALUATION or kind != source:
        raise EvalError(source, f"protocol violation: got a {kind} payload for the {source} stage")

    started = time.perf_counter()
    try:
        verdict = await call_collaborator(judge.evaluate, kind, payload, source, executor=executor)
    except EvalError:
        raise
    except Exception as exc:  # noqa: BLE001
        raise EvalError(source, f"{type(exc).__name__}: {exc}") from exc
    duration_ms = (time.perf_counter() - started) * 1000

    score, judge_passed, issues, critical = _normalize_verdict(source, verdict)
    revision_count = state.get("revision_counts", {}).get(source, 0)
    passed, forced = decide(score, critical, revision_count, pass_threshold, max_revisions)
    target = next_stage(source) if passed else source

    evaluation = Evaluation(
        score=score,
        passed=passed,
        judge_passed=judge_passed,
        issues=issues,
        critical_issues=critical,
        forced=forced,
        source_stage=source,
        target_stage=target,
    )
    records: List[StepRecord] = [
        StepRecord(
            stage=QUALITY_GATE,
            action="evaluate",
            timestamp=utc_timestamp(),
            source_stage=source,
            target_stage=target,
            passed=passed,
            score=score,
            forced=forced,
            duration_ms=duration_ms,
        )
    ]
    delta: dict = {
        "evaluation": evaluation,
        "active_stage": target,
        "active_node": QUALITY_GATE,
    }

    if forced:
        log.warning(
            "[{}] {} auto-approved after {} revision(s) (score {:.1f})",
            state.get("run_id", "-"),
            source,
            revision_count,
            score,
        )
    elif passed:
        log.info("[{}] {} passed (score {:.1f}) -> {}", state.get("run_id", "-"), source, score, target)

    if not passed:
        iteration = revision_count + 1
        message = format_feedback(source, iteration, issues)
        records.append(
            StepRecord(
                stage=QUALITY_GATE,
                action="feedback",
                timestamp=utc_timestamp(),
                target_stage=source,
                iteration=iteration,
                message=message,
            )
        )
        delta["revision_counts"] = {source: iteration}
        delta["feedback_history"] = [
            FeedbackRecord(stage=source, iteration=iteration, issues=issues, message=message)
        ]
        log.info(
            "[{}] {} rejected (score {:.1f}, {} issue(s)); feedback #{}",
            state.get("run_id", "-"),
            source,
            score,
            len(issues),
            iteration,
        )

    delta["history"] = records
    return delta


def make_quality_gate_node(
    judge: Any,
    pass_threshold: float = PASS_THRESHOLD,
    max_revisions: int = MAX_REVISIONS,
    executor: Optional[Executor] = None,
) -> Callable[[PipelineState], Any]:
    """
    Create the judge node for the pipeline graph.

    Returns:
        An async callable (PipelineState) -> dict suitable for StateGraph.add_node().
    """

    async def quality_gate_node(state: PipelineState) -> dict:
        return await evaluate_stage(state, judge, pass_threshold, max_revisions, executor)

    return quality_gate_node
