"""
PipelineState — the central data structure passed between all pipeline nodes in LangGraph.

Every node reads from this TypedDict and returns a partial update. Nodes must not
keep state of their own; the orchestrator applies each returned delta.
"""

from typing import Annotated, Any, Dict, List, Optional
import operator
from typing_extensions import TypedDict


# Pipeline stages, in order
ANALYSIS = "Analysis"
METRICS = "Metrics"
REPORT = "Report"
DONE = "Done"

STAGE_ORDER = (ANALYSIS, METRICS, REPORT)

# Label used in history records written by the judge
QUALITY_GATE = "QualityGate"

# Payload kinds; Evaluation is produced by the judge, never by a stage
EVALUATION = "Evaluation"
PAYLOAD_KINDS = (ANALYSIS, METRICS, REPORT, EVALUATION)

# Approval threshold: judge score must reach this value to pass a stage
PASS_THRESHOLD = 8.0

# Safety limit: rejections per stage before the gate forces approval
MAX_REVISIONS = 2

# Global cap on orchestrator transitions (LangGraph recursion_limit)
GLOBAL_STEP_BUDGET = 25

# Wall-clock budget for a whole run
RUN_TIMEOUT_MS = 300_000


class TaggedPayload(TypedDict):
    """A labeled stage output. ``raw`` always starts with ``"<kind> Output:"``."""

    kind: str
    raw: str
    parsed: Any


class Evaluation(TypedDict, total=False):
    """The last verdict rendered by the quality gate."""

    score: float
    passed: bool
    judge_passed: bool
    issues: List[str]
    critical_issues: int
    forced: bool
    source_stage: str
    target_stage: str


class FeedbackRecord(TypedDict):
    stage: str
    iteration: int
    issues: List[str]
    message: str


class StepRecord(TypedDict, total=False):
    stage: str
    action: str  # "output" | "evaluate" | "feedback"
    timestamp: str
    source_stage: str
    target_stage: str
    passed: bool
    score: float
    forced: bool
    iteration: int
    message: str
    duration_ms: float


def merge_revision_counts(
    left: Optional[Dict[str, int]],
    right: Optional[Dict[str, int]],
) -> Dict[str, int]:
    """Reducer for revision_counts: per-stage max, so a count can never go down."""
    merged = dict(left or {})
    for stage, count in (right or {}).items():
        merged[stage] = max(merged.get(stage, 0), count)
    return merged


class PipelineState(TypedDict):
    """
    The state shared across all nodes of one pipeline run.

    Fields:
        run_id:            Unique identifier for this run (logs, run store).
        transcript:        The interview transcript. Set once, never changed.
        analysis:          Latest Analysis payload, or None.
        metrics:           Latest Metrics payload, or None.
        report:            Latest Report payload, or None.
        active_stage:      Stage in focus: "Analysis" | "Metrics" | "Report" | "Done".
                           The judge's conditional edge routes on this value.
        evaluation:        Last verdict from the quality gate, or None.
        revision_counts:   Rejections per stage. Merged with a max reducer.
        feedback_history:  Every feedback round issued by the gate.
                           Uses operator.add so rounds accumulate.
        history:           Append-only audit trail of StepRecords.
        active_node:       Name of the node that produced the latest update.
    """

    run_id: str
    transcript: str
    analysis: Optional[TaggedPayload]
    metrics: Optional[TaggedPayload]
    report: Optional[TaggedPayload]
    active_stage: str
    evaluation: Optional[Evaluation]
    revision_counts: Annotated[Dict[str, int], merge_revision_counts]
    feedback_history: Annotated[List[FeedbackRecord], operator.add]
    history: Annotated[List[StepRecord], operator.add]
    active_node: str


def payload_key(stage: str) -> str:
    """State key holding the payload of ``stage`` ("Analysis" -> "analysis")."""
    if stage not in STAGE_ORDER:
        raise ValueError(f"Unknown stage '{stage}'. Expected one of {list(STAGE_ORDER)}")
    return stage.lower()


def next_stage(stage: str) -> str:
    """Successor of ``stage`` in the fixed order Analysis -> Metrics -> Report -> Done."""
    index = STAGE_ORDER.index(stage)
    if index + 1 < len(STAGE_ORDER):
        return STAGE_ORDER[index + 1]
    return DONE
