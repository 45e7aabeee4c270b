"""
Graph Builder — constructs and runs the LangGraph review pipeline.

Graph topology:
    session_analyzer   → quality_judge ─┐
    metrics_calculator → quality_judge ─┤ (conditional on active_stage)
    report_generator   → quality_judge ─┘ → session_analyzer | metrics_calculator
                                            | report_generator | END

The judge's verdict sets active_stage; the conditional edge only reads it.
Two bounds keep every run finite: the per-stage safety valve in the quality
gate and the global step budget (LangGraph recursion_limit). A wall-clock
timeout wraps the whole run.
"""

import asyncio
import time
import uuid
from concurrent.futures import Executor, ThreadPoolExecutor
from typing import Any, Callable, Optional, Union

from langgraph.errors import GraphRecursionError
from langgraph.graph import END, StateGraph

from config import PipelineConfig
from errors import BudgetExceeded, PipelineError, RunTimeout, StageFailure
from logger import get_logger
from models.run_result import RunFailure, RunResult
from services.quality_gate import make_quality_gate_node
from services.result_aggregator import aggregate_result
from services.stage_runner import make_stage_node
from state import ANALYSIS, DONE, METRICS, REPORT, STAGE_ORDER, PipelineState


log = get_logger(__name__)

# Node name for each stage
STAGE_NODES = {
    ANALYSIS: "session_analyzer",
    METRICS: "metrics_calculator",
    REPORT: "report_generator",
}
JUDGE_NODE = "quality_judge"


def route_after_judge(state: PipelineState) -> str:
    """
    Conditional edge function: determines the next node after the judge.

    Returns:
        The producer node for active_stage, or END once the stage is "Done".

    Raises:
        ValueError: If active_stage is not a known stage.
    """
    stage = state.get("active_stage")
    if stage == DONE:
        return END
    if stage not in STAGE_NODES:
        raise ValueError(f"Cannot route unknown stage '{stage}'.")
    return STAGE_NODES[stage]


def build_pipeline_graph(
    analyzer: Any,
    metrics_calculator: Any,
    report_generator: Any,
    judge: Any,
    config: Optional[PipelineConfig] = None,
    executor: Optional[Executor] = None,
) -> Any:
    """
    Build and compile the review pipeline graph.

    Args:
        analyzer:           Collaborator with ``run(transcript, feedback=None)``.
        metrics_calculator: Collaborator with ``run(analysis, feedback=None)``.
        report_generator:   Collaborator with ``run(metrics, feedback=None)``.
        judge:              Collaborator with ``evaluate(kind, payload, source_stage)``.
        config:             Thresholds and caps; defaults to PipelineConfig().
        executor:           Where sync collaborators run; None means the loop default.

    Returns:
        A compiled LangGraph StateGraph ready for invocation.
    """
    config = config or PipelineConfig()
    producers = {
        ANALYSIS: analyzer,
        METRICS: metrics_calculator,
        REPORT: report_generator,
    }

    graph = StateGraph(PipelineState)

    # Register producer nodes and the judge
    for stage in STAGE_ORDER:
        graph.add_node(STAGE_NODES[stage], make_stage_node(stage, producers[stage], executor))
    graph.add_node(
        JUDGE_NODE,
        make_quality_gate_node(
            judge,
            pass_threshold=config.pass_threshold,
            max_revisions=config.max_revisions_per_stage,
            executor=executor,
        ),
    )

    # Every producer hands off to the judge
    graph.set_entry_point(STAGE_NODES[ANALYSIS])
    for stage in STAGE_ORDER:
        graph.add_edge(STAGE_NODES[stage], JUDGE_NODE)

    # Conditional edge: the judge's verdict decides rework, advance or finish
    route_map = {node: node for node in STAGE_NODES.values()}
    route_map[END] = END
    graph.add_conditional_edges(JUDGE_NODE, route_after_judge, route_map)

    return graph.compile()


def create_initial_state(transcript: str, run_id: str) -> PipelineState:
    """
    Create a fresh PipelineState for a new run.

    Args:
        transcript: The interview transcript to review.
        run_id:     Unique identifier for this run.

    Returns:
        An initialized PipelineState dict.
    """
    return PipelineState(
        run_id=run_id,
        transcript=transcript,
        analysis=None,
        metrics=None,
        report=None,
        active_stage=ANALYSIS,
        evaluation=None,
        revision_counts={stage: 0 for stage in STAGE_ORDER},
        feedback_history=[],
        history=[],
        active_node="",
    )


async def run_pipeline_async(
    transcript: str,
    *,
    analyzer: Any,
    metrics_calculator: Any,
    report_generator: Any,
    judge: Any,
    config: Optional[PipelineConfig] = None,
    run_id: Optional[str] = None,
    on_node_event: Optional[Callable[[str, str], Any]] = None,
) -> Union[RunResult, RunFailure]:
    """
    Execute a full pipeline run.

    Args:
        transcript:    The interview transcript.
        analyzer, metrics_calculator, report_generator, judge: Collaborators.
        config:        Caps, threshold and timeout; defaults to PipelineConfig().
        run_id:        Identifier for this run; generated when omitted.
        on_node_event: Optional callback (run_id, node_name) called after each node.

    Returns:
        A RunResult when the pipeline reaches Done, otherwise a RunFailure
        carrying the cause and the history recorded so far.
    """
    config = config or PipelineConfig()
    run_id = run_id or str(uuid.uuid4())

    # Nodes run strictly in sequence, so one worker per run is enough.
    # The pool is shut down without joining when the run ends.
    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=f"pipeline-{run_id[:8]}")
    graph = build_pipeline_graph(
        analyzer, metrics_calculator, report_generator, judge, config, executor
    )
    initial_state = create_initial_state(transcript, run_id)
    latest: PipelineState = initial_state

    async def _drive() -> PipelineState:
        nonlocal latest
        async for snapshot in graph.astream(
            initial_state,
            config={"recursion_limit": config.global_step_budget},
            stream_mode="values",
        ):
            latest = snapshot
            if on_node_event and snapshot.get("active_node"):
                on_node_event(run_id, snapshot["active_node"])
        return latest

    log.info("[{}] Pipeline run started", run_id)
    started = time.perf_counter()

    def _failure(error: Exception, failed_stage: Optional[str] = None) -> RunFailure:
        duration_ms = (time.perf_counter() - started) * 1000
        log.error("[{}] Pipeline run failed after {:.0f} ms: {}", run_id, duration_ms, error)
        return RunFailure(
            run_id=run_id,
            cause=str(error),
            failed_stage=failed_stage,
            partial_history=[dict(record) for record in latest.get("history", [])],
            total_duration_ms=duration_ms,
        )

    try:
        final_state = await asyncio.wait_for(_drive(), timeout=config.timeout_ms / 1000)
    except asyncio.TimeoutError:
        return _failure(RunTimeout("timeout"), latest.get("active_stage"))
    except GraphRecursionError:
        return _failure(BudgetExceeded("step budget exceeded"), latest.get("active_stage"))
    except StageFailure as exc:
        return _failure(exc, exc.stage)
    except Exception as exc:  # noqa: BLE001
        log.exception("[{}] Unexpected error during pipeline run", run_id)
        return _failure(
            PipelineError(f"{type(exc).__name__}: {exc}"), latest.get("active_stage")
        )
    finally:
        executor.shutdown(wait=False, cancel_futures=True)

    if final_state.get("active_stage") != DONE:
        return _failure(
            StageFailure(str(final_state.get("active_stage")), "pipeline stopped before Done"),
            final_state.get("active_stage"),
        )

    duration_ms = (time.perf_counter() - started) * 1000
    try:
        result = aggregate_result(final_state, total_duration_ms=duration_ms)
    except StageFailure as exc:
        return _failure(exc, exc.stage)

    log.info("[{}] Pipeline run completed in {:.0f} ms", run_id, duration_ms)
    return result


def run_pipeline(transcript: str, **kwargs: Any) -> Union[RunResult, RunFailure]:
    """Synchronous wrapper around run_pipeline_async for scripts and tests."""
    return asyncio.run(run_pipeline_async(transcript, **kwargs))
