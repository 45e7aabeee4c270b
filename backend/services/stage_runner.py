"""
Stage Runner — wraps one content-producing collaborator as a pipeline node.

Each producer (analyzer, metrics calculator, report generator) gets the state
slice it needs plus, when the judge has sent its stage back, every feedback
issue issued for that stage so far. Whatever it returns is normalized into a
TaggedPayload; anything else ends the run with a StageFailure.
"""

import asyncio
import functools
import inspect
import time
from concurrent.futures import Executor
from datetime import datetime, timezone
from typing import Any, Callable, List, Optional

from errors import ParseError, StageFailure
from logger import get_logger
from models.payload import coerce_payload, repair_payload
from state import ANALYSIS, METRICS, REPORT, PipelineState, StepRecord, payload_key


log = get_logger(__name__)


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


async def call_collaborator(
    fn: Callable[..., Any],
    *args: Any,
    executor: Optional[Executor] = None,
    **kwargs: Any,
) -> Any:
    """
    Invoke a collaborator method that may be sync or async.

    Sync callables run in ``executor`` (the loop's default when None) so they
    don't block the event loop. Cancelling the await abandons the call; the
    worker thread is left to finish on its own.
    """
    if inspect.iscoroutinefunction(fn):
        return await fn(*args, **kwargs)

    loop = asyncio.get_running_loop()
    result = await loop.run_in_executor(executor, functools.partial(fn, *args, **kwargs))
    if inspect.isawaitable(result):
        result = await result
    return result


def collect_feedback(state: PipelineState, stage: str) -> Optional[List[str]]:
    """
    Issues the producer of ``stage`` must address, or None on a first attempt.

    Feedback is injected only when the stage has been rejected at least once
    and the last verdict sent control back to it. All rounds are included,
    oldest first.
    """
    if state.get("revision_counts", {}).get(stage, 0) <= 0:
        return None
    evaluation = state.get("evaluation")
    if not evaluation or evaluation.get("target_stage") != stage:
        return None

    issues: List[str] = []
    for record in state.get("feedback_history", []):
        if record["stage"] == stage:
            issues.extend(record["issues"])
    return issues


def _stage_input(state: PipelineState, stage: str) -> Any:
    """The state slice a stage consumes."""
    if stage == ANALYSIS:
        source_key = "transcript"
    elif stage == METRICS:
        source_key = "analysis"
    elif stage == REPORT:
        source_key = "metrics"
    else:
        raise StageFailure(stage, "unknown stage")

    value = state.get(source_key)
    if not value:
        raise StageFailure(stage, f"missing required input '{source_key}'")
    return value


async def run_stage(
    stage: str,
    collaborator: Any,
    state: PipelineState,
    executor: Optional[Executor] = None,
) -> dict:
    """
    Run one producer and return the state delta for its output.

    Args:
        stage:        "Analysis" | "Metrics" | "Report".
        collaborator: Object exposing ``run(input, feedback=None)``.
        state:        The current PipelineState.
        executor:     Where sync collaborators run; None means the loop default.

    Returns:
        A dict with the new payload, an "output" StepRecord and active_node.

    Raises:
        StageFailure: On a missing input, a collaborator exception, or an
                      output that is not a valid payload of this stage.
    """
    stage_input = _stage_input(state, stage)
    feedback = collect_feedback(state, stage)
    attempt = state.get("revision_counts", {}).get(stage, 0) + 1

    log.info(
        "[{}] {} attempt #{}{}",
        state.get("run_id", "-"),
        stage,
        attempt,
        f" with {len(feedback)} feedback issue(s)" if feedback else "",
    )

    started = time.perf_counter()
    try:
        output = await call_collaborator(
            collaborator.run, stage_input, executor=executor, feedback=feedback
        )
        payload = repair_payload(coerce_payload(output, stage))
    except StageFailure:
        raise
    except ParseError as exc:
        raise StageFailure(stage, f"invalid output: {exc.message}") from exc
    except Exception as exc:  # noqa: BLE001
        raise StageFailure(stage, f"{type(exc).__name__}: {exc}") from exc
    duration_ms = (time.perf_counter() - started) * 1000
    log.debug("[{}] {} output ready in {:.0f} ms", state.get("run_id", "-"), stage, duration_ms)

    record = StepRecord(
        stage=stage,
        action="output",
        timestamp=utc_timestamp(),
        iteration=attempt,
        duration_ms=duration_ms,
    )

    return {
        payload_key(stage): payload,
        "history": [record],
        "active_node": stage,
    }


def make_stage_node(
    stage: str,
    collaborator: Any,
    executor: Optional[Executor] = None,
) -> Callable[[PipelineState], Any]:
    """
    Create a LangGraph node function for one producer.

    Returns:
        An async callable (PipelineState) -> dict suitable for StateGraph.add_node().
    """

    async def stage_node(state: PipelineState) -> dict:
        return await run_stage(stage, collaborator, state, executor)

    stage_node.__name__ = f"stage_{stage.lower()}"
    return stage_node
