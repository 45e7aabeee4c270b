"""
Exception hierarchy for the review pipeline.

Every fatal error ends the run as a RunFailure. None of them is ever turned
into a passing verdict or into placeholder output.
"""

from typing import Any, Dict, Optional


class PipelineError(Exception):
    """Base class for all pipeline errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ParseError(PipelineError):
    """A payload could not be decoded (bad label, bad JSON, bad schema)."""


class StageFailure(PipelineError):
    """A stage could not produce a valid tagged payload. Fatal to the run."""

    def __init__(self, stage: str, cause: str):
        self.stage = stage
        self.cause = cause
        super().__init__(f"{stage} stage failed: {cause}", {"stage": stage})

    def __str__(self) -> str:
        return self.message


class EvalError(StageFailure):
    """The quality gate could not classify, score or judge a payload."""

    def __init__(self, stage: str, cause: str):
        super().__init__(stage, cause)
        self.message = f"Evaluation of {stage} failed: {cause}"
        self.args = (self.message,)


class BudgetExceeded(PipelineError):
    """The global step budget ran out before the pipeline reached Done."""


class RunTimeout(PipelineError):
    """The run exceeded its wall-clock budget."""
