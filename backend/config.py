"""
Run configuration for the review pipeline.

Defaults come from state.py. Every value can be overridden per run, or
from the environment via PipelineConfig.from_env().

The step budget and the revision cap are coupled: with every stage using all
of its revisions a run takes 2 * len(STAGE_ORDER) * (max_revisions + 1)
steps. Raising the cap through with_revision_cap() or MAX_REVISIONS_PER_STAGE
raises the budget to fit unless a budget is given explicitly.
"""

import os

from pydantic import BaseModel, Field

from state import GLOBAL_STEP_BUDGET, MAX_REVISIONS, PASS_THRESHOLD, RUN_TIMEOUT_MS, STAGE_ORDER


class PipelineConfig(BaseModel):
    max_revisions_per_stage: int = Field(
        default=MAX_REVISIONS,
        ge=0,
        description="Rejections per stage before the quality gate forces approval.",
    )
    global_step_budget: int = Field(
        default=GLOBAL_STEP_BUDGET,
        ge=1,
        description="Maximum orchestrator transitions for one run.",
    )
    timeout_ms: int = Field(
        default=RUN_TIMEOUT_MS,
        gt=0,
        description="Wall-clock budget for the whole run, in milliseconds.",
    )
    pass_threshold: float = Field(
        default=PASS_THRESHOLD,
        ge=0.0,
        le=10.0,
        description="Minimum judge score for a stage to pass.",
    )

    @classmethod
    def from_env(cls) -> "PipelineConfig":
        """Build a config from environment variables, falling back to defaults."""
        values = {}
        env_map = {
            "max_revisions_per_stage": ("MAX_REVISIONS_PER_STAGE", int),
            "global_step_budget": ("GLOBAL_STEP_BUDGET", int),
            "timeout_ms": ("RUN_TIMEOUT_MS", int),
            "pass_threshold": ("PASS_THRESHOLD", float),
        }
        for field_name, (env_name, cast) in env_map.items():
            raw = os.environ.get(env_name)
            if raw:
                values[field_name] = cast(raw)
        if "max_revisions_per_stage" in values and "global_step_budget" not in values:
            values["global_step_budget"] = max(
                GLOBAL_STEP_BUDGET, cls.required_step_budget(values["max_revisions_per_stage"])
            )
        return cls(**values)

    @staticmethod
    def required_step_budget(max_revisions: int) -> int:
        """Smallest step budget that lets every stage use all of its revisions."""
        return 2 * len(STAGE_ORDER) * (max_revisions + 1) + 1

    def with_revision_cap(self, max_revisions: int) -> "PipelineConfig":
        """Copy with a new revision cap, raising the step budget if it no longer fits."""
        budget = max(self.global_step_budget, self.required_step_budget(max_revisions))
        return self.model_validate(
            {
                **self.model_dump(),
                "max_revisions_per_stage": max_revisions,
                "global_step_budget": budget,
            }
        )


# Model names for the default LLM collaborators
ANALYZER_MODEL = os.environ.get("ANALYZER_MODEL", "claude-3-5-sonnet")
METRICS_MODEL = os.environ.get("METRICS_MODEL", "claude-3-5-sonnet")
REPORT_MODEL = os.environ.get("REPORT_MODEL", "claude-3-5-sonnet")
JUDGE_MODEL = os.environ.get("JUDGE_MODEL", "claude-3-5-sonnet")
