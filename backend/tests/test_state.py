"""Tests for PipelineState structure and graph_builder helpers."""

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest

from state import (
    DONE,
    GLOBAL_STEP_BUDGET,
    MAX_REVISIONS,
    PASS_THRESHOLD,
    PipelineState,
    merge_revision_counts,
    next_stage,
    payload_key,
)
from services.graph_builder import create_initial_state


class TestPipelineState:
    def test_initial_state_fields(self):
        state = create_initial_state("Test transcript", "run-001")
        assert state["transcript"] == "Test transcript"
        assert state["run_id"] == "run-001"
        assert state["analysis"] is None
        assert state["metrics"] is None
        assert state["report"] is None
        assert state["active_stage"] == "Analysis"
        assert state["evaluation"] is None
        assert state["revision_counts"] == {"Analysis": 0, "Metrics": 0, "Report": 0}
        assert state["feedback_history"] == []
        assert state["history"] == []
        assert state["active_node"] == ""

    def test_pass_threshold_value(self):
        assert PASS_THRESHOLD == 8.0

    def test_max_revisions_value(self):
        assert MAX_REVISIONS == 2

    def test_step_budget_value(self):
        assert GLOBAL_STEP_BUDGET == 25

    def test_state_is_typed_dict(self):
        """PipelineState should be instantiable as a plain dict."""
        state: PipelineState = {
            "run_id": "x",
            "transcript": "t",
            "analysis": None,
            "metrics": None,
            "report": None,
            "active_stage": "Metrics",
            "evaluation": None,
            "revision_counts": {"Analysis": 1},
            "feedback_history": [],
            "history": [],
            "active_node": "QualityGate",
        }
        assert state["active_stage"] == "Metrics"


class TestStageOrder:
    def test_next_stage_follows_pipeline_order(self):
        assert next_stage("Analysis") == "Metrics"
        assert next_stage("Metrics") == "Report"
        assert next_stage("Report") == DONE

    def test_payload_key(self):
        assert payload_key("Analysis") == "analysis"
        assert payload_key("Report") == "report"

    def test_payload_key_rejects_unknown_stage(self):
        with pytest.raises(ValueError):
            payload_key("Summary")


class TestMergeRevisionCounts:
    def test_merge_adds_new_stage(self):
        assert merge_revision_counts({"Analysis": 1}, {"Metrics": 1}) == {
            "Analysis": 1,
            "Metrics": 1,
        }

    def test_merge_never_decreases(self):
        assert merge_revision_counts({"Analysis": 2}, {"Analysis": 1}) == {"Analysis": 2}

    def test_merge_takes_increase(self):
        assert merge_revision_counts({"Analysis": 1}, {"Analysis": 2}) == {"Analysis": 2}

    def test_merge_handles_none(self):
        assert merge_revision_counts(None, {"Report": 1}) == {"Report": 1}
