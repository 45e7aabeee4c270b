"""
Tests for the LangGraph routing logic.

All collaborators are stubs — no real API calls are made in these tests.
"""

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from langgraph.graph import END

from services.graph_builder import (
    JUDGE_NODE,
    STAGE_NODES,
    build_pipeline_graph,
    create_initial_state,
    route_after_judge,
)


class TestRouteAfterJudge:
    """Unit tests for the conditional edge routing function."""

    def _make_state(self, active_stage: str):
        state = create_initial_state("test transcript", "test-run")
        state["active_stage"] = active_stage
        return state

    def test_analysis_routes_to_analyzer(self):
        assert route_after_judge(self._make_state("Analysis")) == "session_analyzer"

    def test_metrics_routes_to_calculator(self):
        assert route_after_judge(self._make_state("Metrics")) == "metrics_calculator"

    def test_report_routes_to_generator(self):
        assert route_after_judge(self._make_state("Report")) == "report_generator"

    def test_done_routes_to_end(self):
        assert route_after_judge(self._make_state("Done")) == END

    def test_unknown_stage_raises(self):
        with pytest.raises(ValueError, match="unknown stage"):
            route_after_judge(self._make_state("QualityGate"))


class TestBuildPipelineGraph:
    def test_graph_compiles_with_all_nodes(self, collaborators):
        graph = build_pipeline_graph(**collaborators)
        nodes = set(graph.get_graph().nodes)
        assert set(STAGE_NODES.values()) <= nodes
        assert JUDGE_NODE in nodes
