"""
Shared fixtures and stub collaborators.

No test makes a real LLM call. Stubs record every invocation so tests can
check what each stage received.
"""

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest

from models.payload import make_payload
from state import ANALYSIS, METRICS, REPORT


TRANSCRIPT = "I explained, um, the solution."

ANALYSIS_RAW = 'Analysis Output: {"strengths":["clear"],"weaknesses":["filler words"]}'
METRICS_PARSED = {"skills": {"communication": 7, "problemSolving": 8}, "gaps": ["filler words"]}
REPORT_PARSED = {
    "humanReadable": "**Performance Report**\n- Communication Score: 7/10",
    "structuredData": {"forLearningPath": METRICS_PARSED},
}


class StubProducer:
    """Producer stub: returns ``output`` (or raises it) and records every call."""

    def __init__(self, output):
        self.output = output
        self.calls = []

    def run(self, stage_input, feedback=None):
        self.calls.append({"input": stage_input, "feedback": feedback})
        if isinstance(self.output, Exception):
            raise self.output
        return self.output


class StubJudge:
    """
    Judge stub driven by a script of verdicts per stage.

    ``script`` maps a stage to a list of verdict dicts; the last entry repeats
    once the list is exhausted. Stages without a script get ``default``.
    """

    def __init__(self, script=None, default=None):
        self.script = script or {}
        self.default = default or {"score": 9, "passed": True, "issues": []}
        self.calls = []

    def evaluate(self, kind, payload, source_stage):
        self.calls.append({"kind": kind, "payload": payload, "source_stage": source_stage})
        verdicts = self.script.get(source_stage)
        if not verdicts:
            return dict(self.default)
        seen = sum(1 for call in self.calls if call["source_stage"] == source_stage)
        return dict(verdicts[min(seen, len(verdicts)) - 1])


FAIL = {"score": 3, "passed": False, "issues": ["Needs more evidence"]}
PASS = {"score": 9, "passed": True, "issues": []}


@pytest.fixture
def analyzer():
    return StubProducer(ANALYSIS_RAW)


@pytest.fixture
def metrics_calculator():
    return StubProducer(make_payload(METRICS, METRICS_PARSED))


@pytest.fixture
def report_generator():
    return StubProducer(make_payload(REPORT, REPORT_PARSED))


@pytest.fixture
def collaborators(analyzer, metrics_calculator, report_generator):
    return {
        "analyzer": analyzer,
        "metrics_calculator": metrics_calculator,
        "report_generator": report_generator,
        "judge": StubJudge(),
    }


@pytest.fixture
def analysis_payload():
    return make_payload(ANALYSIS, {"strengths": ["clear"], "weaknesses": ["filler words"]})
