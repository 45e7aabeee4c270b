"""
Offline mock run: the full pipeline on canned data, no API keys needed.

The mock analyzer leaves out weaknesses on its first attempt and the
rule-based judge rejects that, so a run shows one real revision round before
every stage passes.

Run it from backend/:
    python -m samples.mock_run
"""

import copy
from typing import Any, Dict, List, Optional, Union

from config import PipelineConfig
from logger import configure_logging, get_logger
from models.payload import make_payload
from models.run_result import RunFailure, RunResult
from samples.consulting_interview import CONSULTING_INTERVIEW
from services.graph_builder import run_pipeline
from services.result_aggregator import format_report
from state import ANALYSIS, METRICS, REPORT, TaggedPayload


log = get_logger(__name__)


MOCK_ANALYSIS: Dict[str, Any] = {
    "patterns": ["Checks assumptions with the interviewer", "Occasional filler words"],
    "strengths": ["Clear framework up front", "Step-by-step market sizing"],
    "weaknesses": ["Simplified profit margin assumptions", "Little on implementation"],
    "coreCompetencies": {
        "communication": {
            "score": 8,
            "strengths": ["Clear articulation of ideas"],
            "weaknesses": ["Occasional use of filler words"],
            "developmentAreas": ["More tailoring to audience needs"],
            # Two quotes are cited below; the stage runner recounts this
            "evidenceCount": 4,
            "confidence": 8,
        },
        "problemSolving": {
            "score": 7,
            "strengths": ["Structured approach to market entry"],
            "weaknesses": ["Limited exploration of alternatives"],
            "developmentAreas": ["More creative solution generation"],
            "evidenceCount": 1,
            "confidence": 7,
        },
        "structuredThinking": {
            "score": 9,
            "strengths": ["Excellent framework creation"],
            "weaknesses": ["Could improve prioritization of issues"],
            "developmentAreas": ["More explicit hypothesis testing"],
            "evidenceCount": 1,
            "confidence": 9,
        },
    },
    "evidenceByCompetency": {
        "communication": [
            {
                "quote": "Does that framework make sense as a starting point?",
                "analysis": "Checks alignment before going deeper",
                "strength": True,
            },
            {
                "quote": "Alright, so this is about entering the coffee shop market",
                "analysis": "Filler opener, restates the question",
                "strength": False,
            },
        ],
        "problemSolving": [
            {
                "quote": "That's tight with startup costs, so I'll circle back to financials later.",
                "analysis": "Spots the margin problem but defers it",
                "strength": True,
            }
        ],
        "structuredThinking": [
            {
                "quote": "I'd start with market demand—how many people in this city drink coffee, and how often?",
                "analysis": "Opens with a clear driver of the market size",
                "strength": True,
            }
        ],
    },
}


class MockSessionAnalyzer:
    """Returns MOCK_ANALYSIS; the first attempt omits weaknesses."""

    def run(self, transcript: str, feedback: Optional[List[str]] = None) -> TaggedPayload:
        analysis = copy.deepcopy(MOCK_ANALYSIS)
        if not feedback:
            analysis["weaknesses"] = []
        return make_payload(ANALYSIS, analysis)


class MockMetricsCalculator:
    """Derives skill scores and gaps from the analysis competencies."""

    def run(self, analysis: TaggedPayload, feedback: Optional[List[str]] = None) -> TaggedPayload:
        competencies = analysis["parsed"].get("coreCompetencies", {})
        gaps = [
            area
            for entry in competencies.values()
            if entry.get("score", 10) < 8
            for area in entry.get("developmentAreas", [])
        ]
        metrics = {
            "skills": {
                "communication": competencies.get("communication", {}).get("score", 5),
                "problemSolving": competencies.get("problemSolving", {}).get("score", 5),
            },
            "gaps": gaps or list(analysis["parsed"].get("weaknesses", [])),
        }
        return make_payload(METRICS, metrics)


class MockReportGenerator:
    """Writes a Markdown report straight from the metrics."""

    def run(self, metrics: TaggedPayload, feedback: Optional[List[str]] = None) -> TaggedPayload:
        skills = metrics["parsed"]["skills"]
        gaps = metrics["parsed"]["gaps"]
        lines = [
            "**Summary**",
            f"- Communication: {skills['communication']}/10",
            f"- Problem Solving: {skills['problemSolving']}/10",
            "",
            "**Skill Gaps**",
            *[f"- {gap}" for gap in gaps],
            "",
            "**Recommendations**",
            *[f"- Practice: {gap.lower()}" for gap in gaps],
        ]
        return make_payload(
            REPORT,
            {
                "humanReadable": "\n".join(lines),
                "structuredData": {"forLearningPath": metrics["parsed"]},
            },
        )


class RuleBasedJudge:
    """Deterministic stand-in for the LLM judge."""

    def evaluate(self, kind: str, payload: TaggedPayload, source_stage: str) -> Dict[str, Any]:
        parsed = payload["parsed"]
        issues: List[str] = []

        if kind == ANALYSIS:
            if not parsed.get("strengths"):
                issues.append("Assessment is unbalanced: no strengths identified")
            if not parsed.get("weaknesses"):
                issues.append("Assessment is unbalanced: no weaknesses identified")
            for name, entry in parsed.get("coreCompetencies", {}).items():
                if entry.get("evidenceCount", 0) == 0:
                    issues.append(f"CRITICAL: {name} is scored without any quoted evidence")
        elif kind == METRICS:
            if not parsed.get("gaps"):
                issues.append("No skill gaps identified")
        elif kind == REPORT:
            if "**Recommendations**" not in parsed.get("humanReadable", ""):
                issues.append("Report has no recommendations section")

        score = 8.5 if not issues else 6.0
        return {"score": score, "passed": not issues, "issues": issues}


def build_mock_collaborators() -> Dict[str, Any]:
    """Keyword arguments for run_pipeline using the offline mocks."""
    return {
        "analyzer": MockSessionAnalyzer(),
        "metrics_calculator": MockMetricsCalculator(),
        "report_generator": MockReportGenerator(),
        "judge": RuleBasedJudge(),
    }


def run_mock_pipeline(
    transcript: str = CONSULTING_INTERVIEW,
    config: Optional[PipelineConfig] = None,
) -> Union[RunResult, RunFailure]:
    return run_pipeline(transcript, config=config, **build_mock_collaborators())


def main() -> None:
    configure_logging()
    outcome = run_mock_pipeline()
    if isinstance(outcome, RunFailure):
        log.error("Mock run failed: {}", outcome.cause)
        return
    print(format_report(outcome.final_report))
    log.info(
        "Iterations per stage: {} | feedback rounds: {}",
        outcome.stats.iterations_per_stage,
        outcome.stats.total_feedback,
    )


if __name__ == "__main__":
    main()
