"""Default LLM-backed collaborators for the review pipeline."""

from .session_analyzer import SessionAnalyzer
from .metrics_calculator import MetricsCalculator
from .report_generator import ReportGenerator
from .quality_judge import QualityJudge


def build_default_collaborators() -> dict:
    """Keyword arguments for run_pipeline_async using the configured models."""
    return {
        "analyzer": SessionAnalyzer(),
        "metrics_calculator": MetricsCalculator(),
        "report_generator": ReportGenerator(),
        "judge": QualityJudge(),
    }


__all__ = [
    "SessionAnalyzer",
    "MetricsCalculator",
    "ReportGenerator",
    "QualityJudge",
    "build_default_collaborators",
]
