"""
Report Generator — final stage: writes the performance report.

The LLM writes the human-readable report. The structured part is copied
from the metrics unchanged, so downstream learning-path tooling always gets
exactly the scores the judge approved.
"""

import json
from typing import List, Optional

from langchain_core.messages import HumanMessage, SystemMessage

from agents.llm import feedback_block, get_llm
from config import REPORT_MODEL
from errors import ParseError
from models.payload import make_payload, strip_code_fence
from models.schemas import MetricsOutput, ReportOutput
from state import REPORT, TaggedPayload


_SYSTEM_PROMPT = """You are the Report Generator. You receive performance metrics that have
been approved by the Quality Judge and write the final report for the candidate.

Write Markdown with these sections: **Summary** (each score out of 10),
**Skill Gaps** (bullet list), **Recommendations** (specific, tied to the gaps).
Return only the report, no meta-commentary."""


def _build_report_prompt(metrics: TaggedPayload, feedback: Optional[List[str]] = None) -> str:
    """Build the user prompt for the report generator."""
    return (
        "Write a performance report from these metrics:\n\n"
        f"{json.dumps(metrics['parsed'], indent=2)}"
        f"{feedback_block(feedback)}"
    )


class ReportGenerator:
    """LLM-backed ReportGenerator collaborator."""

    def __init__(self, model_name: str = REPORT_MODEL) -> None:
        self.model_name = model_name

    async def run(self, metrics: TaggedPayload, feedback: Optional[List[str]] = None) -> TaggedPayload:
        try:
            structured = MetricsOutput.model_validate(metrics["parsed"]).model_dump()
        except ValueError as exc:
            raise ParseError(f"Metrics payload cannot feed a report: {exc}") from exc

        llm = get_llm(self.model_name, temperature=0.4, max_tokens=4096)
        response = await llm.ainvoke(
            [
                SystemMessage(content=_SYSTEM_PROMPT),
                HumanMessage(content=_build_report_prompt(metrics, feedback)),
            ]
        )
        human_readable = strip_code_fence(str(response.content))
        if not human_readable:
            raise ParseError("LLM returned an empty report.")

        report = ReportOutput(
            humanReadable=human_readable,
            structuredData={"forLearningPath": structured},
        )
        return make_payload(REPORT, report.model_dump())
