"""
Metrics Calculator — second stage: turns the analysis into scores and skill gaps.
"""

import json
from typing import List, Optional

from langchain_core.messages import HumanMessage, SystemMessage

from agents.llm import feedback_block, get_llm, parse_model_json
from config import METRICS_MODEL
from models.payload import make_payload
from models.schemas import MetricsOutput
from state import METRICS, TaggedPayload


_SYSTEM_PROMPT = """You are the Metrics Calculator. You transform analysis data into performance metrics.
Quality metrics are based on EVIDENCE, not assumptions. Be conservative and do not
inflate scores without strong support in the analysis.

Respond with ONLY a JSON object of the form
{"skills": {"communication": <0-10>, "problemSolving": <0-10>}, "gaps": [<string>, ...]}.
No prose, no code fences."""


def _build_metrics_prompt(analysis: TaggedPayload, feedback: Optional[List[str]] = None) -> str:
    """Build the user prompt for the metrics calculator."""
    return (
        "Given the following analysis of an interview transcript, calculate performance metrics:\n"
        '- Assign scores (0-10) for "communication" and "problemSolving" based on the '
        "patterns, strengths and weaknesses.\n"
        "- Identify skill gaps (areas needing improvement) as an array of strings.\n\n"
        f"Analysis: {json.dumps(analysis['parsed'])}"
        f"{feedback_block(feedback)}"
    )


class MetricsCalculator:
    """LLM-backed MetricsCalculator collaborator."""

    def __init__(self, model_name: str = METRICS_MODEL) -> None:
        self.model_name = model_name

    async def run(self, analysis: TaggedPayload, feedback: Optional[List[str]] = None) -> TaggedPayload:
        llm = get_llm(self.model_name, temperature=0.2)
        response = await llm.ainvoke(
            [
                SystemMessage(content=_SYSTEM_PROMPT),
                HumanMessage(content=_build_metrics_prompt(analysis, feedback)),
            ]
        )
        return make_payload(METRICS, parse_model_json(response.content, MetricsOutput))
