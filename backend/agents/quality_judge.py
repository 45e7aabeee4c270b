"""
Quality Judge — scores one stage's output against that stage's quality bar.

The model must answer with a JSON verdict. Anything else raises EvalError:
an unreadable evaluation is never treated as a pass.
"""

import json
from typing import Any, Dict

from langchain_core.messages import HumanMessage, SystemMessage

from agents.llm import get_llm, parse_model_json
from config import JUDGE_MODEL
from errors import EvalError, ParseError
from models.schemas import JudgeVerdict
from state import ANALYSIS, METRICS, REPORT, TaggedPayload


_SYSTEM_PROMPT = """You are the Quality Judge responsible for ensuring all outputs meet rigorous
professional standards. Do not approve outputs that lack sufficient evidence or
have inflated scores.

You must respond with ONLY a JSON object, no deviations:
{"score": <number 0-10>, "passed": <true if score >= 8>, "issues": [<string>, ...],
 "critical_issues": <number of issues that make the output unusable>}

Write each issue as one specific, actionable point. Prefix an issue with
"CRITICAL:" when it makes the output unusable.

Scoring criteria:
- 0-3: Poor, unsupported or incoherent
- 4-6: Adequate but needs significant improvement
- 7:   Good but has notable weaknesses
- 8-9: High quality, minor improvements possible
- 10:  Exceptional"""

_RUBRICS: Dict[str, str] = {
    ANALYSIS: (
        "Every strength and weakness must be supported by the transcript. "
        "The assessment must be balanced: both strengths AND weaknesses identified."
    ),
    METRICS: (
        "Scores must follow from the analysis, not be inflated. "
        "Skill gaps must be specific to the evidence, not generic."
    ),
    REPORT: (
        "Findings must cite the metrics. Recommendations must be tied to the "
        "skill gaps. No redundant sections."
    ),
}


def _build_judge_prompt(kind: str, payload: TaggedPayload) -> str:
    return (
        f"Evaluate this {kind} output.\n\n"
        f"Quality bar: {_RUBRICS[kind]}\n\n"
        f"{kind} output:\n{json.dumps(payload['parsed'], indent=2)}"
    )


class QualityJudge:
    """LLM-backed Judge collaborator."""

    def __init__(self, model_name: str = JUDGE_MODEL) -> None:
        self.model_name = model_name

    async def evaluate(self, kind: str, payload: TaggedPayload, source_stage: str) -> Dict[str, Any]:
        if kind not in _RUBRICS:
            raise EvalError(source_stage, f"no rubric for {kind} output")

        llm = get_llm(self.model_name, temperature=0.2, max_tokens=1024)
        response = await llm.ainvoke(
            [
                SystemMessage(content=_SYSTEM_PROMPT),
                HumanMessage(content=_build_judge_prompt(kind, payload)),
            ]
        )
        try:
            return parse_model_json(response.content, JudgeVerdict)
        except ParseError as exc:
            raise EvalError(source_stage, exc.message) from exc
