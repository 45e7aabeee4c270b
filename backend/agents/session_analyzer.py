"""
Session Analyzer — first stage: reads the interview transcript.

Identifies speaking patterns, strengths and weaknesses. On revision rounds it
receives every issue the Quality Judge raised and must address all of them.
"""

from typing import List, Optional

from langchain_core.messages import HumanMessage, SystemMessage

from agents.llm import feedback_block, get_llm, parse_model_json
from config import ANALYZER_MODEL
from models.payload import make_payload
from models.schemas import AnalysisOutput
from state import ANALYSIS, TaggedPayload


_SYSTEM_PROMPT = """You are the SessionAnalyzer, responsible for analyzing interview transcripts.
Always keep the assessment balanced: even strong candidates have areas for improvement,
and even weak candidates have some strengths. Support every claim with the transcript.

Respond with ONLY a JSON object, no prose, no code fences:
{"patterns": [<string>], "strengths": [<string>], "weaknesses": [<string>],
 "coreCompetencies": {"<competency>": {"score": <1-10>, "strengths": [<string>],
     "weaknesses": [<string>], "developmentAreas": [<string>],
     "evidenceCount": <number of quotes cited for it>, "confidence": <1-10>}},
 "evidenceByCompetency": {"<competency>": [{"quote": <verbatim transcript text>,
     "analysis": <string>, "strength": <true|false>}]}}

Assess these competencies: communication, problemSolving, structuredThinking,
quantitativeSkills, businessAcumen, leadership. Only quote words that appear in the
transcript."""


def _build_analyzer_prompt(transcript: str, feedback: Optional[List[str]] = None) -> str:
    """Build the user prompt for the analyzer."""
    return (
        "Analyze the following interview transcript and identify:\n"
        "- Patterns (e.g. filler words, pacing, repetition)\n"
        "- Strengths (e.g. clarity, confidence, detail)\n"
        "- Weaknesses (e.g. hesitation, vagueness, lack of structure)\n"
        "- A score per core competency, backed by direct quotes\n\n"
        f'Transcript: "{transcript}"'
        f"{feedback_block(feedback)}"
    )


class SessionAnalyzer:
    """LLM-backed Analyzer collaborator."""

    def __init__(self, model_name: str = ANALYZER_MODEL) -> None:
        self.model_name = model_name

    async def run(self, transcript: str, feedback: Optional[List[str]] = None) -> TaggedPayload:
        llm = get_llm(self.model_name, temperature=0.3)
        response = await llm.ainvoke(
            [
                SystemMessage(content=_SYSTEM_PROMPT),
                HumanMessage(content=_build_analyzer_prompt(transcript, feedback)),
            ]
        )
        return make_payload(ANALYSIS, parse_model_json(response.content, AnalysisOutput))
