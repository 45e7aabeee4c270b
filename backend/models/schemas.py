"""
Output schemas for the default LLM collaborators.

The pipeline core treats parsed payloads as opaque; these schemas are only
used by the agents in agents/ to reject malformed model output.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class CompetencyAssessment(BaseModel):
    score: float = Field(ge=1, le=10)
    strengths: List[str] = Field(default_factory=list)
    weaknesses: List[str] = Field(default_factory=list)
    developmentAreas: List[str] = Field(default_factory=list)
    # Must equal the number of quotes under evidenceByCompetency for this competency
    evidenceCount: int = Field(default=0, ge=0)
    confidence: float = Field(default=5, ge=1, le=10)


class EvidenceItem(BaseModel):
    quote: str
    analysis: str = ""
    strength: bool = True
    competency: Optional[str] = None
    impact: Optional[str] = None


class AnalysisOutput(BaseModel):
    patterns: List[str] = Field(default_factory=list)
    strengths: List[str]
    weaknesses: List[str]
    coreCompetencies: Dict[str, CompetencyAssessment] = Field(default_factory=dict)
    evidenceByCompetency: Dict[str, List[EvidenceItem]] = Field(default_factory=dict)


class SkillScores(BaseModel):
    communication: float = Field(ge=0, le=10)
    problemSolving: float = Field(ge=0, le=10)


class MetricsOutput(BaseModel):
    skills: SkillScores
    gaps: List[str]


class ReportOutput(BaseModel):
    humanReadable: str = Field(min_length=1)
    structuredData: Dict[str, Any]


class JudgeVerdict(BaseModel):
    """What a judge returns. Also used by the quality gate to validate verdicts."""

    score: float
    passed: bool
    issues: List[str] = Field(default_factory=list)
    # None means "not reported"; the gate then counts "CRITICAL:" issues
    critical_issues: Optional[int] = Field(default=None, ge=0)
