"""Pydantic models for grading, plagiarism and sentiment results."""

from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field


# Generic scoring dimensions used when an assignment has no rubric
DIMENSION_MAX_SCORE = 25
DIMENSIONS = ("content", "structure", "grammar", "creativity")

HIGH_RISK_THRESHOLD = 70
MEDIUM_RISK_THRESHOLD = 30

SENTIMENTS = ("positive", "neutral", "negative")
EMOTIONAL_TONES = ("constructive", "critical", "supportive", "neutral")
PRIORITIES = ("high", "medium", "low")

# Whole-number scores stay ints on the wire
Score = Union[int, float]


class GradingRequest(BaseModel):
    """Inbound body of POST /ai-grade-submission."""
    submission_id: str
    assignment_id: Optional[str] = None
    rubric_id: Optional[str] = None


class Assignment(BaseModel):
    id: str
    title: str = ""
    course_name: str = ""
    instructions: Optional[str] = None
    max_points: Score = 100
    rubric_id: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Assignment":
        return cls(
            id=str(row["id"]),
            title=row.get("title") or "",
            course_name=row.get("course_name") or "",
            instructions=row.get("instructions"),
            # max_points is nullable in the assignments table
            max_points=row.get("max_points") or 100,
            rubric_id=row.get("rubric_id"),
        )


class Submission(BaseModel):
    id: str
    assignment_id: str
    student_id: str = ""
    file_url: Optional[str] = None
    file_name: Optional[str] = None
    status: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Submission":
        return cls(
            id=str(row["id"]),
            assignment_id=str(row.get("assignment_id") or ""),
            student_id=str(row.get("student_id") or ""),
            file_url=row.get("file_url"),
            file_name=row.get("file_name"),
            status=row.get("status"),
        )


class RubricCriterion(BaseModel):
    """Single teacher-defined scoring dimension."""
    id: Optional[str] = None
    name: str
    description: Optional[str] = None
    max_points: Score
    order_index: int = 0


class Rubric(BaseModel):
    id: str
    name: str = ""
    description: Optional[str] = None
    total_points: Optional[float] = None
    criteria: List[RubricCriterion] = Field(default_factory=list)

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Rubric":
        criteria = [
            RubricCriterion(
                id=str(c["id"]) if c.get("id") is not None else None,
                name=c["name"],
                description=c.get("description"),
                max_points=c.get("max_points") or 0,
                order_index=c.get("order_index") or 0,
            )
            for c in (row.get("rubric_criteria") or [])
        ]
        criteria.sort(key=lambda c: c.order_index)
        return cls(
            id=str(row["id"]),
            name=row.get("name") or "",
            description=row.get("description"),
            total_points=row.get("total_points"),
            criteria=criteria,
        )


class GradeSource(str, Enum):
    """Where a grade came from. Fallback grades are approximate."""
    AI = "ai"
    FALLBACK = "fallback"


class CriterionScore(BaseModel):
    score: Score
    max_points: Score
    feedback: str = ""


class GradingResult(BaseModel):
    """Outcome of one grading run for one submission."""
    overall_score: Score
    content_score: Score
    structure_score: Score
    grammar_score: Score
    creativity_score: Score
    feedback: str
    strengths: List[str] = Field(default_factory=list)
    improvements: List[str] = Field(default_factory=list)
    rubric_breakdown: Optional[Dict[str, CriterionScore]] = None
    source: GradeSource = GradeSource.AI
    # True when the model reply held no usable JSON and defaults were filled in
    degraded: bool = False

    @property
    def is_fallback(self) -> bool:
        return self.source is GradeSource.FALLBACK

    def breakdown_dict(self) -> Optional[Dict[str, Dict[str, Any]]]:
        if self.rubric_breakdown is None:
            return None
        return {
            name: {"score": entry.score, "maxPoints": entry.max_points, "feedback": entry.feedback}
            for name, entry in self.rubric_breakdown.items()
        }


class SuspiciousSection(BaseModel):
    excerpt: str
    reason: str = ""

    def to_dict(self) -> Dict[str, str]:
        # The portal UI renders section.text
        return {"excerpt": self.excerpt, "text": self.excerpt, "reason": self.reason}


def classify_risk(risk_score: float) -> str:
    """Map a 0-100 plagiarism risk score onto high/medium/low."""
    if risk_score > HIGH_RISK_THRESHOLD:
        return "high"
    if risk_score > MEDIUM_RISK_THRESHOLD:
        return "medium"
    return "low"


class PlagiarismResult(BaseModel):
    risk_score: int = Field(ge=0, le=100)
    suspicious_sections: List[SuspiciousSection] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    overall_assessment: str = ""
    degraded: bool = False

    @property
    def risk_level(self) -> str:
        return classify_risk(self.risk_score)

    @property
    def is_plagiarized(self) -> bool:
        return self.risk_score > HIGH_RISK_THRESHOLD

    def to_dict(self) -> Dict[str, Any]:
        return {
            "riskScore": self.risk_score,
            "riskLevel": self.risk_level,
            "suspiciousSections": [s.to_dict() for s in self.suspicious_sections],
            "recommendations": list(self.recommendations),
            "overallAssessment": self.overall_assessment,
        }


class SentimentAnalysis(BaseModel):
    sentiment: str = "neutral"
    confidence_score: int = Field(default=50, ge=0, le=100)
    key_themes: List[str] = Field(default_factory=list)
    focus_areas: List[str] = Field(default_factory=list)
    encouragements: List[str] = Field(default_factory=list)
    personalized_message: str = ""
    emotional_tone: str = "neutral"
    improvement_priority: str = "medium"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sentiment": self.sentiment,
            "confidenceScore": self.confidence_score,
            "keyThemes": list(self.key_themes),
            "focusAreas": list(self.focus_areas),
            "encouragements": list(self.encouragements),
            "personalizedMessage": self.personalized_message,
            "emotionalTone": self.emotional_tone,
            "improvementPriority": self.improvement_priority,
        }
