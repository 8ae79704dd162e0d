"""
Best-effort structured decoding of model replies.

Models wrap their JSON in prose or markdown fences often enough that the
reply cannot be handed to json.loads directly. extract_json_object finds the
first embedded object and reports success or failure as a value; the
parse_* functions never raise and fill defaults for whatever is missing.
"""
import json
import logging
import math
from typing import Any, Dict, Optional

from classroom_ai.models import (
    DIMENSION_MAX_SCORE,
    DIMENSIONS,
    EMOTIONAL_TONES,
    PRIORITIES,
    SENTIMENTS,
    CriterionScore,
    GradeSource,
    GradingResult,
    PlagiarismResult,
    SentimentAnalysis,
    SuspiciousSection,
)
from classroom_ai.services.fallback import create_fallback_sentiment
from classroom_ai.services.prompt_builder import criterion_score_key

logger = logging.getLogger(__name__)

DEFAULT_SCORE_FRACTION = 0.8
DEFAULT_DIMENSION_SCORE = 20


class DecodeResult:
    """Outcome of pulling a JSON object out of free-form text."""

    def __init__(self, payload: Optional[Dict[str, Any]] = None, error: str = ""):
        self.payload = payload
        self.error = error

    @property
    def ok(self) -> bool:
        return self.payload is not None

    @classmethod
    def success(cls, payload):
        return cls(payload=payload)

    @classmethod
    def failure(cls, error):
        return cls(error=error)

    def __repr__(self):
        return f"DecodeResult(ok={self.ok}, error={self.error!r})"


def _balanced_object_end(text: str, start: int) -> int:
    """Index of the brace closing the object opened at ``start``, or -1."""
    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == '\\':
                escaped = True
            elif ch == '"':
                in_string = False
        elif ch == '"':
            in_string = True
        elif ch == '{':
            depth += 1
        elif ch == '}':
            depth -= 1
            if depth == 0:
                return i
    return -1


def _loads_object(candidate: str) -> Optional[Dict[str, Any]]:
    try:
        value = json.loads(candidate)
    except ValueError:
        return None
    return value if isinstance(value, dict) else None


def extract_json_object(text: Optional[str]) -> DecodeResult:
    """
    Find and decode the first JSON object embedded in ``text``.

    For each open brace, the structurally matching close brace is tried
    first; if that span does not decode, the greedy span up to the last
    close brace is tried. Prose such as "{score}" ahead of the real object
    is skipped, but never the inside of a balanced span that failed.
    """
    if not text:
        return DecodeResult.failure("empty response")

    start = text.find('{')
    if start == -1:
        return DecodeResult.failure("no JSON object found in response")

    last = text.rfind('}')
    while start != -1:
        candidates = []
        end = _balanced_object_end(text, start)
        if end != -1:
            candidates.append(text[start:end + 1])
        if last > start and (end == -1 or last != end):
            candidates.append(text[start:last + 1])

        for candidate in candidates:
            payload = _loads_object(candidate)
            if payload is not None:
                return DecodeResult.success(payload)
        start = text.find('{', end + 1 if end != -1 else start + 1)
    return DecodeResult.failure("embedded JSON object could not be decoded")


# =============================================================================
# FIELD COERCION
# =============================================================================

def _number(value) -> Optional[float]:
    """Coerce a model-supplied number; None when absent or not numeric."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip().rstrip('%'))
        except ValueError:
            return None
    else:
        return None
    return None if math.isnan(number) or math.isinf(number) else number


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _first(payload: Dict[str, Any], *keys):
    for key in keys:
        if key in payload and payload[key] is not None:
            return payload[key]
    return None


def _string_list(value) -> list:
    if isinstance(value, str):
        return [value] if value.strip() else []
    if not isinstance(value, list):
        return []
    return [str(item).strip() for item in value if item is not None and str(item).strip()]


def _tidy(score: float):
    """Whole-number scores stay ints so they persist cleanly."""
    return int(score) if float(score).is_integer() else round(score, 2)


# =============================================================================
# GRADING
# =============================================================================

def default_grading_result(raw: str, max_points: float) -> GradingResult:
    """Neutral result used when the reply carries no usable JSON."""
    return GradingResult(
        overall_score=math.floor(round(max_points * DEFAULT_SCORE_FRACTION, 6)),
        content_score=DEFAULT_DIMENSION_SCORE,
        structure_score=DEFAULT_DIMENSION_SCORE,
        grammar_score=DEFAULT_DIMENSION_SCORE,
        creativity_score=DEFAULT_DIMENSION_SCORE,
        feedback=raw or "No feedback provided",
        strengths=[],
        improvements=[],
        rubric_breakdown=None,
        source=GradeSource.AI,
        degraded=True,
    )


def _rubric_breakdown(payload, criteria):
    raw_breakdown = _first(payload, 'rubric_breakdown', 'rubricBreakdown')
    if not isinstance(raw_breakdown, dict):
        raw_breakdown = {}
    # Case-insensitive lookup; models sometimes re-case criterion names
    lowered = {str(k).strip().lower(): v for k, v in raw_breakdown.items()}

    breakdown = {}
    for criterion in criteria:
        entry = raw_breakdown.get(criterion.name)
        if entry is None:
            entry = lowered.get(criterion.name.strip().lower())
        score = None
        feedback = ""
        if isinstance(entry, dict):
            score = _number(entry.get('score'))
            feedback = str(entry.get('feedback') or "")
        elif entry is not None:
            score = _number(entry)
        if score is None:
            score = _number(payload.get(criterion_score_key(criterion.name)))
        breakdown[criterion.name] = CriterionScore(
            score=_tidy(clamp(score or 0, 0, criterion.max_points)),
            max_points=criterion.max_points,
            feedback=feedback,
        )
    return breakdown


def parse_grading_response(raw: str, max_points: float, criteria=()) -> GradingResult:
    """
    Turn a grading reply into a GradingResult.

    Every score is clamped into its range. Missing or non-numeric fields take
    the same neutral defaults as an unparseable reply.
    """
    decoded = extract_json_object(raw)
    if not decoded.ok:
        logger.warning("Grading reply had no usable JSON (%s), using defaults", decoded.error)
        return default_grading_result(raw, max_points)

    payload = decoded.payload
    defaults = default_grading_result(raw, max_points)

    overall = _number(_first(payload, 'overall_score', 'overallScore'))
    if overall is None:
        overall = defaults.overall_score

    dimension_scores = {}
    for dimension in DIMENSIONS:
        value = _number(_first(payload, f"{dimension}_score", f"{dimension}Score"))
        if value is None:
            value = DEFAULT_DIMENSION_SCORE
        dimension_scores[dimension] = _tidy(clamp(value, 0, DIMENSION_MAX_SCORE))

    feedback = _first(payload, 'detailed_feedback', 'feedback')
    criteria = list(criteria)

    return GradingResult(
        overall_score=_tidy(clamp(overall, 0, max_points)),
        content_score=dimension_scores['content'],
        structure_score=dimension_scores['structure'],
        grammar_score=dimension_scores['grammar'],
        creativity_score=dimension_scores['creativity'],
        feedback=str(feedback) if feedback else "No feedback provided",
        strengths=_string_list(payload.get('strengths')),
        improvements=_string_list(payload.get('improvements')),
        rubric_breakdown=_rubric_breakdown(payload, criteria) if criteria else None,
        source=GradeSource.AI,
        degraded=False,
    )


# =============================================================================
# PLAGIARISM
# =============================================================================

def _suspicious_sections(value):
    sections = []
    if not isinstance(value, list):
        return sections
    for item in value:
        if isinstance(item, dict):
            excerpt = _first(item, 'excerpt', 'text', 'section')
            if excerpt:
                sections.append(SuspiciousSection(excerpt=str(excerpt), reason=str(item.get('reason') or "")))
        elif isinstance(item, str) and item.strip():
            sections.append(SuspiciousSection(excerpt=item.strip()))
    return sections


def parse_plagiarism_response(raw: str) -> PlagiarismResult:
    """Turn a plagiarism reply into a PlagiarismResult; degraded when no JSON was found."""
    decoded = extract_json_object(raw)
    if not decoded.ok:
        logger.warning("Plagiarism reply had no usable JSON (%s)", decoded.error)
        return PlagiarismResult(risk_score=0, overall_assessment=raw or "", degraded=True)

    payload = decoded.payload
    risk = _number(_first(payload, 'riskScore', 'risk_score'))
    return PlagiarismResult(
        risk_score=int(round(clamp(risk or 0, 0, 100))),
        suspicious_sections=_suspicious_sections(_first(payload, 'suspiciousSections', 'suspicious_sections')),
        recommendations=_string_list(payload.get('recommendations')),
        overall_assessment=str(_first(payload, 'overallAssessment', 'overall_assessment') or ""),
    )


# =============================================================================
# SENTIMENT
# =============================================================================

def _choice(value, allowed, default):
    value = str(value or "").strip().lower()
    return value if value in allowed else default


def parse_sentiment_response(raw: str, feedback_text: str) -> SentimentAnalysis:
    """
    Turn a sentiment reply into a SentimentAnalysis.

    A reply without JSON falls back to the keyword analysis of the feedback.
    """
    decoded = extract_json_object(raw)
    if not decoded.ok:
        logger.warning("Sentiment reply had no usable JSON (%s), using keyword analysis", decoded.error)
        return create_fallback_sentiment(feedback_text)

    payload = decoded.payload
    confidence = _number(_first(payload, 'confidenceScore', 'confidence_score'))
    return SentimentAnalysis(
        sentiment=_choice(payload.get('sentiment'), SENTIMENTS, "neutral"),
        confidence_score=int(round(clamp(confidence if confidence is not None else 50, 0, 100))),
        key_themes=_string_list(_first(payload, 'keyThemes', 'key_themes')),
        focus_areas=_string_list(_first(payload, 'focusAreas', 'focus_areas')),
        encouragements=_string_list(payload.get('encouragements')),
        personalized_message=str(_first(payload, 'personalizedMessage', 'personalized_message') or ""),
        emotional_tone=_choice(_first(payload, 'emotionalTone', 'emotional_tone'), EMOTIONAL_TONES, "neutral"),
        improvement_priority=_choice(
            _first(payload, 'improvementPriority', 'improvement_priority'), PRIORITIES, "medium"
        ),
    )
