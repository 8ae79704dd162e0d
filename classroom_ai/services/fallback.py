"""
Heuristic Fallbacks
===================
Local stand-ins for the AI provider.

create_fallback_grading is used when the provider stays unavailable after
retries; the grade it produces is tagged GradeSource.FALLBACK so the portal
can tell teachers it is approximate. create_fallback_sentiment covers a
sentiment reply that carried no JSON.

Both are deterministic: identical input gives identical output.
"""
import math
import re

from classroom_ai.models import GradeSource, GradingResult, SentimentAnalysis

# =============================================================================
# FALLBACK GRADING
# =============================================================================

BASE_FRACTION = 0.75
MIN_FRACTION = 0.60
MAX_FRACTION = 0.90
STRUCTURE_ADJUSTMENT = 0.05
LENGTH_ADJUSTMENT = 0.05
SHORT_SUBMISSION_WORDS = 150
LONG_SUBMISSION_WORDS = 500

STRUCTURE_MARKERS = ("Introduction", "Conclusion")

GRAMMAR_SCORE = 18
CONTENT_SCORE = 19
CREATIVITY_SCORE = 17
STRUCTURE_BASE_SCORE = 18
STRUCTURE_DELTA = 2

FALLBACK_NOTE = (
    "This grade was generated using fallback logic due to AI service being temporarily unavailable."
)


def content_signals(content: str) -> dict:
    """Local signals the fallback grade is computed from."""
    stripped = (content or "").strip()
    return {
        "length": len(stripped),
        "word_count": len(stripped.split()) if stripped else 0,
        "has_structure": any(marker in stripped for marker in STRUCTURE_MARKERS),
    }


def fallback_score_fraction(signals: dict) -> float:
    """Fraction of max points awarded, always within [MIN_FRACTION, MAX_FRACTION]."""
    fraction = BASE_FRACTION
    fraction += STRUCTURE_ADJUSTMENT if signals["has_structure"] else -STRUCTURE_ADJUSTMENT
    if signals["word_count"] < SHORT_SUBMISSION_WORDS:
        fraction -= LENGTH_ADJUSTMENT
    elif signals["word_count"] >= LONG_SUBMISSION_WORDS:
        fraction += LENGTH_ADJUSTMENT
    return max(MIN_FRACTION, min(MAX_FRACTION, round(fraction, 4)))


def create_fallback_grading(assignment, content: str) -> GradingResult:
    """Approximate grade from text length, word count and structure markers."""
    signals = content_signals(content)
    has_structure = signals["has_structure"]
    overall = math.floor(round(assignment.max_points * fallback_score_fraction(signals), 6))

    structure_note = (
        "The submission appears to have good structural organization."
        if has_structure else
        "The submission could benefit from clearer structural organization."
    )
    feedback = (
        "This submission demonstrates understanding of the assignment requirements. "
        "The work shows adequate effort in addressing the topic with a content length of "
        f"approximately {signals['word_count']} words. {structure_note} "
        "This grade was generated using automated analysis due to AI service being temporarily unavailable."
    )

    return GradingResult(
        overall_score=overall,
        content_score=CONTENT_SCORE,
        structure_score=STRUCTURE_BASE_SCORE + (STRUCTURE_DELTA if has_structure else -STRUCTURE_DELTA),
        grammar_score=GRAMMAR_SCORE,
        creativity_score=CREATIVITY_SCORE,
        feedback=feedback,
        strengths=[
            "Addresses the assignment requirements",
            "Demonstrates effort in content development",
            "Shows organizational structure" if has_structure else "Includes relevant content",
            "Meets minimum length requirements",
        ],
        improvements=[
            "Could benefit from more detailed analysis",
            "Consider adding more supporting evidence",
            "Enhance clarity of key arguments",
            "Review for grammar and style improvements",
        ],
        rubric_breakdown=None,
        source=GradeSource.FALLBACK,
    )


# =============================================================================
# FALLBACK SENTIMENT
# =============================================================================

POSITIVE_WORDS = ('good', 'excellent', 'great', 'well done', 'impressive', 'clear', 'strong')
NEGATIVE_WORDS = ('poor', 'weak', 'unclear', 'needs improvement', 'lacking', 'insufficient')
IMPROVEMENT_WORDS = ('improve', 'focus', 'work on', 'develop', 'strengthen', 'enhance')


def _count_phrases(text, phrases):
    # Leading word boundary: "clear" must not match inside "unclear", "improve" may match "improvement"
    return sum(1 for phrase in phrases if re.search(r'\b' + re.escape(phrase), text))


def create_fallback_sentiment(feedback_text: str) -> SentimentAnalysis:
    """Keyword-based sentiment read of teacher feedback."""
    text = (feedback_text or "").lower()
    positive = _count_phrases(text, POSITIVE_WORDS)
    negative = _count_phrases(text, NEGATIVE_WORDS)
    improvement = _count_phrases(text, IMPROVEMENT_WORDS)

    if positive > negative:
        sentiment = "positive"
        message = ("Your teacher provided positive feedback! Keep up the good work and focus on "
                   "maintaining this quality.")
    elif negative > positive:
        sentiment = "negative"
        message = ("Your teacher identified areas for improvement. Focus more on the specific points "
                   "mentioned to enhance your work.")
    else:
        sentiment = "neutral"
        message = ("Your teacher provided balanced feedback. Focus on strengthening the areas mentioned "
                   "while maintaining your current approach.")

    if positive > negative:
        tone = "supportive"
    elif improvement > 0:
        tone = "constructive"
    else:
        tone = "neutral"

    if negative > 1:
        priority = "high"
    elif improvement > 0:
        priority = "medium"
    else:
        priority = "low"

    return SentimentAnalysis(
        sentiment=sentiment,
        confidence_score=min(max((positive + negative) * 20, 30), 85),
        key_themes=["Academic Writing", "Content Quality", "Structure"],
        focus_areas=(["Focus on areas mentioned for improvement"] if improvement > 0
                     else ["Continue current approach"]),
        encouragements=(["Teacher noted positive aspects"] if positive > 0
                        else ["Room for growth identified"]),
        personalized_message=message,
        emotional_tone=tone,
        improvement_priority=priority,
    )
