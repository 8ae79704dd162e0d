"""
Test: Heuristic fallbacks — fallback grading bounds, determinism, keyword sentiment.
"""
from classroom_ai.models import Assignment, GradeSource
from classroom_ai.services.fallback import (
    MAX_FRACTION,
    MIN_FRACTION,
    content_signals,
    create_fallback_grading,
    create_fallback_sentiment,
    fallback_score_fraction,
)


def _assignment(max_points=100):
    return Assignment(id="asg-1", title="Essay", course_name="English", max_points=max_points)


def _words(n, prefix=""):
    return prefix + " ".join(["word"] * n)


class TestContentSignals:
    def test_counts_words(self):
        signals = content_signals("  one two   three \n four ")
        assert signals["word_count"] == 4
        assert not signals["has_structure"]

    def test_structure_markers(self):
        assert content_signals("Introduction\nText")["has_structure"]
        assert content_signals("Text\nConclusion")["has_structure"]

    def test_empty(self):
        assert content_signals("")["word_count"] == 0


class TestFallbackFraction:
    def test_short_unstructured_is_lowest(self):
        assert fallback_score_fraction({"word_count": 10, "has_structure": False}) == 0.65

    def test_long_structured_is_highest(self):
        assert fallback_score_fraction({"word_count": 600, "has_structure": True}) == 0.85

    def test_always_within_bounds(self):
        for words in (0, 149, 150, 499, 500, 5000):
            for structured in (True, False):
                fraction = fallback_score_fraction({"word_count": words, "has_structure": structured})
                assert MIN_FRACTION <= fraction <= MAX_FRACTION


class TestFallbackGrading:
    def test_tagged_as_fallback(self):
        result = create_fallback_grading(_assignment(), _words(200))
        assert result.source is GradeSource.FALLBACK
        assert result.is_fallback
        assert result.rubric_breakdown is None

    def test_deterministic(self):
        content = _words(320, prefix="Introduction ")
        first = create_fallback_grading(_assignment(), content)
        second = create_fallback_grading(_assignment(), content)
        assert first == second

    def test_score_within_range_of_max_points(self):
        for max_points in (10, 47, 100, 250):
            for content in (_words(5), _words(300, "Conclusion "), _words(800)):
                score = create_fallback_grading(_assignment(max_points), content).overall_score
                assert 0.6 * max_points - 1 < score <= 0.9 * max_points

    def test_medium_structured_essay(self):
        result = create_fallback_grading(_assignment(), _words(300, prefix="Introduction "))
        assert result.overall_score == 80
        assert result.structure_score == 20
        assert "Shows organizational structure" in result.strengths

    def test_unstructured_structure_score(self):
        result = create_fallback_grading(_assignment(), _words(300))
        assert result.overall_score == 70
        assert result.structure_score == 16
        assert "clearer structural organization" in result.feedback

    def test_score_is_floored(self):
        # 0.8 * 47 = 37.6
        assert create_fallback_grading(_assignment(47), _words(300, "Introduction ")).overall_score == 37

    def test_fixed_dimension_scores(self):
        result = create_fallback_grading(_assignment(), _words(200))
        assert (result.content_score, result.grammar_score, result.creativity_score) == (19, 18, 17)


class TestFallbackSentiment:
    def test_positive(self):
        analysis = create_fallback_sentiment("Great job, excellent analysis and strong examples.")
        assert analysis.sentiment == "positive"
        assert analysis.emotional_tone == "supportive"
        assert analysis.confidence_score == 60
        assert analysis.encouragements == ["Teacher noted positive aspects"]

    def test_negative_with_improvements(self):
        analysis = create_fallback_sentiment("The argument is weak and unclear. Work on your thesis.")
        assert analysis.sentiment == "negative"
        assert analysis.emotional_tone == "constructive"
        assert analysis.improvement_priority == "high"
        assert analysis.focus_areas == ["Focus on areas mentioned for improvement"]

    def test_neutral_minimum_confidence(self):
        analysis = create_fallback_sentiment("Submitted on time.")
        assert analysis.sentiment == "neutral"
        assert analysis.confidence_score == 30
        assert analysis.improvement_priority == "low"

    def test_confidence_capped(self):
        text = "good excellent great well done impressive clear strong"
        assert create_fallback_sentiment(text).confidence_score == 85

    def test_clear_not_counted_inside_unclear(self):
        analysis = create_fallback_sentiment("unclear")
        assert analysis.sentiment == "negative"
