"""
Analysis Service
================
The three request flows behind the HTTP endpoints:

- grade_submission: rubric or four-dimension grading, with heuristic
  fallback when the AI provider stays unavailable
- check_plagiarism: plagiarism risk scan
- analyze_feedback_sentiment: teacher feedback read for one student

Each call reads its inputs, makes one gateway call and writes its results,
all sequentially. Nothing is cached between calls.
"""
import logging

from classroom_ai.errors import (
    InvalidRequestError,
    RetriesExhaustedError,
    UnparseableResponseError,
)
from classroom_ai.services.fallback import FALLBACK_NOTE, create_fallback_grading
from classroom_ai.services.prompt_builder import (
    build_grading_prompt,
    build_plagiarism_prompt,
    build_sentiment_prompt,
)
from classroom_ai.services.response_parser import (
    parse_grading_response,
    parse_plagiarism_response,
    parse_sentiment_response,
)
from classroom_ai.services.text_extraction import extract_text

logger = logging.getLogger(__name__)

GRADING_MAX_TOKENS = 2048
SENTIMENT_MAX_TOKENS = 1024


def _format_score(value):
    return f"{value:g}" if isinstance(value, float) else str(value)


class AnalysisService:
    """Runs the analysis flows against a store and an AI gateway."""

    def __init__(self, store, gateway):
        self.store = store
        self.gateway = gateway

    def _submission_text(self, submission):
        data = self.store.download_submission_file(submission)
        filename = submission.file_name or (submission.file_url or "").rsplit('/', 1)[-1]
        return extract_text(data, filename)

    # =========================================================================
    # GRADING
    # =========================================================================

    def grade_submission(self, request):
        """
        Grade one submission.

        Args:
            request: GradingRequest

        Returns:
            Response payload for POST /ai-grade-submission
        """
        if not request.submission_id:
            raise InvalidRequestError("Missing submissionId")

        logger.info("Starting AI grading for submission %s", request.submission_id)
        submission = self.store.get_submission(request.submission_id)
        assignment = self.store.get_assignment(request.assignment_id or submission.assignment_id)

        rubric = None
        rubric_id = request.rubric_id or assignment.rubric_id
        if rubric_id:
            rubric = self.store.get_rubric(rubric_id)
        criteria = rubric.criteria if rubric else []

        content = self._submission_text(submission)
        prompt = build_grading_prompt(assignment, content, rubric)

        try:
            raw_review = self.gateway.generate(prompt, max_output_tokens=GRADING_MAX_TOKENS)
        except RetriesExhaustedError as e:
            logger.warning("AI unavailable for submission %s, creating fallback grading: %s",
                           request.submission_id, e)
            result = create_fallback_grading(assignment, content)
            raw_review = result.feedback
        else:
            result = parse_grading_response(raw_review, assignment.max_points, criteria)
            if result.degraded:
                logger.warning("AI reply for submission %s was not valid JSON; defaults applied",
                               request.submission_id)

        grade_id = self.store.insert_grade(submission.id, rubric_id, result, raw_review)
        if rubric and not result.is_fallback:
            self.store.insert_criteria_grades(grade_id, rubric, result)
        self.store.mark_graded(submission.id, result)

        score_text = f"{_format_score(result.overall_score)}/{_format_score(assignment.max_points)}"
        payload = {
            "success": True,
            "gradeId": grade_id,
            "aiGrade": result.overall_score,
            "feedback": result.feedback,
            "strengths": result.strengths,
            "improvements": result.improvements,
            "rubricBreakdown": result.breakdown_dict(),
            "gradeSource": result.source.value,
        }
        if result.is_fallback:
            payload["message"] = (f"Fallback grading completed (AI service temporarily unavailable). "
                                  f"Score: {score_text}")
            payload["note"] = FALLBACK_NOTE
        else:
            payload["message"] = f"AI grading completed. Score: {score_text}"

        logger.info("Grading completed for submission %s (%s): %s",
                    submission.id, result.source.value, score_text)
        return payload

    # =========================================================================
    # PLAGIARISM
    # =========================================================================

    def check_plagiarism(self, submission_id):
        """
        Scan one submission for plagiarism indicators.

        There is no heuristic fallback here: provider exhaustion and replies
        without JSON are surfaced to the caller.
        """
        if not submission_id:
            raise InvalidRequestError("Missing submissionId")

        logger.info("Checking plagiarism for submission %s", submission_id)
        submission = self.store.get_submission(submission_id)
        content = self._submission_text(submission)

        raw = self.gateway.generate(build_plagiarism_prompt(content))
        result = parse_plagiarism_response(raw)
        if result.degraded:
            raise UnparseableResponseError("No valid JSON found in AI plagiarism response", body=raw)

        status = self.store.save_plagiarism_result(submission, result)
        logger.info("Plagiarism check completed for submission %s: risk %d (%s), status %s",
                    submission_id, result.risk_score, result.risk_level, status)
        return {
            "success": True,
            "plagiarismAnalysis": result.to_dict(),
        }

    # =========================================================================
    # FEEDBACK SENTIMENT
    # =========================================================================

    def analyze_feedback_sentiment(self, student_id, feedback_text):
        """Analyze teacher feedback and store it as the student's current analysis."""
        if not student_id or not feedback_text or not str(feedback_text).strip():
            raise InvalidRequestError("Missing studentId or feedbackText")

        logger.info("Analyzing feedback sentiment for student %s", student_id)
        raw = self.gateway.generate(build_sentiment_prompt(feedback_text), max_output_tokens=SENTIMENT_MAX_TOKENS)
        analysis = parse_sentiment_response(raw, feedback_text)

        analysis_id = self.store.upsert_sentiment(student_id, analysis)
        logger.info("Sentiment analysis stored for student %s (%s)", student_id, analysis.sentiment)
        return {
            "success": True,
            "sentimentAnalysis": analysis.to_dict(),
            "analysisId": analysis_id,
        }
