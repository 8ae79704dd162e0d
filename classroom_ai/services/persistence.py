"""
Supabase persistence for the analysis endpoints.

Reads assignments, submissions, rubrics and submitted files; writes grades,
criteria grades, plagiarism checks and sentiment analyses. Grades and
plagiarism checks are append-only history; sentiment analysis keeps one
current row per student.

Submission status moves submitted -> plagiarism_checked -> graded. Every
write re-applies its target state, so re-running a check is idempotent.
"""
import json
import logging
from datetime import datetime, timezone

from classroom_ai.errors import ConfigurationError, NotFoundError, PersistenceError
from classroom_ai.models import Assignment, Rubric, Submission
from classroom_ai.services.text_extraction import storage_path_for

logger = logging.getLogger(__name__)

STATUS_SUBMITTED = "submitted"
STATUS_PLAGIARISM_CHECKED = "plagiarism_checked"
STATUS_GRADED = "graded"

RUBRIC_SELECT = "*, rubric_criteria (id, name, description, max_points, order_index)"


def create_supabase_client(url, key):
    """Create a Supabase client with the service role key (full table access)."""
    if not url or not key:
        raise ConfigurationError(
            "Supabase credentials not configured. Check SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY in .env"
        )
    from supabase import create_client
    return create_client(url, key)


def _now():
    return datetime.now(timezone.utc).isoformat()


class SupabaseStore:
    """Table and storage access for one Supabase project."""

    def __init__(self, client, bucket="assignment-files"):
        self.client = client
        self.bucket = bucket

    @classmethod
    def from_config(cls, config):
        return cls(create_supabase_client(config.supabase_url, config.supabase_key), bucket=config.storage_bucket)

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------

    def _read(self, query, what):
        try:
            result = query.execute()
        except Exception as e:
            logger.error("Failed to load %s: %s", what, e)
            raise PersistenceError(f"Failed to load {what}: {e}") from e
        return result.data or []

    def _write(self, query, what):
        try:
            result = query.execute()
        except Exception as e:
            logger.error("Failed to store %s: %s", what, e)
            raise PersistenceError(f"Failed to store {what}: {e}") from e
        return result.data or []

    def _get_one(self, table, record_id, label, select='*'):
        rows = self._read(
            self.client.table(table).select(select).eq('id', record_id).limit(1),
            f"{label} {record_id}",
        )
        if not rows:
            raise NotFoundError(f"{label.capitalize()} not found")
        return rows[0]

    # ------------------------------------------------------------------
    # reads
    # ------------------------------------------------------------------

    def get_assignment(self, assignment_id):
        return Assignment.from_row(self._get_one('assignments', assignment_id, 'assignment'))

    def get_submission(self, submission_id):
        return Submission.from_row(self._get_one('submissions', submission_id, 'submission'))

    def get_rubric(self, rubric_id):
        """Rubric with its criteria sorted by order_index."""
        return Rubric.from_row(self._get_one('rubrics', rubric_id, 'rubric', select=RUBRIC_SELECT))

    def download_submission_file(self, submission):
        """Raw bytes of the submitted file from the storage bucket."""
        path = storage_path_for(submission, self.bucket)
        logger.info("Downloading file from storage: %s", path)
        try:
            data = self.client.storage.from_(self.bucket).download(path)
        except Exception as e:
            logger.error("Error downloading file %s: %s", path, e)
            raise NotFoundError(f"Failed to download file: {e}") from e
        # Zero-byte files are returned as-is; extract_text reports them as empty
        return data

    # ------------------------------------------------------------------
    # grading writes
    # ------------------------------------------------------------------

    def insert_grade(self, submission_id, rubric_id, result, raw_review):
        """Append a submission_grades row and return its id."""
        rows = self._write(
            self.client.table('submission_grades').insert({
                "submission_id": submission_id,
                "rubric_id": rubric_id,
                "ai_review": raw_review,
                "ai_grade": result.overall_score,
                "ai_feedback": result.feedback,
                "strengths": result.strengths,
                "improvements": result.improvements,
                "grammar_score": result.grammar_score,
                "content_score": result.content_score,
                "structure_score": result.structure_score,
                "creativity_score": result.creativity_score,
                "overall_score": result.overall_score,
                "graded_at": _now(),
            }),
            "grade",
        )
        if not rows:
            raise PersistenceError("Failed to store grade: no row returned")
        return rows[0].get('id')

    def insert_criteria_grades(self, grade_id, rubric, result):
        """One criteria_grades row per rubric criterion that has an id."""
        if not result.rubric_breakdown:
            return []
        rows = []
        for criterion in rubric.criteria:
            entry = result.rubric_breakdown.get(criterion.name)
            if criterion.id is None or entry is None:
                continue
            rows.append({
                "submission_grade_id": grade_id,
                "criteria_id": criterion.id,
                "ai_score": entry.score,
                "ai_comment": entry.feedback,
            })
        if not rows:
            return []
        return self._write(self.client.table('criteria_grades').insert(rows), "criteria grades")

    def mark_graded(self, submission_id, result):
        """Copy the grade onto the submission for quick display."""
        self._write(
            self.client.table('submissions').update({
                "status": STATUS_GRADED,
                "grade": result.overall_score,
                "feedback": result.feedback,
            }).eq('id', submission_id),
            "submission status",
        )

    # ------------------------------------------------------------------
    # plagiarism writes
    # ------------------------------------------------------------------

    def save_plagiarism_result(self, submission, result):
        """Record a plagiarism check and copy its score onto the submission."""
        checked_at = _now()
        report = result.to_dict()
        self._write(
            self.client.table('plagiarism_checks').insert({
                "submission_id": submission.id,
                "risk_score": result.risk_score,
                "risk_level": result.risk_level,
                "report": report,
                "checked_at": checked_at,
            }),
            "plagiarism check",
        )

        # A graded submission stays graded; plagiarism_checked precedes it
        status = STATUS_GRADED if submission.status == STATUS_GRADED else STATUS_PLAGIARISM_CHECKED
        self._write(
            self.client.table('submissions').update({
                "plagiarism_score": result.risk_score,
                "plagiarism_report": report,
                "status": status,
                "teacher_comments": json.dumps({
                    "plagiarism_checked": True,
                    "plagiarism_score": result.risk_score,
                    "is_plagiarized": result.is_plagiarized,
                    "checked_at": checked_at,
                }),
            }).eq('id', submission.id),
            "plagiarism result",
        )
        return status

    # ------------------------------------------------------------------
    # sentiment writes
    # ------------------------------------------------------------------

    def upsert_sentiment(self, student_id, analysis):
        """Replace the student's current analysis; returns the row id."""
        rows = self._write(
            self.client.table('student_feedback_analysis').upsert({
                "student_id": student_id,
                "sentiment_analysis": analysis.to_dict(),
                "feedback_count": 1,
                "analyzed_at": _now(),
            }, on_conflict='student_id'),
            "sentiment analysis",
        )
        return rows[0].get('id') if rows else None
