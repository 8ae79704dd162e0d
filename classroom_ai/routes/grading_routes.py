"""
Grading API route.
Grades a submission against its rubric (or four generic dimensions) with AI,
falling back to heuristic grading when the AI provider is unavailable.
"""
import logging
from flask import Blueprint, request, jsonify

from classroom_ai.errors import PortalError
from classroom_ai.models import GradingRequest
from classroom_ai.routes.helpers import get_analysis_service, optional_id

grading_bp = Blueprint('grading', __name__)
logger = logging.getLogger(__name__)


@grading_bp.route('/ai-grade-submission', methods=['POST'])
def ai_grade_submission():
    """
    Grade a submission.

    Body: {submissionId, assignmentId?, rubricId?}
    """
    try:
        data = request.get_json(silent=True) or {}
        grading_request = GradingRequest(
            submission_id=optional_id(data.get('submissionId')) or "",
            assignment_id=optional_id(data.get('assignmentId')),
            rubric_id=optional_id(data.get('rubricId')),
        )
        return jsonify(get_analysis_service().grade_submission(grading_request))

    except PortalError as e:
        logger.error("AI grading failed: %s", e)
        return jsonify({"success": False, "error": str(e)}), e.http_status
    except Exception as e:
        logger.exception("Unexpected error in AI grading")
        return jsonify({"success": False, "error": str(e)}), 500
