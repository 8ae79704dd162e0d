"""
Feedback sentiment API route.
Turns teacher feedback into tone, themes and next steps for the student.
One analysis is kept per student; each call replaces the previous one.
"""
import logging
from flask import Blueprint, request, jsonify

from classroom_ai.errors import PortalError
from classroom_ai.routes.helpers import get_analysis_service, optional_id

sentiment_bp = Blueprint('sentiment', __name__)
logger = logging.getLogger(__name__)


@sentiment_bp.route('/analyze-feedback-sentiment', methods=['POST'])
def analyze_feedback_sentiment():
    """Body: {studentId, feedbackText}"""
    try:
        data = request.get_json(silent=True) or {}
        feedback_text = data.get('feedbackText')
        return jsonify(get_analysis_service().analyze_feedback_sentiment(
            optional_id(data.get('studentId')),
            feedback_text if isinstance(feedback_text, str) else None,
        ))

    except PortalError as e:
        logger.error("Sentiment analysis failed: %s", e)
        return jsonify({"success": False, "error": str(e)}), e.http_status
    except Exception as e:
        logger.exception("Unexpected error in sentiment analysis")
        return jsonify({"success": False, "error": str(e)}), 500
