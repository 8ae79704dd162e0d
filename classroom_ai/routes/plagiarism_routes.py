"""
Plagiarism API route.
Scans a submission for copied passages, style shifts and missing citations.
"""
import logging
from flask import Blueprint, request, jsonify

from classroom_ai.errors import PortalError
from classroom_ai.routes.helpers import get_analysis_service, optional_id

plagiarism_bp = Blueprint('plagiarism', __name__)
logger = logging.getLogger(__name__)


@plagiarism_bp.route('/check-plagiarism', methods=['POST'])
def check_plagiarism():
    """Body: {submissionId}"""
    try:
        data = request.get_json(silent=True) or {}
        return jsonify(get_analysis_service().check_plagiarism(optional_id(data.get('submissionId'))))

    except PortalError as e:
        logger.error("Plagiarism check failed: %s", e)
        return jsonify({"error": str(e)}), e.http_status
    except Exception as e:
        logger.exception("Unexpected error in plagiarism check")
        return jsonify({"error": str(e)}), 500
