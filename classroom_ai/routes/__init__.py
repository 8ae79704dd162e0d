"""
Classroom AI API Routes
=======================

All API route blueprints for the Classroom AI service.

Usage:
    from classroom_ai.routes import register_routes
    register_routes(app)
"""
from .grading_routes import grading_bp
from .plagiarism_routes import plagiarism_bp
from .sentiment_routes import sentiment_bp


def register_routes(app):
    """Register all route blueprints with the Flask app."""
    app.register_blueprint(grading_bp)
    app.register_blueprint(plagiarism_bp)
    app.register_blueprint(sentiment_bp)


__all__ = [
    'register_routes',
    'grading_bp',
    'plagiarism_bp',
    'sentiment_bp',
]
