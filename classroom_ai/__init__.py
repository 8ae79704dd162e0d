"""
Classroom AI Package
====================

Flask service behind the assignment portal's AI features: rubric grading,
plagiarism scanning and feedback sentiment analysis. Records and files live
in Supabase.

Structure:
- routes/: API route blueprints
- services/: Prompting, AI gateway, parsing, fallback and persistence
- models.py: Data model shared by services and routes
- config.py: Configuration management
"""

from .config import Config

__version__ = "1.0.0"

__all__ = ['Config']
