"""
Classroom AI Services
=====================

Business logic behind the analysis endpoints.

Services:
- prompt_builder: Grading, plagiarism and sentiment prompts
- ai_gateway: Provider calls with bounded retry
- response_parser: JSON extraction and default filling
- fallback: Heuristic grading and sentiment
- text_extraction: Submitted file to text
- persistence: Supabase reads and writes
- analysis_service: The three request flows
"""

# Services are imported directly when needed to avoid circular imports
# Example: from classroom_ai.services.analysis_service import AnalysisService

__all__ = [
    'prompt_builder',
    'ai_gateway',
    'response_parser',
    'fallback',
    'text_extraction',
    'persistence',
    'analysis_service',
]
