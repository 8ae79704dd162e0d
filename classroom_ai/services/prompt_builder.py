"""
Prompt construction for the grading, plagiarism and sentiment endpoints.

Every prompt asks the model for a single JSON object; the response parser
is tolerant of prose around it.
"""
import re

from classroom_ai.errors import EmptyContentError
from classroom_ai.models import DIMENSION_MAX_SCORE


# =============================================================================
# SUBJECT GUIDANCE
# =============================================================================

# Checked in order; the first match wins.
SUBJECT_GUIDANCE = [
    (("english", "writing", "literature", "essay"),
     "Focus on argument quality, evidence, organization, and writing mechanics."),
    (("computer", "programming", "code"),
     "Evaluate code correctness, logic, efficiency, style, and documentation."),
    (("math", "algebra", "calculus", "geometry"),
     "Assess problem-solving approach, mathematical reasoning, accuracy of calculations, "
     "and clarity of explanations."),
    (("science", "biology", "chemistry", "physics"),
     "Consider scientific understanding, data analysis, methodology, and communication of findings."),
]

GENERIC_GUIDANCE = "Evaluate based on subject-specific standards and assignment requirements."


def subject_guidance(assignment) -> str:
    """Pick grading emphasis from keywords in the course name and title."""
    haystack = f"{assignment.course_name} {assignment.title}".lower()
    for keywords, guidance in SUBJECT_GUIDANCE:
        if any(k in haystack for k in keywords):
            return guidance
    return GENERIC_GUIDANCE


def criterion_score_key(name: str) -> str:
    """JSON key the model uses for a criterion's score, e.g. 'Thesis Clarity' -> 'thesis_clarity_score'."""
    slug = re.sub(r'\s+', '_', name.strip().lower())
    return f"{slug}_score"


def _format_points(value) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


# =============================================================================
# GRADING
# =============================================================================

def build_grading_prompt(assignment, content: str, rubric=None) -> str:
    """
    Build the grading instruction for one submission.

    Args:
        assignment: Assignment being graded
        content: Extracted submission text
        rubric: Optional Rubric; criteria are scored individually when present

    Returns:
        Prompt text asking for a strict JSON reply
    """
    if not content or not content.strip():
        raise EmptyContentError("No text could be extracted from the submission")

    max_points = assignment.max_points
    criteria = list(rubric.criteria) if rubric else []
    course = assignment.course_name or "this course"

    if criteria:
        criteria_lines = "\n".join(
            f"- {c.name} ({_format_points(c.max_points)} pts): {c.description or ''}".rstrip()
            for c in criteria
        )
        total = rubric.total_points if rubric.total_points is not None else sum(c.max_points for c in criteria)
        rubric_section = f"""
IMPORTANT: Use this specific grading rubric for assessment:
Rubric: {rubric.name} - {rubric.description or ''}
Total Points: {_format_points(total)}

Criteria to evaluate:
{criteria_lines}

Base your grading primarily on these criteria. Score each criterion individually,
never above its maximum, and provide specific feedback for each one.
"""
        score_fields = ",\n  ".join(
            f'"{criterion_score_key(c.name)}": <number between 0 and {_format_points(c.max_points)}>'
            for c in criteria
        ) + ","
        breakdown_entries = ",\n    ".join(
            f'"{c.name}": {{\n      "score": <points earned for this criterion>,\n'
            f'      "max_points": {_format_points(c.max_points)},\n'
            f'      "feedback": "<specific feedback for this criterion>"\n    }}'
            for c in criteria
        )
        breakdown = "{\n    " + breakdown_entries + "\n  }"
    else:
        rubric_section = f"""
Since no specific rubric is provided, score four dimensions of {DIMENSION_MAX_SCORE} points each:
- Content: depth, accuracy and relevance of ideas
- Structure: organization and flow
- Grammar: mechanics, spelling and clarity of expression
- Creativity: originality and insight
"""
        score_fields = ",\n  ".join(
            f'"{d}_score": <number between 0 and {DIMENSION_MAX_SCORE}>'
            for d in ("content", "structure", "grammar", "creativity")
        ) + ","
        breakdown = "null"

    return f"""
You are an expert educator grading a student submission for {course}. {subject_guidance(assignment)}

Assignment Details:
- Title: {assignment.title}
- Course: {assignment.course_name}
- Instructions: {assignment.instructions or 'No specific instructions provided'}
- Maximum Points: {max_points}

Student Submission Content:
{content}
{rubric_section}
Please provide your assessment in the following JSON format ONLY (no other text):
{{
  "overall_score": <number between 0 and {max_points}>,
  {score_fields}
  "detailed_feedback": "<comprehensive feedback explaining the grade based on the criteria>",
  "strengths": ["<specific strength 1>", "<specific strength 2>", "<specific strength 3>"],
  "improvements": ["<specific area for improvement 1>", "<specific area for improvement 2>", "<specific area for improvement 3>"],
  "rubric_breakdown": {breakdown}
}}

Focus on being constructive, specific, and aligned with the {course} subject standards.
The overall score is out of {max_points} points regardless of the rubric total.
"""


# =============================================================================
# PLAGIARISM
# =============================================================================

def build_plagiarism_prompt(content: str) -> str:
    """Ask the model for plagiarism indicators in a submission."""
    if not content or not content.strip():
        raise EmptyContentError("No text could be extracted from the submission")

    return (
        "You are a plagiarism detection assistant. Analyze the given text and identify:\n"
        "1. Potential plagiarized sections (sentences that seem copied without attribution)\n"
        "2. Suspicious patterns (overly formal language inconsistent with student writing)\n"
        "3. Missing citations where they should be present\n"
        "4. Overall plagiarism risk score (0-100)\n\n"
        "Return ONLY a JSON response with:\n"
        "{\n"
        '  "riskScore": number (0-100),\n'
        '  "suspiciousSections": [{"text": "...", "reason": "..."}],\n'
        '  "recommendations": ["...", "..."],\n'
        '  "overallAssessment": "..."\n'
        "}\n\n"
        "Student submission to analyze:\n\n" + content
    )


# =============================================================================
# FEEDBACK SENTIMENT
# =============================================================================

def build_sentiment_prompt(feedback_text: str) -> str:
    """Ask the model to read teacher feedback and turn it into guidance for the student."""
    if not feedback_text or not feedback_text.strip():
        raise EmptyContentError("No feedback text to analyze")

    return f"""You are a feedback sentiment analyzer for educational purposes. Analyze the following teacher feedback and provide insights for the student.

Teacher Feedback: "{feedback_text}"

Provide ONLY a JSON response with the following structure:
{{
  "sentiment": "positive" | "neutral" | "negative",
  "confidenceScore": number (0-100),
  "keyThemes": ["theme1", "theme2", "theme3"],
  "focusAreas": ["specific area to improve", "another area"],
  "encouragements": ["positive point 1", "positive point 2"],
  "personalizedMessage": "A direct, encouraging message to the student with specific actionable advice like 'focus more on logic next time' or 'work on your argument structure'",
  "emotionalTone": "constructive" | "critical" | "supportive" | "neutral",
  "improvementPriority": "high" | "medium" | "low"
}}

Be specific and actionable in your analysis. Focus on what the student can do better next time."""
