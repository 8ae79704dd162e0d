"""Shared helpers for the route blueprints."""
from flask import current_app

EXTENSION_KEY = 'classroom_ai'


def get_analysis_service():
    """The AnalysisService registered on the current app by create_app."""
    return current_app.extensions[EXTENSION_KEY]


def optional_id(value):
    """Normalize an id from a JSON body: ints become strings, blanks become None."""
    if value is None or isinstance(value, bool):
        return None
    value = str(value).strip()
    return value or None
