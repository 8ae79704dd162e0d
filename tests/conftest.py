"""
Shared test fixtures for the Classroom AI endpoints.
An in-memory stand-in for the Supabase client plus scripted AI replies.
Zero network calls: all data from local fixtures.
"""
import copy
import json

import pytest

from classroom_ai.app import create_app
from classroom_ai.config import Config
from classroom_ai.services.analysis_service import AnalysisService
from classroom_ai.services.persistence import SupabaseStore

BUCKET = "assignment-files"

ESSAY_TEXT = (
    "Introduction\n"
    "School uniforms reduce distractions and help students focus on learning. "
    "This essay argues that uniforms should be required in public high schools.\n\n"
    "Body\n"
    "Studies from several districts report fewer disciplinary incidents after uniform adoption. "
    "Families also save money on clothing over the school year.\n\n"
    "Conclusion\n"
    "Uniform policies support a focused, equitable learning environment."
)

SEED_TABLES = {
    "assignments": [
        {
            "id": "asg-1",
            "title": "Persuasive Essay",
            "course_name": "English 10",
            "instructions": "Write a persuasive essay on school policy.",
            "max_points": 100,
            "rubric_id": None,
        },
        {
            "id": "asg-2",
            "title": "Lab Report",
            "course_name": "Biology",
            "instructions": "Report on the enzyme lab.",
            "max_points": 50,
            "rubric_id": "rub-1",
        },
    ],
    "rubrics": [
        {
            "id": "rub-1",
            "name": "Lab Report Rubric",
            "description": "Scientific reporting",
            "total_points": 100,
            "rubric_criteria": [
                {"id": "crit-2", "name": "Data Analysis", "description": "Interprets results",
                 "max_points": 40, "order_index": 1},
                {"id": "crit-1", "name": "Hypothesis", "description": "Clear, testable hypothesis",
                 "max_points": 60, "order_index": 0},
            ],
        },
    ],
    "submissions": [
        {
            "id": "sub-1",
            "assignment_id": "asg-1",
            "student_id": "stu-1",
            "file_url": "https://proj.supabase.co/storage/v1/object/public/assignment-files/stu-1/asg-1/essay.txt",
            "file_name": "essay.txt",
            "status": "submitted",
        },
        {
            "id": "sub-2",
            "assignment_id": "asg-2",
            "student_id": "stu-2",
            "file_url": "https://proj.supabase.co/storage/v1/object/public/assignment-files/stu-2/asg-2/lab.txt",
            "file_name": "lab.txt",
            "status": "submitted",
        },
        {
            "id": "sub-empty",
            "assignment_id": "asg-1",
            "student_id": "stu-3",
            "file_url": "https://proj.supabase.co/storage/v1/object/public/assignment-files/stu-3/asg-1/blank.txt",
            "file_name": "blank.txt",
            "status": "submitted",
        },
    ],
}

SEED_FILES = {
    (BUCKET, "stu-1/asg-1/essay.txt"): ESSAY_TEXT.encode("utf-8"),
    (BUCKET, "stu-2/asg-2/lab.txt"): b"Hypothesis: enzyme activity rises with temperature until 40C. "
                                     b"Data shows a peak at 37C followed by a sharp decline.",
    (BUCKET, "stu-3/asg-1/blank.txt"): b"   \n  ",
}


# =============================================================================
# FAKE SUPABASE CLIENT
# =============================================================================

class FakeResult:
    def __init__(self, data):
        self.data = data


class FakeQuery:
    """Mimics the postgrest query builder chain used by SupabaseStore."""

    def __init__(self, db, table):
        self.db = db
        self.table_name = table
        self.op = "select"
        self.filters = []
        self.limit_count = None
        self.payload = None
        self.on_conflict = None
        self.columns = "*"

    def select(self, columns="*"):
        self.columns = columns
        return self

    def eq(self, column, value):
        self.filters.append((column, value))
        return self

    def limit(self, count):
        self.limit_count = count
        return self

    def insert(self, payload):
        self.op, self.payload = "insert", payload
        return self

    def update(self, values):
        self.op, self.payload = "update", values
        return self

    def upsert(self, payload, on_conflict=None):
        self.op, self.payload, self.on_conflict = "upsert", payload, on_conflict
        return self

    def _matches(self, row):
        return all(str(row.get(col)) == str(val) for col, val in self.filters)

    def _new_row(self, row):
        row = copy.deepcopy(row)
        if "id" not in row:
            self.db.counter += 1
            row["id"] = f"{self.table_name}-{self.db.counter}"
        # Supabase round-trips JSON columns; catch anything that would not serialize
        json.dumps(row)
        return row

    def execute(self):
        self.db.executed.append((self.table_name, self.op))
        if self.op != "select" and self.table_name in self.db.rejected_tables:
            raise Exception(f"write rejected for {self.table_name}")
        if self.op == "select" and self.db.fail_reads:
            raise Exception("connection refused")
        rows = self.db.tables.setdefault(self.table_name, [])

        if self.op == "select":
            found = [copy.deepcopy(r) for r in rows if self._matches(r)]
            if self.limit_count is not None:
                found = found[:self.limit_count]
            return FakeResult(found)

        if self.op == "insert":
            payloads = self.payload if isinstance(self.payload, list) else [self.payload]
            created = [self._new_row(p) for p in payloads]
            rows.extend(created)
            return FakeResult(copy.deepcopy(created))

        if self.op == "update":
            json.dumps(self.payload)
            updated = []
            for row in rows:
                if self._matches(row):
                    row.update(copy.deepcopy(self.payload))
                    updated.append(copy.deepcopy(row))
            return FakeResult(updated)

        if self.op == "upsert":
            key = self.on_conflict
            for row in rows:
                if key and row.get(key) == self.payload.get(key):
                    row.update(copy.deepcopy(self.payload))
                    return FakeResult([copy.deepcopy(row)])
            created = self._new_row(self.payload)
            rows.append(created)
            return FakeResult([copy.deepcopy(created)])

        raise AssertionError(f"unsupported op {self.op}")


class FakeBucket:
    def __init__(self, db, bucket):
        self.db = db
        self.bucket = bucket

    def download(self, path):
        self.db.downloads.append((self.bucket, path))
        try:
            return self.db.files[(self.bucket, path)]
        except KeyError:
            raise Exception(f"Object not found: {path}")


class FakeStorage:
    def __init__(self, db):
        self.db = db

    def from_(self, bucket):
        return FakeBucket(self.db, bucket)


class FakeSupabase:
    """In-memory tables and storage with the client surface SupabaseStore uses."""

    def __init__(self, tables=None, files=None):
        self.tables = copy.deepcopy(tables or {})
        self.files = dict(files or {})
        self.storage = FakeStorage(self)
        self.rejected_tables = set()
        self.fail_reads = False
        self.executed = []
        self.downloads = []
        self.counter = 0

    def table(self, name):
        return FakeQuery(self, name)

    def rows(self, name):
        return self.tables.get(name, [])

    def row(self, name, record_id):
        return next(r for r in self.rows(name) if r.get("id") == record_id)


# =============================================================================
# FAKE AI
# =============================================================================

class FakeGateway:
    """Scripted gateway: each generate() pops the next reply or raises it."""
    provider_name = "fake"

    def __init__(self, replies=None):
        self.replies = list(replies or [])
        self.prompts = []

    def queue(self, *replies):
        self.replies.extend(replies)

    def generate(self, prompt, max_output_tokens=2048, temperature=0.3):
        self.prompts.append(prompt)
        if not self.replies:
            raise AssertionError("FakeGateway has no scripted reply left")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload
        self.text = text or (json.dumps(payload) if payload is not None else "")

    def json(self):
        if self._payload is None:
            raise ValueError("no JSON body")
        return self._payload


def gemini_reply(text):
    """A 200 generateContent response carrying ``text``."""
    return FakeResponse(200, {"candidates": [{"content": {"parts": [{"text": text}]}}]})


class FakeSession:
    """Stands in for requests.Session; replays scripted responses in order."""

    def __init__(self, responses):
        self.responses = list(responses)
        self.calls = []

    def post(self, url, **kwargs):
        self.calls.append((url, kwargs))
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def fake_db():
    return FakeSupabase(SEED_TABLES, SEED_FILES)


@pytest.fixture
def store(fake_db):
    return SupabaseStore(fake_db, bucket=BUCKET)


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def service(store, gateway):
    return AnalysisService(store, gateway)


@pytest.fixture
def test_config():
    return Config(
        ai_provider="gemini",
        ai_api_key="test-key",
        supabase_url="https://proj.supabase.co",
        supabase_key="service-role-key",
        log_level="WARNING",
    )


@pytest.fixture
def app(test_config, store, gateway):
    app = create_app(test_config, store=store, gateway=gateway)
    app.config['TESTING'] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()
