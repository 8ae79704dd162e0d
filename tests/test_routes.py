"""
Test: HTTP endpoints — request parsing, CORS preflight, success and error bodies.
"""
from classroom_ai.errors import RetriesExhaustedError, UpstreamTransientError

GRADE_REPLY = ('{"overall_score": 90, "content_score": 23, "structure_score": 22, "grammar_score": 23, '
               '"creativity_score": 22, "detailed_feedback": "Excellent.", "strengths": ["Voice"], '
               '"improvements": ["Citations"]}')


class TestHealth:
    def test_health(self, client):
        response = client.get('/health')
        assert response.status_code == 200
        assert response.get_json() == {"status": "ok", "provider": "gemini"}


class TestCors:
    def test_preflight(self, client):
        response = client.options(
            '/check-plagiarism',
            headers={
                "Origin": "https://portal.example.edu",
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "authorization, content-type",
            },
        )
        assert response.status_code == 200
        assert response.headers["Access-Control-Allow-Origin"] in ("*", "https://portal.example.edu")

    def test_simple_request_has_cors_header(self, client, gateway):
        gateway.queue('{"riskScore": 5}')
        response = client.post('/check-plagiarism', json={"submissionId": "sub-1"},
                               headers={"Origin": "https://portal.example.edu"})
        assert "Access-Control-Allow-Origin" in response.headers


class TestGradeEndpoint:
    def test_success(self, client, gateway, fake_db):
        gateway.queue(GRADE_REPLY)
        response = client.post('/ai-grade-submission', json={"submissionId": "sub-1"})
        body = response.get_json()

        assert response.status_code == 200
        assert body["success"] is True
        assert body["aiGrade"] == 90
        assert body["strengths"] == ["Voice"]
        assert body["gradeId"] == fake_db.rows("submission_grades")[0]["id"]

    def test_numeric_ids_accepted(self, client, gateway, fake_db):
        fake_db.tables["submissions"].append(dict(fake_db.row("submissions", "sub-1"), id=42))
        gateway.queue(GRADE_REPLY)
        response = client.post('/ai-grade-submission', json={"submissionId": 42})
        assert response.status_code == 200

    def test_fallback_response(self, client, gateway):
        gateway.queue(RetriesExhaustedError(3, UpstreamTransientError("503", status_code=503)))
        body = client.post('/ai-grade-submission', json={"submissionId": "sub-1"}).get_json()
        assert body["success"] is True
        assert body["gradeSource"] == "fallback"
        assert "note" in body

    def test_missing_submission_id(self, client):
        response = client.post('/ai-grade-submission', json={})
        assert response.status_code == 500
        assert response.get_json() == {"success": False, "error": "Missing submissionId"}

    def test_non_json_body(self, client):
        response = client.post('/ai-grade-submission', data="not json", content_type="text/plain")
        assert response.status_code == 500
        assert response.get_json()["success"] is False

    def test_unknown_submission(self, client):
        response = client.post('/ai-grade-submission', json={"submissionId": "sub-404"})
        assert response.status_code == 500
        assert response.get_json() == {"success": False, "error": "Submission not found"}

    def test_unexpected_error(self, client, gateway):
        gateway.queue(RuntimeError("kaboom"))
        response = client.post('/ai-grade-submission', json={"submissionId": "sub-1"})
        assert response.status_code == 500
        assert response.get_json() == {"success": False, "error": "kaboom"}


class TestPlagiarismEndpoint:
    def test_high_risk_marks_submission(self, client, gateway, fake_db):
        gateway.queue('{"riskScore": 82, "suspiciousSections": [], "recommendations": [], '
                      '"overallAssessment": "Likely copied."}')
        response = client.post('/check-plagiarism', json={"submissionId": "sub-1"})
        body = response.get_json()

        assert response.status_code == 200
        assert body["success"] is True
        assert body["plagiarismAnalysis"]["riskScore"] == 82
        submission = fake_db.row("submissions", "sub-1")
        assert submission["status"] == "plagiarism_checked"
        assert submission["plagiarism_score"] == 82

    def test_error_body(self, client):
        response = client.post('/check-plagiarism', json={})
        assert response.status_code == 500
        assert response.get_json() == {"error": "Missing submissionId"}

    def test_unparseable_reply(self, client, gateway):
        gateway.queue("no json at all")
        response = client.post('/check-plagiarism', json={"submissionId": "sub-1"})
        assert response.status_code == 500
        assert "No valid JSON" in response.get_json()["error"]


class TestSentimentEndpoint:
    def test_success(self, client, gateway, fake_db):
        gateway.queue('{"sentiment": "neutral", "confidenceScore": 60}')
        response = client.post('/analyze-feedback-sentiment',
                               json={"studentId": "stu-1", "feedbackText": "Solid effort overall."})
        body = response.get_json()

        assert response.status_code == 200
        assert body["success"] is True
        assert body["sentimentAnalysis"]["confidenceScore"] == 60
        assert body["analysisId"] == fake_db.rows("student_feedback_analysis")[0]["id"]

    def test_missing_feedback(self, client):
        response = client.post('/analyze-feedback-sentiment', json={"studentId": "stu-1"})
        assert response.status_code == 500
        assert response.get_json() == {"success": False, "error": "Missing studentId or feedbackText"}

    def test_non_string_feedback(self, client):
        response = client.post('/analyze-feedback-sentiment', json={"studentId": "stu-1", "feedbackText": 7})
        assert response.status_code == 500
