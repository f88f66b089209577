"""Tests for session summaries."""

from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from app.errors import EmptyTranscriptError
from app.models.chunk import TranscriptionChunk
from app.models.summary import SessionSummary
from app.services import summary as summary_module
from app.services.summary import SummaryService, generate_summary_in_background

COMPLETE = "app.services.llm.CompletionClient.complete"

FENCED_SUMMARY = """Here is the summary:
```json
{
  "key_topics": ["employment", "childcare"],
  "main_concerns": ["missed shifts"],
  "progress_notes": "Client has a new job offer.",
  "next_steps": ["apply for childcare subsidy", "follow up in two weeks"],
  "risk_assessment": "No immediate safety concerns.",
  "overall_summary": "Productive session focused on work and childcare."
}
```"""


def _add_chunks(db_session, session, texts):
    for index, text in enumerate(texts):
        db_session.add(TranscriptionChunk(session_id=session.id, chunk_index=index, text=text))
    db_session.commit()


class TestSummaryService:
    """Service-level behavior."""

    def test_generate_from_chunks(self, db_session, recording_session):
        _add_chunks(db_session, recording_session, ["I start Monday", "", "but daycare is full"])
        recording_session.audio_duration_seconds = 185.0
        db_session.commit()

        with patch(COMPLETE, return_value=FENCED_SUMMARY) as mock_complete:
            summary = SummaryService().generate(db_session, recording_session)

        prompt = mock_complete.call_args.args[0]
        assert "I start Monday but daycare is full" in prompt
        assert "in person" in prompt
        assert summary.key_topics == ["employment", "childcare"]
        assert summary.next_steps == ["apply for childcare subsidy", "follow up in two weeks"]
        assert summary.confidence == 0.90
        assert summary.transcription_count == 3
        assert summary.transcript_length == len("I start Monday but daycare is full")
        assert summary.session_duration_minutes == 3

    def test_existing_summary_returned_unless_forced(self, db_session, recording_session):
        _add_chunks(db_session, recording_session, ["We talked about school"])
        service = SummaryService()
        with patch(COMPLETE, return_value=FENCED_SUMMARY) as mock_complete:
            first_id = service.generate(db_session, recording_session).id
            again = service.generate(db_session, recording_session)
            assert mock_complete.call_count == 1
            assert again.id == first_id
            forced = service.generate(db_session, recording_session, force_regenerate=True)
            assert mock_complete.call_count == 2

        assert db_session.query(SessionSummary).count() == 1
        assert forced.session_id == recording_session.id

    def test_empty_transcript(self, db_session, recording_session):
        _add_chunks(db_session, recording_session, ["", ""])
        with pytest.raises(EmptyTranscriptError):
            SummaryService().generate(db_session, recording_session)

    def test_scalar_list_fields_are_wrapped(self, db_session, recording_session):
        response = '{"key_topics": "budgeting", "main_concerns": null, "overall_summary": "Short."}'
        with patch(COMPLETE, return_value=response):
            summary = SummaryService().generate_from_transcript(db_session, recording_session, "We did a budget")
        assert summary.key_topics == ["budgeting"]
        assert summary.main_concerns == []
        assert summary.progress_notes == ""

    def test_background_generation(self, db_session, recording_session, monkeypatch):
        monkeypatch.setattr(summary_module, "_session_factory", lambda: db_session)
        with patch(COMPLETE, return_value=FENCED_SUMMARY):
            generate_summary_in_background(recording_session.id, "user_123", "Full text here", 4)
        summary = db_session.query(SessionSummary).one()
        assert summary.transcription_count == 4

    def test_background_failure_is_contained(self, db_session, recording_session, monkeypatch):
        monkeypatch.setattr(summary_module, "_session_factory", lambda: db_session)
        with patch(COMPLETE, return_value="I cannot help with that"):
            generate_summary_in_background(recording_session.id, "user_123", "Full text here", 4)
        assert db_session.query(SessionSummary).count() == 0

    def test_concurrent_insert_keeps_first_summary(self, db_session, recording_session, monkeypatch):
        db_session.add(SessionSummary(session_id=recording_session.id, overall_summary="First in"))
        db_session.commit()
        real_get = SummaryService.get_summary
        calls = []

        def racing_get(self, db, session_id):
            # The existence check misses a row another worker is about to commit
            calls.append(session_id)
            return None if len(calls) == 1 else real_get(self, db, session_id)

        monkeypatch.setattr(SummaryService, "get_summary", racing_get)
        monkeypatch.setattr(summary_module, "_session_factory", lambda: db_session)
        with patch(COMPLETE, return_value=FENCED_SUMMARY) as mock_complete:
            generate_summary_in_background(recording_session.id, "user_123", "Full text here", 4)

        mock_complete.assert_called_once()
        summaries = db_session.query(SessionSummary).all()
        assert len(summaries) == 1
        assert summaries[0].overall_summary == "First in"

    def test_background_database_error_is_contained(self, db_session, recording_session, monkeypatch):
        from sqlalchemy.exc import OperationalError

        monkeypatch.setattr(summary_module, "_session_factory", lambda: db_session)
        with (
            patch(COMPLETE, return_value=FENCED_SUMMARY),
            patch.object(db_session, "commit", side_effect=OperationalError("INSERT", {}, Exception("disk I/O error"))),
        ):
            generate_summary_in_background(recording_session.id, "user_123", "Full text here", 4)
        assert db_session.query(SessionSummary).count() == 0

    def test_background_ignores_foreign_owner(self, db_session, recording_session, monkeypatch):
        monkeypatch.setattr(summary_module, "_session_factory", lambda: db_session)
        with patch(COMPLETE, return_value=FENCED_SUMMARY) as mock_complete:
            generate_summary_in_background(recording_session.id, "user_456", "Full text here", 4)
        mock_complete.assert_not_called()


class TestSummaryApi:
    """HTTP behavior."""

    def test_generate_get_update_delete(self, client: TestClient, auth_headers: dict, db_session, recording_session):
        _add_chunks(db_session, recording_session, ["We talked about the new job"])
        url = f"/api/v1/sessions/{recording_session.id}/summary"

        assert client.get(url, headers=auth_headers).status_code == 404

        with patch(COMPLETE, return_value=FENCED_SUMMARY):
            resp = client.post(url, headers=auth_headers)
        assert resp.status_code == 200
        assert resp.json()["main_concerns"] == ["missed shifts"]

        resp = client.patch(
            url, json={"risk_assessment": "Reviewed, none.", "next_steps": ["book review"]}, headers=auth_headers
        )
        assert resp.status_code == 200
        assert resp.json()["risk_assessment"] == "Reviewed, none."
        assert resp.json()["next_steps"] == ["book review"]
        assert resp.json()["key_topics"] == ["employment", "childcare"]

        assert client.patch(url, json={}, headers=auth_headers).status_code == 400

        assert client.delete(url, headers=auth_headers).status_code == 200
        assert client.get(url, headers=auth_headers).status_code == 404

    def test_empty_transcript_is_bad_request(self, client: TestClient, auth_headers: dict, recording_session):
        resp = client.post(f"/api/v1/sessions/{recording_session.id}/summary", headers=auth_headers)
        assert resp.status_code == 400

    def test_unparseable_response_is_bad_gateway(
        self, client: TestClient, auth_headers: dict, db_session, recording_session
    ):
        _add_chunks(db_session, recording_session, ["Some words"])
        with patch(COMPLETE, return_value="Sorry, no JSON today"):
            resp = client.post(f"/api/v1/sessions/{recording_session.id}/summary", headers=auth_headers)
        assert resp.status_code == 502
        assert resp.json()["detail"] == "Invalid response format from AI"

    def test_patch_missing_summary(self, client: TestClient, auth_headers: dict, recording_session):
        resp = client.patch(
            f"/api/v1/sessions/{recording_session.id}/summary", json={"progress_notes": "x"}, headers=auth_headers
        )
        assert resp.status_code == 404
