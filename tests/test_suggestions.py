"""Tests for in-session suggestions."""

import json
from datetime import datetime, timedelta
from unittest.mock import patch

from fastapi.testclient import TestClient

from app.errors import CompletionError
from app.models.chunk import TranscriptionChunk
from app.services.suggestion import SuggestionService

COMPLETE = "app.services.llm.CompletionClient.complete"

SUGGESTIONS = json.dumps(
    {
        "suggestions": [
            {"type": "followup_question", "content": "Ask about sleep", "priority": "high", "context": "tired"},
            {"type": "resource", "content": "Share food bank list", "priority": "whenever"},
            {"type": "gossip", "content": "Not a real type", "priority": "low"},
            {"type": "action_item", "priority": "low"},
        ]
    }
)


def _add_recent(db_session, session, texts, age_minutes=1):
    now = datetime.utcnow()
    for index, text in enumerate(texts):
        db_session.add(
            TranscriptionChunk(
                session_id=session.id,
                chunk_index=index,
                text=text,
                timestamp=now - timedelta(minutes=age_minutes) + timedelta(seconds=index),
            )
        )
    db_session.commit()


class TestSuggestionService:
    """Generation and validation."""

    def test_generate_saves_valid_items(self, db_session, recording_session):
        _add_recent(db_session, recording_session, ["I have not slept well", "", "money is tight"])

        with patch(COMPLETE, return_value=SUGGESTIONS) as mock_complete:
            batch = SuggestionService().generate(db_session, recording_session)

        prompt = mock_complete.call_args.args[0]
        assert "user: I have not slept well\nuser: money is tight" in prompt
        assert [s.type for s in batch.suggestions] == ["followup_question", "resource"]
        assert batch.suggestions[1].priority == "medium"
        assert all(s.confidence == 0.85 and not s.acknowledged for s in batch.suggestions)
        assert batch.transcription_count == 2

    def test_no_recent_transcript_skips_generation(self, db_session, recording_session):
        _add_recent(db_session, recording_session, ["said long ago"], age_minutes=30)
        with patch(COMPLETE) as mock_complete:
            batch = SuggestionService().generate(db_session, recording_session, lookback_minutes=10)
        mock_complete.assert_not_called()
        assert batch.suggestions == []
        assert batch.message == "No recent transcriptions available for analysis"

    def test_max_transcriptions_caps_context(self, db_session, recording_session):
        _add_recent(db_session, recording_session, [f"line {i}" for i in range(5)])
        with patch(COMPLETE, return_value='{"suggestions": []}') as mock_complete:
            batch = SuggestionService().generate(db_session, recording_session, max_transcriptions=2)
        assert batch.transcription_count == 2
        assert "line 2" not in mock_complete.call_args.args[0]


class TestSuggestionApi:
    """HTTP behavior."""

    def test_generate_endpoint(self, client: TestClient, auth_headers: dict, db_session, recording_session):
        _add_recent(db_session, recording_session, ["I lost my job last week"])
        with patch(COMPLETE, return_value=SUGGESTIONS):
            resp = client.post(
                f"/api/v1/sessions/{recording_session.id}/suggestions/generate",
                json={"lookback_minutes": 5},
                headers=auth_headers,
            )
        assert resp.status_code == 200
        assert len(resp.json()["suggestions"]) == 2

    def test_generate_upstream_failure(self, client: TestClient, auth_headers: dict, db_session, recording_session):
        _add_recent(db_session, recording_session, ["Hello"])
        with patch(COMPLETE, side_effect=CompletionError("timeout")):
            resp = client.post(
                f"/api/v1/sessions/{recording_session.id}/suggestions/generate", headers=auth_headers
            )
        assert resp.status_code == 502

    def test_create_list_and_acknowledge(self, client: TestClient, auth_headers: dict, recording_session):
        url = f"/api/v1/sessions/{recording_session.id}/suggestions"
        first = client.post(url, json={"type": "resource", "content": "Legal aid number"}, headers=auth_headers)
        second = client.post(
            url,
            json={"type": "concern_flag", "content": "Mentions eviction", "priority": "urgent"},
            headers=auth_headers,
        )
        assert first.status_code == 200
        assert first.json()["confidence"] == 0.8

        resp = client.patch(f"{url}/{first.json()['id']}", json={"acknowledged": True}, headers=auth_headers)
        assert resp.json()["acknowledged"] is True

        pending = client.get(url, params={"acknowledged": "false"}, headers=auth_headers).json()
        assert [s["id"] for s in pending["items"]] == [second.json()["id"]]

        everything = client.get(url, params={"limit": 1}, headers=auth_headers).json()
        assert everything["total"] == 1

    def test_invalid_type_rejected(self, client: TestClient, auth_headers: dict, recording_session):
        resp = client.post(
            f"/api/v1/sessions/{recording_session.id}/suggestions",
            json={"type": "gossip", "content": "x"},
            headers=auth_headers,
        )
        assert resp.status_code == 422

    def test_acknowledge_unknown_suggestion(self, client: TestClient, auth_headers: dict, recording_session):
        resp = client.patch(
            f"/api/v1/sessions/{recording_session.id}/suggestions/999",
            json={"acknowledged": True},
            headers=auth_headers,
        )
        assert resp.status_code == 404
