"""
Tests for aicore/api/http_api.py: routing, envelope and status mapping.
"""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
import requests


def seed(client):
    ids = []
    for content, source in (
        ("Cuaca hari ini cerah", "system"),
        ("User senang dengan cuaca", "user"),
        ("Cuaca besok akan hujan", "system"),
    ):
        res = client.post("/experiences", json={"content": content, "source": source})
        assert res.status_code == 200
        ids.append(res.json()["data"]["id"])
    return ids


class TestHealth:
    def test_root(self, client):
        assert client.get("/").text.startswith("AI Core API v")

    def test_health_envelope(self, client):
        body = client.get("/health").json()
        assert body["success"] is True
        assert body["data"]["status"] == "AI Core is running"
        assert body["data"]["remote_generator_enabled"] is False


class TestExperiences:
    def test_create_and_get(self, client):
        res = client.post("/experiences", json={"content": "Python programming", "metadata": "note"})
        body = res.json()
        assert body["success"] is True
        assert body["data"]["source"] == "user"
        assert body["data"]["metadata"] == "note"

        got = client.get(f"/experiences/{body['data']['id']}").json()
        assert got["data"]["content"] == "Python programming"

    def test_blank_content_is_400(self, client):
        res = client.post("/experiences", json={"content": "   "})
        assert res.status_code == 400
        assert res.json() == {"success": False, "data": None, "message": "content must not be empty"}

    def test_missing_field_is_400(self, client):
        res = client.post("/experiences", json={"source": "user"})
        assert res.status_code == 400
        assert res.json()["success"] is False

    def test_unknown_id_is_404(self, client):
        res = client.get("/experiences/exp_999999_deadbeef")
        assert res.status_code == 404
        assert res.json()["success"] is False

    def test_list_and_search(self, client):
        seed(client)
        assert len(client.get("/experiences").json()["data"]) == 3
        found = client.get("/experiences/search", params={"q": "hujan"}).json()
        assert [e["content"] for e in found["data"]] == ["Cuaca besok akan hujan"]
        assert client.get("/experiences/search", params={"q": "salju"}).json()["data"] == []

    def test_blank_search_is_400(self, client):
        assert client.get("/experiences/search", params={"q": " "}).status_code == 400

    def test_reflect(self, client):
        seed(client)
        data = client.get("/reflect").json()["data"]
        assert data["total_experiences"] == 3

    def test_clear_memory(self, client, context):
        seed(client)
        res = client.delete("/memory/clear").json()
        assert res["data"]["removed"] == 3
        stats = client.get("/stats").json()["data"]
        assert stats == {"total_experiences": 0, "total_patterns": 0, "top_patterns": []}


class TestPatterns:
    def test_detail_cuaca(self, client):
        ids = seed(client)
        data = client.get("/patterns/Cuaca").json()["data"]
        assert data["experience_count"] == 3
        assert data["frequency"] >= 3
        assert data["experience_ids"] == ids
        assert len(data["related_contents"]) == 3

    def test_related_contents_follow_experience_ids(self, client):
        seed(client)
        data = client.get("/patterns/hujan").json()["data"]
        assert data["experience_count"] == 1
        assert data["related_contents"] == ["Cuaca besok akan hujan"]

    def test_unknown_pattern_is_404(self, client):
        assert client.get("/patterns/salju").status_code == 404

    def test_stats_top_patterns(self, client):
        seed(client)
        stats = client.get("/stats").json()["data"]
        assert stats["total_experiences"] == 3
        assert stats["top_patterns"][0]["keyword"] == "cuaca"
        assert len(stats["top_patterns"]) <= 10

    def test_rebuild(self, client):
        seed(client)
        before = client.get("/stats").json()["data"]
        res = client.post("/patterns/clear").json()
        assert res["success"] is True
        assert client.get("/stats").json()["data"] == before


class TestDecision:
    def test_global_decision(self, client):
        assert client.get("/decision").json()["data"]["action"] == "default"
        seed(client)
        data = client.get("/decision").json()["data"]
        assert data["based_on_experiences"] == 3
        assert 0.5 <= data["confidence"] <= 1.0

    def test_query_decision(self, client):
        seed(client)
        data = client.get("/decision/query", params={"q": "salju"}).json()["data"]
        assert data["action"] == "ask_for_clarification"
        assert data["confidence"] == 0.3


class TestPersonality:
    def test_update_and_read(self, client):
        res = client.post("/personality", json={"input": "halo, terima kasih banyak!", "response": "Sama-sama"})
        data = res.json()["data"]
        assert data["dominant_trait"] == "happy"
        assert data["influenced_response"] == "😊 Sama-sama"

        state = client.get("/personality").json()["data"]
        assert state["happiness"] == pytest.approx(0.6)
        assert state["dominant_trait"] == "happy"


class TestChat:
    def test_send_and_history(self, client):
        seed(client)
        res = client.post("/chat/send", json={"content": "cuaca besok?"}).json()
        assert res["success"] is True
        session_id = res["data"]["session_id"]
        assert res["data"]["context_count"] == 3

        history = client.get(f"/chat/history/{session_id}").json()["data"]
        assert [m["role"] for m in history["messages"]] == ["user", "assistant"]
        assert client.get("/chat/sessions").json()["data"] == [session_id]

    def test_blank_message_is_400(self, client):
        assert client.post("/chat/send", json={"content": ""}).status_code == 400

    def test_unknown_session(self, client):
        assert client.get("/chat/history/nope").status_code == 404
        assert client.delete("/chat/sessions/nope").status_code == 404

    def test_clear_sessions(self, client):
        client.post("/chat/send", json={"content": "halo", "session_id": "a"})
        client.post("/chat/send", json={"content": "halo", "session_id": "b"})
        assert client.delete("/chat/sessions/a").json()["data"]["removed_messages"] == 2
        assert client.delete("/chat/sessions").json()["data"]["removed_sessions"] == 1
        assert client.get("/chat/sessions").json()["data"] == []

    def test_export(self, client):
        client.post("/chat/send", json={"content": "halo", "session_id": "s1"})
        res = client.get("/chat/export", params={"session_id": "s1", "format": "markdown"}).json()
        assert res["data"].startswith("# Chat Session: s1")
        bad = client.get("/chat/export", params={"session_id": "s1", "format": "pdf"})
        assert bad.status_code == 400

    def test_upload_adds_experience(self, client):
        res = client.post("/chat/upload", json={
            "filename": "cuaca.csv",
            "content": "kota,suhu\nJakarta,31\n",
            "filetype": "csv",
        }).json()
        assert res["success"] is True
        exp = client.get(f"/experiences/{res['data']['experience_id']}").json()["data"]
        assert exp["source"] == "document:cuaca.csv"
        assert exp["content"].startswith("CSV Headers: kota,suhu")

    def test_upload_invalid_json_is_400(self, client):
        res = client.post("/chat/upload", json={"filename": "x.json", "content": "{", "filetype": "json"})
        assert res.status_code == 400
        assert client.get("/experiences").json()["data"] == []


class TestInteract:
    def test_summary_of_learned_patterns(self, client):
        seed(client)
        body = client.get("/interact").json()
        assert body["message"] == "Interaction completed"
        assert body["data"]["analysis"] == "Analyzed 3 experiences"
        assert body["data"]["experience_count"] == 3
        assert body["data"]["pattern_summary"][0] == "cuaca: 3 occurrences"
        assert len(body["data"]["pattern_summary"]) <= 5

    def test_empty_store(self, client):
        data = client.get("/interact").json()["data"]
        assert data == {"analysis": "Analyzed 0 experiences", "experience_count": 0, "pattern_summary": []}


class TestApiLearning:
    @pytest.fixture
    def outbound(self, context):
        session = MagicMock()
        response = MagicMock()
        response.status_code = 200
        response.text = '{"temp": 31}'
        session.request.return_value = response
        context.learning.executor.session = session
        return session

    def execute(self, client, **overrides):
        payload = {"method": "GET", "url": "http://weather.test/v1/today"}
        payload.update(overrides)
        return client.post("/api-learning/execute", json=payload)

    def test_execute_records_and_adds_experience(self, client, outbound):
        body = self.execute(client).json()
        assert body["success"] is True
        assert body["data"]["status"] == 200
        assert body["data"]["body"] == '{"temp": 31}'

        record_id = body["data"]["record_id"]
        assert record_id.startswith("api_")
        exp = client.get(f"/experiences/{body['data']['experience_id']}").json()["data"]
        assert exp["content"] == "API Call: GET http://weather.test/v1/today - Status 200"
        assert exp["source"] == "api_learning"
        assert exp["metadata"] == f"record_id:{record_id}"

    def test_records_crud(self, client, outbound):
        record_id = self.execute(client, save_to_memory=False).json()["data"]["record_id"]
        records = client.get("/api-learning/records").json()["data"]
        assert [r["id"] for r in records] == [record_id]
        assert records[0]["tags"] == ["weather.test", "v1", "today"]

        updated = client.post(f"/api-learning/records/{record_id}", json={"summary": "forecast"}).json()["data"]
        assert updated["summary"] == "forecast"
        assert updated["tags"] == ["weather.test", "v1", "today"]
        assert client.get(f"/api-learning/records/{record_id}").json()["data"]["summary"] == "forecast"

        assert client.delete(f"/api-learning/records/{record_id}").status_code == 200
        assert client.get(f"/api-learning/records/{record_id}").status_code == 404
        assert client.delete(f"/api-learning/records/{record_id}").status_code == 404

    def test_search_and_clear(self, client, outbound):
        self.execute(client)
        self.execute(client, url="http://other.test/x")
        found = client.get("/api-learning/search", params={"q": "WEATHER"}).json()["data"]
        assert [r["url"] for r in found] == ["http://weather.test/v1/today"]
        assert client.get("/api-learning/search", params={"q": " "}).status_code == 400

        body = client.delete("/api-learning/clear").json()
        assert body["data"]["removed"] == 2
        assert client.get("/api-learning/records").json()["data"] == []

    def test_invalid_url_is_400(self, client, outbound):
        assert self.execute(client, url="ftp://weather.test/").status_code == 400
        outbound.request.assert_not_called()

    def test_unreachable_target_is_502(self, client, outbound, context):
        outbound.request.side_effect = requests.exceptions.ConnectionError("refused")
        res = self.execute(client)
        assert res.status_code == 502
        assert res.json()["success"] is False
        assert context.learning.records.list() == []
