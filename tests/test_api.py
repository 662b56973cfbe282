# tests/test_api.py
"""
HTTP API Test Suite

The app is exercised without its lifespan so no Groq client is built; each
test installs a ChatService backed by a fake completion.

Run with: python -m pytest tests/test_api.py -v
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

import unittest
from unittest.mock import patch

from fastapi.testclient import TestClient

import companion.main as main
from companion.errors import CompletionFailure
from companion.models import ChatMessage
from companion.services.chat_service import ChatService
from companion.services.session_store import InMemorySessionStore


class FakeCompletion:
    def __init__(self, fail_with=None):
        self.calls = []
        self.fail_with = fail_with

    async def complete(self, messages, temperature):
        self.calls.append((list(messages), temperature))
        if self.fail_with is not None:
            raise self.fail_with
        return f"reply-{len(self.calls)}"


class ApiTestCase(unittest.TestCase):

    def setUp(self):
        self.completion = FakeCompletion()
        self.store = InMemorySessionStore()
        self.service = ChatService(self.store, self.completion)
        self._previous = main.chat_service
        main.chat_service = self.service
        self.client = TestClient(main.app)

    def tearDown(self):
        main.chat_service = self._previous


class TestChatEndpoint(ApiTestCase):

    def test_first_turn_creates_session(self):
        resp = self.client.post("/api/chat", json={"message": "Hello", "persona_id": "aiko"})
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertEqual(body["response"], "reply-1")
        self.assertEqual(body["persona_id"], "aiko")
        self.assertTrue(body["session_id"])
        self.assertTrue(body["timestamp"].endswith("Z"))
        self.assertEqual(len(self.store.get(body["session_id"])), 2)

    def test_session_continues(self):
        first = self.client.post("/api/chat", json={"message": "one", "persona_id": "rin"}).json()
        self.client.post(
            "/api/chat",
            json={"message": "two", "persona_id": "rin", "session_id": first["session_id"]},
        )
        messages, _ = self.completion.calls[1]
        self.assertEqual(len(messages), 4)
        self.assertEqual(len(self.store.get(first["session_id"])), 4)

    def test_temperature_passed_through(self):
        self.client.post("/api/chat", json={"message": "hi", "persona_id": "aiko", "temperature": 0.2})
        self.client.post("/api/chat", json={"message": "hi", "persona_id": "aiko"})
        self.assertEqual([t for _, t in self.completion.calls], [0.2, 0.8])

    def test_unknown_persona_is_404(self):
        resp = self.client.post("/api/chat", json={"message": "hi", "persona_id": "nobody"})
        self.assertEqual(resp.status_code, 404)
        self.assertIn("nobody", resp.json()["detail"])
        self.assertIn("aiko", resp.json()["detail"])
        self.assertEqual(self.completion.calls, [])

    def test_empty_message_is_400(self):
        resp = self.client.post("/api/chat", json={"message": "   ", "persona_id": "aiko"})
        self.assertEqual(resp.status_code, 400)

    def test_missing_fields_are_422(self):
        self.assertEqual(self.client.post("/api/chat", json={"persona_id": "aiko"}).status_code, 422)
        self.assertEqual(self.client.post("/api/chat", json={"message": "hi"}).status_code, 422)

    def test_out_of_range_temperature_is_422(self):
        resp = self.client.post("/api/chat", json={"message": "hi", "persona_id": "aiko", "temperature": 5})
        self.assertEqual(resp.status_code, 422)

    def test_bad_session_id_is_422(self):
        resp = self.client.post(
            "/api/chat",
            json={"message": "hi", "persona_id": "aiko", "session_id": "../etc/passwd"},
        )
        self.assertEqual(resp.status_code, 422)

    def test_completion_failure_is_503_and_history_untouched(self):
        self.store.put("s1", [ChatMessage.user("old"), ChatMessage.assistant("reply")])
        before = self.store.get("s1")
        self.completion.fail_with = CompletionFailure("Model call failed: secret internals")

        resp = self.client.post("/api/chat", json={"message": "hi", "persona_id": "aiko", "session_id": "s1"})

        self.assertEqual(resp.status_code, 503)
        self.assertNotIn("secret", resp.json()["detail"])
        self.assertEqual(self.store.get("s1"), before)

    def test_rate_limited_is_429(self):
        self.completion.fail_with = CompletionFailure("429", rate_limited=True)
        resp = self.client.post("/api/chat", json={"message": "hi", "persona_id": "aiko"})
        self.assertEqual(resp.status_code, 429)

    def test_unexpected_error_is_generic_500(self):
        self.completion.fail_with = RuntimeError("database password is hunter2")
        resp = self.client.post("/api/chat", json={"message": "hi", "persona_id": "aiko"})
        self.assertEqual(resp.status_code, 500)
        self.assertEqual(resp.json()["detail"], main.GENERIC_ERROR_MESSAGE)

    def test_service_not_initialized_is_503(self):
        main.chat_service = None
        resp = self.client.post("/api/chat", json={"message": "hi", "persona_id": "aiko"})
        self.assertEqual(resp.status_code, 503)


class TestClearAndHistoryEndpoints(ApiTestCase):

    def test_clear_resets_history(self):
        sid = self.client.post("/api/chat", json={"message": "hi", "persona_id": "mei"}).json()["session_id"]

        resp = self.client.post("/api/chat/clear", json={"session_id": sid})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["message"], "Conversation history cleared")
        self.assertEqual(self.store.get(sid), [])

        # Idempotent.
        self.assertEqual(self.client.post("/api/chat/clear", json={"session_id": sid}).status_code, 200)

    def test_history_endpoint(self):
        sid = self.client.post("/api/chat", json={"message": "hi", "persona_id": "yuki"}).json()["session_id"]
        resp = self.client.get(f"/api/chat/history/{sid}")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["messages"], [
            {"role": "user", "content": "hi"},
            {"role": "assistant", "content": "reply-1"},
        ])

    def test_clear_of_unknown_sessions_does_not_grow_store(self):
        for i in range(50):
            resp = self.client.post("/api/chat/clear", json={"session_id": f"fresh-{i}"})
            self.assertEqual(resp.status_code, 200)
        self.assertEqual(len(self.store), 0)

    def test_history_rejects_malformed_session_id(self):
        resp = self.client.get("/api/chat/history/bad.id!")
        self.assertEqual(resp.status_code, 422)
        resp = self.client.get("/api/chat/history/" + "x" * 129)
        self.assertEqual(resp.status_code, 422)

    def test_history_of_unknown_session_is_empty(self):
        resp = self.client.get("/api/chat/history/nobody")
        self.assertEqual(resp.json()["messages"], [])


class TestDiscoveryEndpoints(ApiTestCase):

    def test_personas(self):
        resp = self.client.get("/api/personas")
        self.assertEqual(resp.status_code, 200)
        ids = {p["id"] for p in resp.json()}
        self.assertEqual(ids, {"aiko", "hikari", "rin", "mei", "yuki"})

    def test_health(self):
        body = self.client.get("/api/health").json()
        self.assertEqual(body["status"], "healthy")
        self.assertTrue(body["chat_service"])

    def test_root(self):
        self.assertIn("/api/chat", self.client.get("/").json()["endpoints"])


class TestAuth(ApiTestCase):

    def test_token_required_when_configured(self):
        with patch.object(main, "API_AUTH_TOKEN", "s3cret"):
            resp = self.client.post("/api/chat", json={"message": "hi", "persona_id": "aiko"})
            self.assertEqual(resp.status_code, 401)

            resp = self.client.post(
                "/api/chat",
                json={"message": "hi", "persona_id": "aiko"},
                headers={"Authorization": "Bearer wrong"},
            )
            self.assertEqual(resp.status_code, 401)

            resp = self.client.post(
                "/api/chat",
                json={"message": "hi", "persona_id": "aiko"},
                headers={"Authorization": "Bearer s3cret"},
            )
            self.assertEqual(resp.status_code, 200)

    def test_personas_and_health_are_public(self):
        with patch.object(main, "API_AUTH_TOKEN", "s3cret"):
            self.assertEqual(self.client.get("/api/personas").status_code, 200)
            self.assertEqual(self.client.get("/api/health").status_code, 200)


if __name__ == "__main__":
    unittest.main()
