from __future__ import annotations

import json
from datetime import datetime, timezone

import httpx

from survey_session.core.interfaces import PersistMethod
from survey_session.core.models import Answer
from survey_session.store.client import AnswerStoreClient

TS = datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc)


def _client(handler) -> AnswerStoreClient:
    return AnswerStoreClient("http://store.test/", transport=httpx.MockTransport(handler))


def _parse_ts(raw: str) -> datetime:
    return datetime.fromisoformat(raw.replace("Z", "+00:00"))


def test_fetch_questions_parses_catalog():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "GET"
        assert request.url.path == "/questions"
        return httpx.Response(
            200,
            json=[
                {"id": 1, "text": "Crops?", "type": "text"},
                {"id": 2, "text": "Certified?", "type": "choice", "options": ["Yes", "No"]},
            ],
        )

    with _client(handler) as client:
        result = client.fetch_questions()
    assert result.ok
    assert [q.id for q in result.value] == [1, 2]
    assert result.value[1].options == ["Yes", "No"]


def test_fetch_answers_maps_wire_fields():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/answers"
        return httpx.Response(
            200,
            json=[{"questionId": 3, "question": "Name?", "answer": "Ada King", "timestamp": "2024-05-01T12:30:00Z"}],
        )

    with _client(handler) as client:
        result = client.fetch_answers()
    assert result.ok
    assert result.value == [Answer(question_id=3, question_text="Name?", value="Ada King", timestamp=TS)]


def test_naive_timestamps_are_read_as_utc():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json=[{"questionId": 3, "question": "Name?", "answer": "x", "timestamp": "2024-05-01T12:30:00"}],
        )

    with _client(handler) as client:
        result = client.fetch_answers()
    assert result.value[0].timestamp == TS


def test_create_answer_posts_wire_body():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(201, json={"status": "saved"})

    answer = Answer(question_id=2, question_text="Certified?", value="Yes", timestamp=TS)
    with _client(handler) as client:
        result = client.upsert_answer(answer)
    assert result.ok
    request = seen[0]
    assert request.method == "POST"
    assert request.url.path == "/answers"
    body = json.loads(request.content)
    assert set(body) == {"questionId", "question", "answer", "timestamp"}
    assert body["questionId"] == 2
    assert body["question"] == "Certified?"
    assert body["answer"] == "Yes"
    assert _parse_ts(body["timestamp"]) == TS


def test_update_answer_puts_by_question_id():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(204)

    answer = Answer(question_id=7, question_text="Crops?", value="rye", timestamp=TS)
    with _client(handler) as client:
        result = client.upsert_answer(answer, PersistMethod.UPDATE)
    assert result.ok
    assert result.value is None
    assert seen[0].method == "PUT"
    assert seen[0].url.path == "/answers/7"
    assert json.loads(seen[0].content)["answer"] == "rye"


def test_server_error_resolves_to_failure():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, json={"error": "boom"})

    answer = Answer(question_id=1, question_text="Crops?", value="rye", timestamp=TS)
    with _client(handler) as client:
        result = client.create_answer(answer)
    assert not result.ok
    assert "500" in result.error


def test_transport_error_resolves_to_failure():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with _client(handler) as client:
        questions = client.fetch_questions()
        answers = client.fetch_answers()
    assert not questions.ok
    assert "ConnectError" in questions.error
    assert not answers.ok


def test_invalid_payload_resolves_to_failure():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/questions":
            return httpx.Response(200, json=[{"text": "missing id"}])
        return httpx.Response(200, content=b"<html>oops</html>")

    with _client(handler) as client:
        questions = client.fetch_questions()
        answers = client.fetch_answers()
    assert not questions.ok
    assert "invalid payload" in questions.error
    assert not answers.ok
    assert "non-JSON" in answers.error
