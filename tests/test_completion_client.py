"""Unit tests for ai/client.py -- request shape against a patched requests.Session.

No network: requests.Session is replaced for each test, so assertions are on
the exact URL, JSON payload and timeout the client sends.
"""

from unittest.mock import MagicMock, patch

import pytest
import requests

from ai.client import CompletionClient


@pytest.fixture
def session():
    with patch("ai.client.requests.Session") as session_cls:
        sess = session_cls.return_value
        sess.headers = {}
        resp = MagicMock()
        resp.json.return_value = {"ok": True}
        sess.post.return_value = resp
        sess.get.return_value = resp
        yield sess


def test_missing_api_key_raises():
    with pytest.raises(ValueError, match="OPENAI_API_KEY"):
        CompletionClient(api_key="")


def test_session_is_bearer_authenticated(session):
    CompletionClient(api_key="sk-test")
    assert session.headers["Authorization"] == "Bearer sk-test"
    assert session.headers["Content-Type"] == "application/json"
    assert session.max_redirects == 3


def test_chat_completion_payload(session):
    client = CompletionClient(api_key="sk-test", base_url="https://llm.example.com/v1/", timeout=5)
    body = client.chat_completion(
        model="gpt-test",
        messages=[{"role": "user", "content": "hi"}],
        max_tokens=150,
        temperature=0.7,
    )
    assert body == {"ok": True}
    session.post.assert_called_once_with(
        "https://llm.example.com/v1/chat/completions",
        json={
            "model": "gpt-test",
            "messages": [{"role": "user", "content": "hi"}],
            "max_tokens": 150,
            "temperature": 0.7,
        },
        timeout=5,
    )


def test_response_format_only_sent_when_given(session):
    client = CompletionClient(api_key="sk-test")
    client.chat_completion("m", [], 10, 0.5, response_format={"type": "json_object"})
    assert session.post.call_args.kwargs["json"]["response_format"] == {"type": "json_object"}


def test_text_completion_and_embedding_paths(session):
    client = CompletionClient(api_key="sk-test")
    client.text_completion("m", "once upon", 150, 0.7)
    client.embedding("text-embedding-ada-002", "vectors")
    urls = [c.args[0] for c in session.post.call_args_list]
    assert urls == ["https://api.openai.com/v1/completions", "https://api.openai.com/v1/embeddings"]
    assert session.post.call_args.kwargs["json"] == {"model": "text-embedding-ada-002", "input": "vectors"}


def test_list_models_uses_get(session):
    CompletionClient(api_key="sk-test", timeout=9).list_models()
    session.get.assert_called_once_with("https://api.openai.com/v1/models", timeout=9)


def test_http_error_propagates(session):
    session.post.return_value.raise_for_status.side_effect = requests.HTTPError("500 Server Error")
    with pytest.raises(requests.HTTPError):
        CompletionClient(api_key="sk-test").text_completion("m", "p", 1, 0.0)


def test_close_closes_session(session):
    CompletionClient(api_key="sk-test").close()
    session.close.assert_called_once_with()
