"""
ai/client.py -- Thin HTTP client for an OpenAI-compatible REST API.

Works against api.openai.com or any server exposing the same routes
(OpenRouter, vLLM, LM Studio, Ollama's /v1 shim) -- set OPENAI_BASE_URL.

Every method makes exactly one request: no retry, no backoff. Transport and
HTTP errors surface as requests.RequestException (raise_for_status() turns
non-2xx into requests.HTTPError); AIService converts them into failed
AIResult envelopes. The client itself never swallows an error.
"""

import logging
from typing import Any, Optional

import requests

logger = logging.getLogger("studyplanner.ai")


class CompletionClient:
    """Bearer-authenticated requests.Session bound to one API base URL.

    Usage:
        client = CompletionClient(api_key="sk-...", base_url="https://api.openai.com/v1")
        body = client.chat_completion(model="gpt-4o-mini", messages=[...], max_tokens=150, temperature=0.7)
        client.close()
    """

    def __init__(self, api_key: str, base_url: str = "https://api.openai.com/v1", timeout: float = 60) -> None:
        if not api_key:
            raise ValueError("OPENAI_API_KEY is required")
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        # One session per client for connection pooling. max_redirects=3
        # replaces the requests default of 30 -- a REST API has no business
        # redirecting more than a hop or two.
        self._session = requests.Session()
        self._session.max_redirects = 3
        self._session.headers.update(
            {
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            }
        )

    def _post(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        logger.debug("POST %s%s model=%s", self.base_url, path, payload.get("model"))
        resp = self._session.post(f"{self.base_url}{path}", json=payload, timeout=self.timeout)
        resp.raise_for_status()
        return resp.json()

    def chat_completion(
        self,
        model: str,
        messages: list[dict[str, str]],
        max_tokens: int,
        temperature: float,
        response_format: Optional[dict[str, str]] = None,
    ) -> dict[str, Any]:
        """POST /chat/completions and return the decoded response body."""
        payload: dict[str, Any] = {
            "model": model,
            "messages": messages,
            "max_tokens": max_tokens,
            "temperature": temperature,
        }
        if response_format is not None:
            payload["response_format"] = response_format
        return self._post("/chat/completions", payload)

    def text_completion(self, model: str, prompt: str, max_tokens: int, temperature: float) -> dict[str, Any]:
        """POST /completions (legacy prompt-style endpoint)."""
        return self._post(
            "/completions",
            {"model": model, "prompt": prompt, "max_tokens": max_tokens, "temperature": temperature},
        )

    def embedding(self, model: str, text: str) -> dict[str, Any]:
        """POST /embeddings for a single input string."""
        return self._post("/embeddings", {"model": model, "input": text})

    def list_models(self) -> dict[str, Any]:
        """GET /models."""
        resp = self._session.get(f"{self.base_url}/models", timeout=self.timeout)
        resp.raise_for_status()
        return resp.json()

    def close(self) -> None:
        self._session.close()
