"""
ai/service.py -- AI provider operations with a never-raise result contract.

Every public method returns an AIResult. A provider failure (non-2xx status,
timeout, connection error, undecodable body, a 2xx body of the wrong shape)
becomes AIResult(success=False, error=str(exc)) and is logged at WARNING;
nothing is raised to the caller and nothing is retried.

generate_json() is the learning-plan generator:
  - prepends LEARNING_PLAN_SYSTEM_PROMPT (the exact JSON shape wanted),
  - asks for response_format=json_object at temperature 0.5,
  - runs the reply through ai.parsing.parse_json_content().
A reply that does not parse yields the fixed PARSE_ERROR_MESSAGE.

The optional schema hint is advisory only: it is appended to the system
prompt so the model sees it, but the parsed reply is NOT validated against
it. Callers currently receive whatever JSON the model produced.
"""

import json
import logging
from typing import Any, Optional

import requests

from ai.client import CompletionClient
from ai.models import AIResult
from ai.parsing import parse_json_content

logger = logging.getLogger("studyplanner.ai")

CHAT_MAX_TOKENS = 150
CHAT_TEMPERATURE = 0.7
JSON_TEMPERATURE = 0.5
EMBEDDING_MODEL = "text-embedding-ada-002"

PARSE_ERROR_MESSAGE = "Failed to parse JSON response from AI"
MALFORMED_RESPONSE_MESSAGE = "Unexpected response shape from AI provider"

LEARNING_PLAN_SYSTEM_PROMPT = """You are a teaching planner that returns JSON data.
Please strictly respond with valid JSON that matches this schema:
{
"title":"what is the topic to learn",
"duration":"duration in weeks for complete course",
"prerequisites":["array of prerequisites"],
"phases":[{
"focus":"phase of learning",
"duration":"duration in weeks just the number",
"topics":["each detailed description of topics for this phase can be used as context for further usage"]
}]
}

Only return the JSON object, no additional text."""


def _as_object(value: Any) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise ValueError(MALFORMED_RESPONSE_MESSAGE)
    return value


def _first_item(body: dict[str, Any], key: str) -> dict[str, Any]:
    """First entry of body[key], or {} when the list is absent or empty."""
    items = body.get(key) or [{}]
    if not isinstance(items, list):
        raise ValueError(MALFORMED_RESPONSE_MESSAGE)
    return _as_object(items[0] or {})


def _optional_text(value: Any) -> Optional[str]:
    if value is not None and not isinstance(value, str):
        raise ValueError(MALFORMED_RESPONSE_MESSAGE)
    return value


def _system_prompt(schema: Optional[dict[str, Any]]) -> str:
    if not schema:
        return LEARNING_PLAN_SYSTEM_PROMPT
    return (
        f"{LEARNING_PLAN_SYSTEM_PROMPT}\n\n"
        f"The caller also supplied this JSON schema as a hint:\n{json.dumps(schema)}"
    )


class AIService:
    """Chat, text, embedding, model listing, and JSON generation over one CompletionClient."""

    def __init__(self, client: CompletionClient, model: str, json_max_tokens: int = 4096) -> None:
        self._client = client
        self.model = model
        self._json_max_tokens = json_max_tokens

    def generate_chat_response(self, messages: list[dict[str, str]]) -> AIResult:
        try:
            body = _as_object(
                self._client.chat_completion(
                    model=self.model,
                    messages=messages,
                    max_tokens=CHAT_MAX_TOKENS,
                    temperature=CHAT_TEMPERATURE,
                )
            )
            message = _as_object(_first_item(body, "choices").get("message") or {})
            content = _optional_text(message.get("content"))
        except (requests.RequestException, ValueError) as exc:
            logger.warning("Chat completion failed: %s", exc)
            return AIResult.failure(str(exc))
        return AIResult(
            success=True,
            data=content or "No response generated",
            usage=body.get("usage"),
            model=body.get("model"),
        )

    def generate_text(self, prompt: str) -> AIResult:
        try:
            body = _as_object(
                self._client.text_completion(
                    model=self.model,
                    prompt=prompt,
                    max_tokens=CHAT_MAX_TOKENS,
                    temperature=CHAT_TEMPERATURE,
                )
            )
            text = _optional_text(_first_item(body, "choices").get("text"))
        except (requests.RequestException, ValueError) as exc:
            logger.warning("Text completion failed: %s", exc)
            return AIResult.failure(str(exc))
        return AIResult(
            success=True,
            data=text or "No text generated",
            usage=body.get("usage"),
            model=body.get("model"),
        )

    def create_embedding(self, text: str) -> AIResult:
        try:
            body = _as_object(self._client.embedding(model=EMBEDDING_MODEL, text=text))
            vector = _first_item(body, "data").get("embedding") or []
            if not isinstance(vector, list):
                raise ValueError(MALFORMED_RESPONSE_MESSAGE)
        except (requests.RequestException, ValueError) as exc:
            logger.warning("Embedding request failed: %s", exc)
            return AIResult.failure(str(exc))
        return AIResult(
            success=True,
            data=vector,
            usage=body.get("usage"),
            model=body.get("model"),
        )

    def list_models(self) -> AIResult:
        try:
            body = _as_object(self._client.list_models())
        except (requests.RequestException, ValueError) as exc:
            logger.warning("Model listing failed: %s", exc)
            return AIResult.failure(str(exc))
        return AIResult(success=True, data=body.get("data") or [])

    def generate_json(
        self,
        messages: list[dict[str, str]],
        schema: Optional[dict[str, Any]] = None,
    ) -> AIResult:
        """Generate a learning plan as JSON. See the module docstring for the contract."""
        try:
            body = _as_object(
                self._client.chat_completion(
                    model=self.model,
                    messages=[{"role": "system", "content": _system_prompt(schema)}, *messages],
                    max_tokens=self._json_max_tokens,
                    temperature=JSON_TEMPERATURE,
                    response_format={"type": "json_object"},
                )
            )
            message = _as_object(_first_item(body, "choices").get("message") or {})
        except (requests.RequestException, ValueError) as exc:
            logger.warning("JSON generation failed: %s", exc)
            return AIResult.failure(str(exc))

        content = message.get("content") or ""
        if not isinstance(content, str):
            logger.warning("AI reply content was %s, not text", type(content).__name__)
            return AIResult.failure(PARSE_ERROR_MESSAGE)
        try:
            data = parse_json_content(content)
        except ValueError:
            logger.warning("AI reply was not valid JSON (%d chars)", len(content))
            return AIResult.failure(PARSE_ERROR_MESSAGE)

        return AIResult(success=True, data=data, usage=body.get("usage"), model=body.get("model"))

    def validate_and_generate_json(
        self,
        messages: list[dict[str, str]],
        schema: dict[str, Any],
    ) -> AIResult:
        """Same as generate_json() with a required schema hint.

        The schema only reaches the prompt; the parsed result is not checked
        against it.
        """
        # TODO: validate result.data against `schema` once callers can handle a
        # schema-mismatch failure; today they rely on the lenient behaviour.
        return self.generate_json(messages, schema)

    def close(self) -> None:
        self._client.close()
