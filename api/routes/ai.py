"""
api/routes/ai.py -- AI provider routes.

Routes:
  POST /openai/chat           -- chat completion
  POST /openai/text           -- legacy text completion
  POST /openai/embedding      -- embedding vector for one string
  GET  /openai/models         -- models the provider offers
  POST /openai/json           -- learning-plan JSON generation, optional schema hint
  POST /openai/json/validate  -- same, schema hint required

Every route answers 200 with the AIResult envelope, including when the
upstream call failed ({"success": false, "error": "..."}). The only non-200
outcomes are 401 from the access guard, 422 for a malformed body, and 503 when
no AI provider is configured (OPENAI_API_KEY unset at startup).
"""

from fastapi import APIRouter, Depends, Request

from ai.models import AIResult
from ai.service import AIService
from api.models import (
    AIResultResponse,
    ChatRequest,
    EmbeddingRequest,
    JSONRequest,
    TextRequest,
    ValidatedJSONRequest,
)
from core.errors import ServiceUnavailableError

AI_NOT_CONFIGURED_MESSAGE = "AI provider is not configured."


def get_ai_service(request: Request) -> AIService:
    """FastAPI dependency: the app's AIService, or 503 when none was configured."""
    service = getattr(request.app.state, "ai_service", None)
    if service is None:
        raise ServiceUnavailableError(AI_NOT_CONFIGURED_MESSAGE)
    return service


router = APIRouter(prefix="/openai")


def _envelope(result: AIResult) -> AIResultResponse:
    return AIResultResponse(
        success=result.success,
        data=result.data,
        usage=result.usage,
        model=result.model,
        error=result.error,
    )


@router.post("/chat", response_model=AIResultResponse, response_model_exclude_none=True)
def chat(body: ChatRequest, ai: AIService = Depends(get_ai_service)) -> AIResultResponse:
    return _envelope(ai.generate_chat_response(body.message_dicts()))


@router.post("/text", response_model=AIResultResponse, response_model_exclude_none=True)
def text(body: TextRequest, ai: AIService = Depends(get_ai_service)) -> AIResultResponse:
    return _envelope(ai.generate_text(body.prompt))


@router.post("/embedding", response_model=AIResultResponse, response_model_exclude_none=True)
def embedding(body: EmbeddingRequest, ai: AIService = Depends(get_ai_service)) -> AIResultResponse:
    return _envelope(ai.create_embedding(body.text))


@router.get("/models", response_model=AIResultResponse, response_model_exclude_none=True)
def models(ai: AIService = Depends(get_ai_service)) -> AIResultResponse:
    return _envelope(ai.list_models())


@router.post("/json", response_model=AIResultResponse, response_model_exclude_none=True)
def generate_json(body: JSONRequest, ai: AIService = Depends(get_ai_service)) -> AIResultResponse:
    """Generate a learning plan as a parsed JSON object."""
    return _envelope(ai.generate_json(body.message_dicts(), body.schema_dict()))


@router.post("/json/validate", response_model=AIResultResponse, response_model_exclude_none=True)
def validate_json(body: ValidatedJSONRequest, ai: AIService = Depends(get_ai_service)) -> AIResultResponse:
    """Like /openai/json, with the schema hint required."""
    return _envelope(ai.validate_and_generate_json(body.message_dicts(), body.schema_dict()))
