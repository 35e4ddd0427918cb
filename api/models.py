"""
API request and response models for Study Planner REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
planner/models.py, which own the internal domain representation. Route
handlers map between the two.

Separation of concerns: domain models = domain truth; api/ models = API contract.
No response model has a password or hash field, so a credential hash cannot
reach a client even by accident.
"""

import re
from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from auth.models import User
from planner.models import LearningPlan, Topic

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"

# bcrypt only looks at the first 72 bytes and bcrypt 5 rejects longer input.
_MAX_PASSWORD_BYTES = 72


def _check_password_bytes(value: Optional[str]) -> Optional[str]:
    if value is not None and len(value.encode("utf-8")) > _MAX_PASSWORD_BYTES:
        raise ValueError(f"Password must be at most {_MAX_PASSWORD_BYTES} bytes.")
    return value


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class MessageResponse(BaseModel):
    """Plain acknowledgement, e.g. after deleting a learning plan."""

    model_config = ConfigDict(frozen=True)

    message: str


# ---------------------------------------------------------------------------
# Users and auth
# ---------------------------------------------------------------------------


class UserCreate(BaseModel):
    """Request body for POST /users (registration)."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=1, max_length=255)
    email: str = Field(pattern=EMAIL_PATTERN, max_length=255)
    mobile: str = Field(min_length=1, max_length=32)
    password: str = Field(min_length=6, max_length=_MAX_PASSWORD_BYTES)

    @field_validator("password")
    @classmethod
    def check_password_bytes(cls, value):
        return _check_password_bytes(value)


class UserUpdate(BaseModel):
    """Request body for PUT /users/{id}. Only the fields sent are changed."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    email: Optional[str] = Field(default=None, pattern=EMAIL_PATTERN, max_length=255)
    mobile: Optional[str] = Field(default=None, min_length=1, max_length=32)
    password: Optional[str] = Field(default=None, min_length=6, max_length=_MAX_PASSWORD_BYTES)

    @field_validator("password")
    @classmethod
    def check_password_bytes(cls, value):
        return _check_password_bytes(value)


class UserQuery(BaseModel):
    """Request body for POST /users/search.

    Empty strings are treated as "not provided". At least one field must
    carry a value, otherwise the search would match an arbitrary user.
    """

    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    id: Optional[int] = Field(default=None, ge=1)
    name: Optional[str] = Field(default=None, max_length=255)
    email: Optional[str] = Field(default=None, max_length=255)
    mobile: Optional[str] = Field(default=None, max_length=32)

    @field_validator("email")
    @classmethod
    def check_email(cls, value: Optional[str]) -> Optional[str]:
        """Validate the email format only when an email was actually sent."""
        if value and not re.match(EMAIL_PATTERN, value):
            raise ValueError("Email must be a valid email address")
        return value

    @model_validator(mode="after")
    def require_one_field(self) -> "UserQuery":
        if not self.filters():
            raise ValueError("At least one search parameter (id, name, email, mobile) must be provided")
        return self

    def filters(self) -> dict[str, Any]:
        """Return only the fields that carry a value."""
        return {k: v for k, v in self.model_dump().items() if v is not None and v != ""}


class UserResponse(BaseModel):
    """A user as seen by clients -- never includes the password hash."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    email: str
    mobile: str
    created_at: str
    updated_at: str

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            mobile=user.mobile,
            created_at=user.created_at or "",
            updated_at=user.updated_at or "",
        )


class LoginRequest(BaseModel):
    """Request body for POST /auth/login."""

    model_config = ConfigDict(str_strip_whitespace=True)

    email: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1, max_length=_MAX_PASSWORD_BYTES)

    @field_validator("password")
    @classmethod
    def check_password_bytes(cls, value):
        return _check_password_bytes(value)


class LoginResponse(BaseModel):
    """Response for a successful POST /auth/login."""

    model_config = ConfigDict(frozen=True)

    access_token: str


# ---------------------------------------------------------------------------
# Topics
# ---------------------------------------------------------------------------


class TopicCreate(BaseModel):
    """Request body for POST /topics."""

    model_config = ConfigDict(str_strip_whitespace=True)

    topic_name: str = Field(min_length=1, max_length=255)
    content: str = Field(min_length=1)


class TopicUpdate(BaseModel):
    """Request body for PUT /topics/{id}."""

    model_config = ConfigDict(str_strip_whitespace=True)

    topic_name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    content: Optional[str] = Field(default=None, min_length=1)


class TopicSearch(BaseModel):
    """Request body for POST /topics/search."""

    model_config = ConfigDict(str_strip_whitespace=True)

    topic_name: str = Field(min_length=1, max_length=255)


class TopicResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    topic_name: str
    content: str
    created_at: str
    updated_at: str

    @classmethod
    def from_topic(cls, topic: Topic) -> "TopicResponse":
        return cls(
            id=topic.id,
            topic_name=topic.topic_name,
            content=topic.content,
            created_at=topic.created_at,
            updated_at=topic.updated_at,
        )


# ---------------------------------------------------------------------------
# Learning plans
# ---------------------------------------------------------------------------


def _duration_text(value: Any) -> Any:
    """AI-generated plans often send the duration as a bare number."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


class PlanTopicIn(BaseModel):
    title: str = Field(min_length=1)
    status: Optional[bool] = None


class PhaseIn(BaseModel):
    """One phase in a create/update body.

    topics may mix bare strings and {title, status} objects; the store
    normalizes both into {title, status}.
    """

    focus: str = Field(min_length=1)
    duration: str = Field(min_length=1)
    status: Optional[bool] = None
    topics: list[Union[str, PlanTopicIn]] = Field(default_factory=list)

    @field_validator("duration", mode="before")
    @classmethod
    def coerce_duration(cls, value: Any) -> Any:
        return _duration_text(value)


class LearningPlanCreate(BaseModel):
    """Request body for POST /learning-plans."""

    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(min_length=1, max_length=255)
    duration: str = Field(min_length=1, max_length=100)
    prerequisites: list[str] = Field(default_factory=list)
    phases: list[PhaseIn] = Field(default_factory=list)
    user_id: int = Field(ge=1)

    @field_validator("duration", mode="before")
    @classmethod
    def coerce_duration(cls, value: Any) -> Any:
        return _duration_text(value)


class LearningPlanUpdate(BaseModel):
    """Request body for PUT /learning-plans/{id}. Only the fields sent are changed."""

    model_config = ConfigDict(str_strip_whitespace=True)

    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    duration: Optional[str] = Field(default=None, min_length=1, max_length=100)
    prerequisites: Optional[list[str]] = None
    phases: Optional[list[PhaseIn]] = None
    is_active: Optional[bool] = None

    @field_validator("duration", mode="before")
    @classmethod
    def coerce_duration(cls, value: Any) -> Any:
        return _duration_text(value)


class PhaseStatusUpdate(BaseModel):
    """Request body for PATCH /learning-plans/{id}/phases/status."""

    model_config = ConfigDict(str_strip_whitespace=True)

    phase_name: str = Field(min_length=1)
    status: bool


class TopicStatusUpdate(BaseModel):
    """Request body for PATCH /learning-plans/{id}/topics/status."""

    model_config = ConfigDict(str_strip_whitespace=True)

    topic_title: str = Field(min_length=1)
    status: bool


class PlanTopicOut(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str
    status: bool


class PhaseOut(BaseModel):
    model_config = ConfigDict(frozen=True)

    focus: str
    duration: str
    status: bool
    topics: list[PlanTopicOut]


class LearningPlanResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    title: str
    duration: str
    prerequisites: list[str]
    phases: list[PhaseOut]
    user_id: int
    is_active: bool
    created_at: str
    updated_at: str

    @classmethod
    def from_plan(cls, plan: LearningPlan) -> "LearningPlanResponse":
        return cls(
            id=plan.id,
            title=plan.title,
            duration=plan.duration,
            prerequisites=plan.prerequisites,
            phases=[
                PhaseOut(
                    focus=p.focus,
                    duration=p.duration,
                    status=p.status,
                    topics=[PlanTopicOut(title=t.title, status=t.status) for t in p.topics],
                )
                for p in plan.phases
            ],
            user_id=plan.user_id,
            is_active=plan.is_active,
            created_at=plan.created_at,
            updated_at=plan.updated_at,
        )


# ---------------------------------------------------------------------------
# AI
# ---------------------------------------------------------------------------


class RoleEnum(str, Enum):
    user = "user"
    assistant = "assistant"
    system = "system"


class ChatMessage(BaseModel):
    role: RoleEnum
    content: str


class SchemaHint(BaseModel):
    """JSON-schema-shaped hint forwarded to the model prompt."""

    model_config = ConfigDict(extra="allow")

    type: str
    properties: Optional[dict[str, Any]] = None
    required: Optional[list[str]] = None


class ChatRequest(BaseModel):
    """Request body for POST /openai/chat."""

    messages: list[ChatMessage] = Field(min_length=1)

    def message_dicts(self) -> list[dict[str, str]]:
        return [{"role": m.role.value, "content": m.content} for m in self.messages]


class JSONRequest(ChatRequest):
    """Request body for POST /openai/json. The schema hint is optional."""

    model_config = ConfigDict(populate_by_name=True)

    json_schema: Optional[SchemaHint] = Field(default=None, alias="schema")

    def schema_dict(self) -> Optional[dict[str, Any]]:
        return self.json_schema.model_dump(exclude_none=True) if self.json_schema else None


class ValidatedJSONRequest(JSONRequest):
    """Request body for POST /openai/json/validate. The schema hint is required."""

    json_schema: SchemaHint = Field(alias="schema")


class TextRequest(BaseModel):
    """Request body for POST /openai/text."""

    prompt: str = Field(min_length=1)


class EmbeddingRequest(BaseModel):
    """Request body for POST /openai/embedding."""

    text: str = Field(min_length=1)


class AIResultResponse(BaseModel):
    """Envelope for every AI route. Unset fields are omitted from the JSON body."""

    model_config = ConfigDict(frozen=True)

    success: bool
    data: Any = None
    usage: Optional[dict[str, Any]] = None
    model: Optional[str] = None
    error: Optional[str] = None
