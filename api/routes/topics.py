"""
api/routes/topics.py -- Topic catalogue routes.

Routes (static paths before /topics/{topic_id}):
  POST   /topics                    -- create (409 on duplicate name)
  GET    /topics                    -- list all
  POST   /topics/search             -- lookup by name; 200 with a message when absent
  GET    /topics/name/{topic_name}  -- lookup by name; 404 when absent
  GET    /topics/{topic_id}         -- lookup by id
  PUT    /topics/{topic_id}         -- update name and/or content
  DELETE /topics/{topic_id}         -- delete; returns true

POST /topics/search answers a miss with 200 {"message": "Topic not found"}
rather than 404. Existing clients branch on the body, not the status.
"""

from typing import Union

from fastapi import APIRouter, Request
from sqlalchemy.exc import IntegrityError

from api.models import MessageResponse, TopicCreate, TopicResponse, TopicSearch, TopicUpdate
from core.errors import BadRequestError, ConflictError, NotFoundError
from planner.models import Topic
from planner.store import PlannerStore

router = APIRouter()

TOPIC_NOT_FOUND_MESSAGE = "Topic not found"
DUPLICATE_TOPIC_MESSAGE = "Topic with this name already exists"


def _topic_or_404(topic: Topic | None) -> TopicResponse:
    if topic is None:
        raise NotFoundError(TOPIC_NOT_FOUND_MESSAGE)
    return TopicResponse.from_topic(topic)


@router.post("/topics", response_model=TopicResponse, status_code=201)
def create_topic(request: Request, body: TopicCreate) -> TopicResponse:
    store: PlannerStore = request.app.state.planner_store
    try:
        topic_id = store.create_topic(Topic(topic_name=body.topic_name, content=body.content))
    except IntegrityError as exc:
        raise ConflictError(DUPLICATE_TOPIC_MESSAGE) from exc
    return TopicResponse.from_topic(store.get_topic(topic_id))


@router.get("/topics", response_model=list[TopicResponse])
def list_topics(request: Request) -> list[TopicResponse]:
    store: PlannerStore = request.app.state.planner_store
    return [TopicResponse.from_topic(t) for t in store.list_topics()]


@router.post("/topics/search", response_model=Union[TopicResponse, MessageResponse])
def search_topic(request: Request, body: TopicSearch) -> Union[TopicResponse, MessageResponse]:
    """Find a topic by exact name."""
    store: PlannerStore = request.app.state.planner_store
    topic = store.get_topic_by_name(body.topic_name)
    if topic is None:
        return MessageResponse(message=TOPIC_NOT_FOUND_MESSAGE)
    return TopicResponse.from_topic(topic)


@router.get("/topics/name/{topic_name}", response_model=TopicResponse)
def get_topic_by_name(request: Request, topic_name: str) -> TopicResponse:
    store: PlannerStore = request.app.state.planner_store
    return _topic_or_404(store.get_topic_by_name(topic_name))


@router.get("/topics/{topic_id}", response_model=TopicResponse)
def get_topic(request: Request, topic_id: int) -> TopicResponse:
    store: PlannerStore = request.app.state.planner_store
    return _topic_or_404(store.get_topic(topic_id))


@router.put("/topics/{topic_id}", response_model=TopicResponse)
def update_topic(request: Request, topic_id: int, body: TopicUpdate) -> TopicResponse:
    store: PlannerStore = request.app.state.planner_store
    fields = body.model_dump(exclude_none=True)
    if not fields:
        raise BadRequestError("No fields to update.")
    try:
        updated = store.update_topic(topic_id, **fields)
    except IntegrityError as exc:
        raise ConflictError(DUPLICATE_TOPIC_MESSAGE) from exc
    if not updated:
        raise NotFoundError(TOPIC_NOT_FOUND_MESSAGE)
    return _topic_or_404(store.get_topic(topic_id))


@router.delete("/topics/{topic_id}")
def delete_topic(request: Request, topic_id: int) -> bool:
    store: PlannerStore = request.app.state.planner_store
    if not store.delete_topic(topic_id):
        raise NotFoundError(TOPIC_NOT_FOUND_MESSAGE)
    return True
