"""
api/routes/learning_plans.py -- Learning plan routes.

Routes (static paths before /learning-plans/{plan_id}):
  POST   /learning-plans                          -- create
  GET    /learning-plans[?user_id=]               -- all plans, or a user's active plans
  GET    /learning-plans/user/{user_id}           -- same, user in the path
  GET    /learning-plans/{plan_id}                -- plan detail
  PUT    /learning-plans/{plan_id}                -- partial update
  DELETE /learning-plans/{plan_id}                -- delete
  PATCH  /learning-plans/{plan_id}/phases/status  -- mark a phase done/undone
  PATCH  /learning-plans/{plan_id}/topics/status  -- mark a topic done/undone

Phases accept topics as bare strings or {title, status} objects (the shape
AI-generated plans come back in). Both create and update run them through
planner.store.normalize_phases(), so every stored topic has a status.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Request

from api.models import (
    LearningPlanCreate,
    LearningPlanResponse,
    LearningPlanUpdate,
    MessageResponse,
    PhaseStatusUpdate,
    TopicStatusUpdate,
)
from core.errors import BadRequestError, NotFoundError
from planner.models import LearningPlan
from planner.store import PlannerStore, normalize_phases

logger = logging.getLogger("studyplanner.api")

router = APIRouter()


def _plan_not_found(plan_id: int) -> NotFoundError:
    return NotFoundError(f"Learning plan with ID {plan_id} not found")


def _load_plan(store: PlannerStore, plan_id: int) -> LearningPlanResponse:
    plan = store.get_plan(plan_id)
    if plan is None:
        raise _plan_not_found(plan_id)
    return LearningPlanResponse.from_plan(plan)


@router.post("/learning-plans", response_model=LearningPlanResponse, status_code=201)
def create_learning_plan(request: Request, body: LearningPlanCreate) -> LearningPlanResponse:
    """Store a new plan. New plans are always active."""
    store: PlannerStore = request.app.state.planner_store
    plan = LearningPlan(
        title=body.title,
        duration=body.duration,
        user_id=body.user_id,
        prerequisites=body.prerequisites,
        phases=normalize_phases(p.model_dump() for p in body.phases),
    )
    plan_id = store.create_plan(plan)
    logger.info("Created learning plan %d for user %d", plan_id, body.user_id)
    return _load_plan(store, plan_id)


@router.get("/learning-plans", response_model=list[LearningPlanResponse])
def list_learning_plans(request: Request, user_id: Optional[int] = None) -> list[LearningPlanResponse]:
    """Return every plan, or only the user's active plans (newest first) when user_id is given."""
    store: PlannerStore = request.app.state.planner_store
    plans = store.list_plans() if user_id is None else store.list_plans_for_user(user_id)
    return [LearningPlanResponse.from_plan(p) for p in plans]


@router.get("/learning-plans/user/{user_id}", response_model=list[LearningPlanResponse])
def list_learning_plans_for_user(request: Request, user_id: int) -> list[LearningPlanResponse]:
    store: PlannerStore = request.app.state.planner_store
    return [LearningPlanResponse.from_plan(p) for p in store.list_plans_for_user(user_id)]


@router.get("/learning-plans/{plan_id}", response_model=LearningPlanResponse)
def get_learning_plan(request: Request, plan_id: int) -> LearningPlanResponse:
    store: PlannerStore = request.app.state.planner_store
    return _load_plan(store, plan_id)


@router.put("/learning-plans/{plan_id}", response_model=LearningPlanResponse)
def update_learning_plan(request: Request, plan_id: int, body: LearningPlanUpdate) -> LearningPlanResponse:
    """Apply the fields present in the body. Sent phases replace the stored ones."""
    store: PlannerStore = request.app.state.planner_store
    fields = body.model_dump(exclude_none=True)
    if not fields:
        raise BadRequestError("No fields to update.")
    if "phases" in fields:
        fields["phases"] = normalize_phases(fields["phases"])
    if not store.update_plan(plan_id, **fields):
        raise _plan_not_found(plan_id)
    return _load_plan(store, plan_id)


@router.delete("/learning-plans/{plan_id}", response_model=MessageResponse)
def delete_learning_plan(request: Request, plan_id: int) -> MessageResponse:
    store: PlannerStore = request.app.state.planner_store
    if not store.delete_plan(plan_id):
        raise _plan_not_found(plan_id)
    logger.info("Deleted learning plan %d", plan_id)
    return MessageResponse(message="Learning plan deleted successfully")


@router.patch("/learning-plans/{plan_id}/phases/status", response_model=LearningPlanResponse)
def update_phase_status(request: Request, plan_id: int, body: PhaseStatusUpdate) -> LearningPlanResponse:
    """Set the status of the phase whose focus equals phase_name."""
    store: PlannerStore = request.app.state.planner_store
    if store.get_plan(plan_id) is None:
        raise _plan_not_found(plan_id)
    if not store.set_phase_status(plan_id, body.phase_name, body.status):
        raise NotFoundError(f"Phase '{body.phase_name}' not found in learning plan {plan_id}")
    return _load_plan(store, plan_id)


@router.patch("/learning-plans/{plan_id}/topics/status", response_model=LearningPlanResponse)
def update_topic_status(request: Request, plan_id: int, body: TopicStatusUpdate) -> LearningPlanResponse:
    """Set the status of every topic titled topic_title, in any phase."""
    store: PlannerStore = request.app.state.planner_store
    if store.get_plan(plan_id) is None:
        raise _plan_not_found(plan_id)
    if not store.set_topic_status(plan_id, body.topic_title, body.status):
        raise NotFoundError(f"Topic '{body.topic_title}' not found in learning plan {plan_id}")
    return _load_plan(store, plan_id)
