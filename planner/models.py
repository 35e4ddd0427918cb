"""
planner/models.py -- Domain dataclasses for topics and learning plans.

These are pure data containers with zero logic. Phase normalization and
status updates live in planner/store.py.

Separation of concerns: these dataclasses are the planner's domain truth, just
as auth/models.py is the account domain's. Neither layer imports the other.
"""

from dataclasses import dataclass, field
from typing import Optional


@dataclass
class Topic:
    """A named body of study content. topic_name is unique across topics.

    id is None before the record is written to the database.
    """

    topic_name: str
    content: str
    id: Optional[int] = None
    created_at: str = ""  # ISO 8601, set by store on insert
    updated_at: str = ""


@dataclass
class PlanTopic:
    """One topic inside a phase, with its completion flag."""

    title: str
    status: bool = False


@dataclass
class Phase:
    """One stage of a learning plan.

    duration is free text as produced by people or the AI planner
    (e.g. "2" or "2 weeks").
    """

    focus: str
    duration: str
    topics: list[PlanTopic] = field(default_factory=list)
    status: bool = False


@dataclass
class LearningPlan:
    """A structured study plan owned by one user.

    is_active=False hides the plan from the per-user listing without deleting it.

    id is None before the record is written to the database.
    """

    title: str
    duration: str
    user_id: int
    prerequisites: list[str] = field(default_factory=list)
    phases: list[Phase] = field(default_factory=list)
    is_active: bool = True
    id: Optional[int] = None
    created_at: str = ""
    updated_at: str = ""
