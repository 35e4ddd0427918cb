"""
planner/store.py -- SQLAlchemy-backed persistence for topics and learning plans.

Uses SQLAlchemy Core (not ORM) so the dataclasses in planner/models.py remain
the authoritative domain representation. A learning plan is a document:
prerequisites and phases are stored as JSON text columns and rebuilt into
dataclasses by the row mappers.

Pattern: Repository + Data Mapper. PlannerStore is the repository; the
_row_to_* functions are the mappers. Route handlers never touch SQL directly.

Security: all queries use bound parameters. No f-strings in SQL.

Uniqueness: topics.topic_name carries a UNIQUE constraint. create_topic() and
update_topic() let sqlalchemy.exc.IntegrityError propagate; the route layer
maps it to 409.

Usage:
    store = PlannerStore("sqlite:///studyplanner.db")
    topic_id = store.create_topic(Topic(topic_name="Graphs", content="..."))
    plan_id = store.create_plan(LearningPlan(title="Rust", duration="8", user_id=1, phases=normalize_phases(raw)))
    store.set_phase_status(plan_id, "Ownership", True)
    store.close()
"""

import json
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, create_engine, event
from sqlalchemy.engine import Engine

from planner.models import LearningPlan, Phase, PlanTopic, Topic

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

_topics = Table(
    "topics",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("topic_name", String(255), nullable=False, unique=True),
    Column("content", Text, nullable=False),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
)

_plans = Table(
    "learning_plans",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("title", String(255), nullable=False),
    Column("duration", String(100), nullable=False),
    Column("prerequisites", Text, nullable=False),  # JSON array of strings
    Column("phases", Text, nullable=False),  # JSON array of phase objects
    Column("user_id", Integer, nullable=False, index=True),
    Column("is_active", Integer, nullable=False, server_default="1"),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode. Set per-connection; SQLite PRAGMAs are not pooled."""
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def normalize_phases(phases: Iterable[Any]) -> list[Phase]:
    """Turn raw phase input into Phase dataclasses with explicit statuses.

    Accepts Phase instances or mappings with focus/duration/topics/status.
    Each topic may be a bare string (becomes an unfinished PlanTopic), a
    PlanTopic, or a mapping with title and an optional status. Missing
    statuses default to False.

    Both the REST routes and AI-generated plans (whose topics are plain
    strings) go through here, so stored phases always have one shape.
    """
    normalized: list[Phase] = []
    for phase in phases:
        if isinstance(phase, Phase):
            phase = asdict(phase)
        topics: list[PlanTopic] = []
        for topic in phase.get("topics") or []:
            if isinstance(topic, str):
                topics.append(PlanTopic(title=topic))
            elif isinstance(topic, PlanTopic):
                topics.append(PlanTopic(title=topic.title, status=topic.status))
            else:
                topics.append(PlanTopic(title=topic["title"], status=bool(topic.get("status") or False)))
        normalized.append(
            Phase(
                focus=phase["focus"],
                duration=str(phase["duration"]),
                topics=topics,
                status=bool(phase.get("status") or False),
            )
        )
    return normalized


def _dump_phases(phases: list[Phase]) -> str:
    return json.dumps([asdict(p) for p in phases])


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class PlannerStore:
    # Columns update_plan() may write. user_id is fixed at creation.
    _PLAN_UPDATE_KEYS: set = {"title", "duration", "prerequisites", "phases", "is_active"}
    _TOPIC_UPDATE_KEYS: set = {"topic_name", "content"}

    def __init__(self, db_url: str) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            # FastAPI runs sync handlers in a thread pool, so one SQLite
            # connection may be touched from several threads.
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Topics
    # ------------------------------------------------------------------

    def create_topic(self, topic: Topic) -> int:
        """Insert a topic and return its ID.

        Raises sqlalchemy.exc.IntegrityError if topic_name is already taken.
        """
        now = _now_iso()
        with self.engine.connect() as conn:
            result = conn.execute(
                _topics.insert().values(
                    topic_name=topic.topic_name,
                    content=topic.content,
                    created_at=now,
                    updated_at=now,
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def list_topics(self) -> list[Topic]:
        with self.engine.connect() as conn:
            rows = conn.execute(_topics.select().order_by(_topics.c.id)).fetchall()
        return [_row_to_topic(r) for r in rows]

    def get_topic(self, topic_id: int) -> Optional[Topic]:
        """Fetch a topic by ID. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_topics.select().where(_topics.c.id == topic_id)).fetchone()
        return _row_to_topic(row) if row is not None else None

    def get_topic_by_name(self, topic_name: str) -> Optional[Topic]:
        """Look up a topic by exact name. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_topics.select().where(_topics.c.topic_name == topic_name)).fetchone()
        return _row_to_topic(row) if row is not None else None

    def update_topic(self, topic_id: int, **fields) -> bool:
        """Update topic_name and/or content. Returns False if topic_id was not found.

        Raises sqlalchemy.exc.IntegrityError if the new name collides.
        """
        unknown = set(fields) - self._TOPIC_UPDATE_KEYS
        if unknown:
            raise ValueError(f"Unknown topic fields: {unknown!r}")
        with self.engine.connect() as conn:
            result = conn.execute(
                _topics.update().where(_topics.c.id == topic_id).values(updated_at=_now_iso(), **fields)
            )
            conn.commit()
        return result.rowcount > 0

    def delete_topic(self, topic_id: int) -> bool:
        """Delete a topic. Returns True if deleted, False if not found."""
        with self.engine.connect() as conn:
            result = conn.execute(_topics.delete().where(_topics.c.id == topic_id))
            conn.commit()
        return result.rowcount > 0

    # ------------------------------------------------------------------
    # Learning plans
    # ------------------------------------------------------------------

    def create_plan(self, plan: LearningPlan) -> int:
        """Insert a learning plan and return its ID.

        plan.phases should already be normalized (see normalize_phases).
        """
        now = _now_iso()
        with self.engine.connect() as conn:
            result = conn.execute(
                _plans.insert().values(
                    title=plan.title,
                    duration=plan.duration,
                    prerequisites=json.dumps(plan.prerequisites),
                    phases=_dump_phases(plan.phases),
                    user_id=plan.user_id,
                    is_active=1 if plan.is_active else 0,
                    created_at=now,
                    updated_at=now,
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def list_plans(self) -> list[LearningPlan]:
        """Return every plan, active or not, ordered by ID."""
        with self.engine.connect() as conn:
            rows = conn.execute(_plans.select().order_by(_plans.c.id)).fetchall()
        return [_row_to_plan(r) for r in rows]

    def list_plans_for_user(self, user_id: int) -> list[LearningPlan]:
        """Return the user's active plans, newest first."""
        with self.engine.connect() as conn:
            rows = conn.execute(
                _plans.select()
                .where((_plans.c.user_id == user_id) & (_plans.c.is_active == 1))
                .order_by(_plans.c.created_at.desc(), _plans.c.id.desc())
            ).fetchall()
        return [_row_to_plan(r) for r in rows]

    def get_plan(self, plan_id: int) -> Optional[LearningPlan]:
        """Fetch a plan by ID. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_plans.select().where(_plans.c.id == plan_id)).fetchone()
        return _row_to_plan(row) if row is not None else None

    def update_plan(self, plan_id: int, **fields) -> bool:
        """Update any subset of title, duration, prerequisites, phases, is_active.

        prerequisites is a list[str]; phases is a list of Phase (normalized by
        the caller). Both are serialized to JSON here.

        Returns True if a row was updated, False if plan_id was not found.
        """
        unknown = set(fields) - self._PLAN_UPDATE_KEYS
        if unknown:
            raise ValueError(f"Unknown learning plan fields: {unknown!r}")
        if "prerequisites" in fields:
            fields["prerequisites"] = json.dumps(fields["prerequisites"])
        if "phases" in fields:
            fields["phases"] = _dump_phases(fields["phases"])
        if "is_active" in fields:
            fields["is_active"] = 1 if fields["is_active"] else 0
        with self.engine.connect() as conn:
            result = conn.execute(
                _plans.update().where(_plans.c.id == plan_id).values(updated_at=_now_iso(), **fields)
            )
            conn.commit()
        return result.rowcount > 0

    def delete_plan(self, plan_id: int) -> bool:
        """Delete a plan. Returns True if deleted, False if not found."""
        with self.engine.connect() as conn:
            result = conn.execute(_plans.delete().where(_plans.c.id == plan_id))
            conn.commit()
        return result.rowcount > 0

    def set_phase_status(self, plan_id: int, focus: str, status: bool) -> bool:
        """Set the completion flag of the phase whose focus matches exactly.

        Returns False if the plan does not exist or has no such phase.
        """
        plan = self.get_plan(plan_id)
        if plan is None:
            return False
        matched = False
        for phase in plan.phases:
            if phase.focus == focus:
                phase.status = status
                matched = True
        if not matched:
            return False
        return self.update_plan(plan_id, phases=plan.phases)

    def set_topic_status(self, plan_id: int, title: str, status: bool) -> bool:
        """Set the completion flag of every topic titled `title` in the plan.

        Returns False if the plan does not exist or no topic has that title.
        """
        plan = self.get_plan(plan_id)
        if plan is None:
            return False
        matched = False
        for phase in plan.phases:
            for topic in phase.topics:
                if topic.title == title:
                    topic.status = status
                    matched = True
        if not matched:
            return False
        return self.update_plan(plan_id, phases=plan.phases)

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_topic(row) -> Topic:
    return Topic(
        id=row.id,
        topic_name=row.topic_name,
        content=row.content,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _row_to_plan(row) -> LearningPlan:
    return LearningPlan(
        id=row.id,
        title=row.title,
        duration=row.duration,
        prerequisites=json.loads(row.prerequisites) if row.prerequisites else [],
        phases=normalize_phases(json.loads(row.phases)) if row.phases else [],
        user_id=row.user_id,
        is_active=bool(row.is_active),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
