"""
auth/store.py -- SQLAlchemy Core persistence layer for user accounts.

Pattern: Repository + Data Mapper (same as planner/store.py).
UserStore is the repository; _row_to_user is the mapper.
Route and service code never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.
  Filter and update keys are checked against fixed whitelists before they
  reach a query, so dynamic column names never come from raw user input.

Uniqueness:
  email carries a UNIQUE constraint. create_user() and update_user() let
  sqlalchemy.exc.IntegrityError propagate; the route layer maps it to 409.

Layer rule: no imports from api/, planner/, or ai/.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, create_engine, event
from sqlalchemy.engine import Engine

from auth.models import User

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(255), nullable=False),
    Column("email", String(255), nullable=False, unique=True),
    Column("mobile", String(32), nullable=False),
    Column("hashed_password", Text, nullable=False),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
)


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User entities.

    Usage:
        store = UserStore("sqlite:///studyplanner.db")
        uid = store.create_user(User(name="Ada", email="ada@example.com", mobile="+100", hashed_password=h))
        user = store.get_by_email("ada@example.com")
        store.close()
    """

    # Columns find_one() may filter on.
    _FILTER_KEYS: set = {"id", "name", "email", "mobile"}
    # Columns update_user() may write. id and created_at are immutable.
    _UPDATE_KEYS: set = {"name", "email", "mobile", "hashed_password"}

    def __init__(self, db_url: str) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def create_user(self, user: User) -> int:
        """Insert a new user and return its assigned database ID.

        user.hashed_password must already be a bcrypt hash -- the store never
        sees plaintext. Raises sqlalchemy.exc.IntegrityError if the email is
        already registered.
        """
        now = _now_iso()
        with self.engine.connect() as conn:
            result = conn.execute(
                _users.insert().values(
                    name=user.name,
                    email=user.email,
                    mobile=user.mobile,
                    hashed_password=user.hashed_password,
                    created_at=now,
                    updated_at=now,
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def get_by_id(self, user_id: int) -> User | None:
        """Look up a user by primary key. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_email(self, email: str) -> User | None:
        """Look up a user by exact email (case-sensitive). Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.email == email)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_mobile(self, mobile: str) -> User | None:
        """Look up the first user registered with this mobile number."""
        with self.engine.connect() as conn:
            row = conn.execute(
                _users.select().where(_users.c.mobile == mobile).order_by(_users.c.id)
            ).fetchone()
        return _row_to_user(row) if row is not None else None

    def find_one(self, **filters) -> User | None:
        """Return the first user matching every given column value.

        None and empty-string values are dropped before querying. Raises
        ValueError when no usable filter remains (an empty filter would match
        an arbitrary user) or when an unknown column is named.
        """
        unknown = set(filters) - self._FILTER_KEYS
        if unknown:
            raise ValueError(f"Unknown user filter keys: {unknown!r}")
        criteria = {k: v for k, v in filters.items() if v is not None and v != ""}
        if not criteria:
            raise ValueError("At least one search parameter is required")

        query = _users.select()
        for key, value in criteria.items():
            query = query.where(_users.c[key] == value)
        with self.engine.connect() as conn:
            row = conn.execute(query.order_by(_users.c.id)).fetchone()
        return _row_to_user(row) if row is not None else None

    def list_users(self) -> list[User]:
        """Return all users ordered by id."""
        with self.engine.connect() as conn:
            rows = conn.execute(_users.select().order_by(_users.c.id)).fetchall()
        return [_row_to_user(r) for r in rows]

    def update_user(self, user_id: int, **fields) -> bool:
        """Update mutable fields on an existing user.

        Accepted fields: name, email, mobile, hashed_password. Callers re-hash
        a new password before passing it here. Stamps updated_at.

        Returns True if a row was updated, False if user_id was not found.
        Raises sqlalchemy.exc.IntegrityError if the new email is taken.
        """
        unknown = set(fields) - self._UPDATE_KEYS
        if unknown:
            raise ValueError(f"Unknown user fields: {unknown!r}")
        with self.engine.connect() as conn:
            result = conn.execute(
                _users.update().where(_users.c.id == user_id).values(updated_at=_now_iso(), **fields)
            )
            conn.commit()
        return result.rowcount > 0

    def delete_user(self, user_id: int) -> bool:
        """Permanently delete a user record. Returns True if deleted, False if not found.

        Learning plans owned by the user are left in place.
        """
        with self.engine.connect() as conn:
            result = conn.execute(_users.delete().where(_users.c.id == user_id))
            conn.commit()
        return result.rowcount > 0

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        name=row.name,
        email=row.email,
        mobile=row.mobile,
        hashed_password=row.hashed_password,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
