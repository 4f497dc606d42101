"""Append-only generation history backed by SQLAlchemy.

Purpose of this abstraction:
    Keep an advisory log of completed generations (inputs without image bytes,
    plus the sectioned results) that can be listed newest first. The log is a
    convenience for users, not a source of truth: durability is not guaranteed.

Storage layout:
    One table, `prompt_history`, keyed by a random UUID:
    `id`, `created_at`, `images_count`, `prompts` (JSON), `results` (JSON).
    Rows are only ever inserted and read; there are no updates, deletes or
    migrations beyond the initial `CREATE TABLE IF NOT EXISTS`.

Best-effort contract:
    - `record_generation` never raises; every failure is logged and suppressed.
    - `load_history` never raises; failures return an empty list.
    - With no `DATABASE_URL` configured the store is disabled and both helpers
      become no-ops.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import List, Sequence

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Integer,
    MetaData,
    String,
    Table,
    create_engine,
    select,
)
from sqlalchemy.engine import Engine

from prompt_architect.core.prompt_types import HistoryEntry, PromptInput, Section


logger = logging.getLogger(__name__)


DEFAULT_HISTORY_LIMIT = 20

metadata = MetaData()

prompt_history = Table(
    "prompt_history",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("created_at", DateTime(timezone=True), nullable=False, index=True),
    Column("images_count", Integer, nullable=False),
    Column("prompts", JSON, nullable=False),
    Column("results", JSON, nullable=False),
)


def normalize_database_url(url: str) -> str:
    """Rewrite the legacy `postgres://` scheme that SQLAlchemy no longer accepts."""
    if url.startswith("postgres://"):
        return "postgresql://" + url[len("postgres://"):]
    return url


def _as_utc(value: datetime) -> datetime:
    # SQLite drops the offset on read.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class HistoryStore:
    """Thin wrapper around one SQLAlchemy engine and the history table."""

    def __init__(self, database_url: str, engine: Engine | None = None):
        self.database_url = normalize_database_url(database_url)
        self.engine = engine or create_engine(self.database_url, future=True)

    def init(self) -> None:
        """Create the table when absent. Safe to call before every operation."""
        metadata.create_all(self.engine, checkfirst=True)

    def append(self, entry: HistoryEntry) -> None:
        with self.engine.begin() as conn:
            conn.execute(
                prompt_history.insert().values(
                    id=entry.id,
                    created_at=entry.created_at,
                    images_count=entry.image_count,
                    prompts=entry.prompts,
                    results=entry.results,
                )
            )

    def recent(self, limit: int = DEFAULT_HISTORY_LIMIT) -> List[HistoryEntry]:
        """Return at most `limit` entries, newest first."""
        stmt = (
            select(prompt_history)
            .order_by(prompt_history.c.created_at.desc())
            .limit(limit)
        )
        with self.engine.connect() as conn:
            rows = conn.execute(stmt).mappings().all()

        return [
            HistoryEntry(
                id=row["id"],
                created_at=_as_utc(row["created_at"]),
                image_count=row["images_count"],
                prompts=row["prompts"] or [],
                results=row["results"] or [],
            )
            for row in rows
        ]

    def dispose(self) -> None:
        self.engine.dispose()


def create_history_store(database_url: str | None) -> HistoryStore | None:
    """Build a store for `database_url`; `None` disables history."""
    if not database_url:
        return None
    try:
        return HistoryStore(database_url)
    except Exception:
        logger.exception("Failed to create history store; history disabled")
        return None


def build_history_entry(
    inputs: Sequence[PromptInput],
    sections: Sequence[Section],
) -> HistoryEntry:
    return HistoryEntry(
        id=str(uuid.uuid4()),
        created_at=datetime.now(timezone.utc),
        image_count=len(inputs),
        prompts=[p.to_history_dict() for p in inputs],
        results=[s.to_dict() for s in sections],
    )


def record_generation(
    store: HistoryStore | None,
    inputs: Sequence[PromptInput],
    sections: Sequence[Section],
) -> None:
    """Append one generation to history. Never raises."""
    if store is None:
        return

    try:
        entry = build_history_entry(inputs, sections)
        store.init()
        store.append(entry)
        logger.debug("Recorded history entry %s", entry.id)
    except Exception:
        logger.exception("Failed to save to history")


def load_history(
    store: HistoryStore | None,
    limit: int = DEFAULT_HISTORY_LIMIT,
) -> List[HistoryEntry]:
    """Return recent entries, or an empty list when disabled or on any failure."""
    if store is None:
        return []

    try:
        store.init()
        return store.recent(limit)
    except Exception:
        logger.exception("Failed to load history")
        return []
