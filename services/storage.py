"""
Match Storage - persists the live session and the match history.

Backed by the SQLAlchemy tables in models.match. Records go in and out
as pydantic models; the database only ever sees their JSON form.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from pydantic import ValidationError
from sqlalchemy import select, delete, func
from sqlalchemy.orm import sessionmaker

from config import SCORING_SETTINGS
from models.base import get_session, get_session_factory
from models.match import MatchHistoryEntry, SessionSnapshot
from models.schemas import MatchRecord, SessionState

logger = logging.getLogger(__name__)

SNAPSHOT_ROW_ID = 1


class MatchStorage:
    """
    Snapshot and history persistence.

    The history is capped: once more than `capacity` matches are stored,
    the oldest are evicted. Matches are listed newest first.
    """

    def __init__(self, session_factory: Optional[sessionmaker] = None,
                 capacity: int = SCORING_SETTINGS.history_capacity):
        self._factory = session_factory or get_session_factory()
        self.capacity = capacity

    # ============ Session Snapshot ============

    def save_snapshot(self, state: SessionState) -> None:
        """Overwrite the stored snapshot with `state`."""
        with get_session(self._factory) as db:
            row = db.get(SessionSnapshot, SNAPSHOT_ROW_ID)
            if row is None:
                row = SessionSnapshot(id=SNAPSHOT_ROW_ID)
                db.add(row)
            row.state = state.state
            row.rounds_played = state.rounds_played
            row.payload = state.model_dump(mode="json")
            row.updated_at = datetime.now(timezone.utc)

    def load_snapshot(self) -> Optional[SessionState]:
        """Return the stored snapshot, or None if there is none or it is unreadable."""
        with get_session(self._factory) as db:
            row = db.get(SessionSnapshot, SNAPSHOT_ROW_ID)
            if row is None:
                return None
            payload = row.payload

        try:
            return SessionState.model_validate(payload)
        except ValidationError as e:
            logger.warning("Discarding unreadable session snapshot: %s", e)
            return None

    # ============ Match History ============

    def append_match(self, record: MatchRecord) -> bool:
        """
        Add a match to the history.

        Returns:
            False if a match with the same id is already stored
        """
        with get_session(self._factory) as db:
            exists = db.scalar(
                select(MatchHistoryEntry.id).where(MatchHistoryEntry.match_id == record.match_id)
            )
            if exists is not None:
                logger.debug("Match %s already in history", record.match_id)
                return False

            db.add(MatchHistoryEntry(
                match_id=record.match_id,
                mode=record.mode,
                outcome=record.outcome,
                winner=record.winner,
                started_at=record.started_at,
                payload=record.model_dump(mode="json"),
            ))
            db.flush()
            self._evict(db)

        logger.info("Saved match %s (%s)", record.match_id, record.outcome.value)
        return True

    def _evict(self, db) -> None:
        """Drop the oldest entries beyond capacity."""
        stale = db.scalars(
            select(MatchHistoryEntry.id)
            .order_by(MatchHistoryEntry.id.desc())
            .offset(self.capacity)
        ).all()
        if stale:
            db.execute(delete(MatchHistoryEntry).where(MatchHistoryEntry.id.in_(stale)))
            logger.debug("Evicted %d old match(es) from history", len(stale))

    def list_matches(self) -> list[MatchRecord]:
        """All stored matches, newest first."""
        with get_session(self._factory) as db:
            payloads = db.scalars(
                select(MatchHistoryEntry.payload).order_by(MatchHistoryEntry.id.desc())
            ).all()
        return [MatchRecord.model_validate(p) for p in payloads]

    def get_match(self, match_id: str) -> Optional[MatchRecord]:
        with get_session(self._factory) as db:
            payload = db.scalar(
                select(MatchHistoryEntry.payload).where(MatchHistoryEntry.match_id == match_id)
            )
        if payload is None:
            return None
        return MatchRecord.model_validate(payload)

    def count(self) -> int:
        with get_session(self._factory) as db:
            return db.scalar(select(func.count()).select_from(MatchHistoryEntry))

    def delete_match(self, match_id: str) -> bool:
        """Remove one match. Returns False if it was not stored."""
        with get_session(self._factory) as db:
            result = db.execute(
                delete(MatchHistoryEntry).where(MatchHistoryEntry.match_id == match_id)
            )
            deleted = result.rowcount > 0
        if deleted:
            logger.info("Deleted match %s from history", match_id)
        return deleted

    def clear_history(self) -> int:
        """Remove every stored match. Returns how many were removed."""
        with get_session(self._factory) as db:
            result = db.execute(delete(MatchHistoryEntry))
            removed = result.rowcount
        logger.info("Cleared %d match(es) from history", removed)
        return removed
