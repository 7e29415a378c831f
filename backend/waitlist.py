"""
Waitlist storage for Quralyst.

Each store keeps a flat, ordered collection of entries and replaces it
wholesale on every mutation. Nothing is locked: two concurrent submissions
can both read the same collection and one of them will be lost.
"""
from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Protocol

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from config import Settings
from db.models import WaitlistRecord, get_engine, get_session_factory, init_db
from models import AppendResult, WaitlistEntry
from validation import contains_email, normalize_email

logger = logging.getLogger(__name__)

ADDED_MESSAGE = "Successfully added to waitlist"
DUPLICATE_MESSAGE = "Email already exists in waitlist"
SAVE_FAILED_MESSAGE = "Failed to save email"


class WaitlistStore(Protocol):
    def load(self) -> List[WaitlistEntry]:
        ...

    def append(self, email: str, metadata: Optional[Dict[str, str]] = None) -> AppendResult:
        ...

    def clear(self) -> bool:
        ...


def new_entry(email: str, metadata: Optional[Dict[str, str]] = None) -> WaitlistEntry:
    metadata = metadata or {}
    now = datetime.now(timezone.utc)
    return WaitlistEntry(
        email=normalize_email(email),
        timestamp=now.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
        id=int(now.timestamp() * 1000),
        ip=metadata.get("ip") or None,
        user_agent=metadata.get("userAgent") or None,
    )


def parse_entries(data, source: str) -> List[WaitlistEntry]:
    if not isinstance(data, list):
        logger.warning("Ignoring %s: expected a JSON array, got %s", source, type(data).__name__)
        return []

    entries = []
    for index, item in enumerate(data):
        try:
            entries.append(WaitlistEntry.model_validate(item))
        except ValidationError:
            logger.warning("Skipping malformed record %d in %s", index, source)
    return entries


class BaseWaitlistStore:
    """
    Append-with-dedup and clear-all on top of a whole-collection
    load/save pair supplied by subclasses.
    """

    def load(self) -> List[WaitlistEntry]:
        raise NotImplementedError

    def _save(self, entries: List[WaitlistEntry]) -> bool:
        raise NotImplementedError

    def append(self, email: str, metadata: Optional[Dict[str, str]] = None) -> AppendResult:
        entries = self.load()
        if contains_email(entries, email):
            return AppendResult(
                success=False,
                message=DUPLICATE_MESSAGE,
                total=len(entries),
                error="duplicate",
            )

        entry = new_entry(email, metadata)
        if not self._save(entries + [entry]):
            return AppendResult(
                success=False,
                message=SAVE_FAILED_MESSAGE,
                total=len(entries),
                error="write",
            )

        logger.info("Added %s to waitlist (%d total)", entry.email, len(entries) + 1)
        return AppendResult(
            success=True,
            message=ADDED_MESSAGE,
            entry=entry,
            total=len(entries) + 1,
        )

    def clear(self) -> bool:
        return self._save([])


class JsonFileWaitlistStore(BaseWaitlistStore):
    """Pretty-printed JSON array in a single file, rewritten on every change."""

    def __init__(self, path):
        self.path = Path(path)
        if not self.path.exists():
            self._save([])

    def load(self) -> List[WaitlistEntry]:
        if not self.path.exists():
            return []
        try:
            with open(self.path, "r", encoding="utf-8") as file:
                data = json.load(file)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warning("Error reading waitlist file %s: %s", self.path, e)
            return []
        return parse_entries(data, str(self.path))

    def _save(self, entries: List[WaitlistEntry]) -> bool:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as file:
                json.dump([entry.to_record() for entry in entries], file, indent=2)
        except OSError:
            logger.exception("Error writing waitlist file %s", self.path)
            return False
        return True


class InMemoryWaitlistStore(BaseWaitlistStore):
    """Process-local store, used by tests and throwaway runs."""

    def __init__(self) -> None:
        self._entries: List[WaitlistEntry] = []

    def load(self) -> List[WaitlistEntry]:
        return [entry.model_copy() for entry in self._entries]

    def _save(self, entries: List[WaitlistEntry]) -> bool:
        self._entries = [entry.model_copy() for entry in entries]
        return True


class SqlWaitlistStore(BaseWaitlistStore):
    """Embedded database backend; a save replaces every row in one transaction."""

    def __init__(self, url: str):
        self.engine = get_engine(url)
        init_db(self.engine)
        self._session_factory = get_session_factory(self.engine)

    def load(self) -> List[WaitlistEntry]:
        try:
            with self._session_factory() as session:
                rows = session.query(WaitlistRecord).order_by(WaitlistRecord.row_id).all()
                return [
                    WaitlistEntry(
                        email=row.email,
                        timestamp=row.timestamp,
                        id=row.id,
                        ip=row.ip,
                        user_agent=row.user_agent,
                    )
                    for row in rows
                ]
        except SQLAlchemyError as e:
            logger.warning("Error reading waitlist table: %s", e)
            return []

    def _save(self, entries: List[WaitlistEntry]) -> bool:
        try:
            with self._session_factory() as session:
                with session.begin():
                    session.query(WaitlistRecord).delete()
                    session.add_all(
                        WaitlistRecord(
                            email=entry.email,
                            timestamp=entry.timestamp,
                            id=entry.id,
                            ip=entry.ip,
                            user_agent=entry.user_agent,
                        )
                        for entry in entries
                    )
        except SQLAlchemyError:
            logger.exception("Error writing waitlist table")
            return False
        return True


def build_store(settings: Settings) -> WaitlistStore:
    if settings.backend == "memory":
        return InMemoryWaitlistStore()
    if settings.backend == "sqlite":
        return SqlWaitlistStore(settings.database_url)
    return JsonFileWaitlistStore(settings.waitlist_file)
