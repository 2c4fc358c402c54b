from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from typing import List, Optional

from ..identity import Identity, require_identity
from ..models import ActivityKind, ActivityLogEntry
from ..models.common import new_id, utcnow_iso
from ..store import RecordStore, Table

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TimelinePoint:
    date: str
    count: int


class ActivityLedger:
    """
    Append-only audit trail. Entries are never updated or removed; this class
    has no code path that calls update_row on the activity table.
    """

    def __init__(self, store: RecordStore) -> None:
        self.store = store

    @staticmethod
    def entry(
        kind: ActivityKind,
        actor_user_id: str,
        detail: str,
        *,
        contact_id: str = "",
        national_id: str = "",
        new_state: str = "",
        person_response: str = "",
        note: str = "",
    ) -> ActivityLogEntry:
        return ActivityLogEntry(
            id=new_id(),
            timestamp=utcnow_iso(),
            contact_id=contact_id,
            national_id=national_id,
            actor_user_id=actor_user_id,
            kind=kind.value,
            detail=detail,
            new_state=new_state,
            person_response=person_response,
            note=note,
        )

    def append(self, entry: ActivityLogEntry) -> ActivityLogEntry:
        self.store.append_row(Table.ACTIVITY, entry.to_row())
        return entry

    def log(self, kind: ActivityKind, actor_user_id: str, detail: str, **fields: str) -> ActivityLogEntry:
        return self.append(self.entry(kind, actor_user_id, detail, **fields))

    def record_login(self, identity: Optional[Identity]) -> ActivityLogEntry:
        ident = require_identity(identity)
        return self.log(ActivityKind.LOGIN, ident.user_id, "Successful login")

    def all_entries(self) -> List[ActivityLogEntry]:
        return [ActivityLogEntry.from_row(r.cells) for r in self.store.scan(Table.ACTIVITY)]

    def list(
        self,
        identity: Optional[Identity],
        *,
        contact_id: Optional[str] = None,
        national_id: Optional[str] = None,
    ) -> List[ActivityLogEntry]:
        """
        Newest first. ISO timestamps sort correctly as strings.
        """
        require_identity(identity)
        entries = self.all_entries()
        if contact_id:
            entries = [e for e in entries if e.contact_id == contact_id]
        if national_id:
            entries = [e for e in entries if e.national_id == national_id]
        entries.sort(key=lambda e: e.timestamp, reverse=True)
        return entries

    def timeline(self, identity: Optional[Identity]) -> List[TimelinePoint]:
        """
        Entry counts bucketed by the date portion of the timestamp, ascending.
        """
        require_identity(identity)
        counts = Counter(e.day for e in self.all_entries() if e.day)
        return [TimelinePoint(date=d, count=c) for d, c in sorted(counts.items())]
