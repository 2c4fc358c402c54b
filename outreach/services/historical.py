from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from ..models import HistoricalBaseRecord
from ..store import RecordStore, StoredRow, Table

PENDING = "pending"
ATTENDED = "attended"


@dataclass(frozen=True)
class LocatedRecord:
    """A base record plus the row address from the scan that produced it."""

    record: HistoricalBaseRecord
    row: StoredRow


@dataclass(frozen=True)
class BaseStats:
    total: int
    pending: int
    attended: int


def classify(record: HistoricalBaseRecord) -> str:
    """
    pending iff neither channel has an outcome; attended otherwise.
    Pure function of the record, so repeated calls always agree.
    """
    if not record.call_outcome and not record.messaging_outcome:
        return PENDING
    return ATTENDED


def matches_locality(record: HistoricalBaseRecord, term: str) -> bool:
    t = term.strip().upper()
    if not t:
        return True
    # The projection has no separate locality column; department stands in for it
    return t in (record.department or "").upper() or t in (record.municipality or "").upper()


class HistoricalBaseView:
    """
    Typed, read-mostly access to the historical base. The store offers no
    pagination or lookup, so everything starts from a full scan.
    """

    def __init__(self, store: RecordStore) -> None:
        self.store = store

    def scan(self) -> List[LocatedRecord]:
        return [
            LocatedRecord(record=HistoricalBaseRecord.from_row(r.cells), row=r)
            for r in self.store.scan(Table.HISTORICAL_BASE)
            if r.cells and (r.cells[0] or "").strip()
        ]

    def records(self) -> List[HistoricalBaseRecord]:
        return [lr.record for lr in self.scan()]

    def page(
        self,
        locality: Optional[str] = None,
        *,
        page: int = 1,
        limit: Optional[int] = None,
    ) -> List[HistoricalBaseRecord]:
        items = self.records()
        if locality:
            items = [r for r in items if matches_locality(r, locality)]
        if limit is None:
            return items
        page = max(1, page)
        limit = max(1, limit)
        start = (page - 1) * limit
        return items[start : start + limit]

    def find_by_national_id(self, national_id: str) -> Optional[LocatedRecord]:
        key = (national_id or "").strip()
        if not key:
            return None
        for lr in self.scan():
            if lr.record.national_id == key:
                return lr
        return None

    @staticmethod
    def index(located: Iterable[LocatedRecord]) -> Dict[str, LocatedRecord]:
        """
        Natural-key mapping for one operation. First occurrence wins, matching
        the linear-scan lookup.
        """
        out: Dict[str, LocatedRecord] = {}
        for lr in located:
            out.setdefault(lr.record.national_id, lr)
        return out

    def stats(self, records: Optional[List[HistoricalBaseRecord]] = None) -> BaseStats:
        items = self.records() if records is None else records
        pending = sum(1 for r in items if classify(r) == PENDING)
        return BaseStats(total=len(items), pending=pending, attended=len(items) - pending)
