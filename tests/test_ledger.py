import pytest

from outreach.errors import AuthorizationError
from outreach.models import ActivityKind
from outreach.services import ActivityLedger
from outreach.store import Table


def _entry_row(entry_id, timestamp, *, kind="CALL", national_id="1"):
    return [entry_id, timestamp, "", national_id, "u-col", kind, "", "", "", ""]


def test_record_login(store, collaborator):
    ledger = ActivityLedger(store)

    entry = ledger.record_login(collaborator)

    assert entry.kind == ActivityKind.LOGIN.value
    assert entry.actor_user_id == "u-col"
    assert entry.detail == "Successful login"
    assert len(store.rows(Table.ACTIVITY)) == 1


def test_list_is_newest_first_and_filters(make_store, collaborator):
    store = make_store(
        activity=[
            _entry_row("a", "2024-02-01T10:00:00+00:00", national_id="1"),
            _entry_row("b", "2024-02-03T09:00:00+00:00", national_id="2"),
            _entry_row("c", "2024-02-02T08:00:00+00:00", national_id="1"),
        ]
    )
    ledger = ActivityLedger(store)

    assert [e.id for e in ledger.list(collaborator)] == ["b", "c", "a"]
    assert [e.id for e in ledger.list(collaborator, national_id="1")] == ["c", "a"]

    with pytest.raises(AuthorizationError):
        ledger.list(None)


def test_timeline_counts_per_day_ascending(make_store, admin):
    store = make_store(
        activity=[
            _entry_row("a", "2024-02-02T10:00:00+00:00"),
            _entry_row("b", "2024-02-01T09:00:00+00:00"),
            _entry_row("c", "2024-02-02T23:59:00+00:00"),
            _entry_row("d", ""),
        ]
    )

    points = ActivityLedger(store).timeline(admin)

    assert [(p.date, p.count) for p in points] == [("2024-02-01", 1), ("2024-02-02", 2)]


def test_appends_only(store, collaborator):
    ledger = ActivityLedger(store)
    ledger.log(ActivityKind.NOTE, "u-col", "first")
    ledger.log(ActivityKind.NOTE, "u-col", "second")

    assert [r[6] for r in store.rows(Table.ACTIVITY)] == ["first", "second"]
