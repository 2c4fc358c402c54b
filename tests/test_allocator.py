import pytest

from outreach.errors import AuthorizationError, NotFoundError, StoreError, ValidationError
from outreach.models import ActivityKind, Assignment
from outreach.services import ActivityLedger, AssignmentAllocator
from outreach.store import MemoryRecordStore, Table


def _assignments(store):
    return [Assignment.from_row(r) for r in store.rows(Table.ASSIGNMENTS)]


class FlakyAssignmentStore(MemoryRecordStore):
    """Fails the assignment append for chosen national ids."""

    def __init__(self, seed, failing):
        super().__init__(seed)
        self.failing = set(failing)

    def append_row(self, table, row):
        if table == Table.ASSIGNMENTS and row[2] in self.failing:
            raise StoreError(f"quota exceeded for {row[2]}")
        super().append_row(table, row)


def test_allocates_first_unclaimed_records_in_scan_order(make_store, rows, collaborator):
    claimed = ["2", "5", "7"]
    store = make_store(
        base=[rows.base(str(i)) for i in range(1, 16)],
        assignments=[rows.assignment(k, "u-other") for k in claimed],
    )

    result = AssignmentAllocator(store).allocate(collaborator, 5)

    assert [r.national_id for r in result.assigned] == ["1", "3", "4", "6", "8"]
    assert result.count == 5
    assert result.failed == []

    mine = [a for a in _assignments(store) if a.assignee_user_id == "u-col"]
    assert {a.national_id for a in mine} == {"1", "3", "4", "6", "8"}
    assert all(a.active and a.assigned_by_user_id == "SYSTEM" for a in mine)
    assert all(a.contact_id == a.national_id for a in mine)


def test_allocates_at_most_what_is_available(make_store, rows, collaborator):
    store = make_store(
        base=[rows.base(str(i)) for i in range(1, 5)],
        assignments=[rows.assignment("1", "u-other")],
    )

    result = AssignmentAllocator(store).allocate(collaborator, 10)

    assert result.count == 3
    # claimed set is disjoint from what was handed out
    assert "1" not in {r.national_id for r in result.assigned}


def test_nothing_available_returns_empty_result(make_store, rows, collaborator):
    store = make_store(base=[rows.base("1")], assignments=[rows.assignment("1", "u-other", active=False)])

    result = AssignmentAllocator(store).allocate(collaborator, 5)

    assert result.count == 0
    assert len(store.rows(Table.ASSIGNMENTS)) == 1
    assert store.rows(Table.ACTIVITY) == []


def test_default_batch_and_invalid_count(make_store, rows, collaborator):
    store = make_store(base=[rows.base(str(i)) for i in range(20)])
    allocator = AssignmentAllocator(store)

    assert allocator.plan(collaborator).requested == 5
    with pytest.raises(ValidationError):
        allocator.plan(collaborator, 0)
    with pytest.raises(AuthorizationError):
        allocator.plan(None, 3)


def test_duplicate_base_rows_are_handed_out_once(make_store, rows, collaborator):
    store = make_store(base=[rows.base("1"), rows.base("1"), rows.base("2")])

    result = AssignmentAllocator(store).allocate(collaborator, 5)

    assert [r.national_id for r in result.assigned] == ["1", "2"]


def test_allocation_is_logged_per_record(make_store, rows, collaborator):
    store = make_store(base=[rows.base("1"), rows.base("2")])

    AssignmentAllocator(store).allocate(collaborator, 2)

    entries = ActivityLedger(store).all_entries()
    assert sorted(e.national_id for e in entries) == ["1", "2"]
    assert all(e.kind == ActivityKind.REASSIGNMENT.value for e in entries)
    assert all(e.actor_user_id == "SYSTEM" and e.contact_id == "" for e in entries)
    assert all(e.detail == "Automatic assignment to u-col" for e in entries)


def test_interleaved_requests_can_claim_the_same_records(make_store, rows, collaborator, other_collaborator):
    store = make_store(base=[rows.base(str(i)) for i in range(1, 6)])
    allocator = AssignmentAllocator(store)

    first = allocator.plan(collaborator, 5)
    second = allocator.plan(other_collaborator, 5)
    allocator.commit(first)
    allocator.commit(second)

    by_key = {}
    for a in _assignments(store):
        by_key.setdefault(a.national_id, set()).add(a.assignee_user_id)
    assert len(by_key) == 5
    assert all(users == {"u-col", "u-other"} for users in by_key.values())


def test_partial_append_failure_reports_failed_keys(rows, collaborator):
    seed = {Table.HISTORICAL_BASE: [rows.base(str(i)) for i in range(1, 5)]}
    store = FlakyAssignmentStore(seed, failing={"2"})

    result = AssignmentAllocator(store).allocate(collaborator, 4)

    assert [r.national_id for r in result.assigned] == ["1", "3", "4"]
    assert result.failed == ["2"]
    assert {a.national_id for a in _assignments(store)} == {"1", "3", "4"}


def test_all_appends_failing_raises_store_error(rows, collaborator):
    seed = {Table.HISTORICAL_BASE: [rows.base("1"), rows.base("2")]}
    store = FlakyAssignmentStore(seed, failing={"1", "2"})

    with pytest.raises(StoreError):
        AssignmentAllocator(store).allocate(collaborator, 2)


def test_manual_assignment_bypasses_claimed_set(make_store, rows, admin, collaborator):
    store = make_store(base=[rows.base("1")], assignments=[rows.assignment("1", "u-other")])
    allocator = AssignmentAllocator(store)

    with pytest.raises(AuthorizationError):
        allocator.assign_manual(collaborator, assignee_user_id="u-col", national_id="1")
    with pytest.raises(ValidationError):
        allocator.assign_manual(admin, assignee_user_id="u-col")

    assignment = allocator.assign_manual(admin, assignee_user_id="u-col", national_id="1")

    assert assignment.assigned_by_user_id == "u-admin"
    assignees = [a.assignee_user_id for a in _assignments(store) if a.national_id == "1"]
    # prior row stays active
    assert assignees == ["u-other", "u-col"]
    assert all(a.active for a in _assignments(store))


def test_deactivate_keeps_record_claimed(make_store, rows, admin, collaborator):
    store = make_store(
        base=[rows.base("1"), rows.base("2")],
        assignments=[rows.assignment("1", "u-other", assignment_id="a-1")],
    )
    allocator = AssignmentAllocator(store)

    updated = allocator.deactivate(admin, "a-1")
    assert updated.active is False
    assert _assignments(store)[0].active is False

    result = allocator.allocate(collaborator, 5)
    assert [r.national_id for r in result.assigned] == ["2"]

    with pytest.raises(NotFoundError):
        allocator.deactivate(admin, "missing")
    with pytest.raises(AuthorizationError):
        allocator.deactivate(collaborator, "a-1")


def test_my_queue_lists_open_assigned_records(make_store, rows, collaborator):
    store = make_store(
        base=[
            rows.base("1"),
            rows.base("2", call="CONFIRMADO"),
            rows.base("3", call="NO_RESPONDE"),
            rows.base("4", call="PENDIENTE_SEGUIMIENTO"),
            rows.base("5", messaging="WHATSAPP_ENVIADO"),
            rows.base("6"),
        ],
        assignments=[
            rows.assignment("1", "u-col"),
            rows.assignment("2", "u-col"),
            rows.assignment("3", "u-col"),
            rows.assignment("4", "u-col"),
            rows.assignment("5", "u-col"),
            rows.assignment("6", "u-col", active=False),
        ],
    )

    queue = AssignmentAllocator(store).my_queue(collaborator)

    assert [r.national_id for r in queue.items] == ["1", "3", "4"]
    assert queue.open_count == 3

    short = AssignmentAllocator(store).my_queue(collaborator, limit=2)
    assert len(short.items) == 2
    assert short.open_count == 3


def test_list_all_is_admin_only(make_store, rows, admin, collaborator):
    store = make_store(assignments=[rows.assignment("1", "u-col")])
    allocator = AssignmentAllocator(store)

    assert len(allocator.list_all(admin)) == 1
    with pytest.raises(AuthorizationError):
        allocator.list_all(collaborator)


def _active_pairs(store):
    return [(a.assignee_user_id, a.national_id) for a in _assignments(store) if a.active]


def test_manual_assignment_reuses_active_row_for_same_pair(make_store, rows, admin, collaborator):
    store = make_store(base=[rows.base("1"), rows.base("2")])
    allocator = AssignmentAllocator(store)

    allocator.allocate(collaborator, 1)
    auto_row = _assignments(store)[0]

    again = allocator.assign_manual(admin, assignee_user_id="u-col", national_id="1")
    assert again.id == auto_row.id

    first = allocator.assign_manual(admin, assignee_user_id="u-col", national_id="2")
    second = allocator.assign_manual(admin, assignee_user_id="u-col", national_id="2")
    assert second.id == first.id

    assert sorted(_active_pairs(store)) == [("u-col", "1"), ("u-col", "2")]


def test_manual_assignment_after_deactivation_appends_new_row(make_store, rows, admin):
    store = make_store(assignments=[rows.assignment("1", "u-col", assignment_id="a-1", active=False)])

    created = AssignmentAllocator(store).assign_manual(admin, assignee_user_id="u-col", national_id="1")

    assert created.id != "a-1"
    assert _active_pairs(store) == [("u-col", "1")]
    assert len(store.rows(Table.ASSIGNMENTS)) == 2


def test_same_requester_racing_itself_gets_duplicate_active_rows(make_store, rows, collaborator):
    store = make_store(base=[rows.base("1")])
    allocator = AssignmentAllocator(store)

    first = allocator.plan(collaborator, 1)
    second = allocator.plan(collaborator, 1)
    assert allocator.commit(first).count == 1
    assert allocator.commit(second).count == 1

    # no compare-and-swap: both claims land for the same pair
    assert _active_pairs(store) == [("u-col", "1"), ("u-col", "1")]
