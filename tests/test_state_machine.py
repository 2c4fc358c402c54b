import pytest

from outreach.errors import AuthorizationError, NotFoundError, StoreError, ValidationError
from outreach.models import ActivityKind, ContactState, HistoricalBaseRecord
from outreach.services import ActivityLedger, ContactStateMachine, OutcomeSubmission, resolve_composite
from outreach.services.contacts import ContactRepository
from outreach.store import MemoryRecordStore, Table

S = ContactState


@pytest.mark.parametrize(
    "call, messaging, expected",
    [
        (S.CONFIRMADO, S.WHATSAPP_ENVIADO, S.CONFIRMADO),
        (S.RECHAZA, S.WHATSAPP_ENVIADO, S.RECHAZA),
        (S.NO_RESPONDE, S.WHATSAPP_ENVIADO, S.WHATSAPP_ENVIADO),
        (S.LLAMADO, S.NUMERO_INVALIDO, S.LLAMADO),
        (None, S.DUPLICADO, S.DUPLICADO),
        (None, None, S.PENDIENTE_SEGUIMIENTO),
    ],
)
def test_composite_precedence(call, messaging, expected):
    assert resolve_composite(S.PENDIENTE_SEGUIMIENTO, call, messaging) == expected


def _seed_assigned_contact(make_store, rows, *, state="NUEVO", origin="PUBLIC_FORM", base=()):
    return make_store(
        contacts=[rows.contact("123", "Luis Martínez", contact_id="c-1", state=state, origin=origin)],
        assignments=[rows.assignment("123", "u-col", contact_id="c-1")],
        base=list(base),
    )


def test_both_channels_log_two_entries_with_the_same_state(make_store, rows, collaborator):
    store = _seed_assigned_contact(make_store, rows)
    submission = OutcomeSubmission(
        call_outcome=S.CONFIRMADO,
        messaging_outcome=S.WHATSAPP_ENVIADO,
        template_name="Invitación cierre",
        person_response="Sí asiste",
    )

    result = ContactStateMachine(store).apply(collaborator, "c-1", submission)

    assert result.previous_state == S.NUEVO
    assert result.new_state == S.CONFIRMADO
    assert ContactRepository(store).find_by_id("c-1").contact.state == S.CONFIRMADO

    entries = ActivityLedger(store).all_entries()
    assert sorted(e.kind for e in entries) == [ActivityKind.CALL.value, ActivityKind.MESSAGE_SENT.value]
    assert {e.new_state for e in entries} == {"CONFIRMADO"}
    assert {e.person_response for e in entries} == {"Sí asiste"}
    messaging = next(e for e in entries if e.kind == ActivityKind.MESSAGE_SENT.value)
    assert messaging.detail == "Messaging outcome: WHATSAPP_ENVIADO | Template: Invitación cierre"


def test_base_mirrored_contact_writes_through(make_store, rows, collaborator):
    store = _seed_assigned_contact(
        make_store,
        rows,
        origin="BASE_TOTAL",
        base=[rows.base("999"), rows.base("123", "Luis Martínez"), rows.base("456")],
    )

    ContactStateMachine(store).apply(
        collaborator,
        "c-1",
        OutcomeSubmission(call_outcome=S.NO_RESPONDE, note="Volver a llamar el lunes"),
    )

    base = store.rows(Table.HISTORICAL_BASE)
    record = HistoricalBaseRecord.from_row(base[1])
    assert record.call_outcome == "NO_RESPONDE"
    assert record.messaging_outcome == ""
    assert record.note == "Volver a llamar el lunes"
    assert record.managed_by_display_name == "Carlos Rojas"
    assert record.last_managed_at
    # identity columns untouched, neighbours untouched
    assert base[1][:9] == rows.base("123", "Luis Martínez")[:9]
    assert HistoricalBaseRecord.from_row(base[0]).call_outcome == ""
    assert HistoricalBaseRecord.from_row(base[2]).call_outcome == ""


def test_public_contact_does_not_touch_base(make_store, rows, collaborator):
    store = _seed_assigned_contact(make_store, rows, base=[rows.base("123")])

    ContactStateMachine(store).apply(collaborator, "c-1", OutcomeSubmission(call_outcome=S.LLAMADO))

    assert HistoricalBaseRecord.from_row(store.rows(Table.HISTORICAL_BASE)[0]).call_outcome == ""


def test_mirrored_contact_without_base_record_is_rejected_before_writing(make_store, rows, collaborator):
    store = _seed_assigned_contact(make_store, rows, origin="BASE_TOTAL")

    with pytest.raises(NotFoundError):
        ContactStateMachine(store).apply(collaborator, "c-1", OutcomeSubmission(call_outcome=S.LLAMADO))

    assert store.rows(Table.ACTIVITY) == []
    assert ContactRepository(store).find_by_id("c-1").contact.state == S.NUEVO


def test_requires_active_assignment(make_store, rows, collaborator, other_collaborator, admin):
    store = _seed_assigned_contact(make_store, rows)
    machine = ContactStateMachine(store)

    with pytest.raises(AuthorizationError) as exc:
        machine.apply(other_collaborator, "c-1", OutcomeSubmission(call_outcome=S.LLAMADO))
    assert exc.value.status_code == 403
    assert store.rows(Table.ACTIVITY) == []

    with pytest.raises(AuthorizationError) as exc:
        machine.apply(None, "c-1", OutcomeSubmission(call_outcome=S.LLAMADO))
    assert exc.value.status_code == 401

    assert machine.apply(collaborator, "c-1", OutcomeSubmission(call_outcome=S.LLAMADO)).new_state == S.LLAMADO
    assert machine.apply(admin, "c-1", OutcomeSubmission(call_outcome=S.CONFIRMADO)).new_state == S.CONFIRMADO


def test_inactive_assignment_does_not_authorize(make_store, rows, collaborator):
    store = make_store(
        contacts=[rows.contact("123", contact_id="c-1")],
        assignments=[rows.assignment("123", "u-col", contact_id="c-1", active=False)],
    )

    with pytest.raises(AuthorizationError):
        ContactStateMachine(store).apply(collaborator, "c-1", OutcomeSubmission(call_outcome=S.LLAMADO))


def test_cannot_return_to_nuevo(make_store, rows, collaborator):
    store = _seed_assigned_contact(make_store, rows, state="LLAMADO")

    with pytest.raises(ValidationError):
        ContactStateMachine(store).apply(collaborator, "c-1", OutcomeSubmission(state=S.NUEVO))

    assert ContactRepository(store).find_by_id("c-1").contact.state == S.LLAMADO


def test_terminal_states_can_be_left(make_store, rows, collaborator):
    store = _seed_assigned_contact(make_store, rows, state="CONFIRMADO")

    result = ContactStateMachine(store).apply(collaborator, "c-1", OutcomeSubmission(state=S.RECHAZA))

    assert result.new_state == S.RECHAZA
    assert [e.kind for e in result.entries] == [ActivityKind.STATE_CHANGE.value]


def test_channel_vocabularies_are_enforced(make_store, rows, collaborator):
    store = _seed_assigned_contact(make_store, rows)
    machine = ContactStateMachine(store)

    with pytest.raises(ValidationError):
        machine.apply(collaborator, "c-1", OutcomeSubmission(messaging_outcome=S.CONFIRMADO))
    with pytest.raises(ValidationError):
        machine.apply(collaborator, "c-1", OutcomeSubmission(call_outcome=S.WHATSAPP_ENVIADO))
    with pytest.raises(ValidationError):
        machine.apply(collaborator, "c-1", OutcomeSubmission())


def test_note_only_submission_logs_a_note(make_store, rows, collaborator):
    store = _seed_assigned_contact(make_store, rows, state="NO_RESPONDE")

    result = ContactStateMachine(store).apply(collaborator, "c-1", OutcomeSubmission(note="Número apagado"))

    assert result.new_state == S.NO_RESPONDE
    assert [(e.kind, e.detail) for e in result.entries] == [(ActivityKind.NOTE.value, "Note added")]


def test_observations_replace_contact_notes(make_store, rows, collaborator):
    store = _seed_assigned_contact(make_store, rows)

    ContactStateMachine(store).apply(
        collaborator,
        "c-1",
        OutcomeSubmission(call_outcome=S.PENDIENTE_SEGUIMIENTO, observations="Prefiere WhatsApp"),
    )

    contact = ContactRepository(store).find_by_id("c-1").contact
    assert contact.notes == "Prefiere WhatsApp"
    assert contact.last_managed_at


def test_base_only_target_by_national_id(make_store, rows, collaborator):
    store = make_store(base=[rows.base("555", "Solo Base")], assignments=[rows.assignment("555", "u-col")])

    result = ContactStateMachine(store).apply(
        collaborator,
        "555",
        OutcomeSubmission(messaging_outcome=S.WHATSAPP_ENVIADO),
    )

    assert result.contact is None
    assert result.new_state == S.WHATSAPP_ENVIADO
    record = HistoricalBaseRecord.from_row(store.rows(Table.HISTORICAL_BASE)[0])
    assert record.messaging_outcome == "WHATSAPP_ENVIADO"
    assert record.composite_state == S.WHATSAPP_ENVIADO
    assert store.rows(Table.CONTACTS) == []


def test_unknown_key_is_not_found(make_store, collaborator):
    with pytest.raises(NotFoundError):
        ContactStateMachine(make_store()).apply(collaborator, "nope", OutcomeSubmission(call_outcome=S.LLAMADO))


class FailingBaseStore(MemoryRecordStore):
    def update_cell_range(self, table, address, first_column, values):
        raise StoreError("sheet write rejected")


def test_failed_write_does_not_roll_back_the_others(rows, collaborator):
    store = FailingBaseStore(
        {
            Table.CONTACTS: [rows.contact("123", contact_id="c-1", origin="BASE_TOTAL")],
            Table.ASSIGNMENTS: [rows.assignment("123", "u-col", contact_id="c-1")],
            Table.HISTORICAL_BASE: [rows.base("123")],
        }
    )

    with pytest.raises(StoreError) as exc:
        ContactStateMachine(store).apply(collaborator, "c-1", OutcomeSubmission(call_outcome=S.CONFIRMADO))

    assert "historical_base" in exc.value.message
    assert ContactRepository(store).find_by_id("c-1").contact.state == S.CONFIRMADO
    assert len(store.rows(Table.ACTIVITY)) == 1
