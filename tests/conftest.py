"""
pytest configuration and fixtures for outreach tests.

Everything runs against the in-memory record store; the SQL backend gets its
own tests on a temporary SQLite file.
"""
from types import SimpleNamespace

import pytest

from outreach.identity import Identity, Role
from outreach.models.common import new_id, utcnow_iso
from outreach.store import MemoryRecordStore, Table


def base_row(
    national_id,
    name="Persona Base",
    *,
    department="BOGOTA",
    municipality="KENNEDY",
    call="",
    messaging="",
    note="",
):
    return [
        national_id,
        name,
        "3001234567",
        "",
        department,
        municipality,
        "Colegio Distrital",
        "Calle 1 # 2 3",
        "4",
        call,
        messaging,
        note,
        "",
        "",
    ]


def contact_row(
    national_id,
    name="Persona Registrada",
    *,
    contact_id=None,
    phone="3109876543",
    email="",
    locality="Kennedy",
    state="NUEVO",
    notes="",
    origin="PUBLIC_FORM",
):
    now = utcnow_iso()
    return [
        contact_id or new_id(),
        national_id,
        name,
        phone,
        email,
        locality,
        "",
        "",
        state,
        notes,
        now,
        now,
        origin,
        "",
    ]


def assignment_row(national_id, user_id, *, contact_id="", active=True, assignment_id=None, by="u-admin"):
    return [
        assignment_id or new_id(),
        contact_id,
        national_id,
        user_id,
        by,
        utcnow_iso(),
        "TRUE" if active else "FALSE",
    ]


def user_row(user_id, name, *, role="COLABORADOR", active=True, email=""):
    return [
        user_id,
        name,
        email or f"{user_id}@example.org",
        role,
        "not-a-real-hash",
        "TRUE" if active else "FALSE",
        "2024-01-01T00:00:00+00:00",
        "",
    ]


@pytest.fixture
def rows():
    """Row builders matching the persisted column layouts."""
    return SimpleNamespace(base=base_row, contact=contact_row, assignment=assignment_row, user=user_row)


@pytest.fixture
def admin():
    return Identity(user_id="u-admin", display_name="Ana Admin", email="ana@example.org", role=Role.ADMIN)


@pytest.fixture
def collaborator():
    return Identity(user_id="u-col", display_name="Carlos Rojas", email="carlos@example.org", role=Role.COLABORADOR)


@pytest.fixture
def other_collaborator():
    return Identity(user_id="u-other", display_name="Diana Pena", email="", role=Role.COLABORADOR)


@pytest.fixture
def make_store():
    """Build a memory store seeded per table."""

    def _make(*, base=(), contacts=(), assignments=(), activity=(), users=()):
        return MemoryRecordStore(
            {
                Table.HISTORICAL_BASE: list(base),
                Table.CONTACTS: list(contacts),
                Table.ASSIGNMENTS: list(assignments),
                Table.ACTIVITY: list(activity),
                Table.USERS: list(users),
            }
        )

    return _make


@pytest.fixture
def store(make_store):
    return make_store()


@pytest.fixture
def client(store):
    """FastAPI TestClient bound to the memory store."""
    from fastapi.testclient import TestClient

    from outreach.api.deps import get_store
    from outreach.main import app

    app.dependency_overrides[get_store] = lambda: store
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def headers():
    def _headers(identity):
        return {
            "X-User-Id": identity.user_id,
            "X-User-Name": identity.display_name,
            "X-User-Email": identity.email,
            "X-User-Role": identity.role.value,
        }

    return _headers
