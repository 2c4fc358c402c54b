from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends

from ..identity import Identity
from ..models import ActivityLogEntry
from ..services import ActivityLedger, TimelinePoint
from ..store import RecordStore
from .deps import get_identity, get_store

router = APIRouter(prefix="/activity", tags=["activity"])


@router.get("/", response_model=List[ActivityLogEntry])
def list_activity(
    contact_id: Optional[str] = None,
    national_id: Optional[str] = None,
    identity: Optional[Identity] = Depends(get_identity),
    store: RecordStore = Depends(get_store),
) -> List[ActivityLogEntry]:
    return ActivityLedger(store).list(identity, contact_id=contact_id, national_id=national_id)


@router.get("/timeline", response_model=List[TimelinePoint])
def timeline(
    identity: Optional[Identity] = Depends(get_identity),
    store: RecordStore = Depends(get_store),
) -> List[TimelinePoint]:
    return ActivityLedger(store).timeline(identity)


@router.post("/login", response_model=ActivityLogEntry)
def record_login(
    identity: Optional[Identity] = Depends(get_identity),
    store: RecordStore = Depends(get_store),
) -> ActivityLogEntry:
    """
    Called by the auth collaborator right after it issues a session.
    """
    return ActivityLedger(store).record_login(identity)
