from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends

from ..identity import Identity
from ..services import TeamAllocationReport, TeamMemberProgress
from ..store import RecordStore
from .deps import get_identity, get_store

router = APIRouter(prefix="/team", tags=["team"])


@router.get("/progress", response_model=List[TeamMemberProgress])
def team_progress(
    identity: Optional[Identity] = Depends(get_identity),
    store: RecordStore = Depends(get_store),
) -> List[TeamMemberProgress]:
    return TeamAllocationReport(store).build(identity)
