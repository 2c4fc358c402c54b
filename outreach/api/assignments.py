from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from ..identity import Identity
from ..models import Assignment, HistoricalBaseRecord
from ..services import AssignmentAllocator
from ..store import RecordStore
from .deps import get_identity, get_store

router = APIRouter(prefix="/assignments", tags=["assignments"])


# -----------------------------
# Schemas
# -----------------------------

class AutoAssignRequest(BaseModel):
    count: Optional[int] = None


class ManualAssignmentCreate(BaseModel):
    """
    Admin assignment. Provide national_id or contact_id (or both).
    """
    assignee_user_id: str = ""
    national_id: Optional[str] = None
    contact_id: Optional[str] = None


class AllocationOut(BaseModel):
    count: int
    assigned: List[HistoricalBaseRecord]
    failed: List[str]
    message: Optional[str] = None


class QueueOut(BaseModel):
    items: List[HistoricalBaseRecord]
    count: int
    message: Optional[str] = None


# -----------------------------
# Routes
# -----------------------------

@router.get("/", response_model=List[Assignment])
def list_assignments(
    identity: Optional[Identity] = Depends(get_identity),
    store: RecordStore = Depends(get_store),
) -> List[Assignment]:
    return AssignmentAllocator(store).list_all(identity)


@router.post("/", response_model=Assignment)
def create_assignment(
    payload: ManualAssignmentCreate,
    identity: Optional[Identity] = Depends(get_identity),
    store: RecordStore = Depends(get_store),
) -> Assignment:
    return AssignmentAllocator(store).assign_manual(
        identity,
        assignee_user_id=payload.assignee_user_id,
        national_id=payload.national_id or "",
        contact_id=payload.contact_id or "",
    )


@router.post("/auto", response_model=AllocationOut)
def auto_assign(
    payload: Optional[AutoAssignRequest] = None,
    identity: Optional[Identity] = Depends(get_identity),
    store: RecordStore = Depends(get_store),
) -> AllocationOut:
    """
    Claim up to `count` unclaimed base records for the caller. Zero available
    is a normal answer, not an error.
    """
    count = payload.count if payload else None
    result = AssignmentAllocator(store).allocate(identity, count)
    return AllocationOut(
        count=result.count,
        assigned=result.assigned,
        failed=result.failed,
        message=None if result.count else "No more records available",
    )


@router.get("/mine", response_model=QueueOut)
def my_queue(
    limit: Optional[int] = None,
    identity: Optional[Identity] = Depends(get_identity),
    store: RecordStore = Depends(get_store),
) -> QueueOut:
    queue = AssignmentAllocator(store).my_queue(identity, limit)
    return QueueOut(
        items=queue.items,
        count=queue.open_count,
        message=None if queue.open_count else "No active assignments pending",
    )


@router.post("/{assignment_id}/deactivate", response_model=Assignment)
def deactivate_assignment(
    assignment_id: str,
    identity: Optional[Identity] = Depends(get_identity),
    store: RecordStore = Depends(get_store),
) -> Assignment:
    return AssignmentAllocator(store).deactivate(identity, assignment_id)
