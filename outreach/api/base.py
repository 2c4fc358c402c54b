from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from ..identity import Identity, require_identity
from ..models import HistoricalBaseRecord
from ..services import BaseStats, HistoricalBaseView
from ..store import RecordStore
from .deps import get_identity, get_store

router = APIRouter(prefix="/base", tags=["historical_base"])


@router.get("/", response_model=List[HistoricalBaseRecord])
def list_base(
    locality: Optional[str] = None,
    page: int = Query(default=1, ge=1),
    limit: Optional[int] = Query(default=None, ge=1, le=100000),
    identity: Optional[Identity] = Depends(get_identity),
    store: RecordStore = Depends(get_store),
) -> List[HistoricalBaseRecord]:
    """
    Full scan, then locality filter, then pagination (when limit is given).
    """
    require_identity(identity)
    return HistoricalBaseView(store).page(locality, page=page, limit=limit)


@router.get("/stats", response_model=BaseStats)
def base_stats(
    identity: Optional[Identity] = Depends(get_identity),
    store: RecordStore = Depends(get_store),
) -> BaseStats:
    require_identity(identity)
    return HistoricalBaseView(store).stats()
