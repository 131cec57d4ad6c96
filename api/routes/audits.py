"""Audit snapshot and analytics endpoints.

Snapshots are read-only history: they can be listed, fetched and deleted.
Analytics are computed on request from the full history.
"""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from analytics.aggregator import compute_analytics
from api.services.store import get_snapshot_store
from core.models.analytics import AnalyticsResult
from core.models.canonical import ALL_PRODUCTS, AnalyticsWindow, AuditSnapshot
from core.storage.snapshots import SnapshotStore


router = APIRouter()


@router.get("/snapshots", response_model=List[AuditSnapshot])
async def list_snapshots(
    store: SnapshotStore = Depends(get_snapshot_store),
) -> List[AuditSnapshot]:
    """List all snapshots in the order they were saved."""
    return store.list()


@router.get("/snapshots/{snapshot_id}", response_model=AuditSnapshot)
async def get_snapshot(
    snapshot_id: str,
    store: SnapshotStore = Depends(get_snapshot_store),
) -> AuditSnapshot:
    """Get one snapshot."""
    snapshot = store.get(snapshot_id)
    if snapshot is None:
        raise HTTPException(
            status_code=404,
            detail=f"Snapshot '{snapshot_id}' not found",
        )
    return snapshot


@router.delete("/snapshots/{snapshot_id}", status_code=204)
async def delete_snapshot(
    snapshot_id: str,
    store: SnapshotStore = Depends(get_snapshot_store),
) -> Response:
    """Delete a snapshot. Deleting an unknown id succeeds as well."""
    store.delete(snapshot_id)
    return Response(status_code=204)


@router.get("/analytics", response_model=AnalyticsResult)
async def get_analytics(
    start: Optional[date] = Query(None, description="First creation date to include"),
    end: Optional[date] = Query(None, description="Last creation date to include (whole day)"),
    product_id: str = Query(ALL_PRODUCTS, description="Article id for the product trend, or 'All'"),
    store: SnapshotStore = Depends(get_snapshot_store),
) -> AnalyticsResult:
    """KPIs, trend and top deviations over the snapshots in the window."""
    if start is not None and end is not None and start > end:
        raise HTTPException(status_code=400, detail="start must not be after end")

    window = AnalyticsWindow(start=start, end=end, product_id=product_id)
    return compute_analytics(window, store.list())
