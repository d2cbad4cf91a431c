# listpilot/api/v1/endpoints/statistics.py
"""
Transactional email statistics, passed through from Brevo.
"""
from datetime import date
from typing import Any, Dict, List, Optional
from fastapi import APIRouter, Depends, Query

from listpilot.api.v1.dependencies import get_brevo_client
from listpilot.services.provider.client import BrevoClient


router = APIRouter()


def _iso(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value else None


@router.get("/{account_id}/statistics/aggregated")
async def get_aggregated_statistics(
    days: Optional[int] = Query(None, ge=1, le=90),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    tag: Optional[str] = Query(None),
    brevo: BrevoClient = Depends(get_brevo_client),
) -> Dict[str, Any]:
    """Aggregated counters (requests, delivered, opens...) over a period."""
    return await brevo.get_aggregated_report(
        days=days,
        startDate=_iso(start_date),
        endDate=_iso(end_date),
        tag=tag,
    )


@router.get("/{account_id}/statistics/reports")
async def get_statistics_reports(
    days: Optional[int] = Query(None, ge=1, le=30),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    tag: Optional[str] = Query(None),
    limit: int = Query(10, ge=1, le=30),
    offset: int = Query(0, ge=0),
    sort: str = Query("desc", pattern="^(asc|desc)$"),
    brevo: BrevoClient = Depends(get_brevo_client),
) -> List[Dict[str, Any]]:
    """Per-day reports."""
    return await brevo.get_reports(
        days=days,
        startDate=_iso(start_date),
        endDate=_iso(end_date),
        tag=tag,
        limit=limit,
        offset=offset,
        sort=sort,
    )


@router.get("/{account_id}/statistics/events")
async def get_statistics_events(
    days: Optional[int] = Query(None, ge=1, le=90),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    email: Optional[str] = Query(None),
    event: Optional[str] = Query(None, description="e.g. delivered, hardBounces, opened"),
    tags: Optional[str] = Query(None),
    message_id: Optional[str] = Query(None),
    template_id: Optional[int] = Query(None),
    limit: int = Query(50, ge=1, le=2500),
    offset: int = Query(0, ge=0),
    sort: str = Query("desc", pattern="^(asc|desc)$"),
    brevo: BrevoClient = Depends(get_brevo_client),
) -> List[Dict[str, Any]]:
    """Individual email events, newest first by default."""
    return await brevo.get_events(
        days=days,
        startDate=_iso(start_date),
        endDate=_iso(end_date),
        email=email,
        event=event,
        tags=tags,
        messageId=message_id,
        templateId=template_id,
        limit=limit,
        offset=offset,
        sort=sort,
    )
