from __future__ import annotations

import asyncio
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pymongo.errors import PyMongoError

from signage.api.deps import get_content_repo, get_holiday_provider
from signage.services.holidays import HolidayProvider
from signage.services.schedule import describe_schedule, schedule_for_month
from signage.state.content_repository import ContentRepository

router = APIRouter(tags=["schedule"])


# =====================================================
# MONTH VIEW (admin calendar)
# =====================================================

@router.get("/schedule")
async def month_schedule(
    year: int = Query(..., ge=1970, le=2100),
    month: int = Query(..., ge=1, le=12),
    deviceId: Optional[str] = Query(None),
    repo: ContentRepository = Depends(get_content_repo),
    holidays: HolidayProvider = Depends(get_holiday_provider),
):
    try:
        items = await asyncio.to_thread(repo.list_all, deviceId)
    except PyMongoError:
        raise HTTPException(status_code=503, detail="content storage unavailable")

    days = {
        day: [
            {**item.model_dump(mode="json"), "scheduleLabel": describe_schedule(item)}
            for item in scheduled
        ]
        for day, scheduled in schedule_for_month(items, year, month).items()
    }
    month_holidays = {
        d.isoformat(): name
        for d, name in sorted(holidays.holidays_for_year(year).items())
        if d.month == month
    }
    return {"year": year, "month": month, "days": days, "holidays": month_holidays}


@router.get("/holidays/{year}")
async def year_holidays(year: int, holidays: HolidayProvider = Depends(get_holiday_provider)):
    if year < 1970 or year > 2100:
        raise HTTPException(status_code=400, detail="year out of range")
    return {
        d.isoformat(): name
        for d, name in sorted(holidays.holidays_for_year(year).items())
    }
