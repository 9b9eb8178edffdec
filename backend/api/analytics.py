# =====================================
# backend/api/analytics.py - Analytics Rollups
# =====================================
from fastapi import APIRouter, HTTPException, Depends
from supabase import Client
from datetime import datetime
from typing import Optional

from api.auth import get_current_user
from api.errors import server_error
from database.supabase_client import get_db
from models.schemas import UserResponse
from utils.settings import settings
from services.analytics import build_rollup, check_range, weekly_range, monthly_range, RangeTooLargeError
from services.categories import productive_categories

router = APIRouter()


def get_analytics_data(db: Client, user_id: str, start_date: str, end_date: str) -> dict:
    """Loads the range and the user's categories, then aggregates. Never persisted."""
    activities = db.table('activities')\
        .select('category, duration, date')\
        .eq('user_id', user_id)\
        .gte('date', start_date)\
        .lte('date', end_date)\
        .order('date')\
        .execute()

    custom = db.table('categories').select('name, is_productive').eq('user_id', user_id).execute()

    return build_rollup(
        activities.data or [],
        start_date,
        end_date,
        productive_categories(custom.data or []),
    )


@router.get("/weekly")
async def get_weekly_analytics(
    current_user: UserResponse = Depends(get_current_user),
    db: Client = Depends(get_db),
):
    """Current ISO week, Monday to Sunday"""
    try:
        start_date, end_date = weekly_range(datetime.utcnow().date())
        return {"success": True, "data": get_analytics_data(db, current_user.id, start_date, end_date)}
    except Exception as e:
        raise server_error(e, "Get weekly analytics error")


@router.get("/monthly")
async def get_monthly_analytics(
    current_user: UserResponse = Depends(get_current_user),
    db: Client = Depends(get_db),
):
    try:
        start_date, end_date = monthly_range(datetime.utcnow().date())
        return {"success": True, "data": get_analytics_data(db, current_user.id, start_date, end_date)}
    except Exception as e:
        raise server_error(e, "Get monthly analytics error")


@router.get("/range")
async def get_date_range_analytics(
    startDate: Optional[str] = None,
    endDate: Optional[str] = None,
    current_user: UserResponse = Depends(get_current_user),
    db: Client = Depends(get_db),
):
    if not startDate or not endDate:
        raise HTTPException(status_code=400, detail="Start date and end date are required")

    try:
        check_range(startDate, endDate, settings.max_range_days)
        return {"success": True, "data": get_analytics_data(db, current_user.id, startDate, endDate)}
    except RangeTooLargeError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise server_error(e, "Get date range analytics error")
