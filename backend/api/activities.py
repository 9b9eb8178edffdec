# =====================================
# backend/api/activities.py - Activity Log
# =====================================
from fastapi import APIRouter, HTTPException, Depends
from supabase import Client
from datetime import datetime
from typing import Optional

from api.auth import get_current_user
from api.errors import server_error
from database.supabase_client import get_db
from models.schemas import ActivityCreate, UserResponse, DATE_FORMAT
from services.analytics import day_summary, today_summary
from services.categories import productive_categories

router = APIRouter()


def today_str() -> str:
    """Today's calendar day in UTC"""
    return datetime.utcnow().strftime(DATE_FORMAT)


def fetch_day(db: Client, user_id: str, day: str):
    """A user's activities for one day, newest first"""
    result = db.table('activities')\
        .select('*')\
        .eq('user_id', user_id)\
        .eq('date', day)\
        .order('created_at', desc=True)\
        .execute()
    return result.data or []


def fetch_custom_categories(db: Client, user_id: str):
    result = db.table('categories').select('*').eq('user_id', user_id).execute()
    return result.data or []


@router.post("", status_code=201)
async def create_activity(
    activity: ActivityCreate,
    current_user: UserResponse = Depends(get_current_user),
    db: Client = Depends(get_db),
):
    """Logs a time entry; date defaults to today"""
    try:
        result = db.table('activities').insert({
            'user_id': current_user.id,
            'category': activity.category,
            'duration': activity.duration,
            'date': activity.date or today_str(),
            'notes': activity.notes or None,
            'created_at': datetime.utcnow().isoformat(),
        }).execute()

        if not result.data:
            raise HTTPException(status_code=500, detail="Failed to record activity")

        return {
            "success": True,
            "message": "Activity created successfully",
            "data": result.data[0],
        }

    except HTTPException:
        raise
    except Exception as e:
        raise server_error(e, "Create activity error")


@router.get("/today")
async def get_today_activities(
    current_user: UserResponse = Depends(get_current_user),
    db: Client = Depends(get_db),
):
    try:
        activities = fetch_day(db, current_user.id, today_str())
        return {"success": True, "data": activities, "total": len(activities)}
    except Exception as e:
        raise server_error(e, "Get today activities error")


@router.get("/summary")
async def get_activity_summary(
    current_user: UserResponse = Depends(get_current_user),
    db: Client = Depends(get_db),
):
    """Dashboard numbers for today"""
    try:
        activities = fetch_day(db, current_user.id, today_str())
        productive = productive_categories(fetch_custom_categories(db, current_user.id))
        return {"success": True, "data": today_summary(activities, productive)}
    except Exception as e:
        raise server_error(e, "Get activity summary error")


@router.get("")
async def get_activities_by_date(
    date: Optional[str] = None,
    current_user: UserResponse = Depends(get_current_user),
    db: Client = Depends(get_db),
):
    if not date:
        raise HTTPException(status_code=400, detail="Date parameter is required")

    try:
        activities = fetch_day(db, current_user.id, date)
        return {"success": True, "data": activities, "summary": day_summary(activities)}
    except Exception as e:
        raise server_error(e, "Get activities by date error")


@router.delete("/{activity_id}")
async def delete_activity(
    activity_id: str,
    current_user: UserResponse = Depends(get_current_user),
    db: Client = Depends(get_db),
):
    """Owner-only delete"""
    try:
        existing = db.table('activities')\
            .select('id')\
            .eq('id', activity_id)\
            .eq('user_id', current_user.id)\
            .execute()

        if not existing.data:
            raise HTTPException(status_code=404, detail="Activity not found")

        db.table('activities').delete().eq('id', activity_id).eq('user_id', current_user.id).execute()

        return {"success": True, "message": "Activity deleted successfully"}

    except HTTPException:
        raise
    except Exception as e:
        raise server_error(e, "Delete activity error")
