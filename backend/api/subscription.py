# =====================================
# backend/api/subscription.py - Subscription Lifecycle
# =====================================
from fastapi import APIRouter, HTTPException, Depends
from supabase import Client

from api.auth import get_current_user
from api.errors import server_error
from database.supabase_client import get_db
from models.schemas import SubscriptionCreate, SubscriptionVerify, UserResponse
from payments.razorpay_client import get_payments
from services.subscription import SubscriptionTracker, SignatureError, SubscriptionNotFoundError

router = APIRouter()


def get_tracker(db: Client = Depends(get_db), payments=Depends(get_payments)) -> SubscriptionTracker:
    return SubscriptionTracker(db, payments)


@router.post("/create")
async def create_subscription(
    body: SubscriptionCreate,
    current_user: UserResponse = Depends(get_current_user),
    tracker: SubscriptionTracker = Depends(get_tracker),
):
    try:
        return tracker.create(current_user.id, body.plan_id)
    except Exception as e:
        raise server_error(e, "Subscription creation failed")


@router.post("/verify")
async def verify_subscription(
    body: SubscriptionVerify,
    current_user: UserResponse = Depends(get_current_user),
    tracker: SubscriptionTracker = Depends(get_tracker),
):
    """Called by the checkout once payment completes"""
    try:
        tracker.verify(
            current_user.id,
            body.razorpay_payment_id,
            body.razorpay_subscription_id,
            body.razorpay_signature,
        )
        return {"success": True}
    except SignatureError:
        raise HTTPException(status_code=400, detail="Invalid signature")
    except SubscriptionNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        raise server_error(e, "Subscription verification failed")


@router.post("/cancel")
async def cancel_subscription(
    current_user: UserResponse = Depends(get_current_user),
    tracker: SubscriptionTracker = Depends(get_tracker),
):
    try:
        cancel_response = tracker.cancel(current_user.model_dump())
        return {
            "success": True,
            "message": "Subscription will end after current billing cycle",
            "cancelResponse": cancel_response,
        }
    except SubscriptionNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        raise server_error(e, "Error cancelling subscription")


@router.get("/status")
async def subscription_status(current_user: UserResponse = Depends(get_current_user)):
    return {
        "success": True,
        "data": {
            "plan": current_user.plan,
            "subscriptionId": current_user.subscription_id,
            "subscriptionStatus": current_user.subscription_status,
            "subscriptionExpiresAt": (
                current_user.subscription_expires_at.isoformat()
                if current_user.subscription_expires_at else None
            ),
        },
    }
