# =====================================
# backend/api/webhook.py - Razorpay Webhook
# =====================================
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from supabase import Client
from typing import Optional
import logging

from database.supabase_client import get_db
from services.subscription import SubscriptionTracker, SignatureError, WebhookPayloadError

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/razorpay")
async def razorpay_webhook(request: Request, db: Client = Depends(get_db)):
    """
    Unauthenticated; trust comes from X-Razorpay-Signature.
    The body is read raw because the HMAC covers the exact bytes sent.
    """
    raw_body = await request.body()
    signature: Optional[str] = request.headers.get("x-razorpay-signature")

    try:
        SubscriptionTracker(db).handle_webhook(raw_body, signature)
    except (SignatureError, WebhookPayloadError):
        return JSONResponse(status_code=400, content={"success": False})
    except Exception as e:
        # Razorpay redelivers on non-2xx
        logger.exception("Webhook processing failed: %s", e)
        return JSONResponse(status_code=500, content={"success": False})

    return {"success": True}
