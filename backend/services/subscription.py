# =====================================
# backend/services/subscription.py - Subscription State Tracker
# =====================================
"""
Keeps the user's plan and subscription status in sync with Razorpay.

Transitions come from two places: the user's own API calls (create,
verify, cancel) and signed webhooks. Every write touches exactly one
user row; the latest applied status wins.
"""
from datetime import datetime, timezone
from typing import Dict, Optional
import json
import logging

from models.schemas import Plan, SubscriptionStatus
from utils.settings import Settings, settings as default_settings
from utils.signatures import verify_payment_signature, verify_webhook_signature

logger = logging.getLogger(__name__)

WEBHOOK_EVENT_STATUS: Dict[str, SubscriptionStatus] = {
    "subscription.activated": SubscriptionStatus.ACTIVE,
    "subscription.paused": SubscriptionStatus.PAUSED,
    "subscription.halted": SubscriptionStatus.PAUSED,
    "subscription.cancelled": SubscriptionStatus.CANCELLED,
    "subscription.completed": SubscriptionStatus.COMPLETED,
}

# Statuses that end the subscription and drop the user back to free
TERMINAL_STATUSES = {SubscriptionStatus.CANCELLED, SubscriptionStatus.COMPLETED}


class SignatureError(Exception):
    """Signature did not match; nothing was written"""


class SubscriptionNotFoundError(Exception):
    pass


class WebhookPayloadError(ValueError):
    pass


def expiry_from_epoch(seconds) -> Optional[str]:
    if not seconds:
        return None
    return datetime.fromtimestamp(int(seconds), tz=timezone.utc).isoformat()


def status_changes(entity: Dict, status: SubscriptionStatus) -> Dict:
    """User-row fields to write when a subscription moves to `status`"""
    changes = {"subscription_status": status.value}

    if status in TERMINAL_STATUSES:
        changes["plan"] = Plan.FREE.value
        changes["subscription_id"] = None

    expires_at = expiry_from_epoch(entity.get("current_end"))
    if expires_at:
        changes["subscription_expires_at"] = expires_at

    return changes


class SubscriptionTracker:
    """
    Usage:
        tracker = SubscriptionTracker(supabase, razorpay_client)
        tracker.cancel(current_user)
    """

    def __init__(self, db, payments=None, settings: Settings = default_settings):
        self.db = db
        self.payments = payments
        self.settings = settings

    # ---------- user-initiated ----------

    def create(self, user_id: str, plan_id: str) -> Dict:
        """Opens a subscription at the processor; the plan stays unchanged until verify"""
        subscription = self.payments.subscription.create({
            "plan_id": plan_id,
            "customer_notify": 1,
            "total_count": self.settings.subscription_total_count,
        })

        self.db.table('users').update({
            'subscription_id': subscription["id"],
            'subscription_status': subscription.get("status", SubscriptionStatus.CREATED.value),
        }).eq('id', user_id).execute()

        logger.info("Subscription %s created for user %s", subscription["id"], user_id)
        return {
            "subscriptionId": subscription["id"],
            "key": self.settings.razorpay_key_id,
        }

    def verify(self, user_id: str, payment_id: str, subscription_id: str, signature: str) -> None:
        """Checks the checkout signature, then upgrades the user to paid"""
        if not verify_payment_signature(self.settings.razorpay_key_secret, payment_id, subscription_id, signature):
            logger.warning("Invalid payment signature for subscription %s", subscription_id)
            raise SignatureError("Invalid signature")

        result = self.db.table('users').update({
            'plan': Plan.PAID.value,
            'subscription_status': SubscriptionStatus.ACTIVE.value,
        }).eq('id', user_id).eq('subscription_id', subscription_id).execute()

        if not result.data:
            raise SubscriptionNotFoundError("Subscription not found")

        logger.info("Subscription %s verified, user %s is now paid", subscription_id, user_id)

    def cancel(self, user: Dict) -> Dict:
        """Cancels at the end of the billing cycle; access stays until the terminal webhook"""
        subscription_id = user.get('subscription_id')
        if not subscription_id:
            raise SubscriptionNotFoundError("Subscription not found")

        response = self.payments.subscription.cancel(subscription_id, {"cancel_at_cycle_end": 1})

        self.db.table('users').update({
            'subscription_status': SubscriptionStatus.CANCELLED_AT_PERIOD_END.value,
        }).eq('id', user['id']).execute()

        logger.info("Subscription %s will cancel at period end", subscription_id)
        return response

    # ---------- processor-initiated ----------

    def handle_webhook(self, raw_body: bytes, signature: Optional[str]) -> Optional[SubscriptionStatus]:
        """
        Applies a signed webhook. Returns the status written, or None when the
        event is ignored (unknown event, unknown subscription).
        """
        if not verify_webhook_signature(self.settings.razorpay_webhook_secret, raw_body, signature):
            logger.warning("Invalid Razorpay webhook signature")
            raise SignatureError("Invalid webhook signature")

        try:
            payload = json.loads(raw_body)
        except ValueError as e:
            raise WebhookPayloadError("Webhook body is not valid JSON") from e

        if not isinstance(payload, dict):
            raise WebhookPayloadError("Webhook body must be a JSON object")

        event = payload.get("event")
        logger.info("Razorpay webhook event: %s", event)

        status = WEBHOOK_EVENT_STATUS.get(event)
        if status is None:
            logger.warning("Unhandled webhook event: %s", event)
            return None

        entity = ((payload.get("payload") or {}).get("subscription") or {}).get("entity") or {}
        if not entity.get("id"):
            logger.warning("Webhook %s carried no subscription entity", event)
            return None

        return self.apply_status(entity, status)

    def apply_status(self, entity: Dict, status: SubscriptionStatus) -> Optional[SubscriptionStatus]:
        found = self.db.table('users').select('id').eq('subscription_id', entity["id"]).execute()
        if not found.data:
            logger.info("No user for subscription %s, ignoring", entity["id"])
            return None

        user_id = found.data[0]['id']
        self.db.table('users').update(status_changes(entity, status)).eq('id', user_id).execute()

        logger.info("Subscription %s updated to %s", entity["id"], status.value)
        return status
