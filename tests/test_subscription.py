import json

import pytest

from models.schemas import SubscriptionStatus
from services.subscription import SignatureError, SubscriptionTracker, status_changes
from utils.signatures import (
    hmac_sha256_hex,
    payment_signature,
    verify_payment_signature,
    verify_webhook_signature,
)


def _subscribe(user, subscription_id='sub_test123', status='created'):
    user['subscription_id'] = subscription_id
    user['subscription_status'] = status


def _webhook_body(event, subscription_id='sub_test123', **entity):
    return json.dumps({
        'event': event,
        'payload': {'subscription': {'entity': {'id': subscription_id, **entity}}},
    }).encode()


def _post_webhook(client, body, secret='webhook_secret', signature=None):
    signature = signature if signature is not None else hmac_sha256_hex(secret, body)
    return client.post(
        '/api/webhook/razorpay',
        content=body,
        headers={'Content-Type': 'application/json', 'X-Razorpay-Signature': signature},
    )


# ---------- signatures ----------

def test_payment_signature_is_over_ids_joined_by_pipe():
    expected = hmac_sha256_hex('secret', 'pay_1|sub_1')
    assert verify_payment_signature('secret', 'pay_1', 'sub_1', expected)
    assert not verify_payment_signature('secret', 'sub_1', 'pay_1', expected)
    assert not verify_payment_signature('secret', 'pay_1', 'sub_1', None)


def test_webhook_signature_covers_raw_bytes():
    body = b'{"event": "subscription.activated"}'
    signature = hmac_sha256_hex('whsec', body)

    assert verify_webhook_signature('whsec', body, signature)
    # Same JSON, different bytes
    assert not verify_webhook_signature('whsec', b'{"event":"subscription.activated"}', signature)


def test_non_ascii_signature_does_not_match():
    assert not verify_payment_signature('secret', 'pay_1', 'sub_1', 'é' * 64)
    assert not verify_webhook_signature('whsec', b'{}', 'é' * 64)


# ---------- create / verify / cancel ----------

def test_create_subscription_records_id_without_plan_change(client, fake_payments, user):
    res = client.post('/api/subscription/create', json={'planId': 'plan_monthly'})

    assert res.status_code == 200
    assert res.json() == {'subscriptionId': 'sub_test123', 'key': 'rzp_test_key'}
    assert fake_payments.subscription.created == [
        {'plan_id': 'plan_monthly', 'customer_notify': 1, 'total_count': 12},
    ]
    assert user['subscription_id'] == 'sub_test123'
    assert user['subscription_status'] == 'created'
    assert user['plan'] == 'free'


def test_verify_with_valid_signature_upgrades_plan(client, user):
    _subscribe(user)
    signature = payment_signature('key_secret', 'pay_1', 'sub_test123')

    res = client.post('/api/subscription/verify', json={
        'razorpay_payment_id': 'pay_1',
        'razorpay_subscription_id': 'sub_test123',
        'razorpay_signature': signature,
    })

    assert res.status_code == 200
    assert res.json() == {'success': True}
    assert user['plan'] == 'paid'
    assert user['subscription_status'] == 'active'


def test_verify_with_bad_signature_changes_nothing(client, fake_db, user):
    _subscribe(user)

    res = client.post('/api/subscription/verify', json={
        'razorpay_payment_id': 'pay_1',
        'razorpay_subscription_id': 'sub_test123',
        'razorpay_signature': 'deadbeef',
    })

    assert res.status_code == 400
    assert res.json() == {'success': False, 'message': 'Invalid signature'}
    assert fake_db.writes() == []
    assert user['plan'] == 'free'


def test_verify_with_non_ascii_signature_is_rejected(client, fake_db, user):
    _subscribe(user)

    res = client.post('/api/subscription/verify', json={
        'razorpay_payment_id': 'pay_1',
        'razorpay_subscription_id': 'sub_test123',
        'razorpay_signature': 'é' * 64,
    })

    assert res.status_code == 400
    assert res.json() == {'success': False, 'message': 'Invalid signature'}
    assert fake_db.writes() == []
    assert user['plan'] == 'free'


def test_verify_for_unknown_subscription(client, user):
    signature = payment_signature('key_secret', 'pay_1', 'sub_other')

    res = client.post('/api/subscription/verify', json={
        'razorpay_payment_id': 'pay_1',
        'razorpay_subscription_id': 'sub_other',
        'razorpay_signature': signature,
    })

    assert res.status_code == 404
    assert user['plan'] == 'free'


def test_cancel_sets_soft_cancel_and_keeps_plan(client, fake_payments, user):
    _subscribe(user, status='active')
    user['plan'] = 'paid'

    res = client.post('/api/subscription/cancel')

    assert res.status_code == 200
    assert res.json()['success'] is True
    assert fake_payments.subscription.cancelled == [('sub_test123', {'cancel_at_cycle_end': 1})]
    assert user['subscription_status'] == 'cancelled_at_period_end'
    assert user['plan'] == 'paid'


def test_cancel_without_subscription(client, fake_payments):
    res = client.post('/api/subscription/cancel')

    assert res.status_code == 404
    assert res.json() == {'success': False, 'message': 'Subscription not found'}
    assert fake_payments.subscription.cancelled == []


def test_status_endpoint(client, user):
    _subscribe(user, status='active')

    res = client.get('/api/subscription/status')

    assert res.json()['data'] == {
        'plan': 'free',
        'subscriptionId': 'sub_test123',
        'subscriptionStatus': 'active',
        'subscriptionExpiresAt': None,
    }


# ---------- webhook ----------

def test_webhook_with_invalid_signature_touches_nothing(client, fake_db, user):
    _subscribe(user, status='active')

    res = _post_webhook(client, _webhook_body('subscription.cancelled'), signature='bad')

    assert res.status_code == 400
    assert res.json() == {'success': False}
    assert fake_db.calls == []
    assert user['subscription_status'] == 'active'


def test_webhook_without_signature_is_rejected(client, fake_db):
    res = client.post('/api/webhook/razorpay', content=_webhook_body('subscription.activated'))

    assert res.status_code == 400
    assert fake_db.calls == []


def test_webhook_with_non_ascii_signature_is_rejected(client, fake_db, user):
    _subscribe(user, status='active')

    res = client.post(
        '/api/webhook/razorpay',
        content=_webhook_body('subscription.cancelled'),
        headers={'Content-Type': 'application/json', 'X-Razorpay-Signature': 'é'.encode('latin-1') * 64},
    )

    assert res.status_code == 400
    assert res.json() == {'success': False}
    assert fake_db.calls == []
    assert user['subscription_status'] == 'active'


@pytest.mark.parametrize('body', [b'[]', b'"subscription.cancelled"', b'42', b'null'])
def test_webhook_with_non_object_body_is_rejected(client, fake_db, body):
    res = _post_webhook(client, body)

    assert res.status_code == 400
    assert res.json() == {'success': False}
    assert fake_db.calls == []


def test_webhook_activated(client, user):
    _subscribe(user)

    res = _post_webhook(client, _webhook_body('subscription.activated', current_end=1735689600))

    assert res.status_code == 200
    assert res.json() == {'success': True}
    assert user['subscription_status'] == 'active'
    assert user['subscription_expires_at'] == '2025-01-01T00:00:00+00:00'


@pytest.mark.parametrize('event', ['subscription.paused', 'subscription.halted'])
def test_webhook_pause_events(client, user, event):
    _subscribe(user, status='active')

    _post_webhook(client, _webhook_body(event))

    assert user['subscription_status'] == 'paused'
    assert user['subscription_id'] == 'sub_test123'


@pytest.mark.parametrize('event,status', [
    ('subscription.cancelled', 'cancelled'),
    ('subscription.completed', 'completed'),
])
def test_webhook_terminal_events_revert_to_free(client, user, event, status):
    _subscribe(user, status='cancelled_at_period_end')
    user['plan'] = 'paid'

    res = _post_webhook(client, _webhook_body(event))

    assert res.status_code == 200
    assert user['subscription_status'] == status
    assert user['plan'] == 'free'
    assert user['subscription_id'] is None


def test_webhook_is_idempotent(client, user):
    _subscribe(user, status='active')
    user['plan'] = 'paid'
    body = _webhook_body('subscription.cancelled')

    _post_webhook(client, body)
    first = dict(user)
    res = _post_webhook(client, body)

    assert res.status_code == 200
    assert user == first


@pytest.mark.parametrize('event,status', [
    ('subscription.activated', 'active'),
    ('subscription.paused', 'paused'),
])
def test_redelivered_webhook_leaves_user_unchanged(client, fake_db, user, event, status):
    _subscribe(user)
    body = _webhook_body(event, current_end=1735689600)

    _post_webhook(client, body)
    first = dict(user)
    res = _post_webhook(client, body)

    assert res.status_code == 200
    assert first['subscription_status'] == status
    assert first['subscription_id'] == 'sub_test123'
    assert first['subscription_expires_at'] == '2025-01-01T00:00:00+00:00'
    assert user == first
    # Second delivery still reached the user row
    assert fake_db.writes().count(('users', 'update')) == 2


def test_webhook_unknown_event_is_ignored(client, fake_db, user):
    _subscribe(user, status='active')

    res = _post_webhook(client, _webhook_body('subscription.charged'))

    assert res.status_code == 200
    assert res.json() == {'success': True}
    assert fake_db.writes() == []
    assert user['subscription_status'] == 'active'


def test_webhook_for_unknown_subscription_is_noop(client, fake_db, user):
    res = _post_webhook(client, _webhook_body('subscription.cancelled', subscription_id='sub_nobody'))

    assert res.status_code == 200
    assert fake_db.writes() == []


def test_webhook_store_failure_returns_500(client, fake_db, user):
    _subscribe(user, status='active')
    fake_db.fail_on = ('users', 'update')

    res = _post_webhook(client, _webhook_body('subscription.cancelled'))

    assert res.status_code == 500
    assert res.json() == {'success': False}


# ---------- tracker ----------

def test_tracker_rejects_bad_webhook_signature(fake_db, payment_secrets):
    tracker = SubscriptionTracker(fake_db)
    with pytest.raises(SignatureError):
        tracker.handle_webhook(_webhook_body('subscription.activated'), 'nope')


def test_status_changes_for_terminal_and_active():
    assert status_changes({'id': 's'}, SubscriptionStatus.ACTIVE) == {'subscription_status': 'active'}
    assert status_changes({'id': 's'}, SubscriptionStatus.COMPLETED) == {
        'subscription_status': 'completed',
        'plan': 'free',
        'subscription_id': None,
    }


def test_tracker_rejects_non_ascii_webhook_signature(fake_db, payment_secrets):
    tracker = SubscriptionTracker(fake_db)
    with pytest.raises(SignatureError):
        tracker.handle_webhook(_webhook_body('subscription.activated'), 'é' * 64)
    assert fake_db.calls == []
