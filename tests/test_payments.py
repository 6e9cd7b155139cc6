from types import SimpleNamespace

import pytest
import stripe
from sqlalchemy.orm import Session

from app.db.models import User as UserModel


@pytest.fixture
def fake_stripe(monkeypatch, registered_user: dict):
    """Replace the Stripe API calls with in-memory fakes and record what was sent."""
    calls = {"customers": [], "intents": [], "refunds": [], "lists": []}
    intents = {}

    def create_customer(**kwargs):
        calls["customers"].append(kwargs)
        return SimpleNamespace(id="cus_123")

    def create_intent(**kwargs):
        calls["intents"].append(kwargs)
        intent = SimpleNamespace(
            id=f"pi_{len(intents) + 1}",
            client_secret=f"pi_{len(intents) + 1}_secret",
            amount=kwargs["amount"],
            currency=kwargs["currency"],
            status="requires_payment_method",
            payment_method_types=kwargs["payment_method_types"],
            metadata=dict(kwargs["metadata"]),
            created=1700000000 + len(intents),
        )
        intents[intent.id] = intent
        return intent

    def retrieve_intent(intent_id, **kwargs):
        if intent_id not in intents:
            raise stripe.InvalidRequestError(f"No such payment_intent: '{intent_id}'", "intent")
        return intents[intent_id]

    def list_intents(**kwargs):
        calls["lists"].append(kwargs)
        return SimpleNamespace(data=list(intents.values()))

    def create_refund(**kwargs):
        calls["refunds"].append(kwargs)
        amount = kwargs.get("amount") or intents[kwargs["payment_intent"]].amount
        return SimpleNamespace(id="re_1", amount=amount, status="succeeded")

    monkeypatch.setattr(stripe.Customer, "create", create_customer)
    monkeypatch.setattr(stripe.PaymentIntent, "create", create_intent)
    monkeypatch.setattr(stripe.PaymentIntent, "retrieve", retrieve_intent)
    monkeypatch.setattr(stripe.PaymentIntent, "list", list_intents)
    monkeypatch.setattr(stripe.Refund, "create", create_refund)

    return SimpleNamespace(calls=calls, intents=intents)


def _create_intent(client, auth_headers, amount=2500):
    return client.post(
        "/api/payments/create-payment-intent",
        json={"amount": amount, "currency": "USD"},
        headers=auth_headers,
    )


def test_create_payment_intent(client, db: Session, registered_user, auth_headers, fake_stripe):
    response = _create_intent(client, auth_headers)

    assert response.status_code == 200
    assert response.json() == {"clientSecret": "pi_1_secret", "paymentIntentId": "pi_1"}

    sent = fake_stripe.calls["intents"][0]
    assert sent["amount"] == 2500
    assert sent["currency"] == "usd"
    assert sent["customer"] == "cus_123"
    assert sent["metadata"]["user_id"] == registered_user["id"]

    db.expire_all()
    assert db.get(UserModel, registered_user["id"]).stripe_customer_id == "cus_123"


def test_customer_is_created_once(client, db: Session, auth_headers, fake_stripe):
    _create_intent(client, auth_headers)
    _create_intent(client, auth_headers)

    assert len(fake_stripe.calls["customers"]) == 1
    assert len(fake_stripe.calls["intents"]) == 2


def test_create_payment_intent_below_minimum(client, db: Session, auth_headers, fake_stripe):
    response = _create_intent(client, auth_headers, amount=49)

    assert response.status_code == 400
    assert "Minimum 50 cents" in response.json()["detail"]
    assert fake_stripe.calls["intents"] == []


def test_payments_require_token(client, db: Session, fake_stripe):
    response = client.post(
        "/api/payments/create-payment-intent", json={"amount": 2500}
    )
    assert response.status_code == 401
    assert response.json()["code"] == "NO_TOKEN"


def test_confirm_payment_pending_then_succeeded(client, db: Session, auth_headers, fake_stripe):
    intent_id = _create_intent(client, auth_headers).json()["paymentIntentId"]

    pending = client.post(
        "/api/payments/confirm-payment",
        json={"paymentIntentId": intent_id},
        headers=auth_headers,
    )
    assert pending.status_code == 400
    assert "requires_payment_method" in pending.json()["detail"]

    fake_stripe.intents[intent_id].status = "succeeded"
    confirmed = client.post(
        "/api/payments/confirm-payment",
        json={"paymentIntentId": intent_id},
        headers=auth_headers,
    )
    assert confirmed.status_code == 200
    details = confirmed.json()["paymentDetails"]
    assert details["id"] == intent_id
    assert details["amount"] == 2500
    assert details["method"] == "card"


def test_confirm_unknown_payment(client, db: Session, auth_headers, fake_stripe):
    response = client.post(
        "/api/payments/confirm-payment",
        json={"paymentIntentId": "pi_missing"},
        headers=auth_headers,
    )
    assert response.status_code == 404


def test_cannot_touch_another_users_payment(client, db: Session, auth_headers, fake_stripe):
    intent_id = _create_intent(client, auth_headers).json()["paymentIntentId"]

    other = client.post(
        "/api/auth/signup",
        json={"fullName": "Mallory", "email": "mallory@x.com", "password": "Mallory12"},
    ).json()
    other_headers = {"Authorization": f"Bearer {other['token']}"}

    response = client.post(
        "/api/payments/refund",
        json={"paymentIntentId": intent_id},
        headers=other_headers,
    )
    assert response.status_code == 404
    assert fake_stripe.calls["refunds"] == []


def test_full_and_partial_refund(client, db: Session, auth_headers, fake_stripe):
    intent_id = _create_intent(client, auth_headers).json()["paymentIntentId"]

    full = client.post(
        "/api/payments/refund", json={"paymentIntentId": intent_id}, headers=auth_headers
    )
    assert full.status_code == 200
    assert full.json()["refundId"] == "re_1"
    assert full.json()["amount"] == 2500
    assert "amount" not in fake_stripe.calls["refunds"][0]

    partial = client.post(
        "/api/payments/refund",
        json={"paymentIntentId": intent_id, "amount": 1000},
        headers=auth_headers,
    )
    assert partial.status_code == 200
    assert partial.json()["amount"] == 1000


def test_history_is_empty_before_first_payment(client, db: Session, auth_headers, fake_stripe):
    response = client.get("/api/payments/history", headers=auth_headers)

    assert response.status_code == 200
    assert response.json() == {"success": True, "paymentHistory": []}
    assert fake_stripe.calls["lists"] == []


def test_history_lists_customer_intents(client, db: Session, auth_headers, fake_stripe):
    _create_intent(client, auth_headers, amount=2500)
    _create_intent(client, auth_headers, amount=5000)

    response = client.get("/api/payments/history", headers=auth_headers)

    assert response.status_code == 200
    history = response.json()["paymentHistory"]
    assert [item["amount"] for item in history] == [2500, 5000]
    assert fake_stripe.calls["lists"][0]["customer"] == "cus_123"


def test_gateway_failure_maps_to_bad_gateway(
    client, db: Session, auth_headers, fake_stripe, monkeypatch
):
    def failing_create(**kwargs):
        raise stripe.APIConnectionError("connection reset")

    monkeypatch.setattr(stripe.PaymentIntent, "create", failing_create)

    response = _create_intent(client, auth_headers)
    assert response.status_code == 502
    assert response.json()["code"] == "PAYMENT_GATEWAY_ERROR"
    assert "connection reset" not in response.json()["detail"]
