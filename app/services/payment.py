"""Thin pass-through to Stripe for payment intents, confirmations, refunds and history."""

import logging
from datetime import datetime, timezone

import stripe
from sqlalchemy.orm import Session

import app.repositories.user as user_repo
from app.core.config import settings
from app.db.models import User as UserModel
from app.errors import DomainValidationError, NotFoundError, PaymentGatewayError
from app.schemas.payment import (
    PaymentConfirmed,
    PaymentDetails,
    PaymentHistoryItem,
    PaymentIntentCreated,
    RefundCreated,
)

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 100


def _configure_stripe() -> None:
    if not settings.stripe_secret_key:
        raise PaymentGatewayError("Payment gateway is not configured")
    stripe.api_key = settings.stripe_secret_key


def _metadata_value(intent, key: str) -> str | None:
    metadata = getattr(intent, "metadata", None) or {}
    try:
        return metadata[key]
    except (KeyError, TypeError):
        return None


def _ensure_customer(db: Session, user: UserModel) -> str:
    """Return the user's Stripe customer id, creating the customer on first use."""
    if user.stripe_customer_id:
        return user.stripe_customer_id

    try:
        customer = stripe.Customer.create(
            email=user.email,
            name=user.full_name,
            metadata={"user_id": user.id},
        )
    except stripe.StripeError as e:
        logger.error("Stripe customer creation failed for user %s: %s", user.id, e)
        raise PaymentGatewayError("Unable to create payment customer") from e

    user_repo.set_stripe_customer_id(db, user, customer.id)
    return customer.id


def _retrieve_owned_intent(user: UserModel, payment_intent_id: str):
    """Fetch a payment intent and make sure it was created for this user."""
    try:
        intent = stripe.PaymentIntent.retrieve(payment_intent_id)
    except stripe.InvalidRequestError as e:
        raise NotFoundError("Payment intent not found") from e
    except stripe.StripeError as e:
        logger.error("Stripe retrieve failed for %s: %s", payment_intent_id, e)
        raise PaymentGatewayError("Unable to retrieve payment intent") from e

    if _metadata_value(intent, "user_id") != user.id:
        raise NotFoundError("Payment intent not found")
    return intent


def create_payment_intent(
    db: Session, user: UserModel, amount: int, currency: str, description: str
) -> PaymentIntentCreated:
    """
    Create a card PaymentIntent for the user.

    Raises:
        DomainValidationError: Amount below the gateway minimum.
        PaymentGatewayError: Stripe rejected the request.
    """
    if amount < settings.payment_min_amount:
        logger.warning("Invalid payment amount %s from user %s", amount, user.id)
        raise DomainValidationError(
            f"Invalid amount. Minimum {settings.payment_min_amount} cents required."
        )

    _configure_stripe()
    customer_id = _ensure_customer(db, user)

    try:
        intent = stripe.PaymentIntent.create(
            amount=amount,
            currency=currency.lower(),
            customer=customer_id,
            payment_method_types=["card"],
            metadata={
                "user_id": user.id,
                "description": description,
                "timestamp": datetime.now(timezone.utc).isoformat(),
            },
            setup_future_usage="off_session",
        )
    except stripe.StripeError as e:
        logger.error("Payment intent creation failed for user %s: %s", user.id, e)
        raise PaymentGatewayError("Unable to create payment intent") from e

    logger.info("Payment intent %s created for user %s", intent.id, user.id)
    return PaymentIntentCreated(client_secret=intent.client_secret, payment_intent_id=intent.id)


def confirm_payment(user: UserModel, payment_intent_id: str) -> PaymentConfirmed:
    """
    Check that a payment intent has succeeded.

    Raises:
        NotFoundError: Unknown intent or one that belongs to another user.
        DomainValidationError: The intent exists but has not succeeded.
    """
    _configure_stripe()
    intent = _retrieve_owned_intent(user, payment_intent_id)

    if intent.status != "succeeded":
        logger.warning("Payment not completed: %s, status %s", intent.id, intent.status)
        raise DomainValidationError(f"Payment not completed (status: {intent.status})")

    methods = getattr(intent, "payment_method_types", None) or []
    logger.info("Payment successful: %s", intent.id)
    return PaymentConfirmed(
        payment_details=PaymentDetails(
            id=intent.id,
            amount=intent.amount,
            currency=intent.currency,
            method=methods[0] if methods else None,
            status=intent.status,
        )
    )


def refund_payment(user: UserModel, payment_intent_id: str, amount: int | None = None) -> RefundCreated:
    """Refund a payment intent in full, or partially when amount is given."""
    _configure_stripe()
    intent = _retrieve_owned_intent(user, payment_intent_id)

    params = {"payment_intent": intent.id}
    if amount is not None:
        params["amount"] = amount

    try:
        refund = stripe.Refund.create(**params)
    except stripe.StripeError as e:
        logger.error("Refund failed for %s: %s", intent.id, e)
        raise PaymentGatewayError("Unable to process refund") from e

    logger.info("Refund %s processed for %s", refund.id, intent.id)
    return RefundCreated(
        refund_id=refund.id,
        amount=refund.amount,
        status=getattr(refund, "status", None),
    )


def list_payment_intents(user: UserModel) -> list[PaymentHistoryItem]:
    """Most recent payment intents of the user's Stripe customer; empty before the first payment."""
    if not user.stripe_customer_id:
        return []

    _configure_stripe()
    try:
        intents = stripe.PaymentIntent.list(limit=HISTORY_LIMIT, customer=user.stripe_customer_id)
    except stripe.StripeError as e:
        logger.error("Payment history retrieval failed for user %s: %s", user.id, e)
        raise PaymentGatewayError("Unable to retrieve payment history") from e

    return [
        PaymentHistoryItem(
            id=intent.id,
            amount=intent.amount,
            currency=intent.currency,
            status=intent.status,
            created=intent.created,
        )
        for intent in intents.data
    ]
