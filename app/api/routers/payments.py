from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

import app.services.payment as payment_service
from app.api.deps import get_current_user, get_db
from app.db.models import User as UserModel
from app.schemas.payment import (
    PaymentConfirm,
    PaymentConfirmed,
    PaymentHistory,
    PaymentIntentCreate,
    PaymentIntentCreated,
    RefundCreate,
    RefundCreated,
)

router = APIRouter(prefix="/payments", tags=["payments"])


@router.post("/create-payment-intent", response_model=PaymentIntentCreated)
def create_payment_intent(
    payment: PaymentIntentCreate,
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(get_current_user),
):
    return payment_service.create_payment_intent(
        db, current_user, payment.amount, payment.currency, payment.description
    )


@router.post("/confirm-payment", response_model=PaymentConfirmed)
def confirm_payment(
    confirmation: PaymentConfirm,
    current_user: UserModel = Depends(get_current_user),
):
    """Report whether the payment intent has succeeded; 400 while it is still pending."""
    return payment_service.confirm_payment(current_user, confirmation.payment_intent_id)


@router.post("/refund", response_model=RefundCreated)
def refund_payment(
    refund: RefundCreate,
    current_user: UserModel = Depends(get_current_user),
):
    """Refund a payment in full, or partially when an amount is given."""
    return payment_service.refund_payment(current_user, refund.payment_intent_id, refund.amount)


@router.get("/history", response_model=PaymentHistory)
def get_payment_history(current_user: UserModel = Depends(get_current_user)):
    return PaymentHistory(payment_history=payment_service.list_payment_intents(current_user))
