from pydantic import Field

from app.schemas.base import CamelModel


class PaymentIntentCreate(CamelModel):
    amount: int = Field(..., description="Amount in the smallest currency unit (cents)")
    currency: str = Field("usd", min_length=3, max_length=3)
    description: str = Field("Feasibility Project Payment", max_length=500)


class PaymentIntentCreated(CamelModel):
    client_secret: str
    payment_intent_id: str


class PaymentConfirm(CamelModel):
    payment_intent_id: str = Field(..., min_length=1)


class PaymentDetails(CamelModel):
    id: str
    amount: int
    currency: str
    method: str | None = None
    status: str


class PaymentConfirmed(CamelModel):
    success: bool = True
    message: str = "Payment successful"
    payment_details: PaymentDetails


class RefundCreate(CamelModel):
    payment_intent_id: str = Field(..., min_length=1)
    amount: int | None = Field(None, gt=0, description="Partial amount; full refund when omitted")


class RefundCreated(CamelModel):
    success: bool = True
    refund_id: str
    amount: int
    status: str | None = None


class PaymentHistoryItem(CamelModel):
    id: str
    amount: int
    currency: str
    status: str
    created: int


class PaymentHistory(CamelModel):
    success: bool = True
    payment_history: list[PaymentHistoryItem]
