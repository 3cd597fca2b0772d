from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional
from medicare.models.payment import PaymentMethod, PaymentStatus

class PaymentInitiate(BaseModel):
    appointment_id: int = Field(..., ge=1)
    amount: float = Field(..., ge=0)
    payment_method: str = Field(..., description="CASH, KHALTI or ESEWA")

class PaymentVerify(BaseModel):
    pidx: str = Field(..., min_length=1)

class PaymentResponse(BaseModel):
    id: int
    appointment_id: int
    amount: float
    payment_method: PaymentMethod
    payment_status: PaymentStatus
    pidx: Optional[str] = None
    transaction_id: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True

class PaymentInitiationResponse(BaseModel):
    success: bool
    message: str
    payment: PaymentResponse
    payment_method: PaymentMethod
    payment_url: Optional[str] = None
    pidx: Optional[str] = None

class PaymentVerificationResponse(BaseModel):
    success: bool
    message: str
    status: str
    payment: Optional[PaymentResponse] = None

class PaymentStatusResponse(BaseModel):
    exists: bool
    message: Optional[str] = None
    payment: Optional[PaymentResponse] = None
